from evguard.models import ContactIn, SecurityEvent, utc_from


def test_log_is_capped_and_newest_first(logbook, clock):
    for i in range(80):
        clock.advance(1)
        logbook.add("MASTER", "INFO", f"entry {i}")
    assert len(logbook.entries) == 50
    assert logbook.entries[0].message == "entry 79"
    stamps = [e.timestamp for e in logbook.entries]
    assert stamps == sorted(stamps, reverse=True)


def test_prepend_keeps_batch_order(logbook):
    logbook.add("MASTER", "INFO", "old")
    batch = [logbook.make("MASTER", "ALERT", "a"), logbook.make("SECURITY", "ALERT", "b")]
    logbook.prepend(batch)
    assert [e.message for e in logbook.entries] == ["a", "b", "old"]


def test_recently_targeted_window(logbook, clock):
    logbook.add("MASTER", "ALERT", "hot", target_vehicle_id="EV-103")
    clock.advance(4)
    assert logbook.recently_targeted("EV-103", 5.0)
    assert not logbook.recently_targeted("EV-104", 5.0)
    clock.advance(2)
    assert not logbook.recently_targeted("EV-103", 5.0)


def test_security_events_capped(logbook, clock):
    for i in range(logbook.max_events + 20):
        logbook.record_event(SecurityEvent(
            timestamp=utc_from(clock()), severity="MEDIUM", source="test",
            description=f"event {i}", action="BLOCKED",
        ))
    assert len(logbook.security_events) == logbook.max_events
    assert logbook.security_events[0].description == f"event {logbook.max_events + 19}"


def test_add_contact_logs_and_assigns_id(contacts, logbook):
    created = contacts.add(ContactIn(name="Priya Nair", relation="", phone="555-0199"))
    assert created is not None and created.id
    assert created.relation == "Friend"
    assert len(contacts) == 2
    assert logbook.entries[0].message == "Contact List Updated: Added Priya Nair (Friend)."


def test_contact_with_empty_phone_is_rejected(contacts, logbook):
    assert contacts.add(ContactIn(name="No Phone", relation="Friend", phone="")) is None
    assert contacts.add(ContactIn(name="   ", phone="555")) is None
    assert len(contacts) == 1
    assert logbook.entries == []


def test_remove_contact(contacts):
    target = contacts.contacts[0].id
    assert contacts.remove(target) is True
    assert contacts.remove(target) is False
    assert len(contacts) == 0


def test_contacts_view_is_a_copy(contacts):
    view = contacts.contacts
    view[0].name = "Changed"
    assert contacts.names == ["Sarah Chen"]

import random

from evguard.anomaly import AnomalyInjector
from evguard.battery import BatteryHealthMonitor, calculate_health
from evguard.models import SensorData, utc_from


def test_anomaly_rate_converges_to_two_percent(logbook, clock):
    injector = AnomalyInjector(random.Random(7), clock)
    hits = [injector.roll(logbook) for _ in range(10_000)]
    events = [h for h in hits if h is not None]
    assert 150 <= len(events) <= 250


def test_anomaly_event_shape(logbook, clock):
    injector = AnomalyInjector(random.Random(3), clock, probability=1.0)
    severities = set()
    for _ in range(200):
        event, entry = injector.roll(logbook)
        severities.add(event.severity)
        assert event.action == "BLOCKED"
        assert entry.agent == "SECURITY" and entry.type == "ALERT"
        assert entry.message.startswith("UEBA ALERT:")
    assert severities == {"HIGH", "MEDIUM"}
    # roll() never stores anything itself
    assert logbook.entries == [] and logbook.security_events == []


def _sample(**kw):
    base = dict(timestamp=utc_from(0), voltage=395, current=40, temperature=25, soc=90)
    base.update(kw)
    return SensorData(**base)


def test_health_nominal():
    h = calculate_health(_sample(), previous_soc=90.02)
    assert h.health_score == 99
    assert h.risk_level == "SAFE"


def test_health_overheat_is_high_risk():
    h = calculate_health(_sample(temperature=80), previous_soc=90)
    assert h.health_score == 34
    assert h.risk_level == "HIGH RISK"
    assert h.reason.startswith("Critical: Battery temperature is 80.0")


def test_health_current_spike_warning():
    h = calculate_health(_sample(current=110), previous_soc=90)
    assert h.health_score == 52
    assert h.risk_level == "WARNING"
    assert "Current spike" in h.reason


def test_health_soc_drop():
    h = calculate_health(_sample(soc=86), previous_soc=90)
    assert h.health_score == 60
    assert "SOC" in h.reason


def test_battery_soc_never_increases(clock):
    mon = BatteryHealthMonitor(random.Random(11), clock)
    last = mon.soc
    for _ in range(100):
        data = mon.sample()
        assert data.soc <= round(last, 2)
        last = mon.soc
    assert mon.soc >= 0

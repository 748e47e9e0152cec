"""
============================================================
 EV-GUARD — Log Aggregator
 Single newest-first audit trail shared by every agent.
 Capped at MAX_LOG_ENTRIES; security events kept alongside.
============================================================
"""

from typing import Callable, Iterable, List, Optional

from evguard import config
from evguard.models import AgentTag, LogEntry, LogType, SecurityEvent, utc_from


class LogAggregator:
    """Bounded, newest-first sink for LogEntry and SecurityEvent records."""

    def __init__(self, clock: Callable[[], float],
                 max_entries: int = config.MAX_LOG_ENTRIES,
                 max_events: int = config.MAX_SECURITY_EVENTS) -> None:
        self._clock = clock
        self.max_entries = max_entries
        self.max_events = max_events
        self.entries: List[LogEntry] = []
        self.security_events: List[SecurityEvent] = []

    def make(self, agent: AgentTag, type_: LogType, message: str,
             target_vehicle_id: Optional[str] = None) -> LogEntry:
        """Build an entry stamped with the current clock (not yet stored)."""
        return LogEntry(
            timestamp=utc_from(self._clock()),
            agent=agent,
            type=type_,
            message=message,
            target_vehicle_id=target_vehicle_id,
        )

    def add(self, agent: AgentTag, type_: LogType, message: str,
            target_vehicle_id: Optional[str] = None) -> LogEntry:
        entry = self.make(agent, type_, message, target_vehicle_id)
        self.prepend([entry])
        return entry

    def prepend(self, entries: Iterable[LogEntry]) -> None:
        """Merge a batch in front of the trail; the batch keeps its own order."""
        self.entries = (list(entries) + self.entries)[:self.max_entries]

    def record_event(self, event: SecurityEvent) -> None:
        self.security_events.insert(0, event)
        del self.security_events[self.max_events:]

    def recently_targeted(self, vehicle_id: str, window: float) -> bool:
        """True if any entry for vehicle_id is younger than `window` seconds."""
        cutoff = self._clock() - window
        return any(
            e.target_vehicle_id == vehicle_id and e.timestamp.timestamp() > cutoff
            for e in self.entries
        )

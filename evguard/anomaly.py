"""UEBA anomaly injector: stochastic unauthorized-access events."""

import random
from typing import Callable, Optional, Tuple

from evguard import config
from evguard.logbook import LogAggregator
from evguard.models import LogEntry, SecurityEvent, utc_from


class AnomalyInjector:

    def __init__(self, rng: random.Random, clock: Callable[[], float],
                 probability: float = config.ANOMALY_PROBABILITY) -> None:
        self._rng = rng
        self._clock = clock
        self.probability = probability

    def roll(self, logbook: LogAggregator) -> Optional[Tuple[SecurityEvent, LogEntry]]:
        """One dice roll per tick. Returns the event and its ALERT entry, unstored."""
        if self._rng.random() >= self.probability:
            return None
        high = self._rng.random() < config.ANOMALY_HIGH_PROBABILITY
        event = SecurityEvent(
            timestamp=utc_from(self._clock()),
            severity="HIGH" if high else "MEDIUM",
            source=config.ANOMALY_SOURCE,
            description=config.ANOMALY_DESCRIPTION,
            action="BLOCKED",
        )
        entry = logbook.make(
            "SECURITY", "ALERT",
            f"UEBA ALERT: {event.description}. Action: {event.action}",
        )
        return event, entry

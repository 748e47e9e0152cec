import random

import pytest

from evguard.contacts import ContactRegistry
from evguard.driver import DriverStateMonitor
from evguard.engine import FleetEngine
from evguard.escalation import EscalationStateMachine
from evguard.logbook import LogAggregator
from evguard.models import DriverObservation


# ---------- Deterministic time ----------

class FakeClock:
    """Callable clock in seconds; tests advance it explicitly."""
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


# ---------- Components ----------

@pytest.fixture
def logbook(clock):
    return LogAggregator(clock)


@pytest.fixture
def contacts(logbook):
    return ContactRegistry(logbook)


@pytest.fixture
def escalation(logbook, contacts, rng, clock):
    return EscalationStateMachine(logbook, contacts, rng, clock)


@pytest.fixture
def monitor(escalation, rng, clock):
    return DriverStateMonitor(escalation, rng, clock)


@pytest.fixture
def engine(rng, clock):
    return FleetEngine(rng=rng, clock=clock)


# ---------- Observation factories ----------

def eyes_closed(head_movement: float = 1.0) -> DriverObservation:
    return DriverObservation(attention=30, eye_closure=0.9, head_movement=head_movement,
                             emotion="DROWSY", bpm=70)


def awake(head_movement: float = 1.5) -> DriverObservation:
    return DriverObservation(attention=95, eye_closure=0.1, head_movement=head_movement,
                             emotion="FOCUSED", bpm=75)


def still() -> DriverObservation:
    return DriverObservation(attention=80, eye_closure=0.1, head_movement=0.1,
                             emotion="FOCUSED", bpm=72)

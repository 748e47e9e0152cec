"""
============================================================
 EV-GUARD — Tick Orchestrator
 Owns every piece of shared state (fleet, audit trail,
 driver, escalation, contacts) and advances it once per
 TICK_INTERVAL. External collaborators only read the
 returned snapshot or go through the entry points below.

 Tick order:
   1. deferred escalation side effects that are due
   2. driver decay model (only without a fresh live push)
   3. SOS fallback guard (EMERGENCY held > 10s)
   4. fleet telemetry under the current mode, battery pack sample
   5. master agent scan for CRITICAL vehicles (NORMAL only)
   6. UEBA anomaly roll
   7. pop at most one outbound notification
============================================================
"""

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, List, Optional

from evguard import config
from evguard.anomaly import AnomalyInjector
from evguard.battery import BatteryHealthMonitor
from evguard.contacts import ContactRegistry
from evguard.driver import DriverStateMonitor
from evguard.escalation import EscalationStateMachine
from evguard.logbook import LogAggregator
from evguard.models import (
    ContactIn,
    DriverObservation,
    EmergencyContact,
    FleetSnapshot,
    LogEntry,
)
from evguard.telemetry import FleetSimulator

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[FleetSnapshot], Awaitable[None]]


class FleetEngine:

    def __init__(self, rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.time,
                 seed_contacts: bool = True) -> None:
        self.rng = rng if rng is not None else random.Random(config.RNG_SEED)
        self.clock = clock

        self.logbook = LogAggregator(clock)
        self.contact_registry = ContactRegistry(self.logbook, seed_defaults=seed_contacts)
        self.escalation = EscalationStateMachine(self.logbook, self.contact_registry, self.rng, clock)
        self.driver = DriverStateMonitor(self.escalation, self.rng, clock)
        self.fleet = FleetSimulator(self.rng, clock)
        self.anomalies = AnomalyInjector(self.rng, clock)
        self.battery = BatteryHealthMonitor(self.rng, clock)
        self.battery_status = self.battery.assess()

        self.tick_count = 0
        self.last_outbound: Optional[str] = None

        self.running = False
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[SnapshotListener] = []

    # ── Heartbeat ───────────────────────────────────────────────────

    def tick(self) -> FleetSnapshot:
        self.tick_count += 1
        self.escalation.run_due()

        if not self.driver.is_live_fresh():
            self.driver.decay()

        self.escalation.check_fallback()

        self.fleet.step(self.escalation.mode)
        self.battery_status = self.battery.assess()

        new_logs: List[LogEntry] = []
        if not self.escalation.in_emergency:
            new_logs.extend(self._master_scan())

        rolled = self.anomalies.roll(self.logbook)
        if rolled is not None:
            event, entry = rolled
            self.logbook.record_event(event)
            new_logs.append(entry)
            logger.info("[UEBA] %s event blocked", event.severity)

        self.logbook.prepend(new_logs)

        self.last_outbound = self.escalation.pop_outbound()
        return self.snapshot(outbound_message=self.last_outbound)

    def _master_scan(self) -> List[LogEntry]:
        """One ALERT per CRITICAL vehicle, throttled per vehicle."""
        alerts = []
        for v in self.fleet.vehicles:
            if v.status != "CRITICAL":
                continue
            if self.logbook.recently_targeted(v.id, config.MASTER_ALERT_COOLDOWN):
                continue
            alerts.append(self.logbook.make(
                "MASTER", "ALERT",
                f"Anomaly detected on {v.id}. Delegating to Diagnosis Agent.",
                target_vehicle_id=v.id,
            ))
        return alerts

    def snapshot(self, outbound_message: Optional[str] = None) -> FleetSnapshot:
        return FleetSnapshot(
            tick=self.tick_count,
            vehicles=[v.model_copy(deep=True) for v in self.fleet.vehicles],
            logs=list(self.logbook.entries),
            security_events=list(self.logbook.security_events),
            driver=self.driver.status.model_copy(),
            emergency_mode=self.escalation.in_emergency,
            sos_triggered=self.escalation.sos_triggered,
            mode=self.escalation.mode,
            outbound_message=outbound_message,
        )

    # ── Entry points ────────────────────────────────────────────────

    def push_observation(self, obs: DriverObservation) -> DriverObservation:
        """Live perception push; may arrive at any time between ticks."""
        return self.driver.observe(obs)

    def toggle_fatigue(self) -> bool:
        """Flip the forced-fatigue test flag. Turning it off resets everything."""
        self.driver.forced_fatigue = not self.driver.forced_fatigue
        if self.driver.forced_fatigue:
            self.logbook.add("SAFETY", "INFO",
                             "GUARDIAN AGENT: Initiating fatigue simulation test sequence.")
        else:
            self.escalation.reset()
            self.driver.reset()
            self.logbook.add("MASTER", "INFO",
                             "Driver control restored. Resuming standard monitoring.")
        logger.info("[ENGINE] Fatigue test %s", "ON" if self.driver.forced_fatigue else "OFF")
        return self.driver.forced_fatigue

    def add_contact(self, contact: ContactIn) -> Optional[EmergencyContact]:
        return self.contact_registry.add(contact)

    def remove_contact(self, contact_id: str) -> bool:
        return self.contact_registry.remove(contact_id)

    @property
    def contacts(self) -> List[EmergencyContact]:
        return self.contact_registry.contacts

    # ── Background loop ─────────────────────────────────────────────

    def subscribe(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    async def start(self, interval: float = config.TICK_INTERVAL) -> None:
        self.running = True
        self._task = asyncio.create_task(self._loop(interval))
        logger.info("[ENGINE] Tick loop STARTED (%.2fs interval)", interval)

    async def stop(self) -> None:
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("[ENGINE] Tick loop STOPPED")

    async def _loop(self, interval: float) -> None:
        while self.running:
            snap = self.tick()
            for listener in list(self._listeners):
                await listener(snap)
            await asyncio.sleep(interval)

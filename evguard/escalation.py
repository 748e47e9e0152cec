"""
============================================================
 EV-GUARD — Escalation State Machine
 NORMAL → EMERGENCY → SOS, with one recovery edge
 (EMERGENCY → NORMAL) while SOS has not fired.

   NORMAL    ──drowsy / stillness / decay──▶ EMERGENCY
   EMERGENCY ──stillness or 10s fallback──▶  SOS (sticky)
   EMERGENCY ──eyes open + head moving──▶    NORMAL

 Side effects (audit log, outbound notifications) fire on
 entry. The master-agent takeover is deferred ~500ms via
 an internal delay queue drained by the tick loop, so its
 log line always lands before its notification.
============================================================
"""

import logging
import random
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple

from evguard import config
from evguard.contacts import ContactRegistry
from evguard.logbook import LogAggregator
from evguard.models import EscalationMode

logger = logging.getLogger(__name__)


class EscalationStateMachine:

    def __init__(self, logbook: LogAggregator, contacts: ContactRegistry,
                 rng: random.Random, clock: Callable[[], float]) -> None:
        self._logbook = logbook
        self._contacts = contacts
        self._rng = rng
        self._clock = clock

        self.mode: EscalationMode = "NORMAL"
        self.emergency_started_at: Optional[float] = None
        self.outbound: Deque[str] = deque()
        self._pending: List[Tuple[float, Callable[[], None]]] = []

    # ── State queries ───────────────────────────────────────────────

    @property
    def in_emergency(self) -> bool:
        """EMERGENCY or SOS; SOS implies the emergency is still active."""
        return self.mode != "NORMAL"

    @property
    def sos_triggered(self) -> bool:
        return self.mode == "SOS"

    # ── Transitions ─────────────────────────────────────────────────

    def enter_emergency(self) -> bool:
        """NORMAL → EMERGENCY. No-op (False) if already escalated."""
        if self.mode != "NORMAL":
            return False
        now = self._clock()
        self.mode = "EMERGENCY"
        self.emergency_started_at = now
        logger.warning("[SAFETY] EMERGENCY entered")
        self._logbook.add(
            "SAFETY", "CRITICAL",
            "GUARDIAN AGENT: Biometric thresholds breached. Driver unresponsive.",
        )
        self._schedule(now + config.TAKEOVER_DELAY, self._take_control)
        return True

    def trigger_sos(self, inactivity: bool = False) -> bool:
        """→ SOS. Escalates through EMERGENCY first when needed. Fires once."""
        if self.mode == "SOS":
            return False
        if self.mode == "NORMAL":
            self.enter_emergency()
        self.mode = "SOS"
        if inactivity:
            self._logbook.add(
                "SAFETY", "CRITICAL",
                f"GUARDIAN AGENT: Complete driver inactivity detected "
                f"(>{config.STILLNESS_TIMEOUT:.0f}s). Assuming incapacitation.",
            )
        self._dispatch_sos()
        return True

    def recover(self) -> bool:
        """EMERGENCY → NORMAL. SOS is sticky and never recovers here."""
        if self.mode != "EMERGENCY":
            return False
        self.mode = "NORMAL"
        self.emergency_started_at = None
        logger.info("[SAFETY] Driver recovered, EMERGENCY cleared")
        self._logbook.add(
            "SAFETY", "SUCCESS",
            "GUARDIAN AGENT: Driver active. Emergency protocol deactivated.",
        )
        return True

    def check_fallback(self) -> bool:
        """EMERGENCY held past SOS_FALLBACK_TIMEOUT → SOS."""
        if self.mode != "EMERGENCY" or self.emergency_started_at is None:
            return False
        if self._clock() - self.emergency_started_at > config.SOS_FALLBACK_TIMEOUT:
            return self.trigger_sos()
        return False

    def reset(self) -> None:
        """Manual test reset. Pending takeover tasks still complete."""
        self.mode = "NORMAL"
        self.emergency_started_at = None

    # ── Side effects ────────────────────────────────────────────────

    def _take_control(self) -> None:
        self._logbook.add(
            "MASTER", "CRITICAL",
            "TAKING CONTROL. Initiating emergency braking protocol. Rerouting to safe stop.",
        )
        self.outbound.append(
            "CRITICAL ALERT: Driver fatigue/inactivity detected. "
            "Autonomous pullover sequence activated."
        )

    def _dispatch_sos(self) -> None:
        facility = self._rng.choice(config.SOS_FACILITIES)
        logger.critical("[SOS] Dispatching to %s", facility)
        self._logbook.add(
            "SAFETY", "CRITICAL",
            f"SOS PROTOCOL: Prolonged inactivity detected. Auto-contacting {facility}.",
        )
        names = self._contacts.names
        if names:
            listing = ", ".join(names)
            self._logbook.add("SAFETY", "ACTION", f"SOS EXTENSION: Notifying contacts: {listing}")
            self.outbound.append(f"contacting emergency contacts: {listing}")
        else:
            self._logbook.add("SAFETY", "ACTION", "SOS EXTENSION: No emergency contacts configured.")
            self.outbound.append("contacting emergency contacts (None configured)")
        self.outbound.append(
            f"SOS ACTIVATED: Vehicle halted. Emergency teams dispatched to {facility}."
        )

    # ── Delay queue ─────────────────────────────────────────────────

    def _schedule(self, due: float, task: Callable[[], None]) -> None:
        self._pending.append((due, task))

    @property
    def pending(self) -> int:
        return len(self._pending)

    def run_due(self) -> int:
        """Run every deferred task whose due time has passed, oldest first."""
        now = self._clock()
        due = [p for p in self._pending if p[0] <= now]
        if not due:
            return 0
        self._pending = [p for p in self._pending if p[0] > now]
        for _, task in sorted(due, key=lambda p: p[0]):
            task()
        return len(due)

    def pop_outbound(self) -> Optional[str]:
        return self.outbound.popleft() if self.outbound else None

"""
============================================================
 EV-GUARD — Driver State Monitor
 Classifies driver observations and feeds the escalation
 state machine.

 Live path  (observe):  perception pushes, debounced
   • eye closure > 0.6 for more than 30 consecutive frames
     → DROWSY + EMERGENCY (single-frame blinks suppressed)
   • head movement < 0.3 for more than 7s → SOS
   • eyes open + head moving during EMERGENCY → recovery
 Decay path (decay):    runs only when no live push landed
   within the freshness window; synthetic fatigue under the
   forced test flag, gentle baseline drift otherwise.
============================================================
"""

import logging
import random
from typing import Callable, Optional

from evguard import config
from evguard.escalation import EscalationStateMachine
from evguard.models import DriverObservation, Emotion

logger = logging.getLogger(__name__)


def safety_score(driver: DriverObservation) -> int:
    """Blend of attention and open-eye ratio, 0-100."""
    return round((driver.attention + (1 - driver.eye_closure) * 100) / 2)


class DriverStateMonitor:

    def __init__(self, escalation: EscalationStateMachine,
                 rng: random.Random, clock: Callable[[], float]) -> None:
        self._escalation = escalation
        self._rng = rng
        self._clock = clock

        self.status = DriverObservation(**config.DRIVER_INITIAL)
        self.forced_fatigue = False
        self.drowsy_counter = 0
        self.stillness_started_at: Optional[float] = None
        self.last_live_at: Optional[float] = None

    # ── Live perception ─────────────────────────────────────────────

    def is_live_fresh(self) -> bool:
        """A live push within the freshness window wins over the decay model."""
        if self.last_live_at is None:
            return False
        return self._clock() - self.last_live_at <= config.LIVE_FRESHNESS_WINDOW

    def observe(self, obs: DriverObservation) -> DriverObservation:
        now = self._clock()
        self.last_live_at = now

        eyes_closed = obs.eye_closure > config.EYE_CLOSED_THRESHOLD
        self.drowsy_counter = self.drowsy_counter + 1 if eyes_closed else 0

        emotion: Emotion = obs.emotion
        if emotion == "DROWSY" and self.drowsy_counter <= config.DROWSY_FRAME_THRESHOLD:
            emotion = "FOCUSED"  # blink, not sleep
        if self.drowsy_counter > config.DROWSY_FRAME_THRESHOLD:
            emotion = "DROWSY"
            self._escalation.enter_emergency()

        if obs.head_movement < config.STILLNESS_THRESHOLD:
            if self.stillness_started_at is None:
                self.stillness_started_at = now
            elif (now - self.stillness_started_at > config.STILLNESS_TIMEOUT
                    and not self._escalation.sos_triggered):
                emotion = "DROWSY"  # incapacitated
                self._escalation.trigger_sos(inactivity=True)
        else:
            self.stillness_started_at = None

        if (not eyes_closed and obs.head_movement > config.STILLNESS_THRESHOLD
                and self._escalation.mode == "EMERGENCY"):
            self._escalation.recover()
            self.drowsy_counter = 0

        # Perception does not measure heart rate; keep the last known value
        self.status = self.status.model_copy(update={
            "attention": obs.attention,
            "eye_closure": obs.eye_closure,
            "head_movement": obs.head_movement,
            "emotion": emotion,
        })
        return self.status.model_copy()

    # ── Synthetic model ─────────────────────────────────────────────

    def decay(self) -> DriverObservation:
        if self.forced_fatigue:
            self.status = self._fatigue_step(self.status)
            if self.status.emotion == "DROWSY":
                self._escalation.enter_emergency()
        else:
            self.status = self._nominal_step(self.status)
        return self.status.model_copy()

    def _fatigue_step(self, s: DriverObservation) -> DriverObservation:
        closure = min(1.0, s.eye_closure + config.DECAY_CLOSURE_STEP)
        small, medium, large = config.DECAY_ATTENTION_DROPS
        drop = small
        if closure > 0.3:
            drop = medium
        if closure > 0.6:
            drop = large
        attention = max(0.0, s.attention - drop)
        bpm = max(config.DECAY_BPM_FLOOR, s.bpm - config.DECAY_BPM_STEP)

        emotion: Emotion = "FOCUSED"
        if attention < config.DECAY_DROWSY_ATTENTION or closure >= config.DECAY_DROWSY_CLOSURE:
            emotion = "DROWSY"
        elif attention < config.DECAY_DISTRACTED_ATTENTION or closure > config.DECAY_DISTRACTED_CLOSURE:
            emotion = "DISTRACTED"

        return DriverObservation(
            attention=attention,
            eye_closure=closure,
            head_movement=config.DECAY_HEAD_MOVEMENT,
            emotion=emotion,
            bpm=bpm,
        )

    def _nominal_step(self, s: DriverObservation) -> DriverObservation:
        def clamp(value, bounds):
            return max(bounds[0], min(bounds[1], value))

        return DriverObservation(
            attention=clamp(s.attention + self._rng.uniform(-2, 2), config.NOMINAL_ATTENTION),
            eye_closure=clamp(s.eye_closure + self._rng.uniform(-0.05, 0.05), config.NOMINAL_EYE_CLOSURE),
            head_movement=self._rng.uniform(*config.NOMINAL_HEAD_MOVEMENT),
            emotion="FOCUSED",
            bpm=clamp(s.bpm + self._rng.uniform(-1, 1), config.NOMINAL_BPM),
        )

    def reset(self) -> None:
        """Back to baseline: counters and timers cleared."""
        self.drowsy_counter = 0
        self.stillness_started_at = None
        self.status = DriverObservation(**config.DRIVER_BASELINE)

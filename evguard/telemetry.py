"""
============================================================
 EV-GUARD — Telemetry Simulator
 Per-vehicle sensor generator. Independent vehicles roam
 with random speed/heat/vibration and occasional chaos
 spikes; the controlled vehicle obeys the escalation mode
 (gradual slowdown in EMERGENCY, hard halt in SOS).
============================================================
"""

import random
from typing import Callable, List, Optional

from evguard import config
from evguard.models import EscalationMode, Telemetry, Vehicle, VehicleStatus, utc_from


def derive_status(t: Telemetry) -> VehicleStatus:
    """Generic health classification from one telemetry frame."""
    if t.brake_wear > config.MAINTENANCE_BRAKE_WEAR:
        return "MAINTENANCE"
    if t.battery_temp > config.CRITICAL_BATTERY_TEMP or t.vibration > config.CRITICAL_VIBRATION:
        return "CRITICAL"
    if t.battery_temp > config.WARNING_BATTERY_TEMP or t.vibration > config.WARNING_VIBRATION:
        return "WARNING"
    return "OPTIMAL"


class FleetSimulator:
    """Owns the fleet and mutates it once per tick."""

    def __init__(self, rng: random.Random, clock: Callable[[], float],
                 size: int = config.FLEET_SIZE,
                 controlled_id: str = config.CONTROLLED_VEHICLE_ID) -> None:
        self._rng = rng
        self._clock = clock
        self.controlled_id = controlled_id
        self.vehicles: List[Vehicle] = []
        self._init_fleet(size)

    def _init_fleet(self, size: int) -> None:
        now = utc_from(self._clock())
        for i in range(size):
            self.vehicles.append(Vehicle(
                id=f"EV-{100 + i}",
                model=config.FLEET_MODELS[i % len(config.FLEET_MODELS)],
                owner=config.FLEET_OWNERS[i % len(config.FLEET_OWNERS)],
                telemetry=Telemetry(timestamp=now, **config.INITIAL_TELEMETRY),
            ))

    def get(self, vehicle_id: str) -> Optional[Vehicle]:
        for v in self.vehicles:
            if v.id == vehicle_id:
                return v
        return None

    @property
    def controlled(self) -> Optional[Vehicle]:
        return self.get(self.controlled_id)

    def _rand(self, bounds: tuple) -> float:
        return self._rng.uniform(*bounds)

    # ── Per-tick update ─────────────────────────────────────────────

    def step(self, mode: EscalationMode) -> List[Vehicle]:
        now = utc_from(self._clock())
        for v in self.vehicles:
            t = v.telemetry
            speed, battery_temp, vibration = t.speed, t.battery_temp, t.vibration
            controlled = v.id == self.controlled_id and mode != "NORMAL"

            if controlled and mode == "SOS":
                speed, battery_temp, vibration = self._halt(speed, battery_temp)
            elif controlled:
                # EMERGENCY: master agent eases the vehicle towards a stop
                speed = max(0.0, speed * 0.9 - 2)
                vibration = self._rand((10.0, 20.0))
            else:
                speed, battery_temp, vibration = self._roam(battery_temp)

            brake_wear = t.brake_wear
            if speed > 0:
                brake_wear += config.BRAKE_WEAR_STEP

            v.telemetry = Telemetry(
                speed=round(speed, 1),
                battery_temp=round(battery_temp, 1),
                vibration=round(vibration, 1),
                brake_wear=brake_wear,
                timestamp=now,
            )
            # Halted by SOS: immobilised, not a sensor fault
            v.status = "CRITICAL" if controlled and mode == "SOS" else derive_status(v.telemetry)
        return self.vehicles

    def _halt(self, speed: float, battery_temp: float) -> tuple:
        speed = max(0.0, speed * 0.5 - 10)
        if speed < 2:
            speed = 0.0
        if speed == 0:
            return speed, max(25.0, battery_temp - 0.5), 0.0
        return speed, battery_temp + 0.2, self._rand((20.0, 50.0))

    def _roam(self, battery_temp: float) -> tuple:
        moving = self._rng.random() < config.MOVING_PROBABILITY
        speed = self._rand(config.SPEED_RANGE) if moving else 0.0

        chaos = self._rng.random() < config.CHAOS_PROBABILITY
        battery_temp += self._rng.uniform(-config.BATTERY_DRIFT, config.BATTERY_DRIFT)
        if moving:
            battery_temp += config.BATTERY_MOVING_BONUS
        if chaos:
            battery_temp = self._rand(config.BATTERY_CHAOS_RANGE)
        lo, hi = config.BATTERY_TEMP_BOUNDS
        battery_temp = max(lo, min(hi, battery_temp))

        vibration = self._rand(config.VIBRATION_MOVING_RANGE) if moving else config.VIBRATION_IDLE
        if chaos and self._rng.random() < config.CHAOS_VIBRATION_PROBABILITY:
            vibration = self._rand(config.VIBRATION_CHAOS_RANGE)
        return speed, battery_temp, vibration

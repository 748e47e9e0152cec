"""
============================================================
 EV-GUARD — Battery Health Scoring
 Synthetic pack sensor feed (voltage/current/temp/SOC)
 with occasional danger scenarios, and a 0-100 health
 score with a human-readable reason + recommendation.
============================================================
"""

import random
from typing import Callable

from evguard import config
from evguard.models import HealthStatus, RiskLevel, SensorData, utc_from


class BatteryHealthMonitor:
    """Stateful SOC model; each sample drains the pack a little."""

    def __init__(self, rng: random.Random, clock: Callable[[], float],
                 initial_soc: float = config.BATTERY_INITIAL_SOC) -> None:
        self._rng = rng
        self._clock = clock
        self.soc = initial_soc
        self.prev_soc = initial_soc

    def sample(self) -> SensorData:
        rand = self._rng.uniform
        voltage = rand(380, 410)
        current = rand(20, 60)
        temperature = rand(20, 35)
        soc_drop = rand(0.01, 0.05)

        if self._rng.random() < config.BATTERY_DANGER_PROBABILITY:
            scenario = self._rng.random()
            if scenario < 0.33:
                temperature = rand(61, 85)          # Overheating
            elif scenario < 0.66:
                current = rand(120, 250)            # Current spike
                voltage = rand(350, 370)            # with voltage sag
            else:
                soc_drop = rand(2.0, 5.0)           # Cell failure

        self.prev_soc = self.soc
        self.soc = max(0.0, self.soc - soc_drop)

        return SensorData(
            timestamp=utc_from(self._clock()),
            voltage=round(voltage, 2),
            current=round(current, 2),
            temperature=round(temperature, 2),
            soc=round(self.soc, 2),
        )

    def assess(self) -> dict:
        data = self.sample()
        return {"sensor": data, "health": calculate_health(data, self.prev_soc)}


def calculate_health(data: SensorData, previous_soc: float) -> HealthStatus:
    """
    health = 100 - max(0, T-25)*1.2 - max(0, I-50)*0.8 - max(0, dSOC)*10
    clamped to 0..100 and floored.
    """
    temp_penalty = max(0.0, data.temperature - 25) * 1.2
    current_penalty = max(0.0, data.current - 50) * 0.8
    soc_drop = max(0.0, previous_soc - data.soc)
    score = 100 - temp_penalty - current_penalty - soc_drop * 10
    score = max(0.0, min(100.0, score))

    risk: RiskLevel = "SAFE"
    if score < config.HEALTH_HIGH_RISK_BELOW:
        risk = "HIGH RISK"
    elif score <= config.HEALTH_WARNING_AT_OR_BELOW:
        risk = "WARNING"

    reason = "Systems operating within normal parameters."
    action = "Continue monitoring. No action required."
    if data.temperature > 60:
        reason = (f"Critical: Battery temperature is {data.temperature:.1f}°C, exceeding "
                  f"the safe limit of 60°C. Thermal runaway risk.")
        action = "IMMEDIATE ACTION: Pull over safely. Turn off the vehicle. Evacuate passengers."
    elif data.current > 100:
        reason = (f"Warning: Current spike detected at {data.current:.1f}A. "
                  f"Possible short circuit or aggressive load.")
        action = "Reduce acceleration immediately. Check powertrain status if persists."
    elif soc_drop > 1.0:
        reason = "Alert: Abnormal State of Charge (SOC) drop detected. Potential cell failure."
        action = "Schedule battery diagnostic service immediately. Avoid long trips."
    elif 40 <= score < 70:
        reason = "Caution: Combined stress factors (Temperature/Load) are reducing battery efficiency."
        action = "Drive conservatively to lower battery temperature and load."

    return HealthStatus(
        health_score=int(score),
        risk_level=risk,
        reason=reason,
        recommended_action=action,
    )

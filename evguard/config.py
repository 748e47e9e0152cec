"""
============================================================
 EV-GUARD — Central Configuration
 All tunable thresholds and constants live here.
 Durations are in seconds.
============================================================
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ── Tick Loop ───────────────────────────────────────────────
TICK_INTERVAL = float(os.getenv("EVGUARD_TICK_INTERVAL", 1.0))  # 1000ms per tick
RNG_SEED = int(os.getenv("EVGUARD_SEED")) if os.getenv("EVGUARD_SEED") else None

# ── Fleet ───────────────────────────────────────────────────
FLEET_SIZE = 10
CONTROLLED_VEHICLE_ID = "EV-100"  # The one vehicle the master agent can brake
FLEET_OWNERS = [
    "Alice Chen", "Bob Smith", "Charlie Kim", "Diana Prince", "Evan Wright",
    "Fiona Gallagher", "George Miller", "Hannah Lee", "Ian Stark", "Julia Roberts",
]
FLEET_MODELS = [
    "Model X-Pro", "CyberSedan", "EcoHatch", "Model X-Pro", "CyberSedan",
    "EcoHatch", "Model X-Pro", "CyberSedan", "EcoHatch", "HyperTruck",
]

# ── Driver Monitor (debounce + stillness) ───────────────────
EYE_CLOSED_THRESHOLD = 0.6     # eyeClosure above this counts as a closed frame
DROWSY_FRAME_THRESHOLD = 30    # ~3s of continuous closure before EMERGENCY
STILLNESS_THRESHOLD = 0.3      # headMovement below this counts as still
STILLNESS_TIMEOUT = 7.0        # 7000ms of stillness → incapacitation → SOS
LIVE_FRESHNESS_WINDOW = 2.0    # Live pushes suppress the decay model for 2000ms

DRIVER_INITIAL = {
    "attention": 98.0,
    "eye_closure": 0.0,
    "head_movement": 1.5,
    "emotion": "FOCUSED",
    "bpm": 75.0,
}
DRIVER_BASELINE = {
    "attention": 95.0,
    "eye_closure": 0.0,
    "head_movement": 1.5,
    "emotion": "FOCUSED",
    "bpm": 75.0,
}

# ── Synthetic Fatigue Decay ─────────────────────────────────
DECAY_CLOSURE_STEP = 0.3
DECAY_ATTENTION_DROPS = (5.0, 15.0, 35.0)  # closure ≤0.3 / >0.3 / >0.6
DECAY_BPM_STEP = 1.5
DECAY_BPM_FLOOR = 50.0
DECAY_HEAD_MOVEMENT = 0.1       # Simulated stillness while fatigued
DECAY_DROWSY_ATTENTION = 40.0
DECAY_DROWSY_CLOSURE = 0.8
DECAY_DISTRACTED_ATTENTION = 75.0
DECAY_DISTRACTED_CLOSURE = 0.4

# Nominal drift ranges when no fatigue test is running
NOMINAL_ATTENTION = (85.0, 100.0)
NOMINAL_EYE_CLOSURE = (0.0, 0.15)
NOMINAL_HEAD_MOVEMENT = (0.5, 3.0)
NOMINAL_BPM = (65.0, 90.0)

# ── Escalation ──────────────────────────────────────────────
SOS_FALLBACK_TIMEOUT = 10.0    # EMERGENCY held for 10s → SOS regardless of stillness
TAKEOVER_DELAY = 0.5           # Master agent takes control ~500ms after EMERGENCY
SOS_FACILITIES = [
    "Tesla Service Center (3.2km)",
    "City General Hospital ER (5.1km)",
    "State Police Station #9 (1.8km)",
    "EV Guardian Outpost (0.5km)",
]
DEFAULT_CONTACTS = [
    {"name": "Sarah Chen", "relation": "Spouse", "phone": "+1 (555) 012-3456"},
]
DEFAULT_RELATION = "Friend"

# ── Telemetry Simulation ────────────────────────────────────
MOVING_PROBABILITY = 0.8
CHAOS_PROBABILITY = 0.05
CHAOS_VIBRATION_PROBABILITY = 0.5
SPEED_RANGE = (40.0, 120.0)
VIBRATION_MOVING_RANGE = (10.0, 30.0)
VIBRATION_IDLE = 2.0
VIBRATION_CHAOS_RANGE = (60.0, 95.0)
BATTERY_DRIFT = 0.5
BATTERY_MOVING_BONUS = 0.1
BATTERY_CHAOS_RANGE = (50.0, 90.0)
BATTERY_TEMP_BOUNDS = (20.0, 100.0)
BRAKE_WEAR_STEP = 0.001

INITIAL_TELEMETRY = {
    "speed": 0.0,
    "battery_temp": 25.0,
    "vibration": 2.0,
    "brake_wear": 10.0,
}

# Vehicle status thresholds
MAINTENANCE_BRAKE_WEAR = 90.0
CRITICAL_BATTERY_TEMP = 60.0
CRITICAL_VIBRATION = 50.0
WARNING_BATTERY_TEMP = 45.0
WARNING_VIBRATION = 40.0

# ── Anomaly Injection (UEBA) ────────────────────────────────
ANOMALY_PROBABILITY = 0.02
ANOMALY_HIGH_PROBABILITY = 0.3
ANOMALY_SOURCE = "Scheduling Agent"
ANOMALY_DESCRIPTION = "Attempted access to /raw_telemetry/encryption_keys"

# ── Audit Trail ─────────────────────────────────────────────
MAX_LOG_ENTRIES = 50
MAX_SECURITY_EVENTS = 100      # Bounded like the log
MASTER_ALERT_COOLDOWN = 5.0    # One anomaly alert per vehicle per 5s

# ── Battery Health ──────────────────────────────────────────
BATTERY_INITIAL_SOC = 98.5
BATTERY_DANGER_PROBABILITY = 0.15
HEALTH_HIGH_RISK_BELOW = 40
HEALTH_WARNING_AT_OR_BELOW = 70

# ── Server ──────────────────────────────────────────────────
SERVER_HOST = os.getenv("EVGUARD_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("PORT", 8000))

# ── Version ─────────────────────────────────────────────────
VERSION = "1.0.0"

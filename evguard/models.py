"""
============================================================
 EV-GUARD — Data Models
 Fleet vehicles, driver observations, contacts and the
 audit trail. Pydantic models double as API schemas.
============================================================
"""

import uuid
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

VehicleStatus = Literal["OPTIMAL", "WARNING", "CRITICAL", "MAINTENANCE"]
Emotion = Literal["FOCUSED", "DISTRACTED", "DROWSY"]
AgentTag = Literal["MASTER", "DIAGNOSIS", "SCHEDULING", "SECURITY", "SAFETY", "RCA"]
LogType = Literal["INFO", "ACTION", "ALERT", "SUCCESS", "CRITICAL"]
Severity = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
Disposition = Literal["BLOCKED", "FLAGGED", "ALLOWED"]
EscalationMode = Literal["NORMAL", "EMERGENCY", "SOS"]
RiskLevel = Literal["SAFE", "WARNING", "HIGH RISK"]


def new_id() -> str:
    return str(uuid.uuid4())


def utc_from(ts: float) -> datetime:
    """Clock seconds → aware UTC datetime."""
    return datetime.fromtimestamp(ts, timezone.utc)


# ── Fleet ─────────────────────────────────────────────────────────────
class Telemetry(BaseModel):
    speed: float = 0.0          # km/h
    battery_temp: float = 25.0  # Celsius
    vibration: float = 2.0      # Hz
    brake_wear: float = 10.0    # %
    timestamp: datetime


class Vehicle(BaseModel):
    id: str
    model: str
    owner: str
    status: VehicleStatus = "OPTIMAL"
    telemetry: Telemetry


# ── Driver ────────────────────────────────────────────────────────────
class DriverObservation(BaseModel):
    """One frame of driver state, live from perception or synthetic."""
    attention: float = Field(..., ge=0, le=100)
    eye_closure: float = Field(..., ge=0.0, le=1.0)     # 0.0 open → 1.0 closed
    head_movement: float = Field(..., ge=0.0)           # magnitude, unitless
    emotion: Emotion
    bpm: float = Field(75.0, ge=0)


# ── Contacts ──────────────────────────────────────────────────────────
class ContactIn(BaseModel):
    name: str = ""
    relation: str = ""
    phone: str = ""


class EmergencyContact(BaseModel):
    id: str
    name: str
    relation: str
    phone: str


# ── Audit Trail ───────────────────────────────────────────────────────
class LogEntry(BaseModel):
    id: str = Field(default_factory=new_id)
    timestamp: datetime
    agent: AgentTag
    type: LogType
    message: str
    target_vehicle_id: Optional[str] = None


class SecurityEvent(BaseModel):
    id: str = Field(default_factory=new_id)
    timestamp: datetime
    severity: Severity
    source: str
    description: str
    action: Disposition


# ── Battery Health ────────────────────────────────────────────────────
class SensorData(BaseModel):
    timestamp: datetime
    voltage: float
    current: float
    temperature: float
    soc: float


class HealthStatus(BaseModel):
    health_score: int
    risk_level: RiskLevel
    reason: str
    recommended_action: str


# ── Snapshot ──────────────────────────────────────────────────────────
class FleetSnapshot(BaseModel):
    """Read-only view of the engine returned once per tick."""
    tick: int
    vehicles: List[Vehicle]
    logs: List[LogEntry]
    security_events: List[SecurityEvent]
    driver: DriverObservation
    emergency_mode: bool
    sos_triggered: bool
    mode: EscalationMode
    outbound_message: Optional[str] = None


class AgentAction(BaseModel):
    agent: str = "MASTER"
    action: str
    target: Optional[str] = None

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    UNSTARTED = "UNSTARTED"
    DISABLED = "DISABLED"
    INITIALIZING = "INITIALIZING"
    READY = "READY"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"


# States from which a session never moves again.
TERMINAL_STATES = frozenset({SessionState.DISABLED, SessionState.FAILED, SessionState.TIMED_OUT})


class ServiceStatus(str, Enum):
    INITIALIZING = "INITIALIZING"
    READY = "READY"
    FAILED = "FAILED"


class GeoFix(BaseModel):
    """
    A single position reading. Ranges are not enforced here;
    GeoTransform reports out-of-range input as INVALID_COORDINATE.
    """
    latitude: float
    longitude: float
    altitude: float = 0.0
    timestamp: float = 0.0  # seconds since the Unix epoch, as reported by the service

    model_config = {"frozen": True}


class GeoOrigin(BaseModel):
    """
    Anchor of the local frame. Unlike GeoFix the range is enforced on
    construction (pydantic ValidationError, a ValueError), so a configured
    origin is always valid.
    """
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    altitude: float = 0.0

    model_config = {"frozen": True, "allow_inf_nan": False}

    @classmethod
    def from_fix(cls, fix: GeoFix) -> "GeoOrigin":
        return cls(latitude=fix.latitude, longitude=fix.longitude, altitude=fix.altitude)


class LocalPosition(BaseModel):
    # x = east-west, y = altitude delta, z = north-south (metres)
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"LocalPosition(x={self.x:.2f}, y={self.y:.2f}, z={self.z:.2f})"

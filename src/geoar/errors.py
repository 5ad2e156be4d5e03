from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from geoar.constants import LAT_LIMIT_DEG, LON_LIMIT_DEG

T = TypeVar("T")


class ErrorKind(str, Enum):
    LOCATION_DISABLED = "LOCATION_DISABLED"
    LOCATION_TIMED_OUT = "LOCATION_TIMED_OUT"
    LOCATION_FAILED = "LOCATION_FAILED"
    NOT_READY = "NOT_READY"
    INVALID_COORDINATE = "INVALID_COORDINATE"


@dataclass(frozen=True)
class GeoError:
    kind: ErrorKind
    message: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}" if self.message else self.kind.value


class GeoARError(Exception):
    """Raised only by `Result.unwrap()` on an error result."""

    def __init__(self, error: GeoError):
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Either a value or a GeoError, never both.

    Core operations hand these back instead of raising so the host can branch
    on `error.kind` to update its display.
    """
    value: Optional[T] = None
    error: Optional[GeoError] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str = "") -> "Result[T]":
        return cls(error=GeoError(kind, message))

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise GeoARError(self.error)
        return self.value


def validate_coordinate(latitude: float, longitude: float) -> Optional[GeoError]:
    """Return an INVALID_COORDINATE error if lat/lon are out of range (or NaN)."""
    # Chained comparisons are False for NaN, so NaN is rejected too.
    if not (-LAT_LIMIT_DEG <= latitude <= LAT_LIMIT_DEG):
        return GeoError(ErrorKind.INVALID_COORDINATE, f"latitude {latitude!r} outside [-90, 90]")
    if not (-LON_LIMIT_DEG <= longitude <= LON_LIMIT_DEG):
        return GeoError(ErrorKind.INVALID_COORDINATE, f"longitude {longitude!r} outside [-180, 180]")
    return None

"""
Geographic -> local conversions on a spherical Earth.

All intermediate arithmetic is double precision. Both algorithms use the same
EARTH_RADIUS_M.
"""

from __future__ import annotations

import math
from typing import Optional

from geoar.constants import EARTH_RADIUS_M
from geoar.domain.schemas import GeoFix, GeoOrigin, LocalPosition
from geoar.errors import ErrorKind, Result, validate_coordinate


def distance_meters(a: GeoFix, b: GeoFix) -> Result[float]:
    """
    Haversine great-circle distance between two fixes, in metres.
    Altitude is ignored.
    """
    err = validate_coordinate(a.latitude, a.longitude) or validate_coordinate(b.latitude, b.longitude)
    if err is not None:
        return Result(error=err)

    lat1 = math.radians(float(a.latitude))
    lat2 = math.radians(float(b.latitude))
    d_lat = lat2 - lat1
    d_lon = math.radians(float(b.longitude)) - math.radians(float(a.longitude))

    h = math.sin(d_lat / 2.0) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2.0) ** 2
    # Rounding can push h a hair outside [0, 1] near antipodes.
    h = min(max(h, 0.0), 1.0)
    return Result.ok(2.0 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1.0 - h)))


def project(origin: GeoOrigin, fix: GeoFix) -> Result[LocalPosition]:
    """
    Equirectangular (tangent-plane) projection of `fix` around `origin`:

        x = dLon * cos(lat0) * R     east-west
        z = dLat * R                 north-south
        y = alt - alt0

    Small-angle approximation; good for a few tens of km around the origin,
    degrading with distance and towards the poles.
    """
    err = validate_coordinate(fix.latitude, fix.longitude)
    if err is not None:
        return Result(error=err)

    lat0 = math.radians(float(origin.latitude))
    d_lat = math.radians(float(fix.latitude)) - lat0
    d_lon = math.radians(float(fix.longitude)) - math.radians(float(origin.longitude))

    return Result.ok(LocalPosition(
        x=d_lon * math.cos(lat0) * EARTH_RADIUS_M,
        y=float(fix.altitude) - float(origin.altitude),
        z=d_lat * EARTH_RADIUS_M,
    ))


def unproject(origin: GeoOrigin, position: LocalPosition, timestamp: float = 0.0) -> Result[GeoFix]:
    """Inverse of `project`: a local scene position back to a GeoFix."""
    lat0 = math.radians(float(origin.latitude))
    cos_lat0 = math.cos(lat0)
    if abs(cos_lat0) < 1e-12:
        return Result.fail(ErrorKind.INVALID_COORDINATE, "longitude is undefined at a polar origin")

    lat = math.degrees(lat0 + position.z / EARTH_RADIUS_M)
    lon = float(origin.longitude) + math.degrees(position.x / (cos_lat0 * EARTH_RADIUS_M))
    err = validate_coordinate(lat, lon)
    if err is not None:
        return Result(error=err)

    return Result.ok(GeoFix(
        latitude=lat,
        longitude=lon,
        altitude=float(origin.altitude) + position.y,
        timestamp=timestamp,
    ))


class GeoTransform:
    """
    Distance and projection bound to one GeoOrigin.

    The origin is an immutable value; `set_origin` swaps it in a single
    assignment, so concurrent callers see either the old or the new origin,
    never a mix. LocalPositions computed against the old origin are not
    recomputed.
    """

    def __init__(self, origin: Optional[GeoOrigin] = None):
        self._origin = origin if origin is not None else GeoOrigin(latitude=0.0, longitude=0.0)

    @property
    def origin(self) -> GeoOrigin:
        return self._origin

    def set_origin(self, origin: GeoOrigin) -> None:
        self._origin = origin

    @staticmethod
    def distance_meters(a: GeoFix, b: GeoFix) -> Result[float]:
        return distance_meters(a, b)

    def project(self, fix: GeoFix) -> Result[LocalPosition]:
        return project(self._origin, fix)

    def unproject(self, position: LocalPosition, timestamp: float = 0.0) -> Result[GeoFix]:
        return unproject(self._origin, position, timestamp)

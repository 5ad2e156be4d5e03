from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
import pandas as pd
from pyproj import CRS, Transformer
from pyproj.exceptions import ProjError

from geoar.constants import EARTH_RADIUS_M, LAT_LIMIT_DEG, LON_LIMIT_DEG
from geoar.domain.schemas import GeoFix, GeoOrigin
from geoar.errors import ErrorKind, Result

REQUIRED_COLUMNS = ("Lat", "Lon", "h")


class Projection(ABC):
    @abstractmethod
    def project(self, df: pd.DataFrame, origin: GeoOrigin) -> pd.DataFrame:
        pass


class Equirectangular(Projection):
    def project(self, df: pd.DataFrame, origin: GeoOrigin) -> pd.DataFrame:
        """
        Vectorised tangent-plane projection around `origin`, identical to
        geoar.core.transform.project row by row. Adds columns X, Y, Z.
        """
        lat0 = np.radians(float(origin.latitude))
        lat = np.radians(df["Lat"].to_numpy(dtype=np.float64))
        lon = np.radians(df["Lon"].to_numpy(dtype=np.float64))

        out = df.copy()
        out["X"] = (lon - np.radians(float(origin.longitude))) * np.cos(lat0) * EARTH_RADIUS_M
        out["Y"] = df["h"].to_numpy(dtype=np.float64) - float(origin.altitude)
        out["Z"] = (lat - lat0) * EARTH_RADIUS_M
        return out


class TransverseMercator(Projection):
    def project(self, df: pd.DataFrame, origin: GeoOrigin) -> pd.DataFrame:
        """
        Projects with a WGS84 Transverse Mercator centred at the origin (k0=1,
        x0=y0=0), so the origin maps to (0, 0). Easting goes to X, northing to Z.
        """
        proj_string = (
            f"+proj=tmerc +lat_0={origin.latitude} +lon_0={origin.longitude} "
            f"+k=1 +x_0=0 +y_0=0 +ellps=WGS84 +datum=WGS84 +units=m +no_defs"
        )
        try:
            src_crs = CRS("EPSG:4326")  # WGS84
            dst_crs = CRS(proj_string)

            # Always lon/lat ordering.
            transformer = Transformer.from_crs(src_crs, dst_crs, always_xy=True)
            easting, northing = transformer.transform(df["Lon"].values, df["Lat"].values)
        except ProjError as e:
            raise RuntimeError(f"TM Projection failed: {e}")

        out = df.copy()
        out["X"] = easting
        out["Y"] = df["h"].to_numpy(dtype=np.float64) - float(origin.altitude)
        out["Z"] = northing
        return out


class ProjectionFactory:
    @staticmethod
    def create(method: str) -> Projection:
        if method == "equirectangular":
            return Equirectangular()
        elif method == "tm":
            return TransverseMercator()
        else:
            raise ValueError(f"Unknown projection method: {method}")


def _check_frame(df: pd.DataFrame) -> Optional[str]:
    """
    Returns a message describing out-of-range or NaN rows, or None when the
    values are usable; callers turn the message into INVALID_COORDINATE.
    A missing column is a malformed frame rather than a bad coordinate and
    raises ValueError instead.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"DataFrame is missing columns: {missing}")

    lat = df["Lat"].to_numpy(dtype=np.float64)
    lon = df["Lon"].to_numpy(dtype=np.float64)
    bad = ~((np.abs(lat) <= LAT_LIMIT_DEG) & (np.abs(lon) <= LON_LIMIT_DEG))  # NaN counts as bad
    if np.any(bad):
        rows = np.flatnonzero(bad).tolist()
        return f"rows {rows} have latitude outside [-90, 90] or longitude outside [-180, 180]"
    return None


def project_frame(df: pd.DataFrame, origin: GeoOrigin, method: str = "equirectangular") -> Result[pd.DataFrame]:
    """Project a Lat/Lon/h frame. Invalid rows fail the whole batch."""
    projection = ProjectionFactory.create(method)
    problem = _check_frame(df)
    if problem is not None:
        return Result.fail(ErrorKind.INVALID_COORDINATE, problem)
    return Result.ok(projection.project(df, origin))


def distances_from(df: pd.DataFrame, ref: GeoFix) -> Result[np.ndarray]:
    """Haversine distance (m) from `ref` to every row of a Lat/Lon frame."""
    problem = _check_frame(df)
    if problem is None and not (abs(ref.latitude) <= LAT_LIMIT_DEG and abs(ref.longitude) <= LON_LIMIT_DEG):
        problem = f"reference ({ref.latitude}, {ref.longitude}) is out of range"
    if problem is not None:
        return Result.fail(ErrorKind.INVALID_COORDINATE, problem)

    lat1 = np.radians(float(ref.latitude))
    lat2 = np.radians(df["Lat"].to_numpy(dtype=np.float64))
    d_lat = lat2 - lat1
    d_lon = np.radians(df["Lon"].to_numpy(dtype=np.float64)) - np.radians(float(ref.longitude))

    h = np.sin(d_lat / 2.0) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(d_lon / 2.0) ** 2
    h = np.clip(h, 0.0, 1.0)
    return Result.ok(2.0 * EARTH_RADIUS_M * np.arctan2(np.sqrt(h), np.sqrt(1.0 - h)))

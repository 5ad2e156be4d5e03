from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import pandas as pd

from geoar.domain.schemas import GeoFix, ServiceStatus

_CANONICAL = {"point": "Point", "lat": "Lat", "lon": "Lon", "h": "h", "status": "status", "timestamp": "timestamp"}


def _read_normalized(path: str | Path) -> pd.DataFrame:
    """Reads a CSV and maps known headers case-insensitively to their canonical names."""
    df = pd.read_csv(path)
    df.columns = [_CANONICAL.get(str(c).strip().lower(), str(c).strip()) for c in df.columns]
    return df


def read_points_csv(path: str | Path) -> pd.DataFrame:
    """Reads a Point,Lat,Lon,h CSV. Point is optional and defaults to the row number."""
    df = _read_normalized(path)
    missing = [c for c in ("Lat", "Lon", "h") if c not in df.columns]
    if missing:
        raise ValueError(f"CSV must include headers Lat,Lon,h (missing {missing})")
    if "Point" not in df.columns:
        df.insert(0, "Point", [str(i + 1) for i in range(len(df))])
    return df


def read_track_csv(path: str | Path) -> Tuple[List[ServiceStatus], List[GeoFix]]:
    """
    Reads a recorded positioning track: one row per service poll with columns
    status,Lat,Lon,h and an optional timestamp. Coordinates are only required
    on READY rows; those rows become the fixes the service reports.
    """
    df = _read_normalized(path)
    missing = [c for c in ("status", "Lat", "Lon", "h") if c not in df.columns]
    if missing:
        raise ValueError(f"CSV must include headers status,Lat,Lon,h (missing {missing})")

    statuses: List[ServiceStatus] = []
    fixes: List[GeoFix] = []
    for _, row in df.iterrows():
        raw = str(row["status"]).strip().upper()
        try:
            status = ServiceStatus(raw)
        except ValueError:
            raise ValueError(f"Unknown status {row['status']!r}; expected one of {[s.value for s in ServiceStatus]}")
        statuses.append(status)

        if status is ServiceStatus.READY:
            if pd.isnull(row["Lat"]) or pd.isnull(row["Lon"]):
                raise ValueError(f"READY row is missing coordinates: {row.to_dict()}")
            ts = row.get("timestamp")
            fixes.append(
                GeoFix(
                    latitude=float(row["Lat"]),
                    longitude=float(row["Lon"]),
                    altitude=float(row["h"]) if pd.notnull(row["h"]) else 0.0,
                    timestamp=float(ts) if ts is not None and pd.notnull(ts) else 0.0,
                )
            )

    if not statuses:
        raise ValueError(f"Track {path} has no rows")
    return statuses, fixes

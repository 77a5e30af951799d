"""Trajectory samples as returned by the tracking service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

import numpy as np
import pandas as pd

LAT_FIELD = "LATITUDE"
LON_FIELD = "LONGITUDE"
TIME_FIELD = "TIMESTAMP"

# Web Mercator is undefined at the poles
MERCATOR_LAT_LIMIT = 85.05112878


@dataclass(frozen=True)
class TrajectorySample:
    """One recorded fix of a tracked bird."""
    lat: float
    lon: float
    timestamp: Any


def has_timestamp(value: Any) -> bool:
    """Return True when a timestamp is present and truthy."""
    if value is None:
        return False
    if isinstance(value, float) and np.isnan(value):
        return False
    return bool(value)


def filter_valid_samples(records: Iterable[Any]) -> list[TrajectorySample]:
    """Drop records without numeric in-range coordinates or a timestamp."""
    rows = [record if isinstance(record, dict) else {} for record in records]
    if not rows:
        return []

    frame = pd.DataFrame.from_records(rows).reindex(
        columns=[LAT_FIELD, LON_FIELD, TIME_FIELD]
    )
    lat = pd.to_numeric(frame[LAT_FIELD], errors="coerce")
    lon = pd.to_numeric(frame[LON_FIELD], errors="coerce")
    valid = (
        lat.between(-90.0, 90.0)
        & lon.between(-180.0, 180.0)
        & frame[TIME_FIELD].map(has_timestamp).astype(bool)
    )

    return [
        TrajectorySample(
            lat=float(lat.iloc[idx]),
            lon=float(lon.iloc[idx]),
            timestamp=rows[idx][TIME_FIELD],
        )
        for idx in np.flatnonzero(valid.to_numpy())
    ]


def lonlat_to_web_mercator(
    lon_values: Iterable[float], lat_values: Iterable[float]
) -> tuple[np.ndarray, np.ndarray]:
    """Convert longitude/latitude pairs to Web Mercator coordinates."""
    lon_arr = np.asarray(list(lon_values), dtype=float)
    lat_arr = np.clip(
        np.asarray(list(lat_values), dtype=float),
        -MERCATOR_LAT_LIMIT,
        MERCATOR_LAT_LIMIT,
    )
    k = 6378137.0
    x = k * np.deg2rad(lon_arr)
    y = k * np.log(np.tan((np.pi / 4.0) + (np.deg2rad(lat_arr) / 2.0)))
    return x, y

"""
Compass bearings and arrow placement along a recorded flight path.

All angles are degrees clockwise from true north. Points are (lat, lon)
in decimal degrees.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

EARTH_RADIUS_KM = 6371.0088


@dataclass(frozen=True)
class ArrowAnchor:
    """Position and heading of one direction marker."""
    lat: float
    lon: float
    bearing: float
    segment: int


def _normalize_degrees(degrees: float) -> float:
    return ((degrees % 360.0) + 360.0) % 360.0


def calculate_bearing(start: Sequence[float], end: Sequence[float]) -> float:
    """Return the initial great-circle bearing from ``start`` to ``end``."""
    start_lat = math.radians(start[0])
    start_lon = math.radians(start[1])
    end_lat = math.radians(end[0])
    end_lon = math.radians(end[1])

    d_lon = end_lon - start_lon
    y = math.sin(d_lon) * math.cos(end_lat)
    x = math.cos(start_lat) * math.sin(end_lat) - math.sin(start_lat) * math.cos(
        end_lat
    ) * math.cos(d_lon)
    return _normalize_degrees(math.degrees(math.atan2(y, x)))


def segment_bearings(lats: Sequence[float], lons: Sequence[float]) -> np.ndarray:
    """Bearings for every consecutive pair of points (length n - 1)."""
    lat_arr = np.deg2rad(np.asarray(lats, dtype=float))
    lon_arr = np.deg2rad(np.asarray(lons, dtype=float))
    if lat_arr.size < 2:
        return np.empty(0, dtype=float)

    start_lat, end_lat = lat_arr[:-1], lat_arr[1:]
    d_lon = lon_arr[1:] - lon_arr[:-1]
    y = np.sin(d_lon) * np.cos(end_lat)
    x = np.cos(start_lat) * np.sin(end_lat) - np.sin(start_lat) * np.cos(
        end_lat
    ) * np.cos(d_lon)
    return np.mod(np.mod(np.rad2deg(np.arctan2(y, x)), 360.0) + 360.0, 360.0)


def haversine_km(
    lats_a: Sequence[float] | float,
    lons_a: Sequence[float] | float,
    lats_b: Sequence[float] | float,
    lons_b: Sequence[float] | float,
) -> np.ndarray:
    """Great-circle distance in kilometres (vectorised)."""
    lat1 = np.deg2rad(np.asarray(lats_a, dtype=float))
    lon1 = np.deg2rad(np.asarray(lons_a, dtype=float))
    lat2 = np.deg2rad(np.asarray(lats_b, dtype=float))
    lon2 = np.deg2rad(np.asarray(lons_b, dtype=float))
    a = (
        np.sin((lat2 - lat1) / 2.0) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def place_arrows(
    lats: Sequence[float],
    lons: Sequence[float],
    *,
    offset_km: float,
    repeat_km: float,
) -> list[ArrowAnchor]:
    """
    Spread direction markers along the path.

    The first marker sits ``offset_km`` along the cumulative path length,
    the next ones every ``repeat_km`` after it. Each marker is linearly
    interpolated inside the segment it falls on and takes that segment's
    bearing. A non-positive ``repeat_km`` places a single marker.
    """
    lat_arr = np.asarray(lats, dtype=float)
    lon_arr = np.asarray(lons, dtype=float)
    if lat_arr.size < 2:
        return []

    seg_lengths = haversine_km(lat_arr[:-1], lon_arr[:-1], lat_arr[1:], lon_arr[1:])
    cumulative = np.concatenate(([0.0], np.cumsum(seg_lengths)))
    total = float(cumulative[-1])
    if total <= 0.0:
        return []

    offset = max(float(offset_km), 0.0)
    if repeat_km > 0:
        distances = np.arange(offset, total, float(repeat_km))
    else:
        distances = np.array([offset]) if offset < total else np.empty(0)

    bearings = segment_bearings(lat_arr, lon_arr)
    anchors: list[ArrowAnchor] = []
    for distance in distances:
        segment = int(np.searchsorted(cumulative, distance, side="right")) - 1
        segment = min(max(segment, 0), len(seg_lengths) - 1)
        length = seg_lengths[segment]
        if length <= 0.0:
            continue
        fraction = (distance - cumulative[segment]) / length
        lat_step = lat_arr[segment + 1] - lat_arr[segment]
        lon_step = lon_arr[segment + 1] - lon_arr[segment]
        anchors.append(
            ArrowAnchor(
                lat=float(lat_arr[segment] + fraction * lat_step),
                lon=float(lon_arr[segment] + fraction * lon_step),
                bearing=float(bearings[segment]),
                segment=segment,
            )
        )
    return anchors

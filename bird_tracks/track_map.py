"""
Bokeh map showing one bird's trajectory with direction arrows.

A TrackMap owns exactly one figure. ``open()`` builds it, ``close()``
releases every renderer and tool so the figure can be dropped from the
document. Use it as a context manager or call the pair explicitly.
"""

from __future__ import annotations

import math
import sys
from typing import Any, Optional

import numpy as np
from bokeh.models import ColumnDataSource, HoverTool
from bokeh.plotting import figure
from xyzservices import providers as xyz_providers

from .bearing import ArrowAnchor, place_arrows
from .trajectory import TrajectorySample, lonlat_to_web_mercator

WEB_MERCATOR_EXTENT = 2.0 * math.pi * 6378137.0
TILE_SIZE = 256


def resolve_tile_provider(path: str) -> Any | None:
    """Resolve a dotted xyzservices provider path."""
    if not path:
        return None
    provider: Any = xyz_providers
    for part in path.split("."):
        provider = getattr(provider, part, None)
        if provider is None:
            return None
    return provider


def map_ranges(
    center_lat: float, center_lon: float, zoom: float, width: int, height: int
) -> tuple[tuple[float, float], tuple[float, float]]:
    """Web Mercator x/y ranges for a centre point and slippy-map zoom level."""
    meters_per_pixel = WEB_MERCATOR_EXTENT / TILE_SIZE / (2.0 ** zoom)
    x_vals, y_vals = lonlat_to_web_mercator([center_lon], [center_lat])
    cx, cy = float(x_vals[0]), float(y_vals[0])
    half_w = width / 2.0 * meters_per_pixel
    half_h = height / 2.0 * meters_per_pixel
    return (cx - half_w, cx + half_w), (cy - half_h, cy + half_h)


def arrow_source_data(anchors: list[ArrowAnchor]) -> dict[str, list[Any]]:
    """Column data for the arrow markers (angles in radians, counter-clockwise)."""
    x_vals, y_vals = lonlat_to_web_mercator(
        [a.lon for a in anchors], [a.lat for a in anchors]
    )
    bearings = [a.bearing for a in anchors]
    return {
        "x": x_vals.tolist(),
        "y": y_vals.tolist(),
        "lat": [a.lat for a in anchors],
        "lon": [a.lon for a in anchors],
        "bearing": bearings,
        # markers point north at angle 0; bearings turn clockwise
        "angle": (-np.deg2rad(np.asarray(bearings, dtype=float))).tolist(),
    }


class TrackMap:
    """A single trajectory map instance."""

    def __init__(
        self,
        samples: list[TrajectorySample],
        config: dict[str, Any],
        *,
        title: str = "Trajectory",
    ):
        self.samples = list(samples)
        self.map_cfg = config.get("map", {}) or {}
        self.track_cfg = config.get("track", {}) or {}
        self.arrow_cfg = config.get("arrows", {}) or {}
        self.title = title
        self.figure: Optional[Any] = None
        self.arrows: list[ArrowAnchor] = []

    @property
    def is_open(self) -> bool:
        return self.figure is not None

    def open(self) -> Any:
        """Build the figure: tiles, track line and arrow markers."""
        if self.figure is not None:
            return self.figure
        if not self.samples:
            raise ValueError("Cannot open a track map without valid samples.")

        width = int(self.map_cfg.get("width", 800))
        height = int(self.map_cfg.get("height", 600))
        x_range, y_range = map_ranges(
            float(self.map_cfg.get("center_lat", 37.8)),
            float(self.map_cfg.get("center_lon", -96.9)),
            float(self.map_cfg.get("zoom", 4)),
            width,
            height,
        )
        plot = figure(
            title=self.title,
            x_axis_type="mercator",
            y_axis_type="mercator",
            x_range=x_range,
            y_range=y_range,
            width=width,
            height=height,
            tools="pan,wheel_zoom,reset,save",
            active_scroll="wheel_zoom",
        )

        provider_path = str(self.map_cfg.get("tile_provider", "OpenStreetMap.Mapnik"))
        provider = resolve_tile_provider(provider_path)
        if provider is not None:
            plot.add_tile(provider, retina=bool(self.map_cfg.get("retina", False)))
        else:
            print(
                f"[WARN] Unknown tile provider '{provider_path}'; drawing without basemap.",
                file=sys.stderr,
            )

        lats = [s.lat for s in self.samples]
        lons = [s.lon for s in self.samples]
        x_vals, y_vals = lonlat_to_web_mercator(lons, lats)
        track_source = ColumnDataSource(
            data={
                "x": x_vals.tolist(),
                "y": y_vals.tolist(),
                "lat": lats,
                "lon": lons,
                "timestamp": [str(s.timestamp) for s in self.samples],
            }
        )
        plot.line(
            "x",
            "y",
            source=track_source,
            line_color=self.track_cfg.get("color", "#3388ff"),
            line_width=float(self.track_cfg.get("width", 3)),
        )

        self.arrows = place_arrows(
            lats,
            lons,
            offset_km=float(self.arrow_cfg.get("offset_km", 10.0)),
            repeat_km=float(self.arrow_cfg.get("repeat_km", 150.0)),
        )
        arrow_color = self.arrow_cfg.get("color", "red")
        arrow_renderer = plot.scatter(
            "x",
            "y",
            source=ColumnDataSource(data=arrow_source_data(self.arrows)),
            marker="triangle",
            angle="angle",
            size=float(self.arrow_cfg.get("size", 10)),
            line_color=arrow_color,
            line_width=2,
            fill_alpha=0.0,
        )
        plot.add_tools(
            HoverTool(
                renderers=[arrow_renderer],
                tooltips=[
                    ("bearing", "@bearing{0.0}°"),
                    ("lat, lon", "@lat{0.000}, @lon{0.000}"),
                ],
            )
        )

        self.figure = plot
        return plot

    def close(self) -> None:
        """Release all renderers and tools of the figure."""
        if self.figure is None:
            return
        plot = self.figure
        plot.renderers = []
        plot.toolbar.tools = []
        self.figure = None
        self.arrows = []

    def __enter__(self) -> Any:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

import pytest
from bokeh.models import TileRenderer

from bird_tracks.config import load_config
from bird_tracks.track_map import (
    TrackMap,
    arrow_source_data,
    map_ranges,
    resolve_tile_provider,
)
from bird_tracks.bearing import ArrowAnchor
from bird_tracks.trajectory import TrajectorySample, lonlat_to_web_mercator

SAMPLES = [
    TrajectorySample(lat=40.0, lon=-100.0, timestamp="t1"),
    TrajectorySample(lat=41.0, lon=-98.0, timestamp="t2"),
    TrajectorySample(lat=43.0, lon=-97.0, timestamp="t3"),
]


def test_resolve_tile_provider():
    assert resolve_tile_provider("OpenStreetMap.Mapnik") is not None
    assert resolve_tile_provider("Nope.Missing") is None
    assert resolve_tile_provider("") is None


def test_map_ranges_centered_on_point():
    (x0, x1), (y0, y1) = map_ranges(37.8, -96.9, 4, 800, 600)
    cx, cy = lonlat_to_web_mercator([-96.9], [37.8])
    assert (x0 + x1) / 2 == pytest.approx(cx[0])
    assert (y0 + y1) / 2 == pytest.approx(cy[0])
    assert (x1 - x0) / (y1 - y0) == pytest.approx(800 / 600)


def test_map_ranges_halve_per_zoom_level():
    (x0, x1), _ = map_ranges(0, 0, 4, 800, 600)
    (z0, z1), _ = map_ranges(0, 0, 5, 800, 600)
    assert (x1 - x0) == pytest.approx(2 * (z1 - z0))


def test_arrow_angles_turn_clockwise():
    data = arrow_source_data(
        [ArrowAnchor(lat=0.0, lon=0.0, bearing=90.0, segment=0)]
    )
    assert data["angle"][0] == pytest.approx(-1.5707963, rel=1e-6)
    assert data["bearing"] == [90.0]


def test_open_draws_tiles_line_and_arrows():
    track_map = TrackMap(SAMPLES, load_config(), title="Trajectory - A1")
    plot = track_map.open()
    assert track_map.is_open
    assert plot.title.text == "Trajectory - A1"
    assert any(isinstance(r, TileRenderer) for r in plot.renderers)
    assert len(plot.renderers) == 3
    assert track_map.arrows
    # fixed default view, not fitted to the data
    (x0, x1), _ = map_ranges(37.8, -96.9, 4, 800, 600)
    assert plot.x_range.start == pytest.approx(x0)
    assert plot.x_range.end == pytest.approx(x1)


def test_open_twice_returns_same_figure():
    track_map = TrackMap(SAMPLES, load_config())
    assert track_map.open() is track_map.open()


def test_close_releases_renderers_and_tools():
    track_map = TrackMap(SAMPLES, load_config())
    plot = track_map.open()
    track_map.close()
    assert not track_map.is_open
    assert plot.renderers == []
    assert plot.toolbar.tools == []
    track_map.close()


def test_context_manager_closes():
    track_map = TrackMap(SAMPLES, load_config())
    with track_map as plot:
        assert plot.renderers
    assert not track_map.is_open


def test_open_without_samples_raises():
    with pytest.raises(ValueError):
        TrackMap([], load_config()).open()


def test_unknown_tile_provider_warns(capsys):
    config = load_config()
    config["map"]["tile_provider"] = "Does.NotExist"
    plot = TrackMap(SAMPLES, config).open()
    assert not any(isinstance(r, TileRenderer) for r in plot.renderers)
    assert "Unknown tile provider" in capsys.readouterr().err

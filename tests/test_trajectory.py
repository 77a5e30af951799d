import numpy as np
import pytest

from bird_tracks.trajectory import (
    filter_valid_samples,
    has_timestamp,
    lonlat_to_web_mercator,
)


def _record(lat, lon, ts="2021-04-01 12:00:00"):
    return {"LATITUDE": lat, "LONGITUDE": lon, "TIMESTAMP": ts}


def test_drops_non_numeric_latitude_and_keeps_order():
    records = [
        _record(52.0, 5.0, "t1"),
        _record("not-a-number", 5.1, "t2"),
        _record(52.2, 5.2, "t3"),
        _record(52.3, 5.3, "t4"),
    ]
    samples = filter_valid_samples(records)
    assert [s.timestamp for s in samples] == ["t1", "t3", "t4"]
    assert [s.lat for s in samples] == [52.0, 52.2, 52.3]


def test_numeric_strings_are_parsed():
    samples = filter_valid_samples([_record("52.5", "-4.25")])
    assert len(samples) == 1
    assert samples[0].lat == pytest.approx(52.5)
    assert samples[0].lon == pytest.approx(-4.25)


@pytest.mark.parametrize("timestamp", [None, "", 0])
def test_missing_or_falsy_timestamp_is_invalid(timestamp):
    assert filter_valid_samples([_record(1.0, 2.0, timestamp)]) == []


def test_whitespace_timestamp_is_truthy():
    samples = filter_valid_samples([_record(1.0, 2.0, " ")])
    assert len(samples) == 1
    assert samples[0].timestamp == " "


def test_record_without_timestamp_field_is_invalid():
    assert filter_valid_samples([{"LATITUDE": 1.0, "LONGITUDE": 2.0}]) == []


def test_out_of_range_coordinates_are_invalid():
    records = [_record(91.0, 0.0), _record(0.0, -181.0), _record(-90.0, 180.0)]
    samples = filter_valid_samples(records)
    assert [(s.lat, s.lon) for s in samples] == [(-90.0, 180.0)]


def test_non_dict_records_and_empty_input():
    assert filter_valid_samples([]) == []
    samples = filter_valid_samples(["garbage", None, _record(1.0, 1.0)])
    assert len(samples) == 1


def test_lowercase_field_names_are_not_accepted():
    assert filter_valid_samples([{"latitude": 1, "longitude": 1, "timestamp": "t"}]) == []


def test_has_timestamp():
    assert has_timestamp("2020-01-01")
    assert has_timestamp(1609459200)
    assert not has_timestamp(float("nan"))


def test_web_mercator_origin_and_clipping():
    x, y = lonlat_to_web_mercator([0.0, 180.0], [0.0, 90.0])
    assert x[0] == pytest.approx(0.0)
    assert y[0] == pytest.approx(0.0, abs=1e-6)
    assert x[1] == pytest.approx(20037508.34, rel=1e-6)
    assert np.isfinite(y[1])

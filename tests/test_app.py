from unittest import mock

from bird_tracks.config import DEFAULT_CONFIG
from bird_tracks.trajectory_map_app import (
    FETCH_EXECUTOR,
    build_config,
    make_document_handler,
    parse_args,
)
from bird_tracks.widget import TrajectoryWidget


def test_cli_overrides():
    args = parse_args(["--species", "ciconia", "--base-url", "http://svc:9000", "--port", "5100"])
    config = build_config(args)
    assert config["species"]["slug"] == "ciconia"
    assert config["service"]["base_url"] == "http://svc:9000"
    assert config["server"]["port"] == 5100


def test_cli_overrides_leave_defaults_untouched():
    build_config(parse_args(["--species", "ciconia", "--port", "5100"]))
    assert DEFAULT_CONFIG["species"]["slug"] == "anser"
    assert DEFAULT_CONFIG["server"]["port"] == 5006
    assert build_config(parse_args([]))["species"]["slug"] == "anser"


def test_document_handler_wires_lifecycle():
    config = build_config(parse_args([]))
    doc = mock.Mock()
    widget = make_document_handler(config)(doc)

    assert isinstance(widget, TrajectoryWidget)
    assert widget.executor is FETCH_EXECUTOR
    assert widget.doc is doc
    doc.add_root.assert_called_once_with(widget.layout)
    doc.add_next_tick_callback.assert_called_once_with(widget.mount)
    assert doc.title == "Trajectories - anser"

    on_destroyed = doc.on_session_destroyed.call_args.args[0]
    with mock.patch.object(widget, "unmount") as unmount:
        on_destroyed(mock.Mock())
    unmount.assert_called_once_with()

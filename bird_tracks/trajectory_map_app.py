#!/usr/bin/env python3
"""
Interactive bird trajectory viewer: pick a bird ID, see its path on a map.

Usage:
    bird-tracks-map
    bird-tracks-map --config configs/config_anser.yaml
    python -m bird_tracks.trajectory_map_app --species anser --base-url http://localhost:5000 --no-show

The tracking service must answer:
    GET {base_url}/get_bird_ids?bird=<species>
    GET {base_url}/get_trajectory_data?bird=<species>&birdID=<id>
"""

from __future__ import annotations

import argparse
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Optional, Sequence

from bokeh.server.server import Server

from .client import TrackingServiceClient
from .config import load_config
from .widget import TrajectoryWidget

# shared by all sessions; HTTP requests never run on the server loop
FETCH_EXECUTOR = ThreadPoolExecutor(max_workers=4, thread_name_prefix="tracking-fetch")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bird trajectory map viewer")
    parser.add_argument("--config", type=Path, help="Path to config.yaml file")
    parser.add_argument("--species", type=str, help="Species slug sent as ?bird=")
    parser.add_argument("--base-url", type=str, help="Tracking service base URL")
    parser.add_argument("--port", type=int, help="Bokeh server port")
    parser.add_argument(
        "--no-show", action="store_true", help="Do not open a browser window"
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> dict[str, Any]:
    """Load the config file and apply command line overrides."""
    config = load_config(args.config)
    if args.species:
        config["species"]["slug"] = args.species
    if args.base_url:
        config["service"]["base_url"] = args.base_url
    if args.port:
        config["server"]["port"] = args.port
    return config


def make_document_handler(config: dict[str, Any]):
    """Return a Bokeh handler that builds one widget per session."""
    service_cfg = config.get("service", {}) or {}

    def modify_doc(doc: Any) -> TrajectoryWidget:
        client = TrackingServiceClient(
            base_url=str(service_cfg.get("base_url", "http://localhost:5000")),
            request_timeout=service_cfg.get("timeout"),
        )
        widget = TrajectoryWidget(client, config, executor=FETCH_EXECUTOR, doc=doc)
        doc.add_root(widget.layout)
        doc.title = f"Trajectories - {widget.species}"

        def _on_session_destroyed(session_context: Any) -> None:
            widget.unmount()
            client.close()

        doc.on_session_destroyed(_on_session_destroyed)
        doc.add_next_tick_callback(widget.mount)
        return widget

    return modify_doc


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point."""
    args = parse_args(argv)
    config = build_config(args)

    print("=" * 60)
    print("Bird trajectory map viewer")
    print(f"  Species: {config['species']['slug']}")
    print(f"  Service: {config['service']['base_url']}")
    print(f"  Port: {config['server']['port']}")
    print("=" * 60)

    server = Server(
        {"/": make_document_handler(config)},
        port=int(config["server"]["port"]),
        num_procs=1,
    )
    server.start()
    if not args.no_show:
        server.io_loop.add_callback(server.show, "/")
    server.io_loop.start()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Dropdown plus trajectory map, one instance per Bokeh session."""

from __future__ import annotations

import html
import sys
from concurrent.futures import Executor, Future
from functools import partial
from typing import Any, Callable, Optional

from bokeh.layouts import column
from bokeh.models import Div, Select

from . import state as widget_state
from .client import TrackingServiceClient
from .track_map import TrackMap
from .trajectory import TrajectorySample, filter_valid_samples

PLACEHOLDER_VALUE = ""
PLACEHOLDER_LABEL = "Select bird ID"

MapFactory = Callable[..., TrackMap]


class TrajectoryWidget:
    """
    Select a bird and draw its trajectory.

    With an ``executor`` and a ``doc`` the HTTP requests run on worker
    threads and their results are applied on the document's next tick, so
    a slow tracking service never blocks the server loop. Without them the
    requests run inline.
    """

    def __init__(
        self,
        client: TrackingServiceClient,
        config: dict[str, Any],
        *,
        map_factory: MapFactory = TrackMap,
        executor: Optional[Executor] = None,
        doc: Optional[Any] = None,
    ):
        if (executor is None) != (doc is None):
            raise ValueError("executor and doc must be given together.")
        self.client = client
        self.config = config
        self.species = str((config.get("species", {}) or {}).get("slug", "anser"))
        self.map_factory = map_factory
        self.executor = executor
        self.doc = doc
        self.state = widget_state.WidgetState()
        self.track_map: Optional[TrackMap] = None
        self._option_lookup: dict[str, Any] = {}
        self._syncing_select = False
        self._mounted = False

        self.select = Select(
            title="Bird ID",
            value=PLACEHOLDER_VALUE,
            options=[(PLACEHOLDER_VALUE, PLACEHOLDER_LABEL)],
            width=240,
        )
        self.select.on_change("value", self._on_select_change)
        self.status_div = Div(text="")
        self.map_slot = column(Div(text=""))
        self.layout = column(self.select, self.status_div, self.map_slot)

    # lifecycle

    def mount(self) -> None:
        """Request the identifier list; the first bird loads once it arrives."""
        self._mounted = True
        self._dispatch(
            partial(self.client.fetch_bird_ids, self.species), self._apply_bird_ids
        )

    def unmount(self) -> None:
        """Release the current map and drop results still in flight."""
        self._mounted = False
        self._close_map()
        self.map_slot.children = [Div(text="")]

    # selection

    def select_bird(self, bird_id: Optional[Any]) -> None:
        """Make ``bird_id`` the active bird and refetch its trajectory."""
        self.state = widget_state.selection_changed(self.state, bird_id)
        self._sync_select(PLACEHOLDER_VALUE if bird_id is None else str(bird_id))
        if bird_id is None:
            self._render()
            return
        self._request_trajectory(bird_id)

    def _on_select_change(self, attr: str, old: str, new: str) -> None:
        if self._syncing_select:
            return
        if new == PLACEHOLDER_VALUE:
            self.select_bird(None)
            return
        self.select_bird(self._option_lookup.get(new, new))

    def _sync_select(self, value: str) -> None:
        self._syncing_select = True
        try:
            self.select.value = value
        finally:
            self._syncing_select = False

    # fetching

    def _dispatch(self, fetch: Callable[[], Any], apply: Callable[[Any], None]) -> None:
        if self.executor is None:
            apply(fetch())
            return
        future = self.executor.submit(fetch)
        future.add_done_callback(partial(self._schedule_result, apply))

    def _schedule_result(self, apply: Callable[[Any], None], future: Future) -> None:
        # runs on the worker thread; document changes must go through the loop
        try:
            result = future.result()
        except Exception as e:  # noqa: BLE001
            print(f"[WARN] Tracking request failed: {e}", file=sys.stderr)
            result = []
        self.doc.add_next_tick_callback(partial(apply, result))

    def _apply_bird_ids(self, bird_ids: list[Any]) -> None:
        if not self._mounted:
            return
        self.state = widget_state.bird_ids_loaded(self.state, bird_ids)
        self._option_lookup = {str(bird_id): bird_id for bird_id in self.state.bird_ids}
        self.select.options = [(PLACEHOLDER_VALUE, PLACEHOLDER_LABEL)] + [
            (key, key) for key in self._option_lookup
        ]

        active = self.state.active_bird_id
        if active is None:
            print(
                "[WARN] No bird IDs available; skipping trajectory fetch.",
                file=sys.stderr,
            )
            self._sync_select(PLACEHOLDER_VALUE)
            self._render()
            return
        self._sync_select(str(active))
        self._request_trajectory(active)

    def _request_trajectory(self, bird_id: Any) -> None:
        self._dispatch(
            partial(self.client.fetch_trajectory, self.species, bird_id),
            partial(self._apply_trajectory, bird_id),
        )

    def _apply_trajectory(self, bird_id: Any, records: list[dict[str, Any]]) -> None:
        if not self._mounted:
            return
        new_state = widget_state.trajectory_loaded(self.state, bird_id, records)
        if new_state is self.state:
            return
        self.state = new_state
        self._render()

    # rendering

    def _close_map(self) -> None:
        if self.track_map is not None:
            self.track_map.close()
            self.track_map = None

    def _render(self) -> None:
        """Tear down the previous map and draw the current trajectory."""
        self._close_map()
        self.map_slot.children = [Div(text="")]
        self.status_div.text = ""

        if not self.state.trajectory:
            if self.state.active_bird_id is not None:
                print(
                    f"[WARN] Empty trajectory for bird {self.state.active_bird_id}.",
                    file=sys.stderr,
                )
            return

        samples: list[TrajectorySample] = filter_valid_samples(self.state.trajectory)
        if not samples:
            print("[WARN] No valid trajectory data found.", file=sys.stderr)
            return

        dropped = len(self.state.trajectory) - len(samples)
        if dropped:
            print(
                f"[WARN] Dropped {dropped} invalid trajectory samples.", file=sys.stderr
            )

        self.track_map = self.map_factory(
            samples, self.config, title=f"Trajectory - {self.state.active_bird_id}"
        )
        self.map_slot.children = [self.track_map.open()]
        bird_label = html.escape(str(self.state.active_bird_id))
        self.status_div.text = f"<b>Bird {bird_label}</b>: {len(samples)} samples"

"""
Widget state and its update functions.

The state is immutable; every data source has one function that returns
the next state:

    bird_ids_loaded     identifier list arrived (or failed -> [])
    selection_changed   dropdown value changed
    trajectory_loaded   trajectory for a bird arrived (or failed -> [])
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

IDLE = "idle"
READY = "ready"
LOADING = "loading"
RENDERED = "rendered"


@dataclass(frozen=True)
class WidgetState:
    bird_ids: tuple[Any, ...] = ()
    # only the first entry is ever used
    selected_bird_ids: tuple[Any, ...] = ()
    trajectory: tuple[dict[str, Any], ...] = ()
    phase: str = IDLE

    @property
    def active_bird_id(self) -> Optional[Any]:
        return self.selected_bird_ids[0] if self.selected_bird_ids else None


def bird_ids_loaded(state: WidgetState, bird_ids: list[Any]) -> WidgetState:
    """Store the identifier list and auto-select its first entry."""
    if not bird_ids:
        return replace(
            state, bird_ids=(), selected_bird_ids=(), trajectory=(), phase=IDLE
        )
    return replace(
        state,
        bird_ids=tuple(bird_ids),
        selected_bird_ids=(bird_ids[0],),
        trajectory=(),
        phase=LOADING,
    )


def selection_changed(state: WidgetState, bird_id: Optional[Any]) -> WidgetState:
    """Select a new bird; ``None`` clears the selection."""
    if bird_id is None:
        return replace(state, selected_bird_ids=(), trajectory=(), phase=READY)
    return replace(state, selected_bird_ids=(bird_id,), phase=LOADING)


def trajectory_loaded(
    state: WidgetState, bird_id: Any, records: list[dict[str, Any]]
) -> WidgetState:
    """Replace the trajectory, ignoring responses for a bird no longer selected."""
    if bird_id != state.active_bird_id:
        return state
    trajectory = tuple(records)
    return replace(
        state,
        trajectory=trajectory,
        phase=RENDERED if trajectory else READY,
    )

"""Map view state and the pure reducer applied to widget events."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union

from .models import LatLng

INITIAL_CENTER = LatLng(lat=20.0, lng=0.0)
INITIAL_ZOOM = 2.0


@dataclass(frozen=True, slots=True)
class MapViewState:
    zoom: float = INITIAL_ZOOM
    center: LatLng = INITIAL_CENTER
    selected: str | None = None
    hovered: str | None = None


@dataclass(frozen=True, slots=True)
class Zoomed:
    """Zoom (and optionally pan) finished."""

    zoom: float
    center: LatLng | None = None


@dataclass(frozen=True, slots=True)
class Hovered:
    name: str | None


@dataclass(frozen=True, slots=True)
class HoverEnded:
    name: str


@dataclass(frozen=True, slots=True)
class Selected:
    name: str | None


MapEvent = Union[Zoomed, Hovered, HoverEnded, Selected]


def reduce_view(state: MapViewState, event: MapEvent) -> MapViewState:
    """Return the view state after `event`; `state` is never modified."""
    if isinstance(event, Zoomed):
        center = event.center if event.center is not None else state.center
        return replace(state, zoom=float(event.zoom), center=center)
    if isinstance(event, Hovered):
        return replace(state, hovered=event.name)
    if isinstance(event, HoverEnded):
        # A late "leave" for another feature must not clear the current hover.
        if state.hovered != event.name:
            return state
        return replace(state, hovered=None)
    if isinstance(event, Selected):
        return replace(state, selected=event.name)
    raise TypeError(f"Unsupported map event: {type(event).__name__}")

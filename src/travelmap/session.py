"""Session shell wiring the index, resolvers, store, and view state."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .annotations import AnnotationStore
from .config import AppConfig
from .geometry_index import DataFormatError, GeometryIndex, load_geometry_index
from .map_state import MapEvent, MapViewState, Selected, reduce_view
from .models import Annotation, RenderState, ViewportFitInstruction
from .render_state import RenderStateResolver
from .viewport import DegenerateGeometryError, ViewportResolver

_LOGGER = logging.getLogger("travelmap.session")


class TravelMapSession:
    """Holds the current index and view; every decision is delegated.

    Load and framing failures are logged here and never propagate, so a
    caller driving this from an event loop keeps running.
    """

    def __init__(
        self,
        cfg: AppConfig,
        store: AnnotationStore,
        *,
        viewport: ViewportResolver | None = None,
        renderer: RenderStateResolver | None = None,
    ) -> None:
        self.cfg = cfg
        self.store = store
        self.viewport = viewport or ViewportResolver(cfg.viewport)
        self.renderer = renderer or RenderStateResolver(cfg.style, cfg.labels)
        self.index = GeometryIndex.empty()
        self.view = MapViewState()
        self.last_fit: ViewportFitInstruction | None = None

    def load_features(self, raw: Any) -> bool:
        try:
            index = load_geometry_index(raw, cfg=self.cfg.index)
        except DataFormatError as exc:
            _LOGGER.error("Ignoring malformed country data; keeping previous index: %s", exc)
            return False
        self.index = index
        dangling = self.dangling_annotations()
        if dangling:
            _LOGGER.warning("Annotations without a matching country: %s", ", ".join(dangling))
        return True

    def select(self, name: str | None) -> ViewportFitInstruction | None:
        """Select a country and return the camera fit, or None if it cannot be framed."""
        if name is None:
            self.view = reduce_view(self.view, Selected(None))
            return None
        feature = self.index.get(name)
        if feature is None:
            _LOGGER.warning("Unknown country '%s'; view unchanged", name)
            return None
        try:
            fit = self.viewport.resolve(feature)
        except DegenerateGeometryError as exc:
            _LOGGER.warning("Cannot frame '%s'; view unchanged: %s", name, exc)
            return None
        self.view = reduce_view(self.view, Selected(name))
        self.last_fit = fit
        return fit

    def dispatch(self, event: MapEvent) -> MapViewState:
        self.view = reduce_view(self.view, event)
        return self.view

    def annotate(self, annotation: Annotation) -> None:
        if annotation.country_name not in self.index:
            _LOGGER.warning("Annotating '%s', which is not in the loaded countries", annotation.country_name)
        self.store.upsert(annotation)
        self.store.save()

    def render_states(self) -> dict[str, RenderState]:
        return self.renderer.resolve(self.index.features, self.annotations(), self.view)

    def annotations(self) -> Mapping[str, Annotation]:
        return self.store.snapshot()

    def dangling_annotations(self) -> list[str]:
        return self.store.dangling(self.index.by_name)

"""CLI entrypoint for the travel memory map."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from .annotations import AnnotationStore
from .config import AppConfig, load_config
from .geojson_source import format_fetch_lines, load_feature_collection, run_fetch
from .map_state import Hovered, Zoomed
from .models import Annotation, CityAnnotation, Trip
from .preview import PreviewRenderer, PreviewRequest
from .session import TravelMapSession
from .util import ensure_directories, setup_logging
from .validate import Validator, format_report_lines
from .viewport import DegenerateGeometryError

LOGGER = logging.getLogger("travelmap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="travelmap",
        description="Travel memory map: annotate countries and preview the map.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    def add_view(p: argparse.ArgumentParser) -> None:
        p.add_argument("--zoom", type=float, default=None, help="Map zoom level.")
        p.add_argument("--selected", default=None, help="Selected country name.")
        p.add_argument("--hovered", default=None, help="Hovered country name.")

    fetch_p = subparsers.add_parser("fetch", help="Download the countries GeoJSON.")
    add_common(fetch_p)
    fetch_p.add_argument("--force", action="store_true", help="Download even if cached.")

    countries_p = subparsers.add_parser("countries", help="List selectable country names.")
    add_common(countries_p)
    countries_p.add_argument("--search", default=None, help="Prefix/substring filter.")
    countries_p.add_argument("--limit", type=int, default=None, help="Max names to print.")

    focus_p = subparsers.add_parser("focus", help="Print the camera fit for one country.")
    add_common(focus_p)
    focus_p.add_argument("name", help="Country name.")
    focus_p.add_argument(
        "--center",
        action="store_true",
        help="Print bbox center and fixed zoom instead of a bounds fit.",
    )

    styles_p = subparsers.add_parser("styles", help="Print per-country render state as JSON.")
    add_common(styles_p)
    add_view(styles_p)
    styles_p.add_argument(
        "--labels-only",
        action="store_true",
        help="Only include countries whose label is visible.",
    )

    annotate_p = subparsers.add_parser("annotate", help="Create or update a country annotation.")
    add_common(annotate_p)
    annotate_p.add_argument("name", help="Country name.")
    annotate_p.add_argument("--color", default=None, help="Hex fill color.")
    annotate_p.add_argument("--comment", default=None, help="Free-form notes.")
    annotate_p.add_argument(
        "--visit-type",
        choices=("visited", "lived", "traveled"),
        default=None,
        help="Kind of stay.",
    )
    annotate_p.add_argument(
        "--trip",
        action="append",
        default=[],
        help="Trip as START:END ISO dates. Can be repeated; replaces existing trips.",
    )
    annotate_p.add_argument(
        "--city",
        action="append",
        default=[],
        help="City name. Can be repeated; replaces existing cities.",
    )
    annotate_p.add_argument(
        "--department",
        action="append",
        default=[],
        help="Region or department visited. Can be repeated; replaces existing ones.",
    )

    forget_p = subparsers.add_parser("forget", help="Delete a country annotation.")
    add_common(forget_p)
    forget_p.add_argument("name", help="Country name.")

    preview_p = subparsers.add_parser("preview", help="Render a PNG preview of the map.")
    add_common(preview_p)
    add_view(preview_p)
    preview_p.add_argument("--output", default=None, help="Output image path.")

    validate_p = subparsers.add_parser("validate", help="Validate config, countries, and annotations.")
    add_common(validate_p)

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    setup_logging(cfg.paths.logs_dir / "travelmap.log", verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _open_session(cfg: AppConfig) -> TravelMapSession | None:
    store = AnnotationStore(cfg.paths.annotations)
    try:
        store.load()
    except ValueError as exc:
        LOGGER.error("Failed loading annotations: %s", exc)
        return None
    session = TravelMapSession(cfg, store)
    path = cfg.paths.countries_geojson
    try:
        raw = load_feature_collection(path)
    except FileNotFoundError:
        LOGGER.error("Countries GeoJSON missing at %s; run `travelmap fetch` first.", path)
        return None
    except ValueError as exc:
        LOGGER.error("%s", exc)
        return None
    if not session.load_features(raw):
        return None
    return session


def _apply_view_args(session: TravelMapSession, args: argparse.Namespace) -> bool:
    if args.zoom is not None:
        session.dispatch(Zoomed(zoom=args.zoom))
    if args.hovered is not None:
        if args.hovered not in session.index:
            LOGGER.error("Unknown country '%s'", args.hovered)
            return False
        session.dispatch(Hovered(args.hovered))
    if args.selected is not None and session.select(args.selected) is None:
        return False
    return True


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _run_fetch(cfg: AppConfig, *, force: bool) -> int:
    report = run_fetch(cfg.source, cfg.paths.countries_geojson, force=force)
    for line in format_fetch_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_countries(cfg: AppConfig, *, search: str | None, limit: int | None) -> int:
    session = _open_session(cfg)
    if session is None:
        return 1
    if search is not None:
        names = session.index.search(search, limit=limit)
    else:
        names = list(session.index.sorted_names)
        if limit is not None:
            names = names[:limit]
    for name in names:
        print(name)
    return 0


def _run_focus(cfg: AppConfig, *, name: str, center: bool) -> int:
    session = _open_session(cfg)
    if session is None:
        return 1
    if center:
        feature = session.index.get(name)
        if feature is None:
            LOGGER.error("Unknown country '%s'", name)
            return 1
        try:
            _print_json(session.viewport.center_on(feature).to_dict())
        except DegenerateGeometryError as exc:
            LOGGER.error("Cannot center on '%s': %s", name, exc)
            return 1
        return 0
    fit = session.select(name)
    if fit is None:
        return 1
    _print_json(fit.to_dict())
    return 0


def _run_styles(cfg: AppConfig, args: argparse.Namespace) -> int:
    session = _open_session(cfg)
    if session is None or not _apply_view_args(session, args):
        return 1
    states = session.render_states()
    payload = {
        name: state.to_dict()
        for name, state in states.items()
        if state.label.visible or not args.labels_only
    }
    _print_json(payload)
    return 0


def _parse_trip(raw: str) -> Trip:
    start, sep, end = raw.partition(":")
    if not sep:
        raise ValueError(f"Trip must be START:END, got '{raw}'")
    return Trip(start_date=start.strip(), end_date=end.strip())


def _run_annotate(cfg: AppConfig, args: argparse.Namespace) -> int:
    session = _open_session(cfg)
    if session is None:
        return 1
    try:
        trips = tuple(_parse_trip(item) for item in args.trip)
    except ValueError as exc:
        LOGGER.error("%s", exc)
        return 1

    name = str(args.name).strip()
    changes: dict[str, Any] = {}
    if args.color is not None:
        changes["color"] = args.color
    if args.comment is not None:
        changes["comment"] = args.comment
    if args.visit_type is not None:
        changes["visit_type"] = args.visit_type
    if trips:
        changes["trips"] = trips
    departments = tuple(item.strip() for item in args.department if item.strip())
    if departments:
        changes["departments"] = departments

    try:
        existing = session.store.get(name)
        if existing is None:
            existing = Annotation(
                country_name=name,
                color=cfg.annotations.color,
                visit_type=cfg.annotations.visit_type,
            )
        cities = tuple(
            CityAnnotation(name=city.strip(), color=changes.get("color", existing.color))
            for city in args.city
            if city.strip()
        )
        if cities:
            changes["cities"] = cities
        annotation = replace(existing, **changes)
    except ValueError as exc:
        LOGGER.error("Invalid annotation for '%s': %s", name, exc)
        return 1

    session.annotate(annotation)
    LOGGER.info("Annotation saved for '%s' in %s", name, session.store.path)
    return 0


def _run_forget(cfg: AppConfig, *, name: str) -> int:
    store = AnnotationStore(cfg.paths.annotations)
    try:
        store.load()
    except ValueError as exc:
        LOGGER.error("Failed loading annotations: %s", exc)
        return 1
    if not store.remove(name):
        LOGGER.warning("No annotation for '%s'", name)
        return 1
    store.save()
    LOGGER.info("Annotation removed for '%s'", name)
    return 0


def _run_preview(cfg: AppConfig, args: argparse.Namespace) -> int:
    session = _open_session(cfg)
    if session is None:
        return 1
    if args.zoom is None:
        session.dispatch(Zoomed(zoom=cfg.preview.zoom))
    if not _apply_view_args(session, args):
        return 1

    if args.output is not None:
        output_path = Path(args.output)
    else:
        stem = _slug(session.view.selected) if session.view.selected else "world"
        output_path = cfg.paths.preview_dir / f"map_{stem}.{cfg.preview.format}"

    renderer = PreviewRenderer(cfg.preview)
    try:
        path = renderer.render(
            PreviewRequest(
                features=session.index.features,
                states=session.render_states(),
                view=session.view,
                output_path=output_path,
                fit=session.last_fit if session.view.selected else None,
            )
        )
    except (RuntimeError, ValueError) as exc:
        LOGGER.error("Preview failed: %s", exc)
        return 1
    LOGGER.info("Preview written to %s", path)
    return 0


def _run_validate(cfg: AppConfig) -> int:
    report = Validator(cfg).run()
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _slug(name: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in name).strip("_") or "country"


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "fetch":
        return _run_fetch(cfg, force=bool(args.force))
    if command == "countries":
        return _run_countries(cfg, search=args.search, limit=args.limit)
    if command == "focus":
        return _run_focus(cfg, name=str(args.name), center=bool(args.center))
    if command == "styles":
        return _run_styles(cfg, args)
    if command == "annotate":
        return _run_annotate(cfg, args)
    if command == "forget":
        return _run_forget(cfg, name=str(args.name))
    if command == "preview":
        return _run_preview(cfg, args)
    if command == "validate":
        return _run_validate(cfg)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())

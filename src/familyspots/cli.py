"""
Family Spots CLI entrypoint.

This CLI is intended for quick local demos and debugging without a browser front-end.
It delegates all filtering logic to `familyspots.directory.service.SpotDirectory`.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from familyspots.config.settings import get_settings
from familyspots.core.logging import configure_logging
from familyspots.directory.service import SpotDirectory
from familyspots.domain.models import CompassStats, FilterState, GeoPoint
from familyspots.filters.engine import SORT_MODES
from familyspots.quality.report import build_quality_report_from_settings


def _state_from_args(args: argparse.Namespace) -> FilterState:
    """Translate filter flags into a `FilterState` (unset flags filter nothing)."""
    center = None
    if args.lat is not None and args.lng is not None:
        center = GeoPoint(lat=float(args.lat), lng=float(args.lng))
    elif (args.lat is None) != (args.lng is None):
        raise ValueError("--lat and --lng must be given together")

    return FilterState(
        search_term=args.search or "",
        category=args.category,
        age_group=args.age or "all",
        mood=args.mood,
        travel_mode=args.travel,
        big_adventures_only=bool(args.big_adventures),
        verified_only=bool(args.verified),
        favorites_only=bool(args.favorites),
        active_chip_ids=frozenset(args.chip or []),
        center=center,
        radius_index=args.radius,
    )


def _cmd_spots(args: argparse.Namespace) -> int:
    """Handle the `spots` subcommand."""
    directory = SpotDirectory.build()
    state = _state_from_args(args)
    result = directory.search(state, lang=args.lang, sort=args.sort)

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    meta = result.meta
    print(f"Matched {meta['matched']} of {meta['total']} spots (locked: {meta['locked']})")
    for i, spot in enumerate(result.results, start=1):
        label = directory.registry.label_for(spot.primary_category, args.lang) if spot.primary_category else "-"
        where = f"  {spot.subtitle}" if spot.subtitle else ""
        print(f"{i:>3}. {spot.name} [{label}]{where}")
    if result.compass:
        print()
        print(result.compass)
    return 0


def _cmd_compass(args: argparse.Namespace) -> int:
    directory = SpotDirectory.build()
    state = _state_from_args(args)
    result = directory.search(state, lang=args.lang)
    favorites = directory.favorites.load()
    decision = directory.compass.decide(
        state, CompassStats(matched_count=len(result.results), favorites_count=len(favorites))
    )
    if args.json:
        payload = {"keys": list(decision.keys), "message": directory.compass.render(decision, args.lang)}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    print(directory.compass.render(decision, args.lang))
    return 0


def _cmd_categories(args: argparse.Namespace) -> int:
    directory = SpotDirectory.build()
    rows = directory.registry.categories_for_ui(args.lang)
    if args.json:
        print(json.dumps(rows, ensure_ascii=False, indent=2))
        return 0
    for row in rows:
        rule = directory.policy.rule_for(row["slug"])
        lock = "" if rule.level == "free" else f"  ({rule.level}: {rule.addon_id or rule.subscription_id})"
        print(f"{row['slug']:<40} {row['label']}{lock}")
    return 0


def _cmd_redeem(args: argparse.Namespace) -> int:
    directory = SpotDirectory.build()
    result = directory.entitlements.redeem(args.code)
    lang = args.lang
    if result.ok:
        print(directory.texts.text("redeem.ok", lang))
        print(directory.entitlement_snapshot(lang)["label"])
        return 0
    print(directory.texts.text(f"redeem.{result.reason}", lang))
    return 1


def _cmd_status(args: argparse.Namespace) -> int:
    directory = SpotDirectory.build()
    snapshot = directory.entitlement_snapshot(args.lang)
    if args.json:
        print(json.dumps(snapshot, ensure_ascii=False, indent=2))
        return 0
    print(snapshot["label"])
    return 0


def _cmd_favorite(args: argparse.Namespace) -> int:
    directory = SpotDirectory.build()
    if args.spot_id:
        added = directory.favorites.toggle(args.spot_id)
        print(f"{args.spot_id}: {'added' if added else 'removed'}")
        return 0
    for spot_id in sorted(directory.favorites.load()):
        print(spot_id)
    return 0


def _cmd_daylog(args: argparse.Namespace) -> int:
    directory = SpotDirectory.build()
    if args.text:
        entry = directory.daylog.save(" ".join(args.text))
        if entry is None:
            print("Nothing to save.")
            return 1
        print(f"Saved at {entry.saved_at.isoformat()}")
        return 0
    entry = directory.daylog.load()
    if entry is None:
        print("No entry yet.")
        return 0
    print(f"{entry.saved_at.isoformat()}  {entry.text}")
    return 0


def _cmd_quality_report(_: argparse.Namespace) -> int:
    settings = get_settings()
    directory = SpotDirectory.build(settings)
    report = build_quality_report_from_settings(settings, directory.registry, directory.policy)
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


def _add_filter_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--search", type=str, default=None, help="Case-insensitive substring search")
    p.add_argument("--category", type=str, default=None, help="Category slug (aliases accepted)")
    p.add_argument("--age", type=str, default=None, help="Age group, e.g. 0-3, 4-9, 10+")
    p.add_argument("--mood", type=str, default=None, help="relaxed | action | water | animals")
    p.add_argument("--travel", type=str, default=None, help="everyday | trip")
    p.add_argument("--big-adventures", action="store_true")
    p.add_argument("--verified", action="store_true")
    p.add_argument("--favorites", action="store_true")
    p.add_argument("--chip", action="append", default=[], help="Repeatable filter chip id")
    p.add_argument("--lat", type=float, default=None)
    p.add_argument("--lng", type=float, default=None)
    p.add_argument("--radius", type=int, default=None, help="Radius step index (0..4); omit for no limit")
    p.add_argument("--lang", type=str, default=None)
    p.add_argument("--json", action="store_true", help="Output machine-readable JSON")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the Family Spots CLI."""
    parser = argparse.ArgumentParser(prog="familyspots")
    sub = parser.add_subparsers(dest="command", required=True)

    spots = sub.add_parser("spots", help="List visible spots for a filter combination.")
    _add_filter_args(spots)
    spots.add_argument("--sort", choices=list(SORT_MODES), default="catalog")
    spots.set_defaults(func=_cmd_spots)

    compass = sub.add_parser("compass", help="Show the family compass message for a filter combination.")
    _add_filter_args(compass)
    compass.set_defaults(func=_cmd_compass)

    cats = sub.add_parser("categories", help="List categories with labels and access level.")
    cats.add_argument("--lang", type=str, default=None)
    cats.add_argument("--json", action="store_true")
    cats.set_defaults(func=_cmd_categories)

    redeem = sub.add_parser("redeem", help="Redeem a partner code.")
    redeem.add_argument("code", type=str)
    redeem.add_argument("--lang", type=str, default=None)
    redeem.set_defaults(func=_cmd_redeem)

    status = sub.add_parser("status", help="Show the current Plus / add-on status.")
    status.add_argument("--lang", type=str, default=None)
    status.add_argument("--json", action="store_true")
    status.set_defaults(func=_cmd_status)

    fav = sub.add_parser("favorite", help="Toggle a favorite, or list favorites when no id is given.")
    fav.add_argument("spot_id", nargs="?", default=None)
    fav.set_defaults(func=_cmd_favorite)

    day = sub.add_parser("daylog", help="Save a 'my day' note, or show the last one.")
    day.add_argument("text", nargs="*")
    day.set_defaults(func=_cmd_daylog)

    q = sub.add_parser("quality-report", help="Offline catalog quality report.")
    q.set_defaults(func=_cmd_quality_report)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m familyspots.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())

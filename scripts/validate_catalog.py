from __future__ import annotations

import argparse
import json

from familyspots.access.policy import AccessPolicy
from familyspots.catalog.loader import load_raw_catalog
from familyspots.catalog.registry import CategoryRegistry
from familyspots.config.settings import get_settings
from familyspots.core.env import resolve_project_path
from familyspots.quality.report import build_quality_report


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Validate a Family Spots catalog file (offline).")
    p.add_argument("--catalog", type=str, default=None, help="Defaults to catalog.path from settings")
    p.add_argument("--json", action="store_true", help="Print the full report as JSON")
    p.add_argument("--strict", action="store_true", help="Fail on warnings too")
    args = p.parse_args(argv)

    settings = get_settings()
    source = args.catalog or settings.catalog.path
    registry = CategoryRegistry.from_settings()
    policy = AccessPolicy.from_settings(registry=registry)

    try:
        records, index = load_raw_catalog(source, timeout_seconds=settings.catalog.http_timeout_seconds)
    except (OSError, ValueError) as e:
        print("Cannot read catalog:", e)
        return 2

    report = build_quality_report(records, registry, policy)
    if args.json:
        print(json.dumps(report, ensure_ascii=False, indent=2))
    else:
        print("Catalog:", resolve_project_path(source) if "://" not in str(source) else source)
        print("Records:", len(records))
        print("Spots:", report["summary"]["spot_count"])
        if index:
            print("Index keys:", ", ".join(sorted(index)))
        for issue in report["issues"]:
            sample = ", ".join(issue["sample"])
            print(f"[{issue['severity']}] {issue['code']}: {issue['count']}  e.g. {sample}")

    severities = {i["severity"] for i in report["issues"]}
    if "error" in severities:
        return 2
    if args.strict and "warning" in severities:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

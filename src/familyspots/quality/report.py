"""
Offline catalog quality report.

Goal: provide a deterministic, network-free view of "is our spot catalog complete and sane?"
Used by:
- CLI debugging (`familyspots quality-report`)
- API status endpoint (`GET /api/quality`)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from familyspots.access.policy import AccessPolicy
from familyspots.catalog.loader import load_raw_catalog
from familyspots.catalog.normalize import normalize_spot
from familyspots.catalog.registry import CategoryRegistry
from familyspots.config.settings import Settings
from familyspots.domain.models import Spot


@dataclass(frozen=True)
class Issue:
    severity: str  # "info" | "warning" | "error"
    code: str
    message: str
    count: int = 1
    sample: list[str] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "count": int(self.count),
            "sample": list(self.sample or []),
        }


def _issue(severity: str, code: str, message: str, items: list[str]) -> Issue | None:
    if not items:
        return None
    return Issue(severity=severity, code=code, message=message, count=len(items), sample=items[:8])


def catalog_issues(raw_records: Iterable[Any], registry: CategoryRegistry) -> tuple[list[Issue], list[Spot]]:
    """Return (issues, normalized spots) for a list of raw catalog records."""
    spots: list[Spot] = []
    dropped: list[str] = []
    counts: dict[str, int] = {}
    for i, raw in enumerate(raw_records):
        spot = normalize_spot(raw, registry)
        if spot is None:
            dropped.append(f"#{i}")
            continue
        counts[spot.id] = counts.get(spot.id, 0) + 1
        if counts[spot.id] == 1:
            spots.append(spot)

    duplicates = sorted(sid for sid, n in counts.items() if n > 1)
    missing_location = [s.id for s in spots if s.location is None]
    no_category = [s.id for s in spots if not s.categories]
    unknown_category = sorted(
        {f"{s.id}:{c}" for s in spots for c in s.categories if not registry.is_known(c)}
    )

    candidates = [
        _issue("error", "CATALOG_DUPLICATE_ID", "Duplicate spot ids in catalog (later ones are ignored).", duplicates),
        _issue("warning", "CATALOG_DROPPED_RECORD", "Records without a usable `id` were dropped.", dropped),
        _issue("warning", "CATALOG_MISSING_LOCATION", "Some spots have no valid coordinates.", missing_location),
        _issue("warning", "CATALOG_NO_CATEGORY", "Some spots have no category.", no_category),
        _issue("info", "CATALOG_UNKNOWN_CATEGORY", "Some spots use categories missing from the taxonomy.", unknown_category),
    ]
    return [c for c in candidates if c is not None], spots


def _summary(spots: list[Spot], registry: CategoryRegistry, policy: AccessPolicy) -> dict[str, Any]:
    per_group: dict[str, int] = {}
    per_level: dict[str, int] = {"free": 0, "subscription": 0, "addon": 0}
    for s in spots:
        group = registry.group_of(s.primary_category) if s.primary_category else None
        key = group or "(none)"
        per_group[key] = per_group.get(key, 0) + 1

        levels = {policy.rule_for(c).level for c in s.categories}
        level = "addon" if "addon" in levels else "subscription" if "subscription" in levels or s.plus_only else "free"
        per_level[level] += 1

    return {
        "spot_count": len(spots),
        "with_location": sum(1 for s in spots if s.location is not None),
        "verified": sum(1 for s in spots if s.verified),
        "per_group": dict(sorted(per_group.items(), key=lambda kv: (-kv[1], kv[0]))),
        "per_access_level": per_level,
    }


def build_quality_report(
    raw_records: Iterable[Any],
    registry: CategoryRegistry,
    policy: AccessPolicy,
) -> dict[str, Any]:
    issues, spots = catalog_issues(raw_records, registry)
    return {
        "ok": not any(i.severity == "error" for i in issues),
        "issues": [i.as_dict() for i in issues],
        "summary": _summary(spots, registry, policy),
    }


def build_quality_report_from_settings(
    settings: Settings,
    registry: CategoryRegistry,
    policy: AccessPolicy,
) -> dict[str, Any]:
    """Load the configured catalog and report on it; load failures become an error issue."""
    try:
        records, _ = load_raw_catalog(settings.catalog.path, timeout_seconds=settings.catalog.http_timeout_seconds)
    except Exception as e:
        issue = Issue(severity="error", code="CATALOG_LOAD_FAILED", message=str(e))
        return {"ok": False, "issues": [issue.as_dict()], "summary": {}}
    report = build_quality_report(records, registry, policy)
    report["catalog_path"] = str(settings.catalog.path)
    return report

"""
Entitlement store (Family Spots Plus + add-ons).

Persisted record (JSON, stored under `storage.keys.plus`):
    {
      "active": bool,
      "plan": str | null,
      "validUntil": ISO-8601 | null,
      "addons": [str, ...],
      "partner": str | null,
      "source": "partner_code" | "legacy" | "dev" | null,
      "code": str | null
    }

Reading:
- Expiry is applied on every read (`EntitlementStatus.effective`); the stored
  record is never rewritten because it expired.
- Legacy values (`true`, `"1"`, `"true"`) read as an active `family_plus` plan.
- Anything unreadable reads as the inactive default.
- `plus.dev_force` unlocks every plan and add-on.

Redeeming a known partner code replaces the stored status. If the write fails,
the status is kept in memory so it stays valid for the current session.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Mapping

from pydantic import ValidationError

from familyspots.access.policy import AccessPolicy
from familyspots.config.settings import Settings
from familyspots.core.env import is_url, resolve_project_path
from familyspots.core.http import get_json
from familyspots.core.i18n import MessageTable, base_language
from familyspots.core.storage import KeyValueStore, StorageError
from familyspots.core.time import ensure_utc, parse_datetime, to_iso, utc_now
from familyspots.domain.models import (
    INACTIVE_STATUS,
    EntitlementStatus,
    PartnerCode,
    RedemptionResult,
)

logger = logging.getLogger(__name__)

DEFAULT_PLAN_ID = "family_plus"
_LEGACY_TRUE = {"1", "true"}
_SOURCES = {"partner_code", "legacy", "dev"}
_DATE_FORMATS = {"de": "%d.%m.%Y", "da": "%d.%m.%Y", "en": "%d/%m/%Y"}


def normalize_code(code: str | None) -> str:
    """Trim, drop all inner whitespace, upper-case."""
    if code is None:
        return ""
    return "".join(str(code).split()).upper()


def _coerce_partner_code(entry: Mapping[str, Any]) -> PartnerCode | None:
    data = dict(entry)
    if "plan" not in data and "planId" in data:
        data["plan"] = data.pop("planId")
    data["code"] = normalize_code(data.get("code"))
    try:
        return PartnerCode.model_validate(data)
    except ValidationError as e:
        logger.warning("Ignoring invalid partner code entry %r: %s", entry.get("code"), e.errors()[0]["msg"])
        return None


class PartnerCodeBook:
    """Lookup-by-code over configured codes plus an optional external list."""

    def __init__(self, codes: Iterable[PartnerCode] = ()):
        self._codes: dict[str, PartnerCode] = {}
        for code in codes:
            self.add(code)

    def add(self, code: PartnerCode) -> None:
        key = normalize_code(code.code)
        self._codes[key] = code.model_copy(update={"code": key})

    def lookup(self, code: str | None) -> PartnerCode | None:
        """Return an enabled code, or None for unknown/disabled codes."""
        found = self._codes.get(normalize_code(code))
        if found is None or not found.enabled:
            return None
        return found

    def __len__(self) -> int:
        return len(self._codes)

    def extend_from_payload(self, payload: Any) -> int:
        """Add codes from `{codes: [...]}` or a bare list. Returns the number added."""
        entries = payload.get("codes") if isinstance(payload, Mapping) else payload
        if not isinstance(entries, list):
            raise ValueError("partner code source must be a list or an object with a 'codes' list")
        added = 0
        for entry in entries:
            if not isinstance(entry, Mapping):
                continue
            code = _coerce_partner_code(entry)
            if code is not None:
                self.add(code)
                added += 1
        return added

    @classmethod
    def from_settings(cls, settings: Settings) -> "PartnerCodeBook":
        book = cls()
        for cfg in settings.plus.partner_codes:
            code = _coerce_partner_code(cfg.model_dump())
            if code is not None:
                book.add(code)

        source = settings.plus.partner_codes_source
        if source:
            # External codes are optional; a broken source leaves the configured ones in place.
            try:
                if is_url(source):
                    payload = get_json(source, timeout_seconds=settings.catalog.http_timeout_seconds)
                else:
                    path = resolve_project_path(source)
                    if not path.exists():
                        logger.debug("Partner code source %s not found; skipping", path)
                        return book
                    payload = json.loads(path.read_text(encoding="utf-8"))
                added = book.extend_from_payload(payload)
                logger.info("Loaded %s partner codes from %s", added, source)
            except Exception as e:
                logger.warning("Could not load partner codes from %s: %s", source, e)
        return book


def status_from_record(raw: Any) -> EntitlementStatus:
    """Parse a persisted record (or legacy flag) into a status. Never raises."""
    if raw is None:
        return INACTIVE_STATUS
    if isinstance(raw, bool):
        return EntitlementStatus(active=True, plan=DEFAULT_PLAN_ID, source="legacy") if raw else INACTIVE_STATUS
    if isinstance(raw, str):
        if raw.strip().lower() in _LEGACY_TRUE:
            return EntitlementStatus(active=True, plan=DEFAULT_PLAN_ID, source="legacy")
        return INACTIVE_STATUS
    if not isinstance(raw, Mapping):
        return INACTIVE_STATUS

    valid_until: datetime | None = None
    until_raw = raw.get("validUntil")
    if isinstance(until_raw, str) and until_raw.strip():
        try:
            valid_until = parse_datetime(until_raw)
        except ValueError:
            logger.warning("Ignoring unparseable validUntil %r", until_raw)

    addons = raw.get("addons")
    source = raw.get("source")
    return EntitlementStatus(
        active=bool(raw.get("active")),
        plan=raw.get("plan") if isinstance(raw.get("plan"), str) else None,
        addons=tuple(str(a) for a in addons if a) if isinstance(addons, list) else (),
        valid_until=valid_until,
        partner=raw.get("partner") if isinstance(raw.get("partner"), str) else None,
        source=source if isinstance(source, str) and source in _SOURCES else None,
        code=raw.get("code") if isinstance(raw.get("code"), str) else None,
    )


def status_to_record(status: EntitlementStatus) -> dict[str, Any]:
    return {
        "active": status.active,
        "plan": status.plan,
        "validUntil": to_iso(status.valid_until) if status.valid_until else None,
        "addons": list(status.addons),
        "partner": status.partner,
        "source": status.source,
        "code": status.code,
    }


class EntitlementStore:
    def __init__(
        self,
        store: KeyValueStore,
        codes: PartnerCodeBook,
        *,
        key: str = "fs_plus_active",
        dev_force: bool = False,
        all_addons: Iterable[str] = (),
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._codes = codes
        self._key = key
        self._dev_force = dev_force
        self._all_addons = tuple(all_addons)
        self._clock = clock
        # Last status written in this session; survives failed writes.
        self._session: EntitlementStatus | None = None

    @classmethod
    def from_settings(cls, settings: Settings, store: KeyValueStore, policy: AccessPolicy) -> "EntitlementStore":
        return cls(
            store,
            PartnerCodeBook.from_settings(settings),
            key=settings.storage.keys.plus,
            dev_force=settings.plus.dev_force,
            all_addons=policy.addon_ids(),
        )

    def _load(self) -> EntitlementStatus:
        if self._session is not None:
            return self._session
        return status_from_record(self._store.get(self._key))

    def get_status(self) -> EntitlementStatus:
        if self._dev_force:
            return EntitlementStatus(
                active=True,
                plan=DEFAULT_PLAN_ID,
                addons=self._all_addons,
                partner="dev",
                source="dev",
            )
        return self._load().effective(self._clock())

    def is_active(self) -> bool:
        return self.get_status().active

    def _save(self, status: EntitlementStatus) -> None:
        self._session = status
        try:
            self._store.set(self._key, status_to_record(status))
        except StorageError as e:
            logger.warning("Entitlement not persisted, kept for this session only: %s", e)

    def redeem(self, code: str | None) -> RedemptionResult:
        normalized = normalize_code(code)
        if not normalized:
            return RedemptionResult(ok=False, reason="empty")

        partner_code = self._codes.lookup(normalized)
        if partner_code is None:
            logger.info("Rejected unknown partner code")
            return RedemptionResult(ok=False, reason="unknown")

        now = ensure_utc(self._clock())
        status = EntitlementStatus(
            active=True,
            plan=partner_code.plan,
            addons=tuple(partner_code.addons),
            valid_until=now + timedelta(days=partner_code.days) if partner_code.days else None,
            partner=partner_code.partner,
            source="partner_code",
            code=normalized,
        )
        self._save(status)
        logger.info("Redeemed partner code for plan=%s addons=%s", status.plan, list(status.addons))
        return RedemptionResult(ok=True, status=status)

    def clear(self) -> None:
        self._session = None
        try:
            self._store.delete(self._key)
        except StorageError as e:
            logger.warning("Could not clear entitlement state: %s", e)
            self._session = INACTIVE_STATUS


def format_date(dt: datetime, lang: str | None) -> str:
    return ensure_utc(dt).strftime(_DATE_FORMATS.get(base_language(lang), _DATE_FORMATS["de"]))


def describe_status(status: EntitlementStatus, lang: str | None, texts: MessageTable, policy: AccessPolicy) -> str:
    """One-line localized status, e.g. "Family Spots Plus is active until 01/03/2026 · Add-ons: ..."."""
    if not status.active:
        return texts.text("plus.inactive", lang)
    out = texts.text("plus.active", lang)
    if status.valid_until is not None:
        out += texts.text("plus.until", lang, date=format_date(status.valid_until, lang))
    if status.addons:
        labels = ", ".join(policy.addon_label(a, lang) for a in status.addons)
        out += texts.text("plus.addons", lang, addons=labels)
    return out

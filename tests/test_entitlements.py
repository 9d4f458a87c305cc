from datetime import datetime, timedelta, timezone

import pytest

from familyspots.access.entitlements import (
    EntitlementStore,
    PartnerCodeBook,
    describe_status,
    normalize_code,
    status_from_record,
)
from familyspots.access.policy import AccessPolicy
from familyspots.config.settings import get_settings, get_texts
from familyspots.core.i18n import MessageTable
from familyspots.core.storage import MemoryStore, StorageError
from familyspots.domain.models import EntitlementStatus, PartnerCode

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _codes() -> PartnerCodeBook:
    return PartnerCodeBook(
        [
            PartnerCode(code="ABF2026FAMILY", plan="family_plus", addons=("addon_abf",), days=60, partner="abf2026"),
            PartnerCode(code="FOREVER", plan="family_plus"),
            PartnerCode(code="OLD2024", plan="family_plus", days=30, enabled=False),
        ]
    )


def _store(kv=None, now=NOW, **kwargs) -> EntitlementStore:
    return EntitlementStore(kv or MemoryStore(), _codes(), key="plus", clock=lambda: now, **kwargs)


class _FailingStore(MemoryStore):
    def set(self, key, value):
        raise StorageError("quota exceeded")


def test_scenario_redeem_known_empty_and_unknown_codes():
    store = _store()

    ok = store.redeem("ABF2026FAMILY")
    assert ok.ok is True
    assert ok.status.active is True
    assert ok.status.plan == "family_plus"
    assert ok.status.addons == ("addon_abf",)

    empty = store.redeem("")
    assert empty.ok is False
    assert empty.reason == "empty"

    unknown = store.redeem("BOGUS")
    assert unknown.ok is False
    assert unknown.reason == "unknown"


def test_redeem_is_case_and_whitespace_insensitive():
    store = _store()
    result = store.redeem("  abf 2026 family ")
    assert result.ok
    assert result.status.code == "ABF2026FAMILY"
    assert normalize_code(" a b\tc ") == "ABC"
    assert store.redeem("   ").reason == "empty"


def test_redeem_sets_expiry_and_partner_metadata():
    store = _store()
    status = store.redeem("ABF2026FAMILY").status

    assert status.valid_until == NOW + timedelta(days=60)
    assert status.partner == "abf2026"
    assert status.source == "partner_code"

    indefinite = store.redeem("FOREVER").status
    assert indefinite.valid_until is None


def test_redeem_replaces_previous_status():
    store = _store()
    store.redeem("ABF2026FAMILY")
    status = store.redeem("FOREVER").status

    assert status.addons == ()
    assert store.get_status().addons == ()


def test_disabled_code_is_unknown():
    assert _store().redeem("OLD2024").reason == "unknown"


def test_status_persists_in_storage_and_expires_lazily():
    kv = MemoryStore()
    _store(kv).redeem("ABF2026FAMILY")

    stored = kv.get("plus")
    assert stored["active"] is True
    assert stored["validUntil"].endswith("Z")

    fresh = _store(kv, now=NOW + timedelta(days=10))
    assert fresh.get_status().active is True

    later = _store(kv, now=NOW + timedelta(days=61))
    expired = later.get_status()
    assert expired.active is False
    assert expired.plan is None
    assert expired.addons == ()
    # Expiry is evaluated on read only; storage keeps the original record.
    assert kv.get("plus")["active"] is True


def test_failed_write_keeps_status_for_the_session():
    store = _store(_FailingStore())
    result = store.redeem("ABF2026FAMILY")

    assert result.ok
    assert store.get_status().active is True


@pytest.mark.parametrize("raw", [True, "1", "true"])
def test_legacy_values_read_as_active_family_plus(raw):
    store = _store(MemoryStore({"plus": raw}))
    status = store.get_status()
    assert status.active is True
    assert status.plan == "family_plus"
    assert status.source == "legacy"


@pytest.mark.parametrize("raw", [None, False, "false", 42, ["x"], {"active": "yes", "plan": 3}])
def test_unusable_records_read_safely(raw):
    status = status_from_record(raw)
    assert isinstance(status, EntitlementStatus)
    assert status.plan is None


def test_dev_force_unlocks_every_addon():
    store = _store(dev_force=True, all_addons=("addon_water", "addon_rv"))
    status = store.get_status()
    assert status.active
    assert status.addons == ("addon_water", "addon_rv")
    assert status.source == "dev"


def test_clear_resets_status():
    kv = MemoryStore()
    store = _store(kv)
    store.redeem("FOREVER")
    store.clear()
    assert store.is_active() is False
    assert kv.get("plus") is None


def test_partner_code_book_reads_external_payload():
    book = PartnerCodeBook()
    added = book.extend_from_payload(
        {"codes": [{"code": "kita 2026", "planId": "family_plus", "days": 14}, {"code": ""}, "junk"]}
    )
    assert added == 1
    assert book.lookup("KITA2026").days == 14
    assert book.lookup("nope") is None

    with pytest.raises(ValueError):
        book.extend_from_payload({"no_codes": True})


def test_partner_code_book_from_settings_includes_configured_codes():
    book = PartnerCodeBook.from_settings(get_settings())
    code = book.lookup("abf2026family")
    assert code is not None
    assert code.addons == ("addon_abf",)


def test_describe_status_is_localized():
    policy = AccessPolicy.from_settings()
    texts = MessageTable(get_texts())

    inactive = describe_status(EntitlementStatus(), "en", texts, policy)
    assert "code" in inactive

    active = EntitlementStatus(
        active=True, plan="family_plus", addons=("addon_water",), valid_until=datetime(2026, 3, 1, tzinfo=timezone.utc)
    )
    text = describe_status(active, "en", texts, policy)
    assert text.startswith("Family Spots Plus is active")
    assert "01/03/2026" in text
    assert "Water & swimming add-on" in text
    assert "01.03.2026" in describe_status(active, "de", texts, policy)

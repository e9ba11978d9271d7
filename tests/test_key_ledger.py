"""
Key ledger tests: generation, listing, deletion and verification.
"""

import re
import threading
from datetime import datetime, timedelta, timezone

import pytest

from keyhub.core.errors import InvalidInput, NotFound
from keyhub.core.storage import KEYS_DOCUMENT
from keyhub.services import key_ledger
from keyhub.services.key_ledger import generate_code

CODE_PATTERN = re.compile(r"^[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{3}$")


@pytest.fixture
def software(catalog):
    return catalog.create("Tool", "single", ["https://x/a.zip"])


def _rewrite_key(storage, key_id, **fields):
    data = storage.read(KEYS_DOCUMENT)
    for item in data:
        if item["id"] == key_id:
            item.update(fields)
    storage.write(KEYS_DOCUMENT, data)


def test_generated_code_format():
    for _ in range(200):
        assert CODE_PATTERN.match(generate_code())


class TestGenerate:
    def test_generates_requested_number_of_keys(self, ledger, software, storage):
        keys = ledger.generate(software.id, 3)

        assert len(keys) == 3
        assert len({k.id for k in keys}) == 3
        assert all(CODE_PATTERN.match(k.code) for k in keys)
        assert all(k.software_id == software.id and not k.used for k in keys)
        assert [item["id"] for item in storage.read(KEYS_DOCUMENT)] == [k.id for k in keys]

    def test_appends_to_existing_keys(self, ledger, software):
        first = ledger.generate(software.id, 2)
        second = ledger.generate(software.id, 1)

        listed = [record.id for record, _ in ledger.list()]
        assert listed == [k.id for k in first + second]

    def test_validity_days_sets_expiry(self, ledger, software):
        before = datetime.now(timezone.utc)
        key = ledger.generate(software.id, 1, validity_days=1)[0]

        assert key.valid_until is not None
        delta = key.valid_until - before
        assert timedelta(hours=23, minutes=59) < delta < timedelta(days=1, minutes=1)

    @pytest.mark.parametrize("validity_days", [None, 0])
    def test_falsy_validity_means_no_expiry(self, ledger, software, validity_days):
        key = ledger.generate(software.id, 1, validity_days=validity_days)[0]
        assert key.valid_until is None

    def test_unknown_software_is_not_found(self, ledger):
        with pytest.raises(NotFound):
            ledger.generate("missing", 1)

    @pytest.mark.parametrize("count", [0, -1, 51])
    def test_count_out_of_range_is_invalid(self, ledger, software, count):
        with pytest.raises(InvalidInput):
            ledger.generate(software.id, count)

    def test_retries_codes_that_already_exist(self, ledger, software, monkeypatch):
        existing = ledger.generate(software.id, 1)[0]
        codes = iter([existing.code, existing.code, "ZZZZ-ZZZZ-ZZZ"])
        monkeypatch.setattr(key_ledger, "generate_code", lambda: next(codes))

        fresh = ledger.generate(software.id, 1)[0]

        assert fresh.code == "ZZZZ-ZZZZ-ZZZ"


class TestListAndDelete:
    def test_list_joins_software(self, ledger, software):
        ledger.generate(software.id, 2)

        rows = ledger.list()

        assert len(rows) == 2
        assert all(sw is not None and sw.name == "Tool" for _, sw in rows)

    def test_list_reports_dangling_reference_as_none(self, ledger, software, storage):
        key = ledger.generate(software.id, 1)[0]
        _rewrite_key(storage, key.id, softwareId="gone")

        [(record, sw)] = ledger.list()
        assert record.id == key.id
        assert sw is None

    def test_list_of_unreadable_document_is_empty(self, ledger, storage):
        storage.path(KEYS_DOCUMENT).write_text("garbage", encoding="utf-8")
        assert ledger.list() == []

    def test_delete_removes_only_that_key(self, ledger, software):
        keep, drop = ledger.generate(software.id, 2)

        assert ledger.delete(drop.id) is True
        assert [r.id for r, _ in ledger.list()] == [keep.id]

    def test_delete_unknown_key_is_not_found(self, ledger):
        with pytest.raises(NotFound):
            ledger.delete("missing")


class TestVerify:
    def test_valid_key_returns_software(self, ledger, software):
        key = ledger.generate(software.id, 1, validity_days=1)[0]

        result = ledger.verify(f"  {key.code} ")

        assert result.valid
        assert result.software.name == "Tool"
        assert result.software.download_urls == ["https://x/a.zip"]
        assert result.valid_until == key.valid_until

    def test_verification_does_not_consume_key(self, ledger, software, storage):
        key = ledger.generate(software.id, 1)[0]

        assert ledger.verify(key.code).valid
        assert ledger.verify(key.code).valid
        assert storage.read(KEYS_DOCUMENT)[0]["used"] is False

    def test_key_without_expiry_stays_valid(self, ledger, software, storage):
        key = ledger.generate(software.id, 1)[0]
        _rewrite_key(storage, key.id, createdAt="2001-01-01T00:00:00Z")

        result = ledger.verify(key.code)

        assert result.valid
        assert result.valid_until is None

    def test_expired_key(self, ledger, software, storage):
        key = ledger.generate(software.id, 1, validity_days=3)[0]
        _rewrite_key(storage, key.id, validUntil="2020-01-01T00:00:00Z")

        result = ledger.verify(key.code)

        assert not result.valid
        assert result.expired
        assert result.software is None

    def test_used_key(self, ledger, software, storage):
        key = ledger.generate(software.id, 1)[0]
        _rewrite_key(storage, key.id, used=True)

        result = ledger.verify(key.code)

        assert not result.valid
        assert result.used

    def test_unknown_code_is_not_found(self, ledger):
        with pytest.raises(NotFound) as exc_info:
            ledger.verify("AAAA-BBBB-CCC")
        assert exc_info.value.extra == {"valid": False}

    @pytest.mark.parametrize("code", [None, "", "   "])
    def test_blank_code_is_invalid(self, ledger, code):
        with pytest.raises(InvalidInput):
            ledger.verify(code)


def test_generate_holds_software_lock_against_concurrent_delete(ledger, catalog, software, monkeypatch):
    """A delete racing a generate runs after it and cascades the new keys."""
    check = ledger._software_by_id
    deleter = threading.Thread(target=catalog.delete, args=(software.id,))

    def check_then_delete(*args, **kwargs):
        result = check(*args, **kwargs)
        deleter.start()
        deleter.join(timeout=0.2)
        return result

    monkeypatch.setattr(ledger, "_software_by_id", check_then_delete)

    generated = ledger.generate(software.id, 3)
    deleter.join(timeout=5)
    monkeypatch.undo()

    assert not deleter.is_alive()
    assert len(generated) == 3
    assert catalog.list() == []
    assert ledger.list() == []

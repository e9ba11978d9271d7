# Key Ledger - license code generation, listing and redemption checks

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Set, Tuple

from ..core.config import Settings
from ..core.errors import InvalidInput, NotFound, ServiceError, StorageError
from ..core.storage import KEYS_DOCUMENT, SOFTWARE_DOCUMENT, JsonDocumentStore
from ..core.time_utils import utcnow
from ..models.base import new_id
from ..models.key_record import KeyRecord
from ..models.software import Software

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_GROUPS = (4, 4, 3)
MAX_CODE_ATTEMPTS = 20


def generate_code() -> str:
    """Random code like ``AB12-CD34-EFG``."""
    return "-".join(
        "".join(secrets.choice(CODE_ALPHABET) for _ in range(size))
        for size in CODE_GROUPS
    )


@dataclass
class VerificationResult:
    valid: bool
    message: str
    software: Optional[Software] = None
    valid_until: Optional[datetime] = None
    used: bool = False
    expired: bool = False


class KeyLedger:
    """License keys stored in keys.json, each pointing at a software record."""

    def __init__(self, storage: JsonDocumentStore, settings: Settings):
        self.storage = storage
        self.max_batch = settings.MAX_KEYS_PER_BATCH

    # ==================== Storage helpers ====================

    def _load(self) -> List[KeyRecord]:
        data = self.storage.read(KEYS_DOCUMENT)
        try:
            return [KeyRecord.model_validate(item) for item in data]
        except (TypeError, ValueError) as e:
            raise StorageError("Key document is corrupt") from e

    def _save(self, records: List[KeyRecord]) -> None:
        self.storage.write(KEYS_DOCUMENT, [r.to_document() for r in records])

    def _software_by_id(self, lossy: bool = False) -> dict:
        if lossy:
            data = self.storage.read_or_default(SOFTWARE_DOCUMENT, [])
        else:
            data = self.storage.read(SOFTWARE_DOCUMENT)
            if not isinstance(data, list):
                raise StorageError("Software document is corrupt")
        software = {}
        for item in data if isinstance(data, list) else []:
            try:
                record = Software.model_validate(item)
            except ValueError:
                if not lossy:
                    raise StorageError("Software document is corrupt")
                continue
            software[record.id] = record
        return software

    def _unique_code(self, taken: Set[str]) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_code()
            if code not in taken:
                return code
        raise ServiceError("Could not generate a unique key code")

    # ==================== Operations ====================

    def generate(self, software_id: str, count: int, validity_days: Optional[int] = None) -> List[KeyRecord]:
        if not software_id:
            raise InvalidInput("softwareId is required")
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise InvalidInput("count must be a positive integer")
        if count > self.max_batch:
            raise InvalidInput(f"count must not exceed {self.max_batch}")

        now = utcnow()
        valid_until = now + timedelta(days=validity_days) if validity_days else None

        # Same SOFTWARE -> KEYS order as the cascade in SoftwareCatalog.delete
        with self.storage.lock(SOFTWARE_DOCUMENT), self.storage.lock(KEYS_DOCUMENT):
            if software_id not in self._software_by_id():
                raise NotFound("Software not found")

            records = self._load()
            taken = {r.code for r in records}
            generated = []
            for _ in range(count):
                code = self._unique_code(taken)
                taken.add(code)
                generated.append(
                    KeyRecord(
                        id=new_id(),
                        code=code,
                        software_id=software_id,
                        used=False,
                        created_at=now,
                        valid_until=valid_until,
                    )
                )
            self._save(records + generated)

        logger.info(f"Generated {count} key(s) for software {software_id}")
        return generated

    def list(self) -> List[Tuple[KeyRecord, Optional[Software]]]:
        """All keys in storage order, left-joined with their software."""
        data = self.storage.read_or_default(KEYS_DOCUMENT, [])
        records = []
        for item in data if isinstance(data, list) else []:
            try:
                records.append(KeyRecord.model_validate(item))
            except ValueError:
                logger.error(f"Skipping unreadable key record: {item!r}")
        software = self._software_by_id(lossy=True)
        return [(r, software.get(r.software_id)) for r in records]

    def delete(self, key_id: str) -> bool:
        with self.storage.lock(KEYS_DOCUMENT):
            records = self._load()
            remaining = [r for r in records if r.id != key_id]
            if len(remaining) == len(records):
                raise NotFound("Key not found")
            self._save(remaining)
        logger.info(f"Deleted key {key_id}")
        return True

    def delete_for_software(self, software_id: str) -> int:
        """Remove every key referencing ``software_id``; returns how many went."""
        with self.storage.lock(KEYS_DOCUMENT):
            records = self._load()
            remaining = [r for r in records if r.software_id != software_id]
            self._save(remaining)
        removed = len(records) - len(remaining)
        if removed:
            logger.info(f"Cascade removed {removed} key(s) of software {software_id}")
        return removed

    def verify(self, code: Optional[str]) -> VerificationResult:
        """Check a code a user submitted. Never marks the key as used."""
        code = (code or "").strip()
        if not code:
            raise InvalidInput("Please provide a key", valid=False)

        record = next((r for r in self._load() if r.code == code), None)
        if record is None:
            raise NotFound("Key does not exist", valid=False)

        if record.used:
            return VerificationResult(
                valid=False,
                message="Key has already been used",
                valid_until=record.valid_until,
                used=True,
            )
        if record.valid_until is not None and record.valid_until < utcnow():
            return VerificationResult(
                valid=False,
                message="Key has expired",
                valid_until=record.valid_until,
                expired=True,
            )

        software = self._software_by_id().get(record.software_id)
        if software is None:
            raise NotFound("Software for this key is no longer available", valid=False)

        return VerificationResult(
            valid=True,
            message="Key verified",
            software=software,
            valid_until=record.valid_until,
        )

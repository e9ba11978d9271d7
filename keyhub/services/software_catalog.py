# Software Catalog - downloadable products and their links

import logging
from typing import List, Optional, Sequence, Tuple

from ..core.errors import InvalidInput, NotFound, StorageError
from ..core.storage import SOFTWARE_DOCUMENT, JsonDocumentStore
from ..core.time_utils import utcnow
from ..models.base import new_id
from ..models.software import Software
from .key_ledger import KeyLedger

logger = logging.getLogger(__name__)


def _clean_fields(
    name: Optional[str], file_type: Optional[str], download_urls: Optional[Sequence[str]]
) -> Tuple[str, str, List[str]]:
    name = (name or "").strip()
    file_type = (file_type or "").strip()
    urls = [u.strip() for u in (download_urls or []) if u and u.strip()]
    if not name or not file_type or not urls:
        raise InvalidInput("name, fileType and at least one download URL are required")
    return name, file_type, urls


class SoftwareCatalog:
    def __init__(self, storage: JsonDocumentStore, ledger: KeyLedger):
        self.storage = storage
        self.ledger = ledger

    def _load(self) -> List[Software]:
        data = self.storage.read(SOFTWARE_DOCUMENT)
        try:
            return [Software.model_validate(item) for item in data]
        except (TypeError, ValueError) as e:
            raise StorageError("Software document is corrupt") from e

    def _save(self, records: List[Software]) -> None:
        self.storage.write(SOFTWARE_DOCUMENT, [s.to_document() for s in records])

    def list(self) -> List[Software]:
        data = self.storage.read_or_default(SOFTWARE_DOCUMENT, [])
        records = []
        for item in data if isinstance(data, list) else []:
            try:
                records.append(Software.model_validate(item))
            except ValueError:
                logger.error(f"Skipping unreadable software record: {item!r}")
        return records

    def get(self, software_id: str) -> Software:
        for record in self._load():
            if record.id == software_id:
                return record
        raise NotFound("Software not found")

    def create(self, name: str, file_type: str, download_urls: Sequence[str]) -> Software:
        name, file_type, urls = _clean_fields(name, file_type, download_urls)
        record = Software(
            id=new_id(),
            name=name,
            file_type=file_type,
            download_urls=urls,
            created_at=utcnow(),
        )
        with self.storage.lock(SOFTWARE_DOCUMENT):
            records = self._load()
            records.append(record)
            self._save(records)
        logger.info(f"Created software {record.id} ({record.name})")
        return record

    def update(self, software_id: str, name: str, file_type: str, download_urls: Sequence[str]) -> Software:
        name, file_type, urls = _clean_fields(name, file_type, download_urls)
        with self.storage.lock(SOFTWARE_DOCUMENT):
            records = self._load()
            record = next((s for s in records if s.id == software_id), None)
            if record is None:
                raise NotFound("Software not found")
            record.name = name
            record.file_type = file_type
            record.download_urls = urls
            record.updated_at = utcnow()
            self._save(records)
        logger.info(f"Updated software {software_id}")
        return record

    def delete(self, software_id: str) -> int:
        """Delete a software record and every key that references it.

        Both writes are attempted even when the first fails; nothing is
        rolled back. Returns the number of keys removed.
        """
        with self.storage.lock(SOFTWARE_DOCUMENT):
            records = self._load()
            remaining = [s for s in records if s.id != software_id]
            if len(remaining) == len(records):
                raise NotFound("Software not found")

            failed = False
            try:
                self._save(remaining)
            except StorageError:
                failed = True

            removed = 0
            try:
                removed = self.ledger.delete_for_software(software_id)
            except StorageError:
                failed = True

        if failed:
            raise StorageError("Software deletion was only partially applied; re-list to confirm")
        logger.info(f"Deleted software {software_id} and {removed} key(s)")
        return removed

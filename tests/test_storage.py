"""
JSON document storage tests.
"""

import json

import pytest

from keyhub.core.errors import StorageError
from keyhub.core.storage import KEYS_DOCUMENT, SOFTWARE_DOCUMENT, USER_DOCUMENT, JsonDocumentStore


def test_initialize_creates_directory_and_collections(tmp_path):
    store = JsonDocumentStore(tmp_path / "nested" / "data")
    store.initialize()

    assert store.read(SOFTWARE_DOCUMENT) == []
    assert store.read(KEYS_DOCUMENT) == []
    assert not store.exists(USER_DOCUMENT)


def test_initialize_is_idempotent(tmp_path):
    store = JsonDocumentStore(tmp_path)
    store.initialize()
    store.write(SOFTWARE_DOCUMENT, [{"id": "1"}])

    store.initialize()

    assert store.read(SOFTWARE_DOCUMENT) == [{"id": "1"}]


def test_write_replaces_whole_document(tmp_path):
    store = JsonDocumentStore(tmp_path)
    store.initialize()
    store.write(KEYS_DOCUMENT, [{"id": "a"}, {"id": "b"}])
    store.write(KEYS_DOCUMENT, [{"id": "b"}])

    with open(store.path(KEYS_DOCUMENT), encoding="utf-8") as f:
        assert json.load(f) == [{"id": "b"}]
    leftovers = [p.name for p in tmp_path.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


def test_read_of_broken_document_raises(tmp_path):
    store = JsonDocumentStore(tmp_path)
    store.initialize()
    store.path(SOFTWARE_DOCUMENT).write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        store.read(SOFTWARE_DOCUMENT)


def test_read_or_default_degrades_to_default(tmp_path):
    store = JsonDocumentStore(tmp_path)
    store.initialize()
    store.path(SOFTWARE_DOCUMENT).write_text("{not json", encoding="utf-8")

    assert store.read_or_default(SOFTWARE_DOCUMENT, []) == []


def test_write_of_unserialisable_data_raises(tmp_path):
    store = JsonDocumentStore(tmp_path)
    store.initialize()

    with pytest.raises(StorageError):
        store.write(KEYS_DOCUMENT, [object()])
    assert store.read(KEYS_DOCUMENT) == []

"""Integration tests for the SQL-backed document store."""

from datetime import UTC, datetime
from unittest.mock import Mock
from uuid import uuid4

import pytest

from inventory.store.document_store import DocumentStore, StorageError, WriteStatus
from inventory.store.schema import collection_name, events_collection_name, store_id_from_collection


def _make_document(**overrides):
    now = datetime.now(UTC)
    defaults = {
        "id": str(uuid4()),
        "barcode": "100",
        "name": "Pen",
        "description": None,
        "price": 0.5,
        "stock": 3,
        "supplier": None,
        "created_at": now,
        "updated_at": now,
        "variants": [],
    }
    defaults.update(overrides)
    return defaults


class TestCollectionNames:
    def test_names_are_derived_from_store_id(self):
        assert collection_name("7") == "inventory_store_7"
        assert events_collection_name("7") == "inventory_store_7_events"

    @pytest.mark.parametrize("store_id", ["", "7a", "../7", 7, "1" * 41])
    def test_invalid_store_ids_never_name_a_collection(self, store_id):
        with pytest.raises(ValueError):
            collection_name(store_id)

    def test_reverse_lookup(self):
        assert store_id_from_collection("inventory_store_1001") == "1001"
        assert store_id_from_collection("inventory_store_1001_events") is None
        assert store_id_from_collection("alembic_version") is None


class TestPartitions:
    def test_partition_is_created_on_first_insert(self, store):
        assert not store.has_partition("7")
        store.insert_one("7", _make_document())
        assert store.has_partition("7")

    def test_ensure_partition_is_idempotent(self, store):
        store.ensure_partition("7")
        store.ensure_partition("7")
        assert store.partitions() == ["7"]

    def test_drop_partition(self, store):
        store.insert_one("7", _make_document())
        store.drop_partition("7")
        assert store.partitions() == []
        assert store.find_all("7") == []


class TestReads:
    def test_reads_from_missing_partition(self, store):
        assert store.find_one("7", barcode="100") is None
        assert store.find_all("7") == []

    def test_find_one_returns_a_plain_document(self, store):
        document = _make_document(variants=[{"name": "Blue", "price": None, "stock": None}])
        store.insert_one("7", document)

        found = store.find_one("7", id=document["id"])

        assert "seq" not in found
        assert found["barcode"] == "100"
        assert found["variants"] == [{"name": "Blue", "price": None, "stock": None}]
        assert found["created_at"] == document["created_at"]
        assert found["created_at"].tzinfo is not None


class TestWrites:
    def test_insert_returns_stored_document(self, store):
        document = _make_document()
        outcome = store.insert_one("7", document)

        assert outcome.applied
        assert outcome.document["id"] == document["id"]

    def test_plain_insert_of_duplicate_key_fails(self, store):
        store.insert_one("7", _make_document())
        with pytest.raises(StorageError):
            store.insert_one("7", _make_document())

    def test_conflicting_insert_increments(self, store):
        first = _make_document(stock=3)
        store.insert_one("7", first, on_conflict_increment="stock", on_conflict_set=("updated_at",))

        outcome = store.insert_one("7", _make_document(stock=4), on_conflict_increment="stock")

        assert outcome.document["id"] == first["id"]
        assert outcome.document["stock"] == 7
        assert len(store.find_all("7")) == 1

    def test_increment(self, store):
        store.insert_one("7", _make_document(stock=3))
        outcome = store.increment("7", {"barcode": "100"}, "stock", -5)

        assert outcome.status is WriteStatus.APPLIED
        assert outcome.document["stock"] == -2

    def test_increment_without_match(self, store):
        store.insert_one("7", _make_document())
        assert store.increment("7", {"barcode": "999"}, "stock", 1).status is WriteStatus.NOT_MATCHED

    def test_update_one(self, store):
        store.insert_one("7", _make_document())
        outcome = store.update_one("7", {"barcode": "100"}, {"name": "Fountain Pen"})

        assert outcome.document["name"] == "Fountain Pen"
        assert outcome.document["stock"] == 3

    def test_integer_overflow_raises_storage_error(self, store):
        store.insert_one("7", _make_document(stock=3))

        with pytest.raises(StorageError, match="OverflowError"):
            store.increment("7", {"barcode": "100"}, "stock", 10**20)

    def test_event_id_is_applied_once(self, store):
        store.insert_one("7", _make_document(stock=3))

        first = store.increment("7", {"barcode": "100"}, "stock", 1, event_id="evt-1")
        second = store.increment("7", {"barcode": "100"}, "stock", 1, event_id="evt-1")

        assert first.applied
        assert second.status is WriteStatus.DUPLICATE
        assert store.find_one("7", barcode="100")["stock"] == 4


class TestConnectivity:
    def test_ping(self, store):
        store.ping()

    def test_unsupported_dialect(self):
        engine = Mock()
        engine.dialect.name = "oracle"
        with pytest.raises(ValueError):
            DocumentStore(engine)

    def test_unreachable_database(self, tmp_path):
        store = DocumentStore.from_url(f"sqlite:///{tmp_path / 'missing' / 'inventory.db'}")
        with pytest.raises(StorageError):
            store.ping()

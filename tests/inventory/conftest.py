from unittest.mock import Mock

import pytest

from inventory.catalogue.client import CatalogueClient
from inventory.ingress.handlers import EventIngress
from inventory.ledger.ledger import InventoryLedger
from inventory.store.document_store import DocumentStore
from inventory.utils.db import drop_db


@pytest.fixture
def store():
    """An in-memory document store, dropped after the test."""
    store = DocumentStore.from_url("sqlite://")
    yield store
    drop_db(store)
    store.close()


@pytest.fixture
def file_store(tmp_path):
    """A file-backed store for tests that write from several threads."""
    store = DocumentStore.from_url(f"sqlite:///{tmp_path / 'inventory.db'}")
    yield store
    drop_db(store)
    store.close()


@pytest.fixture
def catalogue():
    """A catalogue that knows no barcodes unless told otherwise."""
    catalogue = Mock(spec=CatalogueClient)
    catalogue.lookup.return_value = None
    return catalogue


@pytest.fixture
def publisher():
    return Mock()


@pytest.fixture
def ledger(store, catalogue, publisher):
    return InventoryLedger(store, catalogue=catalogue, publisher=publisher)


@pytest.fixture
def ingress(ledger):
    return EventIngress(ledger)

"""Table layout of per-store inventory collections.

Every store owns two tables:

    inventory_store_<store_id>          items, one row per barcode
    inventory_store_<store_id>_events   idempotency markers for applied commands
"""

import re

from sqlalchemy import JSON, Column, DateTime, Float, Integer, MetaData, String, Table, Text

COLLECTION_PREFIX = "inventory_store_"
EVENTS_SUFFIX = "_events"

# PostgreSQL caps identifiers at 63 characters
MAX_STORE_ID_LENGTH = 40

_STORE_ID = re.compile(r"^\d+$")


def collection_name(store_id: str) -> str:
    """Deterministic item collection name for a store."""
    if not isinstance(store_id, str) or not _STORE_ID.match(store_id) or len(store_id) > MAX_STORE_ID_LENGTH:
        raise ValueError(f"Invalid store id: {store_id!r}")
    return f"{COLLECTION_PREFIX}{store_id}"


def events_collection_name(store_id: str) -> str:
    return f"{collection_name(store_id)}{EVENTS_SUFFIX}"


def store_id_from_collection(name: str) -> str | None:
    """Reverse of ``collection_name``; None for tables that are not item collections."""
    if not name.startswith(COLLECTION_PREFIX) or name.endswith(EVENTS_SUFFIX):
        return None
    store_id = name[len(COLLECTION_PREFIX) :]
    return store_id if _STORE_ID.match(store_id) else None


def items_table(name: str, metadata: MetaData) -> Table:
    return Table(
        name,
        metadata,
        # Insertion order
        Column("seq", Integer, primary_key=True, autoincrement=True),
        Column("id", String(36), nullable=False, unique=True),
        Column("barcode", String(64), nullable=False, unique=True),
        Column("name", Text, nullable=False),
        Column("description", Text),
        Column("price", Float, nullable=False, default=0.0),
        Column("stock", Integer, nullable=False, default=0),
        Column("supplier", Text),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
        Column("variants", JSON, nullable=False, default=list),
    )


def events_table(name: str, metadata: MetaData) -> Table:
    return Table(
        name,
        metadata,
        Column("event_id", String(128), primary_key=True),
        Column("barcode", String(64)),
        Column("applied_at", DateTime(timezone=True), nullable=False),
    )

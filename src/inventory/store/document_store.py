"""Document store adapter over SQLAlchemy Core.

Generic find/insert/update primitives against per-store collections. Every
mutation is a single statement, optionally preceded by an idempotency marker
in the same transaction. Nothing here reads a row and writes it back.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy import Engine, MetaData, Table, inspect, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import CreateTable, DropTable

from inventory.store.schema import (
    collection_name,
    events_collection_name,
    events_table,
    items_table,
    store_id_from_collection,
)
from inventory.utils.db import create_engine_for

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class StorageError(Exception):
    """A document store operation failed."""


class WriteStatus(Enum):
    APPLIED = "applied"
    NOT_MATCHED = "not_matched"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class WriteResult:
    status: WriteStatus
    document: dict[str, Any] | None = None

    @property
    def applied(self) -> bool:
        return self.status is WriteStatus.APPLIED


class _NotMatched(Exception):
    """Raised inside a transaction to roll it back when no row matched."""


def _to_document(row) -> dict[str, Any]:
    document = {key: value for key, value in row.items() if key != "seq"}
    for key in ("created_at", "updated_at"):
        value = document.get(key)
        # SQLite hands back naive datetimes; everything is stored in UTC
        if isinstance(value, datetime) and value.tzinfo is None:
            document[key] = value.replace(tzinfo=UTC)
    document["variants"] = list(document.get("variants") or [])
    return document


class DocumentStore:
    """Per-store collections addressed by ``collection_name(store_id)``."""

    def __init__(self, engine: Engine):
        try:
            self._insert = _DIALECT_INSERTS[engine.dialect.name]
        except KeyError:
            raise ValueError(f"Unsupported database dialect: {engine.dialect.name}") from None

        self.engine = engine
        self._metadata = MetaData()
        self._ready: set[str] = set()
        self._lock = threading.Lock()

    @classmethod
    def from_url(cls, database_uri: str) -> "DocumentStore":
        return cls(create_engine_for(database_uri))

    def close(self) -> None:
        self.engine.dispose()

    def ping(self) -> None:
        with self._translate_errors("ping"):
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))

    # -------------------------------------------------------------------
    # Partitions
    # -------------------------------------------------------------------
    def _tables(self, store_id: str) -> tuple[Table, Table]:
        items_name = collection_name(store_id)
        events_name = events_collection_name(store_id)
        # MetaData is not safe for concurrent table definition
        with self._lock:
            items = self._metadata.tables.get(items_name)
            if items is None:
                items = items_table(items_name, self._metadata)
            events = self._metadata.tables.get(events_name)
            if events is None:
                events = events_table(events_name, self._metadata)
        return items, events

    def ensure_partition(self, store_id: str) -> None:
        """Create the store's collections if they do not exist yet."""
        items, events = self._tables(store_id)
        if items.name in self._ready:
            return
        with self._translate_errors("ensure_partition"):
            with self.engine.begin() as conn:
                conn.execute(CreateTable(items, if_not_exists=True))
                conn.execute(CreateTable(events, if_not_exists=True))
        self._ready.add(items.name)

    def has_partition(self, store_id: str) -> bool:
        name = collection_name(store_id)
        if name in self._ready:
            return True
        with self._translate_errors("has_partition"):
            exists = inspect(self.engine).has_table(name)
        if exists:
            self._ready.add(name)
        return exists

    def partitions(self) -> list[str]:
        """Store ids that own an item collection."""
        with self._translate_errors("partitions"):
            names = inspect(self.engine).get_table_names()
        store_ids = (store_id_from_collection(name) for name in names)
        return sorted((sid for sid in store_ids if sid is not None), key=int)

    def drop_partition(self, store_id: str) -> None:
        items, events = self._tables(store_id)
        with self._translate_errors("drop_partition"):
            with self.engine.begin() as conn:
                conn.execute(DropTable(events, if_exists=True))
                conn.execute(DropTable(items, if_exists=True))
        self._ready.discard(items.name)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def find_one(self, store_id: str, **criteria: Any) -> dict[str, Any] | None:
        if not self.has_partition(store_id):
            return None
        items, _ = self._tables(store_id)
        query = select(items).where(*(items.c[field] == value for field, value in criteria.items())).limit(1)
        with self._translate_errors("find_one"):
            with self.engine.connect() as conn:
                row = conn.execute(query).mappings().first()
        return _to_document(row) if row is not None else None

    def find_all(self, store_id: str) -> list[dict[str, Any]]:
        if not self.has_partition(store_id):
            return []
        items, _ = self._tables(store_id)
        with self._translate_errors("find_all"):
            with self.engine.connect() as conn:
                rows = conn.execute(select(items).order_by(items.c.seq)).mappings().all()
        return [_to_document(row) for row in rows]

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def insert_one(
        self,
        store_id: str,
        document: dict[str, Any],
        *,
        key: str = "barcode",
        on_conflict_increment: str | None = None,
        on_conflict_set: tuple[str, ...] = (),
        event_id: str | None = None,
    ) -> WriteResult:
        """Insert a document.

        With ``on_conflict_increment`` the insert becomes an upsert: when a
        document with the same ``key`` already exists, that field is
        incremented by the document's value and ``on_conflict_set`` fields are
        overwritten, in the same statement. The returned document is the row
        as stored after the write.
        """
        self.ensure_partition(store_id)
        items, events = self._tables(store_id)

        statement = self._insert(items).values(**document)
        if on_conflict_increment:
            changes = {on_conflict_increment: items.c[on_conflict_increment] + statement.excluded[on_conflict_increment]}
            for field in on_conflict_set:
                changes[field] = statement.excluded[field]
            statement = statement.on_conflict_do_update(index_elements=[key], set_=changes)

        return self._write("insert_one", events, statement.returning(*items.c), event_id, document.get(key))

    def increment(
        self,
        store_id: str,
        match: dict[str, Any],
        field: str,
        delta: int | float,
        *,
        set_fields: dict[str, Any] | None = None,
        event_id: str | None = None,
    ) -> WriteResult:
        """Atomically add ``delta`` to ``field`` of the document matching ``match``."""
        if not self.has_partition(store_id):
            return WriteResult(WriteStatus.NOT_MATCHED)
        items, events = self._tables(store_id)

        values = {field: items.c[field] + delta, **(set_fields or {})}
        statement = (
            update(items)
            .where(*(items.c[name] == value for name, value in match.items()))
            .values(values)
            .returning(*items.c)
        )
        return self._write("increment", events, statement, event_id, match.get("barcode"))

    def update_one(
        self,
        store_id: str,
        match: dict[str, Any],
        set_fields: dict[str, Any],
        *,
        event_id: str | None = None,
    ) -> WriteResult:
        if not self.has_partition(store_id):
            return WriteResult(WriteStatus.NOT_MATCHED)
        items, events = self._tables(store_id)

        statement = (
            update(items)
            .where(*(items.c[name] == value for name, value in match.items()))
            .values(set_fields)
            .returning(*items.c)
        )
        return self._write("update_one", events, statement, event_id, match.get("barcode"))

    def _write(self, operation: str, events: Table, statement, event_id: str | None, barcode: str | None) -> WriteResult:
        with self._translate_errors(operation):
            try:
                with self.engine.begin() as conn:
                    if event_id is not None and not self._mark_applied(conn, events, event_id, barcode):
                        return WriteResult(WriteStatus.DUPLICATE)
                    row = conn.execute(statement).mappings().first()
                    if row is None:
                        raise _NotMatched
            except _NotMatched:
                return WriteResult(WriteStatus.NOT_MATCHED)
        return WriteResult(WriteStatus.APPLIED, _to_document(row))

    def _mark_applied(self, conn, events: Table, event_id: str, barcode: str | None) -> bool:
        """Record ``event_id``; False when it was recorded before."""
        statement = (
            self._insert(events)
            .values(event_id=event_id, barcode=barcode, applied_at=datetime.now(UTC))
            .on_conflict_do_nothing(index_elements=["event_id"])
            .returning(events.c.event_id)
        )
        return conn.execute(statement).first() is not None

    @contextmanager
    def _translate_errors(self, operation: str):
        # sqlite3 raises OverflowError itself for integers beyond 64 bits
        try:
            yield
        except (SQLAlchemyError, OverflowError) as exc:
            raise StorageError(f"{operation} failed: {exc.__class__.__name__}") from exc

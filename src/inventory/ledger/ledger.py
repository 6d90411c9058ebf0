"""InventoryLedger: authoritative store-local stock state and its mutation rules.

``add_item`` is an idempotent upsert keyed by barcode: the first add for a
barcode inserts a record, every later add increments its stock. Stock only
ever changes through single atomic statements in the document store, so
concurrent adds for the same barcode can neither lose an update nor create a
second record.

Stock Mutation Paths:
    add_item:      unknown barcode  -> conditional insert (increment on conflict)
                   known barcode    -> atomic increment by the payload's stock
    adjust_stock:  atomic signed increment of an existing record
    update_item:   atomic $set of descriptive fields (stock untouched)

Every mutation refreshes ``updated_at``. An optional ``event_id`` is recorded
in the same transaction as the mutation, so a replayed command applies once.
"""

from datetime import UTC, datetime
from typing import Any

from inventory.catalogue.client import CatalogueUnavailable
from inventory.ingress.publisher import EventPublishError
from inventory.ledger.events import InventoryEvent, ItemCreated, ItemUpdated, StockAdjusted, StockIncremented
from inventory.ledger.item import InventoryItem
from inventory.ledger.refs import ItemRef, parse_item_ref
from inventory.ledger.results import (
    DUPLICATE_EVENT,
    ITEM_ADDED,
    ITEM_NOT_FOUND,
    ITEM_RETRIEVED,
    ITEM_UPDATED,
    ITEMS_RETRIEVED,
    STOCK_ADJUSTED,
    ErrorKind,
    LedgerResult,
)
from inventory.ledger.validation import validate_item
from inventory.store.document_store import DocumentStore, StorageError, WriteResult, WriteStatus
from inventory.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryLedger:
    def __init__(self, store: DocumentStore, catalogue=None, publisher=None):
        self.store = store
        self.catalogue = catalogue
        self.publisher = publisher

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def add_item(self, store_id: str, payload: dict[str, Any], event_id: str | None = None) -> LedgerResult:
        """Insert the item on first sight of its barcode, otherwise add to its stock."""
        try:
            existing = self.store.find_one(store_id, barcode=payload["barcode"])
            if existing is None:
                return self._insert(store_id, payload, event_id)

            outcome = self.store.increment(
                store_id,
                {"barcode": payload["barcode"]},
                "stock",
                payload["stock"],
                set_fields={"updated_at": datetime.now(UTC)},
                event_id=event_id,
            )
            if outcome.status is WriteStatus.NOT_MATCHED:
                # No delete path exists, but never lose an add
                return self._insert(store_id, payload, event_id)
        except StorageError as exc:
            return self._storage_failure("add_item", store_id, exc)

        if outcome.status is WriteStatus.DUPLICATE:
            return self._duplicate(store_id, event_id)

        self._stock_incremented(store_id, outcome, payload["stock"])
        return LedgerResult.ok(ITEM_ADDED)

    def adjust_stock(self, store_id: str, ref: ItemRef | str, delta: int, event_id: str | None = None) -> LedgerResult:
        """Apply a signed stock correction to an existing item. Stock may go negative."""
        ref = parse_item_ref(ref)
        try:
            outcome = self.store.increment(
                store_id,
                ref.criteria(),
                "stock",
                delta,
                set_fields={"updated_at": datetime.now(UTC)},
                event_id=event_id,
            )
        except StorageError as exc:
            return self._storage_failure("adjust_stock", store_id, exc)

        if outcome.status is WriteStatus.NOT_MATCHED:
            return LedgerResult.fail(ErrorKind.NOT_FOUND, ITEM_NOT_FOUND)
        if outcome.status is WriteStatus.DUPLICATE:
            return self._duplicate(store_id, event_id)

        document = outcome.document
        logger.info(
            "Stock adjusted",
            store_id=store_id,
            barcode=document["barcode"],
            delta=delta,
            new_stock=document["stock"],
        )
        self._publish(
            StockAdjusted(
                store_id=store_id,
                item_id=document["id"],
                barcode=document["barcode"],
                delta=delta,
                new_stock=document["stock"],
            )
        )
        return LedgerResult.ok(STOCK_ADJUSTED)

    def update_item(self, store_id: str, ref: ItemRef | str, changes: dict[str, Any]) -> LedgerResult:
        """Overwrite descriptive fields of an existing item."""
        ref = parse_item_ref(ref)
        try:
            outcome = self.store.update_one(
                store_id,
                ref.criteria(),
                {**changes, "updated_at": datetime.now(UTC)},
            )
        except StorageError as exc:
            return self._storage_failure("update_item", store_id, exc)

        if outcome.status is WriteStatus.NOT_MATCHED:
            return LedgerResult.fail(ErrorKind.NOT_FOUND, ITEM_NOT_FOUND)

        document = outcome.document
        logger.info("Item updated", store_id=store_id, barcode=document["barcode"], fields=sorted(changes))
        self._publish(
            ItemUpdated(
                store_id=store_id,
                item_id=document["id"],
                barcode=document["barcode"],
                changes=changes,
            )
        )
        return LedgerResult.ok(ITEM_UPDATED)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_inventory(self, store_id: str) -> LedgerResult:
        """All items of the store in insertion order; an untouched store is simply empty."""
        try:
            documents = self.store.find_all(store_id)
        except StorageError as exc:
            return self._storage_failure("get_inventory", store_id, exc)

        return LedgerResult.ok(
            ITEMS_RETRIEVED,
            products=[InventoryItem.from_document(document) for document in documents],
        )

    def get_item(self, store_id: str, ref: ItemRef | str) -> LedgerResult:
        ref = parse_item_ref(ref)
        try:
            document = self.store.find_one(store_id, **ref.criteria())
        except StorageError as exc:
            return self._storage_failure("get_item", store_id, exc)

        if document is None:
            return LedgerResult.fail(ErrorKind.NOT_FOUND, ITEM_NOT_FOUND)
        return LedgerResult.ok(ITEM_RETRIEVED, product=InventoryItem.from_document(document))

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _insert(self, store_id: str, payload: dict[str, Any], event_id: str | None) -> LedgerResult:
        validation = validate_item(self._seed_from_catalogue(payload))
        if not validation.success:
            return LedgerResult.fail(ErrorKind.VALIDATION, validation.message)

        item = InventoryItem.create(**validation.value.model_dump())
        outcome = self.store.insert_one(
            store_id,
            item.to_document(),
            on_conflict_increment="stock",
            on_conflict_set=("updated_at",),
            event_id=event_id,
        )
        if outcome.status is WriteStatus.DUPLICATE:
            return self._duplicate(store_id, event_id)

        if outcome.document["id"] != item.id:
            # A concurrent add inserted the barcode first; ours became an increment
            self._stock_incremented(store_id, outcome, item.stock)
            return LedgerResult.ok(ITEM_ADDED)

        logger.info("Inventory item created", store_id=store_id, barcode=item.barcode, stock=item.stock)
        self._publish(
            ItemCreated(
                store_id=store_id,
                item_id=item.id,
                barcode=item.barcode,
                name=item.name,
                stock=item.stock,
            )
        )
        return LedgerResult.ok(ITEM_ADDED)

    def _seed_from_catalogue(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Fill name/description the payload lacks from the shared catalogue."""
        seeded = dict(payload)
        if self.catalogue is None:
            return seeded

        try:
            product = self.catalogue.lookup(payload["barcode"])
        except CatalogueUnavailable as exc:
            logger.warning(
                "Catalogue lookup failed, continuing with payload fields",
                barcode=payload["barcode"],
                error=str(exc),
            )
            return seeded

        if product is None:
            return seeded

        if not seeded.get("name"):
            seeded["name"] = product.name
        if not seeded.get("description") and product.description:
            seeded["description"] = product.description
        return seeded

    def _stock_incremented(self, store_id: str, outcome: WriteResult, quantity: int) -> None:
        document = outcome.document
        logger.info(
            "Stock incremented",
            store_id=store_id,
            barcode=document["barcode"],
            quantity=quantity,
            new_stock=document["stock"],
        )
        self._publish(
            StockIncremented(
                store_id=store_id,
                item_id=document["id"],
                barcode=document["barcode"],
                quantity=quantity,
                new_stock=document["stock"],
            )
        )

    def _duplicate(self, store_id: str, event_id: str | None) -> LedgerResult:
        logger.info("Duplicate event ignored", store_id=store_id, event_id=event_id)
        return LedgerResult.ok(DUPLICATE_EVENT)

    def _storage_failure(self, operation: str, store_id: str, exc: StorageError) -> LedgerResult:
        logger.error("Inventory storage operation failed", operation=operation, store_id=store_id, exc_info=exc)
        return LedgerResult.fail(ErrorKind.STORAGE, f"Storage error: {exc}")

    def _publish(self, event: InventoryEvent) -> None:
        if self.publisher is None:
            return
        try:
            self.publisher.publish(event)
        except EventPublishError as exc:
            logger.warning("Inventory event not published", event_type=event.event_type, error=str(exc))

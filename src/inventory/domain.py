"""Domain initialization and configuration."""

import redis

from inventory.catalogue.client import CatalogueClient
from inventory.ingress.handlers import EventIngress
from inventory.ingress.publisher import RedisEventPublisher
from inventory.ingress.worker import IngressWorker
from inventory.ledger.ledger import InventoryLedger
from inventory.store.document_store import DocumentStore
from inventory.utils.config import load_config
from inventory.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging(log_dir="logs", log_file_prefix="inventory")

# Get logger for this module
logger = get_logger(__name__)


class InventoryDomain:
    """Composition root: builds the ledger and its collaborators from configuration.

    ``init()`` is idempotent and connects nothing eagerly; engines and Redis
    clients connect on first use.
    """

    def __init__(self, name: str, config: dict | None = None):
        self.name = name
        self._config = config
        self.config: dict = {}
        self.store: DocumentStore | None = None
        self.catalogue: CatalogueClient | None = None
        self.redis: redis.Redis | None = None
        self.publisher: RedisEventPublisher | None = None
        self.ledger: InventoryLedger | None = None
        self.ingress: EventIngress | None = None
        self._initialized = False

    def init(self) -> "InventoryDomain":
        if self._initialized:
            return self

        self.config = self._config if self._config is not None else load_config()
        database = self.config["databases"]["default"]
        broker = self.config["brokers"]["default"]

        self.store = DocumentStore.from_url(database["database_uri"])

        catalogue = self.config.get("catalogue", {})
        if catalogue.get("base_url"):
            self.catalogue = CatalogueClient(catalogue["base_url"], timeout=catalogue.get("timeout", 3.0))

        self.redis = redis.Redis.from_url(broker["redis_url"], decode_responses=True)

        events = self.config.get("events", {})
        if events.get("enabled", False):
            self.publisher = RedisEventPublisher(self.redis, events["stream"])

        self.ledger = InventoryLedger(self.store, catalogue=self.catalogue, publisher=self.publisher)
        self.ingress = EventIngress(self.ledger)
        self._initialized = True

        logger.info(
            "Inventory domain initialized",
            env=self.config.get("env"),
            catalogue=bool(self.catalogue),
            events=bool(self.publisher),
        )
        return self

    def worker(self, consumer: str | None = None) -> IngressWorker:
        """A consumer of the command stream, named after ``consumer`` (or the configured one)."""
        self.init()
        broker = self.config["brokers"]["default"]
        ingress = self.config.get("ingress", {})
        return IngressWorker(
            self.redis,
            self.ingress,
            stream=broker["stream"],
            group=broker["group"],
            consumer=consumer or broker["consumer"],
            max_workers=ingress.get("max_workers", 8),
        )

    def close(self) -> None:
        if self.store is not None:
            self.store.close()
        if self.catalogue is not None:
            self.catalogue.close()
        if self.redis is not None:
            self.redis.close()
        self._initialized = False


# Domain Composition Root
inventory = InventoryDomain(name="inventory")

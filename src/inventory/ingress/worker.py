"""Redis Streams transport for the event ingress.

The worker reads command entries through a consumer group and hands each one
to a thread pool, so commands are handled as independent short-lived tasks
that may run concurrently, also for the same store and barcode. After a
command is handled its reply is written to the entry's ``reply_to`` stream
and the entry is acknowledged.

Entries that cannot be parsed get a failure reply and are acknowledged.
Entries whose handler crashes are logged and left pending, so the broker can
redeliver them; the ledger never retries on its own.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor

import redis
from shared.events.inventory import InventoryCommand, reply_fields

from inventory.ingress.handlers import EventIngress, failure_reply
from inventory.utils.logging import add_context, clear_context, get_logger

logger = get_logger(__name__)


class IngressWorker:
    def __init__(
        self,
        client: redis.Redis,
        ingress: EventIngress,
        stream: str,
        group: str,
        consumer: str,
        max_workers: int = 8,
        reply_maxlen: int = 10_000,
    ):
        self.client = client
        self.ingress = ingress
        self.stream = stream
        self.group = group
        self.consumer = consumer
        self.reply_maxlen = reply_maxlen
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ingress")
        self._stopped = threading.Event()

    def ensure_group(self) -> None:
        """Create the consumer group (and the stream) if missing."""
        try:
            self.client.xgroup_create(self.stream, self.group, id="0", mkstream=True)
        except redis.ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise

    def poll_once(self, count: int = 10, block_ms: int | None = 1000) -> list[Future]:
        """Read up to ``count`` new entries and schedule each one; returns the scheduled tasks."""
        entries = self.client.xreadgroup(self.group, self.consumer, {self.stream: ">"}, count=count, block=block_ms)
        futures = []
        for _stream, messages in entries or []:
            for message_id, fields in messages:
                futures.append(self._executor.submit(self.handle_entry, message_id, fields))
        return futures

    def handle_entry(self, message_id: str, fields: dict[str, str]) -> None:
        try:
            command = InventoryCommand.from_fields(fields)
        except (KeyError, ValueError) as e:
            logger.warning("Malformed inventory command", message_id=message_id, error=str(e))
            reply_to = fields.get("reply_to")
            if reply_to:
                self._reply(reply_to, fields.get("id") or message_id, failure_reply("Malformed command"))
            self.client.xack(self.stream, self.group, message_id)
            return

        add_context(
            correlation_id=command.id,
            pattern=command.pattern,
            store_id=command.data.get("store_id"),
        )
        try:
            response = self.ingress.dispatch(command.pattern, command.data)
            if command.reply_to:
                self._reply(command.reply_to, command.id, response)
            self.client.xack(self.stream, self.group, message_id)
            logger.debug("Inventory command handled", message_id=message_id, success=response.get("success"))
        except Exception:
            logger.exception("Inventory command failed; left pending for redelivery", message_id=message_id)
        finally:
            clear_context()

    def _reply(self, reply_to: str, correlation_id: str, response: dict) -> None:
        self.client.xadd(reply_to, reply_fields(correlation_id, response), maxlen=self.reply_maxlen, approximate=True)

    def run(self, count: int = 10, block_ms: int = 1000) -> None:
        """Poll until ``stop()`` is called."""
        self.ensure_group()
        logger.info("Ingress worker started", stream=self.stream, group=self.group, consumer=self.consumer)
        while not self._stopped.is_set():
            self.poll_once(count=count, block_ms=block_ms)
        logger.info("Ingress worker stopped", stream=self.stream, consumer=self.consumer)

    def stop(self) -> None:
        self._stopped.set()

    def shutdown(self, wait: bool = True) -> None:
        self.stop()
        self._executor.shutdown(wait=wait)

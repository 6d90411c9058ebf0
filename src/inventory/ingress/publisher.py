"""Publishes inventory domain events onto a Redis stream."""

import redis

from inventory.ledger.events import InventoryEvent


class EventPublishError(Exception):
    """An event could not be written to the broker."""


class RedisEventPublisher:
    def __init__(self, client: redis.Redis, stream: str, maxlen: int | None = 100_000):
        self.client = client
        self.stream = stream
        self.maxlen = maxlen

    def publish(self, event: InventoryEvent) -> str:
        fields = {"type": event.event_type, "data": event.model_dump_json()}
        try:
            return self.client.xadd(self.stream, fields, maxlen=self.maxlen, approximate=True)
        except redis.RedisError as e:
            raise EventPublishError(f"Could not publish {event.event_type}: {e}") from e

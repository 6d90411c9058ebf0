"""Integration tests for the Redis Streams ingress worker, backed by fakeredis."""

import json
from concurrent.futures import wait

import fakeredis
import pytest

from shared.events.inventory import ADD_ITEM, GET_INVENTORY, InventoryCommand

from inventory.ingress.worker import IngressWorker
from inventory.ledger.ledger import InventoryLedger

STREAM = "inventory::commands"
GROUP = "inventory-ledger"
REPLIES = "gateway::replies"


@pytest.fixture
def ledger(file_store):
    """Worker threads write concurrently, so use a file-backed store."""
    return InventoryLedger(file_store)


@pytest.fixture
def redis_client():
    client = fakeredis.FakeRedis(decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def worker(redis_client, ingress):
    worker = IngressWorker(redis_client, ingress, stream=STREAM, group=GROUP, consumer="test-1", max_workers=4)
    worker.ensure_group()
    yield worker
    worker.shutdown()


def _send(client, pattern, data, reply_to=REPLIES):
    command = InventoryCommand(pattern=pattern, data=data, reply_to=reply_to)
    client.xadd(STREAM, command.to_fields())
    return command


def _drain(worker):
    futures = worker.poll_once(count=50, block_ms=None)
    wait(futures)
    for future in futures:
        future.result()
    return futures


def _replies(client):
    return {fields["id"]: json.loads(fields["response"]) for _, fields in client.xrange(REPLIES)}


def _pending(client):
    return client.xpending(STREAM, GROUP)["pending"]


class TestIngressWorker:
    def test_ensure_group_is_idempotent(self, worker):
        worker.ensure_group()

    def test_command_is_handled_and_replied(self, worker, redis_client):
        command = _send(
            redis_client,
            ADD_ITEM,
            {"store_id": "7", "item": {"barcode": "100", "name": "Pen", "price": 0.5, "stock": 3}},
        )

        _drain(worker)

        assert _replies(redis_client)[command.id] == {"success": True, "message": "Item added successfully"}
        assert _pending(redis_client) == 0

    def test_commands_for_the_same_barcode_all_apply(self, worker, redis_client, ledger):
        for _ in range(10):
            _send(
                redis_client,
                ADD_ITEM,
                {"store_id": "7", "item": {"barcode": "100", "name": "Pen", "price": 0.5, "stock": 2}},
                reply_to=None,
            )

        futures = _drain(worker)

        assert len(futures) == 10
        assert ledger.get_item("7", "100").product.stock == 20

    def test_validation_failure_is_replied(self, worker, redis_client):
        command = _send(redis_client, GET_INVENTORY, {"store_id": "abc"})

        _drain(worker)

        reply = _replies(redis_client)[command.id]
        assert reply["success"] is False
        assert reply["message"] == "'store_id' must be a string of numbers"

    def test_malformed_entry_is_acknowledged(self, worker, redis_client):
        redis_client.xadd(STREAM, {"id": "c-1", "data": "{not json", "pattern": ADD_ITEM, "reply_to": REPLIES})

        _drain(worker)

        assert _replies(redis_client)["c-1"]["message"] == "Malformed command"
        assert _pending(redis_client) == 0

    def test_crashing_handler_leaves_entry_pending(self, worker, redis_client, ingress, monkeypatch):
        def crash(pattern, data):
            raise RuntimeError("boom")

        monkeypatch.setattr(ingress, "dispatch", crash)
        _send(redis_client, GET_INVENTORY, {"store_id": "7"})

        _drain(worker)

        assert _pending(redis_client) == 1
        assert _replies(redis_client) == {}

"""Inventory ledger monitoring endpoints.

Lightweight FastAPI server reporting document store, Redis broker and
command stream health.

Usage:
    uvicorn monitor:app --app-dir src --host 0.0.0.0 --port 9000
"""

import logging

import redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inventory.domain import InventoryDomain, inventory
from inventory.store.document_store import StorageError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _database_health(domain):
    """Ping the document store and count store collections."""
    try:
        domain.store.ping()
        return {"healthy": True, "stores": len(domain.store.partitions())}
    except StorageError as e:
        logger.error(f"Error querying database for {domain.name}: {e}")
        return {"healthy": False, "error": str(e)}


def _broker_health(domain):
    """Ping Redis and report the size of its keyspace."""
    try:
        domain.redis.ping()
        return {"healthy": True, "keys": domain.redis.dbsize()}
    except redis.RedisError as e:
        logger.error(f"Error querying broker for {domain.name}: {e}")
        return {"healthy": False, "error": str(e)}


def _stream_info(domain):
    """Command/event stream lengths and consumer group state."""
    broker = domain.config["brokers"]["default"]
    streams = [broker["stream"]]
    events = domain.config.get("events", {})
    if events.get("enabled"):
        streams.append(events["stream"])

    try:
        lengths = {stream: domain.redis.xlen(stream) for stream in streams}
        groups = {}
        if lengths[broker["stream"]]:
            groups = {
                group["name"]: {"consumers": group["consumers"], "pending": group["pending"]}
                for group in domain.redis.xinfo_groups(broker["stream"])
            }
        return {"status": "ok", "message_counts": lengths, "consumer_groups": groups}
    except redis.RedisError as e:
        logger.error(f"Error querying streams for {domain.name}: {e}")
        return {"status": "error", "error": str(e)}


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
def create_app(domain: InventoryDomain) -> FastAPI:
    domain.init()

    app = FastAPI(
        title="Inventory Monitor",
        description="Health of the inventory ledger's document store, Redis broker and command stream",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Service identification."""
        return JSONResponse(content={"service": "Inventory Monitor", "domain": domain.name})

    @app.get("/health")
    async def health():
        """Health check for all infrastructure components."""
        database = _database_health(domain)
        broker = _broker_health(domain)
        all_healthy = database["healthy"] and broker["healthy"]

        return JSONResponse(
            status_code=200 if all_healthy else 503,
            content={
                "status": "ok" if all_healthy else "degraded",
                "infrastructure": {"database": database, "redis": broker},
            },
        )

    @app.get("/streams")
    async def streams():
        """Redis stream lengths and consumer group info."""
        return JSONResponse(content=_stream_info(domain))

    return app


app = create_app(inventory)

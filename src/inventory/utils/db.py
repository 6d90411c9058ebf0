from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool


def create_engine_for(database_uri: str, **options) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    url = make_url(database_uri)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        options.setdefault("poolclass", StaticPool)
        options.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, **options)


def setup_db(store, store_ids=()):
    """Create collections for the given stores"""
    for store_id in store_ids:
        store.ensure_partition(store_id)


def drop_db(store):
    """Drop every store collection"""
    for store_id in store.partitions():
        store.drop_partition(store_id)

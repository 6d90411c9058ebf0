"""Concurrency tests for stock mutations.

Commands for the same store and barcode may be handled at the same time by
different workers. These tests run them on a thread pool against a
file-backed store.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from inventory.ledger.ledger import InventoryLedger

WORKERS = 8


def _payload(stock):
    return {"barcode": "4006381333931", "name": "Highlighter", "price": 1.99, "stock": stock}


@pytest.fixture
def concurrent_ledger(file_store):
    return InventoryLedger(file_store)


def _run_concurrently(fn, times):
    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        return list(pool.map(lambda _: fn(), range(times)))


class TestConcurrentAdds:
    def test_concurrent_first_adds_create_one_record(self, concurrent_ledger, file_store):
        results = _run_concurrently(lambda: concurrent_ledger.add_item("7", _payload(3)), 20)

        assert all(result.success for result in results)
        documents = file_store.find_all("7")
        assert len(documents) == 1
        assert documents[0]["stock"] == 60

    def test_concurrent_increments_are_not_lost(self, concurrent_ledger, file_store):
        concurrent_ledger.add_item("7", _payload(10))

        _run_concurrently(lambda: concurrent_ledger.add_item("7", _payload(2)), 25)

        assert file_store.find_one("7", barcode="4006381333931")["stock"] == 10 + 25 * 2

    def test_concurrent_adds_and_adjustments(self, concurrent_ledger, file_store):
        concurrent_ledger.add_item("7", _payload(100))

        def work(index):
            if index % 2:
                return concurrent_ledger.adjust_stock("7", "4006381333931", -3)
            return concurrent_ledger.add_item("7", _payload(5))

        with ThreadPoolExecutor(max_workers=WORKERS) as pool:
            results = list(pool.map(work, range(20)))

        assert all(result.success for result in results)
        assert file_store.find_one("7", barcode="4006381333931")["stock"] == 100 + 10 * 5 - 10 * 3

    def test_concurrent_replays_apply_once(self, concurrent_ledger, file_store):
        concurrent_ledger.add_item("7", _payload(10))

        _run_concurrently(lambda: concurrent_ledger.add_item("7", _payload(5), event_id="evt-1"), 10)

        assert file_store.find_one("7", barcode="4006381333931")["stock"] == 15

"""Ingress worker runner for the inventory ledger.

Starts a consumer on the inventory command stream. Each command is handled
as its own task on the worker's thread pool; run several processes with
distinct consumer names to scale out.

Usage:
    python src/server.py                          # Run with the configured consumer name
    python src/server.py --consumer ledger-2      # Run a second consumer in the same group
    python src/server.py --env production         # Use the [production] configuration
"""

import argparse
import os
import signal


def run(consumer=None):
    from inventory.domain import inventory, logger

    inventory.init()
    worker = inventory.worker(consumer)
    ingress = inventory.config.get("ingress", {})

    def _stop(signum, frame):
        logger.info("Shutdown requested", signal=signum)
        worker.stop()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    try:
        worker.run(count=ingress.get("batch_size", 10), block_ms=ingress.get("block_ms", 1000))
    finally:
        worker.shutdown(wait=True)
        inventory.close()


def main():
    parser = argparse.ArgumentParser(description="Inventory ledger worker")
    parser.add_argument("--consumer", help="Consumer name within the group (default: from config)")
    parser.add_argument("--env", help="Configuration environment (default: POS_ENV or development)")
    args = parser.parse_args()

    if args.env:
        os.environ["POS_ENV"] = args.env

    run(args.consumer)


if __name__ == "__main__":
    main()

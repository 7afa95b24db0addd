"""Protean Engine runner for the storefront domain.

Starts the Engine that processes events asynchronously when running with
``PROTEAN_ENV=production``:
- OutboxProcessor: polls the outbox table, publishes events to Redis Streams
- StreamSubscriptions: reads Redis Streams, invokes event handlers
  (notification dispatch, restock alerts, cart recovery)

Usage:
    python src/server.py
    python src/server.py --test-mode   # Drain pending messages and exit
"""

import argparse

from protean.server.engine import Engine

from storefront.domain import storefront
from storefront.utils.logging import configure_logging


def main():
    parser = argparse.ArgumentParser(description="Storefront Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    configure_logging()
    storefront.init()

    engine = Engine(storefront, test_mode=args.test_mode)
    engine.run()


if __name__ == "__main__":
    main()

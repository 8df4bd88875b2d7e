"""
entity_store/__main__.py -- Command-line driver.

Opens (or creates) a data store, attaches the audit logger and, when a
recipient is configured, the low stock alert, then runs the inventory demo:
five SKUs are received, two are shipped, one is repriced, and everything is
committed in one batch.

Usage::

    python -m entity_store --store inventory.json --log-file audit.jsonl
    python -m entity_store --alert-email buyer@example.com --smtp-host mail
"""

from __future__ import annotations

import argparse
import logging
import sys

from entity_store.config import StoreConfig
from entity_store.entity_manager import EntityManager
from entity_store.errors import EntityStoreError
from entity_store.models.inventory import InventoryItem
from entity_store.observers import FileLoggerObserver, LowStockAlertObserver

logger = logging.getLogger("entity_store")

DEMO_ITEMS = [
    {"sku": "abc-4589", "qoh": 0, "cost": "5.67", "salePrice": "7.27"},
    {"sku": "hjg-3821", "qoh": 0, "cost": "7.89", "salePrice": "12.00"},
    {"sku": "xrf-3827", "qoh": 0, "cost": "15.27", "salePrice": "19.99"},
    {"sku": "eer-4521", "qoh": 0, "cost": "8.45", "salePrice": "1.03"},
    {"sku": "qws-6783", "qoh": 0, "cost": "3.00", "salePrice": "4.97"},
]


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="entity_store",
        description="Run the inventory demo against an entity store file",
    )
    parser.add_argument("--store", dest="store_path", help="Data store file")
    parser.add_argument("--log-file", dest="log_path", help="Audit log file (JSON Lines)")
    parser.add_argument("--alert-email", help="Recipient for low stock alerts")
    parser.add_argument("--smtp-host", help="Mail server host")
    parser.add_argument("--smtp-port", type=int, help="Mail server port")
    parser.add_argument("--no-alerts", action="store_true", help="Do not send low stock alerts")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def build_manager(config: StoreConfig, alerts: bool = True) -> EntityManager:
    """Open the configured store and attach the configured observers."""
    manager = EntityManager.from_path(config.store_path)
    manager.attach(FileLoggerObserver(config.log_path))
    if alerts and config.alert_email:
        manager.attach(LowStockAlertObserver(
            config.alert_email,
            limit=config.low_stock_limit,
            smtp_host=config.smtp_host,
            smtp_port=config.smtp_port,
        ))
    return manager


def run_demo(manager: EntityManager) -> list[InventoryItem]:
    """Apply the demo stock movements and commit them."""
    items = [manager.get_or_create(InventoryItem, data) for data in DEMO_ITEMS]
    item1, item2, item3, item4, item5 = items

    item1.items_received(4)
    item2.items_received(2)
    item3.items_received(12)
    item4.items_received(20)
    item5.items_received(1)

    item3.items_have_shipped(5)
    item4.items_have_shipped(16)

    item4.change_sale_price(0.87)

    manager.commit()
    return items


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = StoreConfig.from_env(
            store_path=args.store_path,
            log_path=args.log_path,
            alert_email=args.alert_email,
            smtp_host=args.smtp_host,
            smtp_port=args.smtp_port,
            log_level="DEBUG" if args.verbose else None,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    _setup_logging(config.log_level)
    logger.info("Using data store %s", config.store_path)

    try:
        manager = build_manager(config, alerts=not args.no_alerts)
        items = run_demo(manager)
    except EntityStoreError as exc:
        logger.error("%s", exc)
        return 1

    for item in items:
        print(f"{item.sku}  qoh={item.qoh:<4d} cost={item.cost:<8.2f} price={item.sale_price:.2f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

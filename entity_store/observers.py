"""
entity_store/observers.py -- Commit observers.

An observer is any object with an ``on_commit(manager)`` method.  The
``EntityManager`` calls it once per ``commit()``, after the pending entities
have been staged and before the store is flushed.  Observers read the
pending IDs through ``manager.pending_save_ids()`` and resolve them with
``manager.entity_by_id()``; they must not create, delete or re-key entities
while being notified.

Two observers ship with the package:

    FileLoggerObserver      appends one JSON Lines audit record per entity
    LowStockAlertObserver   emails a warning for inventory running low

Usage::

    manager.attach(FileLoggerObserver("audit.jsonl"))
    manager.attach(LowStockAlertObserver("buyer@example.com", limit=5))
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from entity_store.errors import AlertDeliveryFailed
from entity_store.models.inventory import InventoryItem
from entity_store.utils import now_iso, safe_append_jsonl

if TYPE_CHECKING:
    from entity_store.entity_manager import EntityManager

logger = logging.getLogger(__name__)


@runtime_checkable
class CommitObserver(Protocol):
    """Anything that wants to hear about commits."""

    def on_commit(self, manager: EntityManager) -> None:
        ...


class FileLoggerObserver:
    """Append an audit record for every entity written by a commit.

    Each record is one JSON line::

        {"timestamp": "2024-05-01T12:00:00+00:00", "event": "entity_updated",
         "entity_type": "InventoryItem", "primary_key": "abc-4589",
         "surrogate_id": 1, "data": {"sku": "abc-4589", "qoh": 4, ...}}

    Parameters
    ----------
    log_path : str or pathlib.Path
        The JSONL file.  Created (with parent directories) on first write.
    """

    EVENT_ENTITY_UPDATED = "entity_updated"

    def __init__(self, log_path):
        self.log_path = str(log_path)

    def on_commit(self, manager: EntityManager) -> None:
        written = 0
        for entity_id in manager.pending_save_ids():
            entity = manager.entity_by_id(entity_id)
            if entity is None:
                logger.warning("Pending entity id %d is no longer live", entity_id)
                continue
            safe_append_jsonl(self.log_path, {
                "timestamp": now_iso(),
                "event": self.EVENT_ENTITY_UPDATED,
                "entity_type": entity.type_name,
                "primary_key": entity.primary_key,
                "surrogate_id": entity_id,
                "data": entity.data(),
            })
            written += 1
        logger.debug("Wrote %d audit records to %s", written, self.log_path)


class LowStockAlertObserver:
    """Email an alert for each committed inventory item below *limit* on hand.

    Parameters
    ----------
    recipient : str
        Address the alerts go to.
    limit : int
        Items with ``qoh`` strictly below this trigger an alert.
    smtp_host, smtp_port : str, int
        Outgoing mail server.
    sender : str
        ``From`` address.

    Raises
    ------
    AlertDeliveryFailed
        From ``on_commit`` when the mail server refuses or is unreachable.
    """

    LIMIT_QOH = 5
    SUBJECT = "Low Inventory Alert"

    def __init__(
        self,
        recipient: str,
        limit: int = LIMIT_QOH,
        smtp_host: str = "localhost",
        smtp_port: int = 25,
        sender: str = "entity-store@localhost",
    ):
        self.recipient = recipient
        self.limit = limit
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.sender = sender

    def on_commit(self, manager: EntityManager) -> None:
        for entity_id in manager.pending_save_ids():
            entity = manager.entity_by_id(entity_id)
            if not isinstance(entity, InventoryItem):
                continue
            if entity.qoh < self.limit:
                body = f"Alert: Inventory item SKU {entity.sku} has a QOH of {entity.qoh}."
                self._send(body)

    def _send(self, body: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = self.recipient
        msg["Subject"] = self.SUBJECT
        msg.set_content(body)

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as smtp:
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(
                "Could not send low stock alert via %s:%s: %s",
                self.smtp_host, self.smtp_port, exc,
            )
            raise AlertDeliveryFailed(self.recipient, str(exc)) from exc
        logger.info("Low stock alert sent to %s: %s", self.recipient, body)

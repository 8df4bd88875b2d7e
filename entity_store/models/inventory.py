"""
entity_store/models/inventory.py -- Inventory item entity.

Stock-keeping records keyed by SKU.  Persisted field names match the
historical data files (``sku``, ``qoh``, ``cost``, ``salePrice``); prices
arriving as numeric strings such as ``"5.67"`` are coerced to floats.
"""

from __future__ import annotations

import logging

from pydantic import Field

from entity_store.errors import InsufficientStock, InvalidPrice
from entity_store.models.base import Entity, EntityAttributes
from entity_store.models.registry import default_registry

logger = logging.getLogger(__name__)


class InventoryAttributes(EntityAttributes):
    sku: str
    qoh: int = Field(default=0, description="Quantity on hand")
    cost: float = 0.0
    sale_price: float = Field(default=0.0, alias="salePrice")


@default_registry.register
class InventoryItem(Entity):
    """A stocked item: quantity on hand, unit cost and sale price."""

    attributes_model = InventoryAttributes
    primary_key_member = "sku"

    def items_have_shipped(self, number_shipped: int) -> None:
        """Reduce the quantity on hand because *number_shipped* items left.

        Raises
        ------
        InsufficientStock
            If more items would ship than are on hand.  ``qoh`` is unchanged.
        """
        self.validate_ready()
        remaining = self.qoh - number_shipped
        if remaining < 0:
            raise InsufficientStock(self.sku, self.qoh, number_shipped)
        self.qoh = remaining
        logger.debug("SKU %s shipped %d, %d left", self.sku, number_shipped, remaining)

    def items_received(self, number_received: int) -> None:
        """Increase the quantity on hand by *number_received*."""
        self.validate_ready()
        self.qoh += number_received
        logger.debug("SKU %s received %d, now %d", self.sku, number_received, self.qoh)

    def change_sale_price(self, sale_price: float) -> None:
        """Set a new sale price.

        Raises
        ------
        InvalidPrice
            If *sale_price* is negative.  The current price is unchanged.
        """
        self.validate_ready()
        if sale_price < 0:
            raise InvalidPrice(sale_price)
        self.sale_price = sale_price

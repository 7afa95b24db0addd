"""Inventory commands — admin stock edits for a product's sizes."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Integer, String, Text
from protean.utils.globals import current_domain

from storefront.audit.entry import AuditAction
from storefront.audit.trail import log_admin_action
from storefront.catalogue.product import Product, find_product
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class UpdateInventory:
    """Replace stock levels for the listed sizes."""

    product_slug = String(required=True, max_length=200)
    size_quantities = Text(required=True)  # JSON: {size: quantity}
    actor_id = String(max_length=100)
    actor_email = String(max_length=255)
    ip_address = String(max_length=100)


@storefront.command(part_of="Product")
class AdjustInventory:
    """Add or remove units for a single size."""

    product_slug = String(required=True, max_length=200)
    size = String(required=True, max_length=20)
    adjustment = Integer(required=True)
    reason = String(max_length=500)
    actor_id = String(max_length=100)
    actor_email = String(max_length=255)
    ip_address = String(max_length=100)


@storefront.command_handler(part_of=Product)
class InventoryHandler:
    @handle(UpdateInventory)
    def update_inventory(self, command):
        size_quantities = (
            json.loads(command.size_quantities)
            if isinstance(command.size_quantities, str)
            else command.size_quantities
        )
        if not isinstance(size_quantities, dict) or not all(
            isinstance(qty, int) and not isinstance(qty, bool) and qty >= 0 for qty in size_quantities.values()
        ):
            raise ValidationError({"size_quantities": ["All size quantities must be non-negative numbers"]})

        product = find_product(command.product_slug)
        changes = {}
        for size, quantity in size_quantities.items():
            previous = product.set_stock(size, quantity)
            changes[size] = {"previous": previous, "new": quantity}

        current_domain.repository_for(Product).add(product)

        log_admin_action(
            AuditAction.INVENTORY_UPDATED,
            user_id=command.actor_id,
            user_email=command.actor_email,
            resource="product",
            resource_id=product.slug,
            ip_address=command.ip_address,
            metadata={"changes": changes},
        )

        logger.info("Inventory updated", product_slug=product.slug, sizes=list(size_quantities))
        return {size: product.stock_for(size) for size in size_quantities}

    @handle(AdjustInventory)
    def adjust_inventory(self, command):
        product = find_product(command.product_slug)
        previous, new_quantity = product.adjust_stock(command.size, command.adjustment)

        current_domain.repository_for(Product).add(product)

        log_admin_action(
            AuditAction.INVENTORY_UPDATED,
            user_id=command.actor_id,
            user_email=command.actor_email,
            resource="product",
            resource_id=product.slug,
            ip_address=command.ip_address,
            metadata={
                "size": command.size,
                "previous": previous,
                "new": new_quantity,
                "change": command.adjustment,
                "reason": command.reason,
            },
        )

        return {
            "size": command.size,
            "previous_qty": previous,
            "new_qty": new_quantity,
            "change": command.adjustment,
        }

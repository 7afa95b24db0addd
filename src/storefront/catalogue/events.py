"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class StockReplenished:
    """A size went from zero stock to available stock."""

    __version__ = 1

    product_id: Identifier(required=True)
    product_slug: String(required=True)
    product_title: String(required=True)
    size: String(required=True)
    quantity: Integer(required=True)
    replenished_at: DateTime(required=True)


@storefront.event(part_of="Product")
class InventoryAdjusted:
    """Stock for a size was set to a new quantity."""

    __version__ = 1

    product_id: Identifier(required=True)
    product_slug: String(required=True)
    size: String(required=True)
    previous_quantity: Integer(required=True)
    new_quantity: Integer(required=True)
    adjusted_at: DateTime(required=True)

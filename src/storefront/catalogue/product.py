"""Product aggregate — the slice of the catalogue the order lifecycle depends on.

Checkout resolves prices and titles from here, and per-size stock drives the
restock waitlist. Product authoring itself happens elsewhere; this aggregate
only carries what pricing and availability need.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, DateTime, HasMany, Integer, String
from protean.utils.globals import current_domain

from storefront.catalogue.events import InventoryAdjusted, StockReplenished
from storefront.domain import storefront


@storefront.entity(part_of="Product")
class SizeStock:
    """Units on hand for one size of a product."""

    size = String(required=True, max_length=20)
    quantity = Integer(default=0, min_value=0)


@storefront.aggregate
class Product:
    slug = String(required=True, max_length=200, unique=True)
    title = String(required=True, max_length=255)
    price = Integer(required=True, min_value=0)  # cents
    currency = String(max_length=3, default="CAD")
    collection = String(max_length=100)
    image = String(max_length=500)
    in_stock = Boolean(default=True)
    sizes = HasMany(SizeStock)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, slug, title, price, currency="CAD", collection=None, image=None, sizes=None):
        """Create a product with optional ``{size: quantity}`` stock levels."""
        now = datetime.now(UTC)
        product = cls(
            slug=slug,
            title=title,
            price=price,
            currency=currency,
            collection=collection,
            image=image,
            created_at=now,
            updated_at=now,
        )
        for size, quantity in (sizes or {}).items():
            product.add_sizes(SizeStock(size=size, quantity=quantity))
        product._refresh_in_stock()
        return product

    def stock_for(self, size) -> int:
        entry = self._size_entry(size)
        return entry.quantity if entry else 0

    def set_stock(self, size, quantity):
        """Set the units on hand for ``size``.

        Raises ``StockReplenished`` when the size goes from zero to positive,
        which is what restock waitlist subscribers are waiting for.
        """
        if quantity is None or quantity < 0:
            raise ValidationError({"quantity": ["Stock quantities must be non-negative numbers"]})

        entry = self._size_entry(size)
        previous = entry.quantity if entry else 0

        if entry is None:
            self.add_sizes(SizeStock(size=size, quantity=quantity))
        else:
            entry.quantity = quantity

        now = datetime.now(UTC)
        self.updated_at = now
        self._refresh_in_stock()

        self.raise_(
            InventoryAdjusted(
                product_id=str(self.id),
                product_slug=self.slug,
                size=size,
                previous_quantity=previous,
                new_quantity=quantity,
                adjusted_at=now,
            )
        )

        if previous <= 0 < quantity:
            self.raise_(
                StockReplenished(
                    product_id=str(self.id),
                    product_slug=self.slug,
                    product_title=self.title,
                    size=size,
                    quantity=quantity,
                    replenished_at=now,
                )
            )

        return previous

    def adjust_stock(self, size, adjustment):
        """Add or remove units for ``size``; stock never drops below zero."""
        new_quantity = max(0, self.stock_for(size) + adjustment)
        previous = self.set_stock(size, new_quantity)
        return previous, new_quantity

    def _size_entry(self, size):
        return next((s for s in self.sizes if s.size == size), None)

    def _refresh_in_stock(self):
        self.in_stock = sum(s.quantity or 0 for s in self.sizes) > 0


def find_product(slug) -> Product:
    """Load a product by slug or raise ``ObjectNotFoundError``."""
    results = current_domain.repository_for(Product)._dao.query.filter(slug=slug).all().items
    if not results:
        raise ObjectNotFoundError({"product_slug": [f"Product not found: {slug}"]})
    return results[0]

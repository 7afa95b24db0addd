import json

import pytest
from protean import current_domain

from storefront.catalogue.product import Product
from storefront.order.checkout import PlaceOrder

ADDRESS = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "phone": "416-555-0100",
    "street": "1 Queen St W",
    "city": "Toronto",
    "province": "ON",
    "postal_code": "M5H 2N2",
    "country": "Canada",
}


@pytest.fixture()
def catalogue():
    repo = current_domain.repository_for(Product)
    products = [
        Product.create(
            slug="classic-hoodie",
            title="Classic Hoodie",
            price=6500,
            collection="Core",
            image="/images/classic-hoodie.jpg",
            sizes={"S": 3, "M": 5, "L": 0},
        ),
        Product.create(slug="logo-tee", title="Logo Tee", price=3000, sizes={"M": 10}),
    ]
    for product in products:
        repo.add(product)
    return {product.slug: product for product in products}


@pytest.fixture()
def place_order(catalogue):
    """Check out through the command handler; returns ``{order_id, order_number}``."""

    def _place(items=None, address=None, **address_overrides):
        items = items if items is not None else [{"slug": "classic-hoodie", "size": "M", "quantity": 2}]
        address = dict(address if address is not None else ADDRESS, **address_overrides)
        return current_domain.process(
            PlaceOrder(items=json.dumps(items), shipping_address=json.dumps(address)),
            asynchronous=False,
        )

    return _place

from storefront.domain import storefront
from storefront.utils.db import drop_db, setup_db


def test_memory_providers_are_left_alone():
    assert setup_db(storefront) == []
    assert drop_db(storefront) == []

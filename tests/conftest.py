import os

import pytest
from protean.integrations.pytest import DomainFixture

# tests/<context>/<layer>/test_*.py
LAYER_MARKERS = {"domain", "application", "integration"}


def pytest_addoption(parser):
    parser.addoption("--env", default="test", help="Protean config overlay to run the suite under")


def pytest_sessionstart(session):
    """Select the config overlay before anything imports the domain.

    Real email delivery, Redis and the cron secret are pinned off so nothing
    leaks in from a developer's shell or `.env`.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["EMAIL_ADAPTER"] = "fake"
    for name in ("REDIS_URL", "CRON_SECRET", "LOG_DIR"):
        os.environ.pop(name, None)


def pytest_collection_modifyitems(config, items):
    for item in items:
        layer = next((part for part in item.path.parts if part in LAYER_MARKERS), None)
        if layer is None:
            continue
        item.add_marker(getattr(pytest.mark, layer))
        if layer == "integration":
            item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


def _reset_process_state():
    from storefront.admission import reset_limiter
    from storefront.config import get_settings
    from storefront.notification.channel import reset_channels
    from storefront.order.numbering import reset_allocator

    reset_channels()
    reset_limiter()
    reset_allocator()
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    """Each test runs inside the domain context and leaves no data behind."""
    from protean import current_domain

    with storefront_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()
    _reset_process_state()

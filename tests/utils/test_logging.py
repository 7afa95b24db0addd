import logging

import pytest
import structlog

from storefront.config import Settings
from storefront.utils.logging import bind_request, configure_logging, resolve_level


def _settings(**overrides):
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers, root.level = handlers, level
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestResolveLevel:
    @pytest.mark.parametrize(
        ("environment", "expected"),
        [("production", "INFO"), ("staging", "INFO"), ("test", "WARNING"), ("development", "DEBUG")],
    )
    def test_defaults_per_environment(self, environment, expected):
        assert resolve_level(_settings(ENVIRONMENT=environment)) == expected

    def test_explicit_level_wins(self):
        assert resolve_level(_settings(ENVIRONMENT="production", LOG_LEVEL="debug")) == "DEBUG"


class TestConfigureLogging:
    def test_console_only_without_log_dir(self, restore_logging):
        level = configure_logging(_settings(ENVIRONMENT="test"))

        assert level == "WARNING"
        assert len(logging.getLogger().handlers) == 1
        assert logging.getLogger("protean").level == logging.WARNING

    def test_file_handlers_with_log_dir(self, restore_logging, tmp_path):
        configure_logging(_settings(ENVIRONMENT="production", LOG_DIR=str(tmp_path / "logs")))

        handlers = logging.getLogger().handlers
        assert len(handlers) == 3
        assert handlers[2].level == logging.ERROR
        assert (tmp_path / "logs").is_dir()

    def test_request_context_is_replaced(self, restore_logging):
        bind_request("req-1", "/orders", method="GET")
        bind_request("req-2", "/checkout")

        context = structlog.contextvars.get_contextvars()
        assert context == {"request_id": "req-2", "path": "/checkout"}

"""Channel adapter registry — pluggable notification dispatch channels.

Provides singleton access to channel adapters. The fake email adapter is
the default; set ``EMAIL_ADAPTER=resend`` (with ``RESEND_API_KEY``) to
deliver through Resend.
"""

from storefront.config import get_settings
from storefront.notification.notification import NotificationChannel

_channel_instances: dict[str, object] = {}


def _build_email_adapter():
    settings = get_settings()

    if settings.EMAIL_ADAPTER == "resend":
        from storefront.notification.channel.resend_email import ResendEmailAdapter

        if not settings.RESEND_API_KEY:
            raise ValueError("RESEND_API_KEY is required when EMAIL_ADAPTER is 'resend'")
        return ResendEmailAdapter(api_key=settings.RESEND_API_KEY, from_email=settings.FROM_EMAIL)

    if settings.EMAIL_ADAPTER == "fake":
        from storefront.notification.channel.fake_email import FakeEmailAdapter

        return FakeEmailAdapter()

    raise ValueError(f"Unknown email adapter: {settings.EMAIL_ADAPTER}")


def get_channel(channel_type: str):
    """Return the configured channel adapter (singleton per channel type).

    Args:
        channel_type: One of NotificationChannel enum values ("Email")
    """
    if channel_type not in _channel_instances:
        if channel_type == NotificationChannel.EMAIL.value:
            _channel_instances[channel_type] = _build_email_adapter()
        else:
            raise ValueError(f"Unknown channel type: {channel_type}")

    return _channel_instances[channel_type]


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()

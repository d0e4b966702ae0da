"""Email channel registry.

Order confirmations go out through whichever ``EmailPort`` is installed
here. Without one, a ``FakeEmailAdapter`` is created on first use.
"""

import threading

from notifications.channel.email_port import EmailPort

_lock = threading.Lock()
_email_channel: EmailPort | None = None


def get_email_channel() -> EmailPort:
    global _email_channel
    with _lock:
        if _email_channel is None:
            from notifications.channel.fake_email import FakeEmailAdapter

            _email_channel = FakeEmailAdapter()
        return _email_channel


def set_email_channel(channel: EmailPort) -> None:
    global _email_channel
    with _lock:
        _email_channel = channel


def reset_channels() -> None:
    global _email_channel
    with _lock:
        _email_channel = None

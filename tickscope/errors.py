"""Exceptions raised by the TickScope core."""


class TickScopeError(Exception):
    """Base class for TickScope errors."""


class DeviceUnavailable(TickScopeError):
    """The requested audio input could not be opened."""

    def __init__(self, device_selector, reason: str):
        self.device_selector = device_selector
        self.reason = reason
        super().__init__(f"Audio input '{device_selector}' unavailable: {reason}")


class SessionDisposed(TickScopeError):
    """A disposed session cannot be started again."""

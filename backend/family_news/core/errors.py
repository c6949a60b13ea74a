"""
Domain errors for the push subsystem.

Only dispatch-level failures are exceptions. Per-channel delivery failures
are values (see services.transport.DeliveryResult) and registrar failures are
returned as RegistrarResult, so neither type appears here.
"""


class PushError(Exception):
    """Base class for push subsystem errors."""


class PushNotConfiguredError(PushError):
    """VAPID keys are absent. Fatal for the current call, never retried."""

    def __init__(self, message: str = "Push notifications not configured") -> None:
        super().__init__(message)


class SubscriptionStoreError(PushError):
    """The subscription store could not be read or written."""

"""External API client implementations."""

from .stripe_billing_client import StripeBillingGateway
from .stripe_events import normalize_event

__all__ = [
    "StripeBillingGateway",
    "normalize_event",
]

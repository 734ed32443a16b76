"""Eligibility-related domain exceptions."""

from .base import DomainException


class IneligibleException(DomainException):
    """Raised when a customer may not be offered financing."""

    def __init__(self, customer_id: str, reason: str):
        super().__init__(
            message=reason,
            code="NOT_ELIGIBLE",
        )
        self.customer_id = customer_id
        self.reason = reason

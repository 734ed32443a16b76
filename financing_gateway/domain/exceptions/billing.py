"""Billing gateway-related domain exceptions."""

from .base import DomainException


class BillingGatewayException(DomainException):
    """Raised when the billing processor rejects or fails a request."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(
            message=message,
            code="BILLING_GATEWAY_ERROR",
        )
        self.operation = operation


class GatewayUnavailableException(BillingGatewayException):
    """Raised when the processor stays unreachable after all retries."""

    def __init__(self, operation: str, attempts: int):
        super().__init__(
            message=f"Billing processor unavailable for {operation} after {attempts} attempt(s)",
            operation=operation,
        )
        self.code = "BILLING_GATEWAY_UNAVAILABLE"
        self.attempts = attempts


class InvalidCustomerException(BillingGatewayException):
    """Raised when the processor definitively rejects the customer."""

    def __init__(self, customer_ref: str | None, detail: str = ""):
        message = f"Billing processor rejected customer: {customer_ref}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message=message, operation="create_recurring_billing")
        self.code = "INVALID_BILLING_CUSTOMER"
        self.customer_ref = customer_ref


class InvalidWebhookSignatureException(BillingGatewayException):
    """Raised when an inbound webhook fails signature verification."""

    def __init__(self, detail: str = "Invalid webhook signature"):
        super().__init__(message=detail, operation="parse_webhook")
        self.code = "INVALID_WEBHOOK_SIGNATURE"


class UnknownWebhookReferenceException(DomainException):
    """Raised when an inbound event points at a billing reference we never issued."""

    def __init__(self, billing_ref: str):
        super().__init__(
            message=f"Unknown billing reference: {billing_ref}",
            code="UNKNOWN_WEBHOOK_REFERENCE",
        )
        self.billing_ref = billing_ref

"""Financing catalog and customer profile exceptions."""

from .base import DomainException


class TemplateNotFoundException(DomainException):
    """Raised when a financing template cannot be found."""

    def __init__(self, template_id: str):
        super().__init__(
            message=f"Financing template not found: {template_id}",
            code="TEMPLATE_NOT_FOUND",
        )
        self.template_id = template_id


class DuplicateTemplateException(DomainException):
    """Raised when creating a template whose id is already taken."""

    def __init__(self, template_id: str):
        super().__init__(
            message=f"Financing template already exists: {template_id}",
            code="TEMPLATE_ALREADY_EXISTS",
        )
        self.template_id = template_id


class InvalidTemplateException(DomainException):
    """Raised when template fields are inconsistent."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_TEMPLATE",
        )


class ProfileNotFoundException(DomainException):
    """Raised when a customer has no financing profile."""

    def __init__(self, customer_id: str):
        super().__init__(
            message=f"Financing profile not found: {customer_id}",
            code="PROFILE_NOT_FOUND",
        )
        self.customer_id = customer_id


class ProfileNotApprovedException(DomainException):
    """Raised when editing financing details of a customer who is not approved."""

    def __init__(self, customer_id: str):
        super().__init__(
            message=f"Customer is not approved for financing: {customer_id}",
            code="PROFILE_NOT_APPROVED",
        )
        self.customer_id = customer_id


class ProfileRevocationBlockedException(DomainException):
    """Raised when revoking a customer who still has open plans."""

    def __init__(self, customer_id: str, open_plans: int):
        super().__init__(
            message=(
                f"Cannot revoke financing for customer {customer_id} "
                f"with {open_plans} open installment plan(s)"
            ),
            code="REVOCATION_BLOCKED",
        )
        self.customer_id = customer_id
        self.open_plans = open_plans

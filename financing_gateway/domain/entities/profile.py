"""Customer financing profile entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class CustomerFinancingProfile:
    """
    Administrative approval of a customer for local financing.

    `max_approved_cents` is an optional ceiling on any single purchase.
    `billing_customer_ref` is the processor's customer id; when it is
    missing the processor creates a customer from `email` at checkout.
    """

    customer_id: str
    approved: bool = False
    max_approved_cents: Optional[int] = None
    notes: str = ""
    billing_customer_ref: Optional[str] = None
    email: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    revoked_by: Optional[str] = None
    revoked_at: Optional[datetime] = None
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def customer_ref(self) -> Optional[str]:
        """Reference handed to the billing processor for this customer."""
        return self.billing_customer_ref or self.email

    def approve(
        self,
        approved_by: str,
        max_approved_cents: Optional[int] = None,
        notes: str = "",
    ) -> None:
        self.approved = True
        self.max_approved_cents = max_approved_cents
        self.notes = notes
        self.approved_by = approved_by
        self.approved_at = datetime.utcnow()
        self.revoked_by = None
        self.revoked_at = None
        self.updated_at = datetime.utcnow()

    def revoke(self, revoked_by: str, reason: str) -> None:
        self.approved = False
        self.revoked_by = revoked_by
        self.revoked_at = datetime.utcnow()
        self.notes = (
            f"Revoked by {revoked_by} on {self.revoked_at.isoformat()}Z. "
            f"Reason: {reason or 'Not specified'}"
        )
        self.updated_at = datetime.utcnow()

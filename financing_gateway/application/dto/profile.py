"""Data transfer objects for customer financing profiles."""

from dataclasses import dataclass
from typing import List, Optional

from financing_gateway.domain.entities import CustomerFinancingProfile


@dataclass(frozen=True)
class ApproveProfileRequest:
    """Input data for approving a customer for financing."""

    actor: str
    max_approved_cents: Optional[int] = None
    notes: str = ""
    billing_customer_ref: Optional[str] = None
    email: Optional[str] = None

    def validate(self) -> List[str]:
        errors = []

        if not self.actor or not self.actor.strip():
            errors.append("actor is required")

        if self.max_approved_cents is not None and self.max_approved_cents <= 0:
            errors.append("max_approved_cents must be positive")

        return errors


@dataclass(frozen=True)
class ProfileResponse:
    """Response data for a customer financing profile."""

    customer_id: str
    approved: bool
    max_approved_cents: Optional[int]
    notes: str
    billing_customer_ref: Optional[str]
    email: Optional[str]
    approved_by: Optional[str]
    approved_at: Optional[str]
    revoked_by: Optional[str]
    revoked_at: Optional[str]

    @classmethod
    def from_entity(cls, profile: CustomerFinancingProfile) -> "ProfileResponse":
        return cls(
            customer_id=profile.customer_id,
            approved=profile.approved,
            max_approved_cents=profile.max_approved_cents,
            notes=profile.notes,
            billing_customer_ref=profile.billing_customer_ref,
            email=profile.email,
            approved_by=profile.approved_by,
            approved_at=_iso(profile.approved_at),
            revoked_by=profile.revoked_by,
            revoked_at=_iso(profile.revoked_at),
        )


def _iso(value) -> Optional[str]:
    return value.isoformat() + "Z" if value else None

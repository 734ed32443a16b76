"""
Eligibility rules for local installment financing.

Fails closed: any missing or negative signal makes the customer
ineligible. The function is pure; loading the inputs is the
application service's job.
"""

from typing import List, Optional

from financing_gateway.domain.entities import (
    CustomerFinancingProfile,
    EligibilityResult,
    FinancingTemplate,
)

REASON_NOT_APPROVED = "Customer not approved for local financing"
REASON_DEFAULTED = "Previous financing plan in default"
REASON_NO_TEMPLATE = "No financing plans available for this amount"
REASON_INVALID_AMOUNT = "Amount must be positive"


def evaluate_eligibility(
    profile: Optional[CustomerFinancingProfile],
    amount_cents: int,
    templates: List[FinancingTemplate],
    defaulted_plans: int,
) -> EligibilityResult:
    """
    Decide whether financing may be offered for a purchase.

    Checks, in order:
        1. Amount is positive
        2. Customer has an approved financing profile
        3. Amount does not exceed the customer's approved ceiling, if set
        4. At least one active template's band contains the amount
        5. Customer has no defaulted plan (permanent until re-approved)

    Args:
        profile: The customer's financing profile, if any
        amount_cents: Purchase amount in cents
        templates: Catalog templates to consider
        defaulted_plans: Number of the customer's plans in default

    Returns:
        EligibilityResult with candidate templates ordered for display
    """
    if amount_cents <= 0:
        return EligibilityResult.declined(REASON_INVALID_AMOUNT)

    if profile is None or not profile.approved:
        return EligibilityResult.declined(REASON_NOT_APPROVED)

    if profile.max_approved_cents is not None and amount_cents > profile.max_approved_cents:
        return EligibilityResult.declined(
            f"Amount exceeds maximum financing limit of "
            f"${profile.max_approved_cents / 100:,.2f}"
        )

    candidates = sorted(
        (t for t in templates if t.is_active and t.covers(amount_cents)),
        key=lambda t: (t.sort_order, t.template_id),
    )
    if not candidates:
        return EligibilityResult.declined(REASON_NO_TEMPLATE)

    if defaulted_plans > 0:
        return EligibilityResult.declined(REASON_DEFAULTED)

    return EligibilityResult(eligible=True, candidate_templates=candidates)

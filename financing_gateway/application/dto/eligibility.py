"""Data transfer objects for eligibility checks."""

from dataclasses import dataclass
from typing import List, Optional

from .template import TemplateResponse


@dataclass(frozen=True)
class EligibilityResponse:
    """Response data for an eligibility check."""

    customer_id: str
    amount_cents: int
    eligible: bool
    reason: Optional[str]
    templates: List[TemplateResponse]

"""Eligibility evaluation result."""

from dataclasses import dataclass, field
from typing import List, Optional

from .template import FinancingTemplate


@dataclass(frozen=True)
class EligibilityResult:
    """Outcome of evaluating a customer for financing a given amount."""

    eligible: bool
    reason: Optional[str] = None
    candidate_templates: List[FinancingTemplate] = field(default_factory=list)

    @classmethod
    def declined(cls, reason: str) -> "EligibilityResult":
        return cls(eligible=False, reason=reason, candidate_templates=[])

    def template(self, template_id: str) -> Optional[FinancingTemplate]:
        """Find a candidate template by id."""
        for candidate in self.candidate_templates:
            if candidate.template_id == template_id:
                return candidate
        return None

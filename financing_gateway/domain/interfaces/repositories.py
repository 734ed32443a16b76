"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import UUID

from financing_gateway.domain.entities import (
    CustomerFinancingProfile,
    FinancingTemplate,
    InstallmentPlan,
    PlanStatus,
    WebhookEventRecord,
)


@dataclass(frozen=True)
class PlanTotals:
    """Aggregate figures over all installment plans."""

    counts_by_status: Dict[str, int] = field(default_factory=dict)
    total_financed_cents: int = 0
    total_collected_cents: int = 0

    @property
    def total_plans(self) -> int:
        return sum(self.counts_by_status.values())


class TemplateRepository(ABC):
    """Abstract repository for the financing catalog."""

    @abstractmethod
    async def save(self, template: FinancingTemplate) -> FinancingTemplate:
        """Persist a new template."""
        ...

    @abstractmethod
    async def update(self, template: FinancingTemplate) -> FinancingTemplate:
        """Persist changes to an existing template."""
        ...

    @abstractmethod
    async def get_by_id(self, template_id: str) -> Optional[FinancingTemplate]:
        """Retrieve a template by its template_id, active or not."""
        ...

    @abstractmethod
    async def list(
        self,
        active: Optional[bool] = None,
        amount_cents: Optional[int] = None,
    ) -> List[FinancingTemplate]:
        """
        List templates ordered by sort_order, then template_id.

        Args:
            active: Filter on is_active when given
            amount_cents: Only templates whose band contains this amount
        """
        ...


class ProfileRepository(ABC):
    """Abstract repository for customer financing profiles."""

    @abstractmethod
    async def get(self, customer_id: str) -> Optional[CustomerFinancingProfile]:
        """Retrieve a customer's profile, if any."""
        ...

    @abstractmethod
    async def upsert(self, profile: CustomerFinancingProfile) -> CustomerFinancingProfile:
        """Create or replace a customer's profile."""
        ...

    @abstractmethod
    async def list(
        self,
        approved: Optional[bool] = None,
        limit: int = 100,
    ) -> List[CustomerFinancingProfile]:
        """List profiles, most recently updated first."""
        ...

    @abstractmethod
    async def count_approved(self) -> int:
        """Number of customers currently approved for financing."""
        ...

    @abstractmethod
    async def commit(self) -> None:
        """Commit pending profile changes."""
        ...


class PlanRepository(ABC):
    """
    Abstract repository for InstallmentPlan persistence.

    Implementations may use PostgreSQL, in-memory storage, etc.
    """

    @abstractmethod
    async def save(self, plan: InstallmentPlan) -> InstallmentPlan:
        """
        Persist a new plan with its payment schedule.

        Args:
            plan: The plan to save

        Returns:
            The saved plan
        """
        ...

    @abstractmethod
    async def update(self, plan: InstallmentPlan) -> InstallmentPlan:
        """Persist state, counters and schedule of an existing plan."""
        ...

    @abstractmethod
    async def get_by_id(
        self,
        plan_id: UUID,
        for_update: bool = False,
    ) -> Optional[InstallmentPlan]:
        """
        Retrieve a plan by ID.

        Args:
            plan_id: The plan's unique identifier
            for_update: Lock the row until the transaction ends

        Returns:
            The plan if found, None otherwise
        """
        ...

    @abstractmethod
    async def get_id_by_billing_ref(self, billing_ref: str) -> Optional[UUID]:
        """Resolve an external billing reference to a plan id."""
        ...

    @abstractmethod
    async def get_by_customer_id(self, customer_id: str) -> List[InstallmentPlan]:
        """Retrieve all plans for a customer, newest first."""
        ...

    @abstractmethod
    async def list(
        self,
        status: Optional[PlanStatus] = None,
        customer_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[InstallmentPlan]:
        """List plans, newest first."""
        ...

    @abstractmethod
    async def count_for_customer(
        self,
        customer_id: str,
        statuses: List[PlanStatus],
        purchase_context_id: Optional[str] = None,
    ) -> int:
        """Count a customer's plans in the given statuses."""
        ...

    @abstractmethod
    async def get_pending_cancellations(self, limit: int = 100) -> List[InstallmentPlan]:
        """Terminal plans whose external billing cancellation is still owed."""
        ...

    @abstractmethod
    async def totals(self) -> PlanTotals:
        """Aggregate counts and amounts for the analytics read model."""
        ...

    @abstractmethod
    async def commit(self) -> None:
        """
        Commit the current unit of work.

        Called while the per-plan lock is still held, so the next event
        for the same plan reads the committed state.
        """
        ...


class WebhookEventRepository(ABC):
    """
    Abstract repository for inbound webhook events.

    Events are persisted to enable:
    - Dropping redelivered events
    - Auditing ignored and failed events
    """

    @abstractmethod
    async def save(self, record: WebhookEventRecord) -> WebhookEventRecord:
        """Persist a newly received event."""
        ...

    @abstractmethod
    async def update(self, record: WebhookEventRecord) -> WebhookEventRecord:
        """Persist the processing status of an event."""
        ...

    @abstractmethod
    async def get_by_event_id(self, event_id: str) -> Optional[WebhookEventRecord]:
        """Retrieve an event by the processor's event id."""
        ...

    @abstractmethod
    async def commit(self) -> None:
        """Commit the current unit of work."""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Discard uncommitted changes of the current unit of work."""
        ...

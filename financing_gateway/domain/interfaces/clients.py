"""External client interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict
from uuid import UUID

from financing_gateway.domain.entities import PaymentFrequency


@dataclass(frozen=True)
class RecurringBilling:
    """Handle to a recurring billing mechanism set up at the processor."""

    billing_ref: str
    checkout_url: str | None = None
    checkout_session_id: str | None = None


class BillingGateway(ABC):
    """
    Abstract client for the recurring-billing processor.

    Implementations own retries: transient failures are retried with
    backoff up to a bounded number of attempts, definitive rejections
    are raised straight away.
    """

    @abstractmethod
    async def create_recurring_billing(
        self,
        customer_ref: str,
        installment_cents: int,
        frequency: PaymentFrequency,
        total_occurrences: int,
        first_charge_date: date,
        plan_id: UUID,
        product_label: str,
    ) -> RecurringBilling:
        """
        Set up recurring billing for an installment plan.

        Args:
            customer_ref: Processor customer id or customer email
            installment_cents: Amount charged per occurrence
            frequency: Charge interval
            total_occurrences: Number of charges the plan expects
            first_charge_date: Due date of the first installment
            plan_id: The local plan, stored as processor metadata
            product_label: Human-readable purchase description

        Returns:
            RecurringBilling with the billing reference and checkout handle

        Raises:
            GatewayUnavailableException: If the processor stays unreachable
            InvalidCustomerException: If the processor rejects the customer
            BillingGatewayException: For any other definitive rejection
        """
        ...

    @abstractmethod
    async def cancel_recurring_billing(self, billing_ref: str) -> None:
        """
        Stop all future charges for a billing reference.

        Raises:
            BillingGatewayException: If cancellation could not be confirmed

        Note:
            Callers treat this as best-effort and never roll back plan
            state when it fails.
        """
        ...

    @abstractmethod
    def parse_webhook(self, payload: bytes, signature: str | None) -> Dict[str, Any]:
        """
        Verify and decode an inbound webhook payload.

        Raises:
            InvalidWebhookSignatureException: If verification fails
        """
        ...

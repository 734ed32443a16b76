"""Data transfer objects for financing catalog operations."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from financing_gateway.domain.entities import FinancingTemplate, PaymentFrequency


@dataclass(frozen=True)
class TemplateRequest:
    """Input data for creating or replacing a financing template."""

    template_id: str
    name: str
    number_of_payments: int
    frequency: str
    min_amount_cents: int
    max_amount_cents: int
    down_payment_percent: str = "0"
    processing_fee_percent: str = "0"
    description: str = ""
    is_active: bool = True
    sort_order: int = 1

    def validate(self) -> List[str]:
        errors = []

        try:
            PaymentFrequency(self.frequency)
        except ValueError:
            errors.append(f"frequency must be one of: {', '.join(f.value for f in PaymentFrequency)}")

        for name in ("down_payment_percent", "processing_fee_percent"):
            try:
                Decimal(str(getattr(self, name)))
            except InvalidOperation:
                errors.append(f"{name} must be a decimal number")

        return errors

    def to_entity(self) -> FinancingTemplate:
        return FinancingTemplate(
            template_id=self.template_id.strip(),
            name=self.name,
            description=self.description,
            number_of_payments=self.number_of_payments,
            frequency=PaymentFrequency(self.frequency),
            min_amount_cents=self.min_amount_cents,
            max_amount_cents=self.max_amount_cents,
            down_payment_percent=Decimal(str(self.down_payment_percent)),
            processing_fee_percent=Decimal(str(self.processing_fee_percent)),
            is_active=self.is_active,
            sort_order=self.sort_order,
        )


@dataclass(frozen=True)
class QuoteDTO:
    """What a template would cost for a given purchase amount."""

    total_cents: int
    down_payment_cents: int
    processing_fee_cents: int
    financed_cents: int
    installment_cents: int
    first_due_date: str
    last_due_date: str

    @classmethod
    def from_quote(cls, quote) -> "QuoteDTO":
        return cls(
            total_cents=quote.total_cents,
            down_payment_cents=quote.down_payment_cents,
            processing_fee_cents=quote.processing_fee_cents,
            financed_cents=quote.financed_cents,
            installment_cents=quote.installment_cents,
            first_due_date=quote.first_due_date.isoformat(),
            last_due_date=quote.last_due_date.isoformat(),
        )


@dataclass(frozen=True)
class TemplateResponse:
    """Response data for a financing template."""

    template_id: str
    name: str
    description: str
    number_of_payments: int
    frequency: str
    min_amount_cents: int
    max_amount_cents: int
    down_payment_percent: str
    processing_fee_percent: str
    is_active: bool
    sort_order: int
    version: int
    quote: Optional[QuoteDTO] = None

    @classmethod
    def from_entity(cls, template: FinancingTemplate, quote=None) -> "TemplateResponse":
        return cls(
            template_id=template.template_id,
            name=template.name,
            description=template.description,
            number_of_payments=template.number_of_payments,
            frequency=template.frequency.value,
            min_amount_cents=template.min_amount_cents,
            max_amount_cents=template.max_amount_cents,
            down_payment_percent=str(template.down_payment_percent),
            processing_fee_percent=str(template.processing_fee_percent),
            is_active=template.is_active,
            sort_order=template.sort_order,
            version=template.version,
            quote=QuoteDTO.from_quote(quote) if quote is not None else None,
        )

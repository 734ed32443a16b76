"""SQLAlchemy ORM models for financing entities."""

from datetime import datetime, date
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class FinancingTemplateModel(Base):
    """Persisted financing catalog entry."""

    __tablename__ = "financing_templates"

    template_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    number_of_payments: Mapped[int] = mapped_column(Integer, nullable=False)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    min_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    max_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    down_payment_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0"),
    )
    processing_fee_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0"),
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )

    __table_args__ = (
        Index("ix_financing_templates_active_sort", "is_active", "sort_order"),
        Index("ix_financing_templates_band", "min_amount_cents", "max_amount_cents"),
    )


class FinancingProfileModel(Base):
    """Persisted customer financing approval."""

    __tablename__ = "financing_profiles"

    customer_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_approved_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    billing_customer_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )


class InstallmentPlanModel(Base):
    """Persisted installment plan record."""

    __tablename__ = "installment_plans"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    customer_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    purchase_context_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    product_label: Mapped[str] = mapped_column(String(255), nullable=False)
    template_id: Mapped[str] = mapped_column(String(100), nullable=False)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    number_of_payments: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    down_payment_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processing_fee_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    financed_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    installment_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    payments_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_paid_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_payment_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_failed_payment_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    next_payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    external_billing_ref: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
    )
    billing_cancellation_pending: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
    activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    defaulted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancel_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    payments: Mapped[list["PaymentRecordModel"]] = relationship(
        "PaymentRecordModel",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="PaymentRecordModel.payment_number",
    )

    __table_args__ = (
        Index("ix_installment_plans_customer_status", "customer_id", "status"),
        Index("ix_installment_plans_status_next", "status", "next_payment_date"),
    )


class PaymentRecordModel(Base):
    """Persisted installment within a plan."""

    __tablename__ = "installment_payments"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    plan_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("installment_plans.id", ondelete="CASCADE"),
        nullable=False,
    )
    payment_number: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    external_payment_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)
    charged_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    plan: Mapped["InstallmentPlanModel"] = relationship(
        "InstallmentPlanModel",
        back_populates="payments",
    )

    __table_args__ = (
        UniqueConstraint("plan_id", "payment_number", name="uq_installment_payment_number"),
    )


class WebhookEventModel(Base):
    """Persisted inbound processor webhook event."""

    __tablename__ = "billing_webhook_events"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    event_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="received",
        index=True,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

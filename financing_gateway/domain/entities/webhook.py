"""Record of an inbound billing processor webhook event."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class WebhookEventStatus(str, Enum):
    """Processing status of an inbound webhook event."""

    RECEIVED = "received"
    PROCESSED = "processed"
    IGNORED = "ignored"
    FAILED = "failed"


@dataclass
class WebhookEventRecord:
    """
    An inbound processor event, persisted on receipt.

    The processor delivers at least once; the record keyed by `event_id`
    lets a redelivered event be dropped before it reaches a plan, and
    leaves an audit trail of what was ignored or failed.
    """

    event_id: str
    event_type: str
    payload: dict[str, Any]
    id: UUID = field(default_factory=uuid4)
    status: WebhookEventStatus = WebhookEventStatus.RECEIVED
    error_message: str | None = None
    received_at: datetime = field(default_factory=datetime.utcnow)
    processed_at: datetime | None = None

    @property
    def is_settled(self) -> bool:
        """Processed or deliberately ignored: nothing left to do."""
        return self.status in (WebhookEventStatus.PROCESSED, WebhookEventStatus.IGNORED)

    def mark_processed(self) -> None:
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = datetime.utcnow()

    def mark_ignored(self, reason: str | None = None) -> None:
        self.status = WebhookEventStatus.IGNORED
        self.error_message = reason
        self.processed_at = datetime.utcnow()

    def mark_failed(self, error: str) -> None:
        self.status = WebhookEventStatus.FAILED
        self.error_message = error[:1000]

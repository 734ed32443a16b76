"""Data transfer objects for inbound webhook handling."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class WebhookAck:
    """What happened to an inbound event. Always acknowledged to the processor."""

    event_id: str
    event_type: str
    outcome: str
    plan_id: Optional[str] = None
    detail: Optional[str] = None

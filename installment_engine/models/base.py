"""Base models shared across domains."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Event:
    """Standard change-event envelope.

    Emitted by the installment store after every committed mutation so that
    caches and aggregates keyed by contract or client can be invalidated.
    """

    event_id: str
    event_type: str  # entity.action (e.g., installment.paid)
    event_time: datetime
    source: str  # Service/system that generated
    subject: str  # Contract ID affected
    data: dict
    metadata: dict = field(default_factory=dict)

"""Domain models for normalized sipgate history events"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

class EventKind(str, Enum):
    """Kind of history entry, reduced to what the review distinguishes"""
    CALL = "call"
    SMS = "sms"
    FAX = "fax"
    OTHER = "other"

@dataclass(frozen=True)
class NormalizedEvent:
    """One validated history record"""
    occurred_at: datetime
    duration_minutes: float
    incoming: bool
    kind: EventKind
    counterparty: str

@dataclass
class ContactTally:
    """Running per-contact totals while a review is aggregated"""
    name: str
    count: int = 0
    total_minutes: float = 0.0

"""Year-in-review statistics over normalized history events"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sipgate_review.models.history import ContactTally, EventKind, NormalizedEvent
from sipgate_review.models.review import (
    BusiestHour,
    ContactStat,
    HourBucket,
    LongestCall,
    MonthBucket,
    Streak,
    Totals,
    YearReviewSummary,
)

logger = logging.getLogger(__name__)

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
TOP_CONTACTS_LIMIT = 3
_EPOCH = date(1970, 1, 1)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 away from zero for positive values"""
    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def day_key(moment: datetime) -> int:
    """Days since the Unix epoch of a moment's UTC calendar date"""
    return (moment.astimezone(timezone.utc).date() - _EPOCH).days


def date_from_day_key(key: int) -> str:
    return date.fromordinal(_EPOCH.toordinal() + key).isoformat()


def index_of_max(values: Sequence[int]) -> int:
    """Index of the first maximum; 0 for an empty sequence"""
    best = 0
    for index, value in enumerate(values):
        if value > values[best]:
            best = index
    return best


def compute_longest_streak(day_keys: Set[int]) -> Streak:
    """
    Longest run of consecutive day keys.

    The first maximal run wins; a later run of the same length does not
    replace it.
    """
    best_length, best_end = 0, None
    current_length = 0
    previous: Optional[int] = None

    for key in sorted(day_keys):
        if previous is not None and key == previous + 1:
            current_length += 1
        else:
            current_length = 1
        if current_length > best_length:
            best_length, best_end = current_length, key
        previous = key

    return Streak(
        days=best_length,
        ended_on=date_from_day_key(best_end) if best_end is not None else None,
    )


@dataclass
class _HistoryAccumulator:
    """Mutable tallies for one summarize_history call"""
    count: int = 0
    inbound: int = 0
    outbound: int = 0
    total_minutes: float = 0.0
    sms_received: int = 0
    fax_received: int = 0
    monthly: List[int] = field(default_factory=lambda: [0] * 12)
    hourly: List[int] = field(default_factory=lambda: [0] * 24)
    day_keys: Set[int] = field(default_factory=set)
    contacts: Dict[str, ContactTally] = field(default_factory=dict)
    longest_call_minutes: float = 0.0
    longest_call_contact: Optional[str] = None

    def add(self, event: NormalizedEvent) -> None:
        minutes = event.duration_minutes
        self.count += 1
        self.total_minutes += minutes

        if event.incoming:
            self.inbound += 1
            if event.kind is EventKind.SMS:
                self.sms_received += 1
            elif event.kind is EventKind.FAX:
                self.fax_received += 1
        else:
            self.outbound += 1

        moment = event.occurred_at.astimezone(timezone.utc)
        month_index = moment.month - 1
        if 0 <= month_index < 12:
            self.monthly[month_index] += 1
        self.hourly[moment.hour] += 1
        self.day_keys.add(day_key(moment))

        tally = self.contacts.get(event.counterparty)
        if tally is None:
            tally = self.contacts[event.counterparty] = ContactTally(name=event.counterparty)
        tally.count += 1
        tally.total_minutes += minutes

        # strictly greater: the first of equally long calls is kept
        if minutes > self.longest_call_minutes:
            self.longest_call_minutes = minutes
            self.longest_call_contact = event.counterparty

    def top_contacts(self) -> List[ContactStat]:
        # sorted() is stable, so equal counts keep first-seen order
        ranked = sorted(self.contacts.values(), key=lambda tally: tally.count, reverse=True)
        return [
            ContactStat(name=tally.name, count=tally.count, total_minutes=round(tally.total_minutes, 2))
            for tally in ranked[:TOP_CONTACTS_LIMIT]
        ]

    def longest_call(self) -> Optional[LongestCall]:
        if self.longest_call_contact is None:
            return None
        return LongestCall(
            minutes=round_half_up(self.longest_call_minutes),
            contact=self.longest_call_contact,
        )


def empty_year(year: int, error_message: Optional[str] = None) -> YearReviewSummary:
    """Zero-valued summary used for years without data and for failed builds"""
    return YearReviewSummary(
        year=year,
        has_data=False,
        totals=Totals(),
        monthly_breakdown=[MonthBucket(month=label, calls=0) for label in MONTH_LABELS],
        hourly_breakdown=[HourBucket(hour=hour, calls=0) for hour in range(24)],
        busiest_hour=BusiestHour(hour=0, count=0),
        longest_streak=Streak(days=0),
        top_contacts=[],
        longest_call=None,
        sms_received=0,
        fax_received=0,
        error_message=error_message,
    )


def summarize_history(events: Iterable[NormalizedEvent], year: int) -> YearReviewSummary:
    """Aggregate normalized events of one year into a YearReviewSummary"""
    acc = _HistoryAccumulator()
    for event in events:
        acc.add(event)

    if not acc.count:
        logger.info(f"No history events for {year}; returning empty review.")
        return empty_year(year)

    busiest = index_of_max(acc.hourly)
    summary = YearReviewSummary(
        year=year,
        has_data=True,
        totals=Totals(
            all=acc.count,
            inbound=acc.inbound,
            outbound=acc.outbound,
            minutes=round_half_up(acc.total_minutes),
        ),
        monthly_breakdown=[
            MonthBucket(month=label, calls=acc.monthly[index])
            for index, label in enumerate(MONTH_LABELS)
        ],
        hourly_breakdown=[HourBucket(hour=hour, calls=calls) for hour, calls in enumerate(acc.hourly)],
        busiest_hour=BusiestHour(hour=busiest, count=acc.hourly[busiest]),
        longest_streak=compute_longest_streak(acc.day_keys),
        top_contacts=acc.top_contacts(),
        longest_call=acc.longest_call(),
        sms_received=acc.sms_received,
        fax_received=acc.fax_received,
    )
    logger.info(f"Summarized {acc.count} events for {year}: {summary.totals}")
    return summary

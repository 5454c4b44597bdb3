"""Conversion of raw sipgate history records into normalized events"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sipgate_review.models.history import EventKind, NormalizedEvent

logger = logging.getLogger(__name__)

CONTACT_PLACEHOLDERS = (
    "An anonymous llama",
    "Mystery caller",
    "Unnamed legend",
    "Secret hotline",
    "A stealthy penguin",
    "Shadowy sparrow",
    "Incognito otter",
    "Low-key lynx",
    "Secretive badger",
    "Silent hedgehog",
)

_KIND_BY_TYPE = {
    'CALL': EventKind.CALL,
    'VOICEMAIL': EventKind.CALL,
    'SMS': EventKind.SMS,
    'FAX': EventKind.FAX,
}

_INCOMING_DIRECTIONS = {'INCOMING', 'MISSED_INCOMING'}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a history timestamp into a timezone-aware UTC datetime.

    Accepts datetime objects (naive ones are taken as UTC), ISO-8601 strings
    and epoch numbers in milliseconds. Returns None for anything else;
    an epoch of 0 counts as missing.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) and not value:
        return None
    try:
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, (int, float)):
            dt = datetime.fromtimestamp(value / 1000, timezone.utc)
        elif isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            if value.endswith('Z'):
                value = value[:-1] + '+00:00'
            dt = datetime.fromisoformat(value)
        else:
            return None
    except (ValueError, TypeError, OverflowError, OSError):
        return None
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def hash_string(value: str) -> int:
    """32-bit signed rolling hash (h * 31 + code unit) over the UTF-16 code units of a string"""
    data = value.encode('utf-16-le', errors='surrogatepass')
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def placeholder_for(identifier: Optional[str]) -> str:
    """Stable placeholder name for a record without a usable alias"""
    index = abs(hash_string(identifier or "")) % len(CONTACT_PLACEHOLDERS)
    return CONTACT_PLACEHOLDERS[index]


def is_incoming(record: Dict[str, Any]) -> bool:
    if 'incoming' in record:
        return bool(record['incoming'])
    return str(record.get('direction') or '').upper() in _INCOMING_DIRECTIONS


def event_kind(record: Dict[str, Any]) -> EventKind:
    return _KIND_BY_TYPE.get(str(record.get('type') or '').upper(), EventKind.OTHER)


def resolve_counterparty(record: Dict[str, Any], incoming: bool) -> str:
    """Alias of the other party, or a pseudonym derived from the record id"""
    alias = record.get('sourceAlias') if incoming else record.get('targetAlias')
    if isinstance(alias, str) and alias.strip():
        return alias.strip()
    identifier = record.get('id')
    return placeholder_for(str(identifier) if identifier is not None else "")


def normalize_record(record: Dict[str, Any]) -> Optional[NormalizedEvent]:
    """Normalize one raw record; None means the record is dropped"""
    if not isinstance(record, dict):
        return None
    created = parse_timestamp(record.get('created'))
    if created is None:
        return None

    last_modified = parse_timestamp(record.get('lastModified')) or created
    duration_minutes = max(0.0, (last_modified - created).total_seconds() / 60)
    incoming = is_incoming(record)

    return NormalizedEvent(
        occurred_at=created,
        duration_minutes=duration_minutes,
        incoming=incoming,
        kind=event_kind(record),
        counterparty=resolve_counterparty(record, incoming),
    )


def normalize_records(records: Iterable[Dict[str, Any]]) -> List[NormalizedEvent]:
    events = []
    dropped = 0
    for record in records:
        event = normalize_record(record)
        if event is None:
            dropped += 1
            continue
        events.append(event)
    if dropped:
        logger.warning(f"Dropped {dropped} history records with an unparseable creation timestamp")
    return events

"""
tests/test_normalizer.py
Raw sipgate history records -> NormalizedEvent.
"""

from datetime import datetime, timezone

import pytest

from sipgate_review.models.history import EventKind
from sipgate_review.normalizer import (
    CONTACT_PLACEHOLDERS,
    hash_string,
    normalize_record,
    normalize_records,
    parse_timestamp,
    placeholder_for,
    resolve_counterparty,
)


def _record(**overrides):
    record = {
        'id': 'h1',
        'created': '2024-03-05T10:15:00Z',
        'lastModified': '2024-03-05T10:45:00Z',
        'direction': 'INCOMING',
        'type': 'CALL',
        'sourceAlias': 'Alice',
        'targetAlias': 'Me',
    }
    record.update(overrides)
    return record


# ── TIMESTAMPS ───────────────────────────────────────────────

class TestParseTimestamp:

    def test_iso_string_with_z(self):
        assert parse_timestamp('2024-03-05T10:15:00Z') == datetime(2024, 3, 5, 10, 15, tzinfo=timezone.utc)

    def test_iso_string_with_offset_is_converted_to_utc(self):
        assert parse_timestamp('2024-03-05T12:15:00+02:00') == datetime(2024, 3, 5, 10, 15, tzinfo=timezone.utc)

    def test_naive_datetime_is_taken_as_utc(self):
        assert parse_timestamp(datetime(2024, 1, 1, 8, 0)).tzinfo == timezone.utc

    def test_epoch_milliseconds(self):
        assert parse_timestamp(1704067200000) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize('value', [None, '', '   ', 'yesterday', '2024-13-40', True, {'a': 1}, 0, 0.0])
    def test_unparseable_values(self, value):
        assert parse_timestamp(value) is None


# ── HASH / PLACEHOLDERS ──────────────────────────────────────

class TestHashString:

    def test_empty_string(self):
        assert hash_string('') == 0

    def test_small_values(self):
        assert hash_string('a') == 97
        assert hash_string('ab') == 97 * 31 + 98

    def test_wraps_to_signed_32_bit(self):
        assert hash_string('hello') == 99162322
        assert hash_string('polygenelubricants') == -2 ** 31

    def test_hashes_utf16_code_units(self):
        # U+1F600 is the surrogate pair D83D DE00
        assert hash_string('\U0001F600') == 0xD83D * 31 + 0xDE00
        assert hash_string('\u00e9') == 0xE9

    def test_min_int_placeholder_index(self):
        # abs(-2**31) % 10 == 8
        assert placeholder_for('polygenelubricants') == CONTACT_PLACEHOLDERS[8]

    def test_placeholder_is_stable(self):
        assert placeholder_for('abc123') == placeholder_for('abc123')
        assert placeholder_for('abc123') in CONTACT_PLACEHOLDERS

    def test_missing_identifier_still_named(self):
        assert placeholder_for(None) == CONTACT_PLACEHOLDERS[0]


# ── COUNTERPARTY ─────────────────────────────────────────────

class TestResolveCounterparty:

    def test_incoming_uses_source_alias(self):
        assert resolve_counterparty(_record(sourceAlias='  Alice  '), incoming=True) == 'Alice'

    def test_outgoing_uses_target_alias(self):
        assert resolve_counterparty(_record(targetAlias='Bob'), incoming=False) == 'Bob'

    def test_blank_alias_falls_back_to_placeholder(self):
        record = _record(id='abc123', sourceAlias='   ')
        name = resolve_counterparty(record, incoming=True)
        assert name == placeholder_for('abc123')
        assert name

    def test_repeated_runs_give_same_placeholder(self):
        record = _record(id='abc123', sourceAlias=None)
        names = {normalize_record(record).counterparty for _ in range(5)}
        assert len(names) == 1


# ── RECORDS ──────────────────────────────────────────────────

class TestNormalizeRecord:

    def test_full_record(self):
        event = normalize_record(_record())
        assert event.occurred_at == datetime(2024, 3, 5, 10, 15, tzinfo=timezone.utc)
        assert event.duration_minutes == pytest.approx(30.0)
        assert event.incoming is True
        assert event.kind is EventKind.CALL
        assert event.counterparty == 'Alice'

    def test_missing_last_modified_means_zero_duration(self):
        assert normalize_record(_record(lastModified=None)).duration_minutes == 0.0

    def test_negative_duration_is_floored(self):
        event = normalize_record(_record(lastModified='2024-03-05T10:00:00Z'))
        assert event.duration_minutes == 0.0

    def test_unparseable_created_is_dropped(self):
        assert normalize_record(_record(created='not a date')) is None
        assert normalize_record(_record(created=None)) is None

    def test_incoming_flag_takes_precedence(self):
        event = normalize_record(_record(incoming=False, direction='INCOMING', targetAlias='Bob'))
        assert event.incoming is False
        assert event.counterparty == 'Bob'

    @pytest.mark.parametrize('direction,incoming', [
        ('INCOMING', True), ('MISSED_INCOMING', True),
        ('OUTGOING', False), ('MISSED_OUTGOING', False), (None, False),
    ])
    def test_direction_strings(self, direction, incoming):
        assert normalize_record(_record(direction=direction)).incoming is incoming

    @pytest.mark.parametrize('raw_type,kind', [
        ('CALL', EventKind.CALL), ('VOICEMAIL', EventKind.CALL),
        ('SMS', EventKind.SMS), ('fax', EventKind.FAX), ('WEIRD', EventKind.OTHER), (None, EventKind.OTHER),
    ])
    def test_kinds(self, raw_type, kind):
        assert normalize_record(_record(type=raw_type)).kind is kind

    def test_normalize_records_drops_invalid(self):
        events = normalize_records([_record(), _record(created='??'), 'junk', _record(id='h2')])
        assert len(events) == 2

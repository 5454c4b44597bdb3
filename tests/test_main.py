"""
tests/test_main.py
Entry point: output file, sharing, exit codes.
"""

import json
from unittest.mock import patch

import pytest

from sipgate_review import __main__ as entry
from sipgate_review.aggregator import empty_year
from sipgate_review.models.review import Totals
from sipgate_review.services.sipgate import UnauthorizedError


@pytest.fixture
def configured(tmp_path, monkeypatch):
    monkeypatch.setattr(entry.settings, 'SIPGATE_TOKEN', 'token')
    monkeypatch.setattr(entry.settings, 'REVIEW_YEAR', 2024)
    monkeypatch.setattr(entry.settings, 'OUTPUT_DIR', str(tmp_path / 'out'))
    monkeypatch.setattr(entry.settings, 'DATABASE_URL', f"sqlite:///{tmp_path / 'shares.db'}")
    monkeypatch.setattr(entry.settings, 'SHARE_REVIEW', False)
    return tmp_path / 'out'


def _review():
    return empty_year(2024).model_copy(update={'has_data': True, 'totals': Totals(all=3, inbound=2, outbound=1)})


def test_writes_review(configured):
    with patch.object(entry, 'build_year_in_review', return_value=_review()) as build:
        assert entry.run() == 0

    assert build.call_args.args[0] == 'token'
    assert build.call_args.kwargs['year'] == 2024
    output = json.loads((configured / 'review.json').read_text(encoding='utf-8'))
    assert output['hasData'] is True
    assert output['totals']['all'] == 3
    assert 'share' not in output


def test_shares_review(configured, monkeypatch):
    monkeypatch.setattr(entry.settings, 'SHARE_REVIEW', True)
    with patch.object(entry, 'build_year_in_review', return_value=_review()):
        assert entry.run() == 0

    output = json.loads((configured / 'review.json').read_text(encoding='utf-8'))
    assert output['share']['url'] == f"/share/{output['share']['id']}"


def test_missing_token_exit_code(configured, monkeypatch):
    monkeypatch.setattr(entry.settings, 'SIPGATE_TOKEN', None)
    assert entry.run() == 2


def test_unauthorized_exit_code(configured):
    with patch.object(entry, 'build_year_in_review', side_effect=UnauthorizedError()):
        assert entry.run() == 2


def test_unexpected_error_exit_code(configured):
    with patch.object(entry, 'build_year_in_review', side_effect=RuntimeError("boom")):
        assert entry.run() == 1


def test_share_failure_still_writes_review(configured, monkeypatch):
    monkeypatch.setattr(entry.settings, 'SHARE_REVIEW', True)
    with patch.object(entry, 'build_year_in_review', return_value=_review()), \
            patch.object(entry.db, 'share_store', side_effect=RuntimeError("store down")):
        assert entry.run() == 0

    output = json.loads((configured / 'review.json').read_text(encoding='utf-8'))
    assert output['totals']['all'] == 3
    assert 'share' not in output

"""Year-in-review assembly: fetch, normalize and aggregate sipgate history"""
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sipgate_review.aggregator import empty_year, summarize_history
from sipgate_review.fetcher import FetchState, HistoryTransport, fetch_history_in_chunks
from sipgate_review.models.review import YearReviewSummary
from sipgate_review.normalizer import normalize_records
from sipgate_review.services.sipgate import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    SipgateAPI,
    SipgateAPIError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "sipgate is temporarily unavailable (503). Please try again shortly."
UNKNOWN_ERROR_MESSAGE = "Unknown sipgate error"


def get_year_bounds(year: int) -> Tuple[datetime, datetime]:
    """UTC window [Jan 1 of year, Jan 1 of the next year)"""
    return (
        datetime(year, 1, 1, tzinfo=timezone.utc),
        datetime(year + 1, 1, 1, tzinfo=timezone.utc),
    )


def describe_failure(error: Exception) -> str:
    """User-facing message for a failed review build"""
    message = str(error).strip()
    if (isinstance(error, SipgateAPIError) and error.status_code == 503) or "503" in message:
        return UNAVAILABLE_MESSAGE
    return message or UNKNOWN_ERROR_MESSAGE


class ReviewBuilder:
    """Builds one YearReviewSummary per call from a history transport"""

    def __init__(self, transport: HistoryTransport):
        self.transport = transport

    def build(self, year: int) -> YearReviewSummary:
        """
        Fetch the year's history and summarize it.

        UnauthorizedError propagates so the caller can re-authenticate. Every
        other failure is turned into an empty summary carrying an
        error_message.
        """
        window = get_year_bounds(year)
        logger.info(f"Building year in review for {year} ({window[0].isoformat()} - {window[1].isoformat()})")
        try:
            fetched = fetch_history_in_chunks(self.transport, window)
            if fetched.state is FetchState.PARTIAL_FAILURE and not fetched.records:
                # nothing to aggregate, report why instead of an empty year
                raise fetched.error
            events = normalize_records(fetched.records)
            logger.info(f"Normalized {len(events)} of {len(fetched.records)} history records")
            return summarize_history(events, year)
        except UnauthorizedError:
            raise
        except Exception as e:
            logger.exception(f"Failed to load history for review: {e}")
            return empty_year(year, error_message=describe_failure(e))


def build_year_in_review(access_token: str, year: Optional[int] = None,
                         base_url: str = DEFAULT_BASE_URL,
                         timeout: float = DEFAULT_TIMEOUT_SECONDS) -> Optional[YearReviewSummary]:
    """
    Build the review for one access token. Returns None without a token;
    the caller treats that as an authorization failure.
    """
    if not access_token:
        logger.warning("No sipgate access token supplied; cannot build review.")
        return None
    if year is None:
        year = datetime.now(timezone.utc).year

    api = SipgateAPI(token=access_token, base_url=base_url, timeout=timeout)
    try:
        return ReviewBuilder(api).build(year)
    finally:
        api.close()

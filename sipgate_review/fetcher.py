"""Sequential, capped pagination over the sipgate history endpoint"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple

from sipgate_review.services.sipgate import UnauthorizedError

logger = logging.getLogger(__name__)

# --- Constants for Fetching Control ---
HISTORY_CHUNK_SIZE = 50
MAX_HISTORY_ENTRIES = 6000
# ------------------------------------


class HistoryTransport(Protocol):
    def fetch_history_page(self, window: Tuple[datetime, datetime], limit: int, offset: int) -> List[Dict[str, Any]]:
        ...


class FetchState(str, Enum):
    FETCHING = "fetching"
    EXHAUSTED = "exhausted"
    CAPPED = "capped"
    UNAUTHORIZED = "unauthorized"
    PARTIAL_FAILURE = "partial_failure"


@dataclass
class FetchResult:
    """Records gathered by one pagination run and the state it ended in"""
    records: List[Dict[str, Any]] = field(default_factory=list)
    state: FetchState = FetchState.FETCHING
    pages: int = 0
    error: Optional[Exception] = None


def fetch_history_in_chunks(transport: HistoryTransport, window: Tuple[datetime, datetime],
                            chunk_size: int = HISTORY_CHUNK_SIZE,
                            max_entries: int = MAX_HISTORY_ENTRIES) -> FetchResult:
    """
    Fetch history pages one after another until the data runs out, the cap
    is reached or a request fails.

    Pages are requested strictly sequentially: each offset depends on the
    previous page. A rejected token raises UnauthorizedError; any other
    transport failure ends the run with the records gathered so far.
    """
    result = FetchResult()
    offset = 0

    while result.state is FetchState.FETCHING:
        if len(result.records) >= max_entries:
            result.state = FetchState.CAPPED
            break

        logger.info(f"Fetching history page {result.pages + 1} (offset {offset}, limit {chunk_size})...")
        try:
            page = transport.fetch_history_page(window, limit=chunk_size, offset=offset)
        except UnauthorizedError:
            result.state = FetchState.UNAUTHORIZED
            logger.error("History pagination rejected: unauthorized")
            raise
        except Exception as e:
            result.state = FetchState.PARTIAL_FAILURE
            result.error = e
            logger.warning(f"History pagination failed at offset {offset}: {e}. Keeping {len(result.records)} records.")
            break

        result.pages += 1
        result.records.extend(page)

        if len(page) < chunk_size:
            result.state = FetchState.EXHAUSTED
            break

        offset += chunk_size

    if len(result.records) > max_entries:
        result.records = result.records[:max_entries]
        result.state = FetchState.CAPPED

    logger.info(f"Finished fetching history: {len(result.records)} records in {result.pages} pages ({result.state.value}).")
    return result

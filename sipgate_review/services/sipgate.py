"""sipgate REST API integration service"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.sipgate.com/v2"
DEFAULT_TIMEOUT_SECONDS = 15


class SipgateAPIError(Exception):
    """A history request failed; status_code is None for network errors"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(SipgateAPIError):
    """The bearer token was rejected (HTTP 401)"""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


def _isoformat(value: datetime) -> str:
    return value.isoformat().replace('+00:00', 'Z')


class SipgateAPI:
    """Handles sipgate history API interactions"""

    def __init__(self, token: str, base_url: str = DEFAULT_BASE_URL,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Initialize with a sipgate access token
        """
        if not token:
            raise ValueError("sipgate token cannot be empty")
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Accept': 'application/json'
        })

    def fetch_history_page(self, window: Tuple[datetime, datetime], limit: int, offset: int) -> List[Dict[str, Any]]:
        """
        Get one page of history entries inside a time window

        Args:
            window: (from, to) datetimes, UTC
            limit: Maximum number of entries in the page
            offset: Number of entries to skip

        Raises:
            UnauthorizedError: token rejected
            SipgateAPIError: any other failed request
        """
        start, end = window
        params = {
            'from': _isoformat(start),
            'to': _isoformat(end),
            'limit': limit,
            'offset': offset,
        }
        response_data = self._make_request('history', params)
        if isinstance(response_data, dict) and isinstance(response_data.get('items'), list):
            return response_data['items']
        logger.warning(f"Unexpected response format for history page (offset {offset}): {response_data}")
        return []

    def _make_request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict:
        """Make one authenticated request; failures are raised, never retried"""
        url = f'{self.base_url}/{endpoint}'
        try:
            logger.debug(f"Making request to {url} with {params}")
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 401:
                logger.error(f"sipgate token is invalid or expired (401) for {url}.")
                raise UnauthorizedError() from e
            logger.error(f"HTTP error ({status}) for {url}: {e}")
            raise SipgateAPIError(f"sipgate request failed with status {status}", status_code=status) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error for {url}: {e}")
            raise SipgateAPIError(f"sipgate request failed: {e}") from e

        try:
            json_response = response.json()
        except ValueError:
            logger.error(f"Failed to decode JSON response from {url}. Status: {response.status_code}. Response text: {response.text[:200]}")
            return {}
        return json_response if isinstance(json_response, dict) else {}

    def close(self) -> None:
        self.session.close()

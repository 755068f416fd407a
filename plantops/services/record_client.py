import time
import logging
import requests
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class RecordStoreError(RuntimeError):
    """Raised when the record store cannot be reached after all retries."""


class RecordClient(object):
    """
    A small client for the hosted record store's REST API.

    Collections are read from `{url}/api/collections/{name}/records`, which
    returns paged JSON bodies ({"page", "totalPages", "items", ...}).
    Failed requests are retried with a linearly growing delay.
    """
    def __init__(self, url, token=None, timeout=10, per_page=500,
                 max_retries=3, retry_delay=1, session=None):
        if not url:
            raise ValueError("Record store URL is required.")
        self._url = url.rstrip('/')
        self._timeout = int(timeout or 10)
        self._per_page = int(per_page or 500)
        self._max_retries = max(1, int(max_retries or 3))
        self._retry_delay = retry_delay if retry_delay is not None else 1
        self.session = session or requests.Session()
        if token:
            self.session.headers["Authorization"] = token

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a JSON document, retrying on connection and HTTP errors."""
        url = f"{self._url}{path}"
        last_error = None

        for attempt in range(1, self._max_retries + 1):
            try:
                response = self.session.get(url, params=params, timeout=self._timeout)
                response.raise_for_status()
                return response.json()
            except (requests.RequestException, ValueError) as e:
                last_error = e
                logger.warning(f"!! Record store request failed ({attempt}/{self._max_retries}): {url} - {e}")
                if attempt < self._max_retries:
                    time.sleep(self._retry_delay * attempt)

        logger.critical(f"!! Record store error: exceeded {self._max_retries} attempts for {url}")
        raise RecordStoreError(f"Request to {url} failed: {last_error}")

    def list_records(self, collection: str, filter: Optional[str] = None,
                     fields: Optional[str] = None, sort: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetches every record of a collection matching `filter`, all pages."""
        params: Dict[str, Any] = {'perPage': self._per_page}
        if filter:
            params['filter'] = filter
        if fields:
            params['fields'] = fields
        if sort:
            params['sort'] = sort

        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            params['page'] = page
            body = self._get(f"/api/collections/{collection}/records", params=dict(params))
            items.extend(body.get('items') or [])
            total_pages = int(body.get('totalPages') or 1)
            if page >= total_pages:
                break
            page += 1

        logger.debug(f"Fetched {len(items)} record(s) from '{collection}' in {page} page(s)")
        return items

    def is_connected(self) -> bool:
        """Checks that the record store answers its health endpoint."""
        try:
            self._get("/api/health")
            logger.info(f"Record store connection check: OK ({self._url})")
            return True
        except RecordStoreError as e:
            logger.error(f"!! Record store connection check error: {e}")
            return False

    def close(self):
        self.session.close()

"""
Record store client for a REST backend.
"""

import asyncio
import logging
from typing import Any, Dict, List
from urllib.parse import quote

import requests

from ..domain.exceptions import RecordNotFoundError, StorageError

logger = logging.getLogger(__name__)


class HttpRecordStore:
    """
    Client for a REST API exposing per-owner record collections.

    Resources:
        GET    {base_url}/users/{owner_id}/{collection}
        PUT    {base_url}/users/{owner_id}/{collection}/{record_id}
        DELETE {base_url}/users/{owner_id}/{collection}/{record_id}

    Adding and updating both PUT the full record; an update additionally
    expects the record to exist (404 -> RecordNotFoundError).
    Listing expects a JSON list, or an object holding one under "records".
    Any other body, and a 404 on a collection, raises StorageError: an
    unreadable collection must never look like an owner without bookings.
    Deleting a record that is already gone is a no-op.
    Blocking requests run in a worker thread so collections can be fetched
    concurrently.
    """

    def __init__(self, base_url: str, api_token: str | None = None, timeout_seconds: float = 30.0):
        """
        Initialize the client.

        Args:
            base_url: Root URL of the records API
            api_token: Optional bearer token
            timeout_seconds: Per-request timeout
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.headers = {"Content-Type": "application/json"}
        if api_token:
            self.headers["Authorization"] = f"Bearer {api_token}"

    async def list_records(self, owner_id: str, collection: str) -> List[Dict[str, Any]]:
        data = await asyncio.to_thread(self._request, "GET", self._url(owner_id, collection))

        if data is None:
            return []
        if isinstance(data, dict):
            if "records" not in data:
                raise StorageError(
                    f"Unexpected response for {collection}: object without 'records'"
                )
            data = data["records"]
        if not isinstance(data, list):
            raise StorageError(f"Unexpected response for {collection}: expected a list")

        return data

    async def add_record(self, owner_id: str, collection: str, record: Dict[str, Any]) -> None:
        url = self._url(owner_id, collection, record["id"])
        await asyncio.to_thread(self._request, "PUT", url, record)

    async def update_record(
        self,
        owner_id: str,
        collection: str,
        record_id: str,
        record: Dict[str, Any],
    ) -> None:
        url = self._url(owner_id, collection, record_id)
        await asyncio.to_thread(
            self._request, "PUT", url, {**record, "id": record_id}, True
        )

    async def delete_record(self, owner_id: str, collection: str, record_id: str) -> None:
        url = self._url(owner_id, collection, record_id)
        await asyncio.to_thread(self._request, "DELETE", url)

    def _url(self, owner_id: str, collection: str, record_id: str | None = None) -> str:
        parts = [self.base_url, "users", quote(owner_id, safe=""), quote(collection, safe="")]
        if record_id is not None:
            parts.append(quote(str(record_id), safe=""))
        return "/".join(parts)

    def _request(
        self,
        method: str,
        url: str,
        payload: Dict[str, Any] | None = None,
        must_exist: bool = False,
    ) -> Any:
        """
        Perform one request and decode the JSON body.

        Raises:
            RecordNotFoundError: If ``must_exist`` is set and the server answers 404
            StorageError: On connection failures, error statuses or invalid JSON
        """
        try:
            response = requests.request(
                method,
                url,
                headers=self.headers,
                json=payload,
                timeout=self.timeout_seconds,
            )

            if response.status_code == 404:
                if must_exist:
                    raise RecordNotFoundError(f"No record at {url}")
                if method == "DELETE":
                    logger.debug("DELETE %s returned 404, nothing to delete", url)
                    return None
                if method == "GET":
                    raise StorageError(f"Record collection not found at {url}")

            response.raise_for_status()

        except requests.exceptions.RequestException as e:
            raise StorageError(f"Record store request {method} {url} failed: {e}") from e

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise StorageError(f"Invalid JSON from record store at {url}: {e}") from e

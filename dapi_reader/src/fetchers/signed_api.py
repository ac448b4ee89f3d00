"""Signed API fetcher.

Endpoint: https://signed-api.api3.org/public-oev/{airnode}
Response: {"count": N, "data": {"<beaconId>": {"airnode", "templateId",
          "timestamp", "encodedValue", "signature"}, ...}}

Only the record values matter; their keys are internal identifiers and their
order is not meaningful.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .base import BaseFetcher, FetcherResponseError

logger = logging.getLogger(__name__)

DEFAULT_SIGNED_API_URL = "https://signed-api.api3.org/public-oev"

# Beacon timestamps are stored on-chain as uint32
MAX_TIMESTAMP = 2**32 - 1


@dataclass(frozen=True)
class SignedUpdate:
    """One signed data point published by an Airnode.

    :ivar template_id: 0x-prefixed template ID the value was signed under.
    :ivar timestamp: Unix timestamp in seconds.
    :ivar encoded_value: Value as an integer string (decimal or 0x hex), 18 decimals.
    :ivar signature: Airnode signature (not verified).
    """

    template_id: str
    timestamp: int
    encoded_value: str
    signature: str = ""

    @classmethod
    def from_dict(cls, record: Any) -> SignedUpdate:
        """Parse a Signed API record.

        :param record: Decoded JSON object for one update.
        :returns: SignedUpdate instance.
        :raises FetcherResponseError: If required fields are missing or malformed.
        """
        if not isinstance(record, dict):
            raise FetcherResponseError(f"Update is not an object: {record!r}")
        try:
            template_id = record["templateId"]
            timestamp = int(record["timestamp"])
            encoded_value = str(record["encodedValue"])
        except KeyError as e:
            raise FetcherResponseError(f"Update is missing field {e}") from e
        except (ValueError, TypeError) as e:
            raise FetcherResponseError(f"Invalid update timestamp: {e}") from e

        if not 0 <= timestamp <= MAX_TIMESTAMP:
            raise FetcherResponseError(f"Update timestamp out of range: {timestamp}")

        if not isinstance(template_id, str):
            raise FetcherResponseError(f"Invalid templateId: {template_id!r}")

        return cls(
            template_id=template_id,
            timestamp=timestamp,
            encoded_value=encoded_value,
            signature=str(record.get("signature", "")),
        )


class SignedApiFetcher(BaseFetcher):
    """Fetcher for the public OEV Signed API.

    No API key required. Errors are raised rather than swallowed so the caller
    can record them against the Beacon.

    :ivar base_url: Endpoint prefix; the Airnode address is appended.
    """

    name = "signed-api"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize with an optional custom endpoint.

        :param base_url: Signed API endpoint (default: public OEV endpoint).
        :param timeout: Request timeout in seconds.
        :param client: Optional HTTP client.
        """
        super().__init__(timeout=timeout, client=client)
        self.base_url = (base_url or DEFAULT_SIGNED_API_URL).rstrip("/")

    async def fetch(self, airnode: str) -> list[SignedUpdate]:
        """Fetch all signed updates of an Airnode.

        :param airnode: Checksummed Airnode address.
        :returns: Signed updates in response order.
        :raises FetcherHTTPError: On non-2xx response.
        :raises FetcherResponseError: If the body is not a valid update document.
        :raises FetcherError: On network/timeout errors.
        """
        url = f"{self.base_url}/{airnode}"
        response = await self._get(url)

        try:
            body = response.json()
        except ValueError as e:
            raise FetcherResponseError(f"Invalid JSON from {url}: {e}") from e

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise FetcherResponseError(f"Response from {url} has no 'data' object")

        updates = [SignedUpdate.from_dict(record) for record in data.values()]
        logger.debug(f"[{airnode}] Received {len(updates)} signed updates")
        return updates

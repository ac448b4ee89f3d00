"""
Signed update fetchers.

Usage:
    from dapi_reader.src.fetchers import SignedApiFetcher

    fetcher = SignedApiFetcher()
    updates = await fetcher.fetch("0xc52EeA00154B4fF1EbbF8Ba39FDe37F1AC3B9Fd4")
"""

from .base import (
    BaseFetcher,
    FetcherError,
    FetcherHTTPError,
    FetcherResponseError,
)
from .signed_api import (
    DEFAULT_SIGNED_API_URL,
    MAX_TIMESTAMP,
    SignedApiFetcher,
    SignedUpdate,
)

__all__ = [
    # Base classes
    "BaseFetcher",
    "FetcherError",
    "FetcherHTTPError",
    "FetcherResponseError",
    # Signed API
    "DEFAULT_SIGNED_API_URL",
    "MAX_TIMESTAMP",
    "SignedApiFetcher",
    "SignedUpdate",
]

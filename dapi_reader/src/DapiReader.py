"""DapiReader: Main orchestrator for reading a dAPI from its Beacons.

This module resolves a dAPI to its Beacons, fetches each Beacon's latest
signed OEV update from the Signed API and aggregates the decoded prices.

Architecture:
    - A single on-chain resolution per run; resolution errors are fatal
    - Per-Beacon read: derive OEV template ID, fetch, select latest, decode
    - Beacons are read concurrently, each under its own timeout
    - Each Beacon yields a DecodedPrice or a SourceFailure; failures never
      affect other Beacons
    - Decoded prices are aggregated into median, mean and sample count
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from .fetchers import BaseFetcher, SignedApiFetcher
from .PriceAggregator import AggregateResult, aggregate
from .UpdateSelector import DecodedPrice, select_latest

if TYPE_CHECKING:
    from .DapiName import DapiName
    from .FeedDescriptor import FeedDescriptor, SourceRef
    from .FeedResolver import FeedResolver

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 5.0

FailureReason = Literal["fetch_error", "timeout", "no_data"]


@dataclass(frozen=True)
class SourceFailure:
    """A Beacon that did not produce a price.

    :ivar source: Beacon that failed.
    :ivar reason: "fetch_error", "timeout" or "no_data".
    :ivar message: Human-readable detail.
    """

    source: SourceRef
    reason: FailureReason
    message: str


@dataclass(frozen=True)
class DapiReading:
    """Outcome of reading a dAPI.

    :ivar descriptor: Resolved data feed and Beacons.
    :ivar prices: Decoded prices in Beacon order.
    :ivar failures: Beacons without a price, in Beacon order.
    :ivar result: Aggregate over prices.
    """

    descriptor: FeedDescriptor
    prices: list[DecodedPrice] = field(default_factory=list)
    failures: list[SourceFailure] = field(default_factory=list)
    result: AggregateResult = field(default_factory=AggregateResult.empty)


class DapiReader:
    """Reads a dAPI's Beacons and aggregates their latest OEV prices.

    :ivar resolver: Resolves dAPI names to Beacons.
    :ivar fetcher: Fetches signed updates per Airnode.
    :ivar fetch_timeout: Per-Beacon timeout in seconds.
    :ivar concurrent: Read Beacons concurrently (True) or one at a time.
    """

    def __init__(
        self,
        resolver: FeedResolver,
        fetcher: BaseFetcher | None = None,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        concurrent: bool = True,
    ) -> None:
        """Initialize the reader.

        :param resolver: Resolver for dAPI names.
        :param fetcher: Signed update fetcher (default: public OEV Signed API).
        :param fetch_timeout: Timeout for reading one Beacon (default: 5.0).
        :param concurrent: Whether to read Beacons concurrently (default: True).
        :raises ValueError: If fetch_timeout is not positive.
        """
        if fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")

        self.resolver = resolver
        self.fetcher = fetcher or SignedApiFetcher(timeout=fetch_timeout)
        self.fetch_timeout = fetch_timeout
        self.concurrent = concurrent

    async def read_source(self, source: SourceRef) -> DecodedPrice | SourceFailure:
        """Read the latest OEV price of a single Beacon.

        Never raises for per-Beacon problems; they are returned as SourceFailure.

        :param source: Beacon to read.
        :returns: DecodedPrice, or SourceFailure describing why there is none.
        """
        oev_template_id = source.oev_template_id
        logger.debug(
            f"[{source.airnode}] template ID {source.template_id_hex}, "
            f"OEV template ID 0x{oev_template_id.hex()}"
        )

        try:
            updates = await asyncio.wait_for(
                self.fetcher.fetch(source.airnode),
                timeout=self.fetch_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[{source.airnode}] Timeout fetching signed updates")
            return SourceFailure(
                source, "timeout", f"No response within {self.fetch_timeout}s"
            )
        except Exception as e:
            logger.warning(f"[{source.airnode}] Error fetching signed updates: {e}")
            return SourceFailure(source, "fetch_error", str(e))

        latest = select_latest(updates, oev_template_id)
        if latest is None:
            logger.warning(
                f"[{source.airnode}] No matching updates for OEV template ID "
                f"0x{oev_template_id.hex()}"
            )
            return SourceFailure(source, "no_data", "No matching updates found")

        try:
            price = DecodedPrice.from_update(source, latest)
        except ValueError as e:
            logger.warning(f"[{source.airnode}] Invalid update: {e}")
            return SourceFailure(source, "fetch_error", f"Invalid update: {e}")

        logger.debug(
            f"[{source.airnode}] price={price.price} timestamp={price.timestamp}"
        )
        return price

    async def read_descriptor(self, descriptor: FeedDescriptor) -> DapiReading:
        """Read every Beacon of a resolved descriptor and aggregate.

        :param descriptor: Resolved data feed.
        :returns: DapiReading with prices, failures and the aggregate.
        """
        if self.concurrent:
            outcomes = await asyncio.gather(
                *(self.read_source(source) for source in descriptor.sources)
            )
        else:
            outcomes = [await self.read_source(source) for source in descriptor.sources]

        prices = [o for o in outcomes if isinstance(o, DecodedPrice)]
        failures = [o for o in outcomes if isinstance(o, SourceFailure)]
        result = aggregate(p.price for p in prices)

        if result.success:
            logger.info(
                f"{descriptor.dapi_name}: median={result.median} mean={result.mean} "
                f"from {result.sample_count}/{len(descriptor)} beacons"
            )
        else:
            logger.warning(
                f"{descriptor.dapi_name}: no beacon produced a price "
                f"({len(failures)} failed)"
            )

        return DapiReading(
            descriptor=descriptor,
            prices=prices,
            failures=failures,
            result=result,
        )

    async def read(self, dapi_name: str | DapiName) -> DapiReading:
        """Resolve a dAPI and read all of its Beacons.

        :param dapi_name: dAPI name (e.g., "ETH/USD").
        :returns: DapiReading for the dAPI.
        :raises ResolutionError: If the dAPI cannot be resolved.
        :raises ValueError: If the name cannot be encoded as bytes32.
        """
        descriptor = await self.resolver.resolve(dapi_name)
        return await self.read_descriptor(descriptor)

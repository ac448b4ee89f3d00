#!/usr/bin/env python3
"""dAPI Reader.

Resolves a dAPI to its Beacons on-chain, fetches the latest signed OEV update
of every Beacon from the Signed API, and reports the decoded prices together
with their median and mean.

Run with ``python -m dapi_reader.main --dapi-name ETH/USD``.
"""

import argparse
import asyncio
import logging
import os
import sys

from .src.ContractUtility import DEFAULT_CONTRACT_ADDRESSES
from .src.DapiName import DapiName
from .src.DapiReader import DEFAULT_FETCH_TIMEOUT, DapiReader, DapiReading
from .src.FeedResolver import FeedResolver, ResolutionError
from .src.fetchers import DEFAULT_SIGNED_API_URL, BaseFetcher, SignedApiFetcher

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def format_usd(value: float) -> str:
    """Format a price as US dollars with thousands separators and 2 decimals.

    :param value: Price in USD.
    :returns: Formatted string, e.g. "$3,012.45".
    """
    return f"${value:,.2f}"


def log_reading(reading: DapiReading) -> None:
    """Log a human-readable summary of a dAPI reading.

    :param reading: Outcome of DapiReader.read().
    """
    descriptor = reading.descriptor
    name = DapiName(descriptor.dapi_name)
    prices = {p.source: p for p in reading.prices}
    failures = {f.source: f for f in reading.failures}

    logger.info(f"Encoded dAPI Name:  0x{name.encode_bytes32().hex()}")
    logger.info(f"dAPI Name Hash:     0x{name.compute_name_hash().hex()}")
    logger.info(f"Data Feed ID:       {descriptor.feed_id_hex}")
    logger.info(f"Beacons for {descriptor.dapi_name}:")

    for i, source in enumerate(descriptor.sources, start=1):
        logger.info(f"Beacon {i}:")
        logger.info(f"  Airnode:          {source.airnode}")
        logger.info(f"  Template ID:      {source.template_id_hex}")
        logger.info(f"  OEV Template ID:  0x{source.oev_template_id.hex()}")

        price = prices.get(source)
        if price is not None:
            logger.info(f"  Timestamp:        {price.observed_at.isoformat()}")
            logger.info(f"  Encoded Value:    {price.encoded_value}")
            logger.info(f"  Decoded Value:    {format_usd(price.price)}")
        elif source in failures:
            failure = failures[source]
            logger.info(f"  No price ({failure.reason}): {failure.message}")

    result = reading.result
    logger.info("=" * 60)
    if result.success:
        logger.info(f"Median:             {format_usd(result.median)}")
        logger.info(f"Mean:               {format_usd(result.mean)}")
    else:
        logger.info("Median:             no data")
        logger.info("Mean:               no data")
    logger.info(f"Sample Count:       {result.sample_count}/{len(descriptor)}")
    logger.info("=" * 60)


async def run(
    dapi_name: str,
    resolver: FeedResolver,
    fetcher: BaseFetcher,
    fetch_timeout: float,
    concurrent: bool,
) -> DapiReading:
    """Read a dAPI once and release the RPC and shared HTTP clients.

    :param dapi_name: dAPI name to read.
    :param resolver: Configured resolver.
    :param fetcher: Configured signed update fetcher.
    :param fetch_timeout: Per-Beacon timeout in seconds.
    :param concurrent: Whether to read Beacons concurrently.
    :returns: DapiReading for the dAPI.
    """
    reader = DapiReader(
        resolver=resolver,
        fetcher=fetcher,
        fetch_timeout=fetch_timeout,
        concurrent=concurrent,
    )
    try:
        return await reader.read(dapi_name)
    finally:
        try:
            await resolver.close()
        finally:
            await BaseFetcher.close_shared_client()


def main() -> None:
    """Main entry point for the dAPI Reader CLI."""
    parser = argparse.ArgumentParser(
        description="dAPI Reader: Beacon-level OEV prices for an API3 dAPI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Known networks:
  {', '.join(sorted(DEFAULT_CONTRACT_ADDRESSES))}

Examples:
  # ETH/USD on Arbitrum One
  python -m dapi_reader.main --dapi-name ETH/USD

  # Another chain: RPC URL and contract addresses are required
  python -m dapi_reader.main --dapi-name BTC/USD \\
      --network mychain --rpc-url https://rpc.example.org \\
      --api3-server-address 0x... --airseeker-registry-address 0x...

Environment variables (CLI args take precedence):
  DAPI_NAME, NETWORK, RPC_URL, API3_SERVER_V1_ADDRESS,
  AIRSEEKER_REGISTRY_ADDRESS, SIGNED_API_URL, FETCH_TIMEOUT
""",
    )

    parser.add_argument(
        "--dapi-name",
        dest="dapi_name",
        type=str,
        help="dAPI name to read (default: ETH/USD)",
        default=os.environ.get("DAPI_NAME") or "ETH/USD",
    )

    parser.add_argument(
        "--network",
        type=str,
        help="Network to read from (default: arbitrum)",
        default=os.environ.get("NETWORK") or "arbitrum",
    )

    parser.add_argument(
        "--rpc-url",
        dest="rpc_url",
        type=str,
        help="RPC URL overriding the network default",
        default=os.environ.get("RPC_URL"),
    )

    parser.add_argument(
        "--api3-server-address",
        dest="api3_server_address",
        type=str,
        help="Address of the Api3ServerV1 contract",
        default=os.environ.get("API3_SERVER_V1_ADDRESS"),
    )

    parser.add_argument(
        "--airseeker-registry-address",
        dest="airseeker_registry_address",
        type=str,
        help="Address of the AirseekerRegistry contract",
        default=os.environ.get("AIRSEEKER_REGISTRY_ADDRESS"),
    )

    parser.add_argument(
        "--signed-api-url",
        dest="signed_api_url",
        type=str,
        help=f"Signed API endpoint (default: {DEFAULT_SIGNED_API_URL})",
        default=os.environ.get("SIGNED_API_URL") or DEFAULT_SIGNED_API_URL,
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help=f"Timeout for reading one Beacon in seconds (default: {DEFAULT_FETCH_TIMEOUT})",
        default=os.environ.get("FETCH_TIMEOUT") or str(DEFAULT_FETCH_TIMEOUT),
    )

    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Read Beacons one at a time instead of concurrently",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    if args.fetch_timeout <= 0:
        parser.error("--fetch-timeout must be positive")

    try:
        DapiName(args.dapi_name)
    except ValueError as e:
        parser.error(str(e))

    has_defaults = args.network in DEFAULT_CONTRACT_ADDRESSES
    if not has_defaults and not (args.api3_server_address and args.airseeker_registry_address):
        parser.error(
            f"No contract addresses configured for network {args.network}; "
            "pass --api3-server-address and --airseeker-registry-address"
        )

    # Log configuration
    logger.info("=" * 60)
    logger.info("dAPI Reader - Beacon OEV Prices")
    logger.info("=" * 60)
    logger.info(f"dAPI:               {args.dapi_name}")
    logger.info(f"Network:            {args.network}")
    if args.rpc_url:
        logger.info(f"RPC URL:            {args.rpc_url}")
    logger.info(f"Signed API:         {args.signed_api_url}")
    logger.info(f"Fetch Timeout:      {args.fetch_timeout}s")
    logger.info(f"Mode:               {'sequential' if args.sequential else 'concurrent'}")
    logger.info("=" * 60)

    try:
        resolver = FeedResolver.from_network(
            args.network,
            rpc_url=args.rpc_url,
            api3_server_address=args.api3_server_address,
            airseeker_registry_address=args.airseeker_registry_address,
        )
        fetcher = SignedApiFetcher(
            base_url=args.signed_api_url,
            timeout=args.fetch_timeout,
        )
        reading = asyncio.run(
            run(
                args.dapi_name,
                resolver=resolver,
                fetcher=fetcher,
                fetch_timeout=args.fetch_timeout,
                concurrent=not args.sequential,
            )
        )
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        return
    except ResolutionError as e:
        logger.error(f"Failed to resolve {args.dapi_name}: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)

    log_reading(reading)


if __name__ == "__main__":
    main()

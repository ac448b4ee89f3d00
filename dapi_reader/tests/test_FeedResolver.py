"""Unit tests for FeedResolver."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode as abi_encode
from web3 import Web3

from dapi_reader.src.DapiName import DapiName
from dapi_reader.src.FeedResolver import (
    FeedResolver,
    ResolutionError,
    decode_feed_details,
)

AIRNODE_1 = "0x" + "a1" * 20
AIRNODE_2 = "0x" + "b2" * 20
TEMPLATE_1 = b"\x11" * 32
TEMPLATE_2 = b"\x22" * 32
FEED_ID = b"\xfe" * 32


def encode_details(airnodes: list[str], template_ids: list[bytes]) -> bytes:
    return abi_encode(["address[]", "bytes32[]"], [airnodes, template_ids])


def make_contract(function_name: str, **call_kwargs) -> MagicMock:
    """Build a contract mock whose function(...).call() is awaitable."""
    contract = MagicMock()
    function = getattr(contract.functions, function_name)
    function.return_value.call = AsyncMock(**call_kwargs)
    return contract


def make_resolver(feed_id=FEED_ID, details=b"", feed_id_error=None, details_error=None):
    api3_server = make_contract(
        "dapiNameHashToDataFeedId", return_value=feed_id, side_effect=feed_id_error
    )
    registry = make_contract(
        "dataFeedIdToDetails", return_value=details, side_effect=details_error
    )
    return FeedResolver(api3_server=api3_server, airseeker_registry=registry)


class TestDecodeFeedDetails:
    """Test decode_feed_details()."""

    def test_beacon_set(self) -> None:
        """Arrays should be paired positionally into SourceRefs."""
        details = encode_details([AIRNODE_1, AIRNODE_2], [TEMPLATE_1, TEMPLATE_2])
        sources = decode_feed_details(details)

        assert len(sources) == 2
        assert sources[0].airnode == Web3.to_checksum_address(AIRNODE_1)
        assert sources[0].template_id == TEMPLATE_1
        assert sources[1].airnode == Web3.to_checksum_address(AIRNODE_2)
        assert sources[1].template_id == TEMPLATE_2

    def test_single_beacon(self) -> None:
        """A 64-byte (address, bytes32) blob should decode to one Beacon."""
        details = abi_encode(["address", "bytes32"], [AIRNODE_1, TEMPLATE_1])
        sources = decode_feed_details(details)

        assert len(sources) == 1
        assert sources[0].template_id == TEMPLATE_1

    def test_empty_arrays(self) -> None:
        """A Beacon set with no Beacons should decode to no sources."""
        assert decode_feed_details(encode_details([], [])) == ()

    def test_empty_blob(self) -> None:
        """An empty blob should be a resolution error."""
        with pytest.raises(ResolutionError, match="empty"):
            decode_feed_details(b"")

    def test_garbage_blob(self) -> None:
        """An undecodable blob should be a resolution error."""
        with pytest.raises(ResolutionError, match="Failed to decode"):
            decode_feed_details(b"\x01" * 10)

    def test_mismatched_lengths(self) -> None:
        """Arrays of different lengths should be a resolution error."""
        details = encode_details([AIRNODE_1, AIRNODE_2], [TEMPLATE_1])
        with pytest.raises(ResolutionError, match="2 airnodes but 1 template IDs"):
            decode_feed_details(details)


class TestFeedResolverResolve:
    """Test FeedResolver.resolve()."""

    @pytest.mark.asyncio
    async def test_resolve(self) -> None:
        """Resolution should chain both lookups and decode the details."""
        details = encode_details([AIRNODE_1, AIRNODE_2], [TEMPLATE_1, TEMPLATE_2])
        resolver = make_resolver(details=details)

        descriptor = await resolver.resolve("ETH/USD")

        assert descriptor.dapi_name == "ETH/USD"
        assert descriptor.feed_id == FEED_ID
        assert len(descriptor) == 2

        resolver.api3_server.functions.dapiNameHashToDataFeedId.assert_called_once_with(
            DapiName("ETH/USD").compute_name_hash()
        )
        resolver.airseeker_registry.functions.dataFeedIdToDetails.assert_called_once_with(
            FEED_ID
        )

    @pytest.mark.asyncio
    async def test_unregistered_name(self) -> None:
        """The zero feed ID should abort before the details lookup."""
        resolver = make_resolver(feed_id=b"\x00" * 32)

        with pytest.raises(ResolutionError, match="not registered"):
            await resolver.resolve("NOPE/USD")
        resolver.airseeker_registry.functions.dataFeedIdToDetails.assert_not_called()

    @pytest.mark.asyncio
    async def test_feed_id_call_fails(self) -> None:
        """RPC errors on the first lookup should be resolution errors."""
        resolver = make_resolver(feed_id_error=ConnectionError("rpc down"))

        with pytest.raises(ResolutionError, match="rpc down"):
            await resolver.resolve("ETH/USD")

    @pytest.mark.asyncio
    async def test_details_call_fails(self) -> None:
        """RPC errors on the second lookup should be resolution errors."""
        resolver = make_resolver(details_error=ConnectionError("rpc down"))

        with pytest.raises(ResolutionError, match="dataFeedIdToDetails failed"):
            await resolver.resolve("ETH/USD")

    @pytest.mark.asyncio
    async def test_empty_details(self) -> None:
        """Empty details for a set feed ID should be a resolution error."""
        resolver = make_resolver(details=b"")

        with pytest.raises(ResolutionError, match="empty"):
            await resolver.resolve("ETH/USD")

    @pytest.mark.asyncio
    async def test_name_too_long(self) -> None:
        """Names that do not fit bytes32 should fail before any call."""
        resolver = make_resolver()

        with pytest.raises(ValueError, match="at most 31 bytes"):
            await resolver.resolve("X" * 40)
        resolver.api3_server.functions.dapiNameHashToDataFeedId.assert_not_called()


class TestFeedResolverFromNetwork:
    """Test FeedResolver.from_network()."""

    def test_unknown_network_without_addresses(self) -> None:
        """Unknown networks need explicit contract addresses."""
        with pytest.raises(ValueError, match="No contract addresses"):
            FeedResolver.from_network("unknown-chain")

    def test_arbitrum_defaults(self) -> None:
        """Arbitrum should use the predeployed contract addresses."""
        resolver = FeedResolver.from_network("arbitrum")

        assert resolver.api3_server.address == "0x709944a48cAf83535e43471680fDA4905FB3920a"
        assert (
            resolver.airseeker_registry.address
            == "0x7B42df2563E128Ae3F68e2CFB1904808F61C8F12"
        )

    def test_owns_connection(self) -> None:
        """Resolvers built from a network should keep their connection."""
        resolver = FeedResolver.from_network("arbitrum")

        assert resolver.w3 is not None


class TestFeedResolverClose:
    """Test FeedResolver.close()."""

    @pytest.mark.asyncio
    async def test_disconnects_provider(self) -> None:
        """close() should disconnect the RPC provider."""
        w3 = MagicMock()
        w3.provider.disconnect = AsyncMock()
        resolver = FeedResolver(api3_server=MagicMock(), airseeker_registry=MagicMock(), w3=w3)

        await resolver.close()

        w3.provider.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_without_connection(self) -> None:
        """close() should do nothing when the resolver owns no connection."""
        resolver = make_resolver()

        await resolver.close()

        assert resolver.w3 is None

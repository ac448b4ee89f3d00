"""FeedResolver: Resolve a dAPI name to its Beacons via on-chain registries.

Resolution:
    1. Hash the bytes32-encoded dAPI name
    2. Api3ServerV1.dapiNameHashToDataFeedId(hash) -> data feed ID
    3. AirseekerRegistry.dataFeedIdToDetails(feed ID) -> details blob
    4. ABI-decode details as (address[] airnodes, bytes32[] templateIds),
       or (address airnode, bytes32 templateId) for a single Beacon

Any failure here is fatal for the run: without the Beacon list there is
nothing to fetch.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError

from .ContractUtility import DEFAULT_CONTRACT_ADDRESSES, ContractUtility
from .DapiName import DapiName
from .FeedDescriptor import ZERO_FEED_ID, FeedDescriptor, SourceRef

if TYPE_CHECKING:
    from web3 import AsyncWeb3
    from web3.contract import AsyncContract

logger = logging.getLogger(__name__)

DETAILS_TYPES = ["address[]", "bytes32[]"]
# A single Beacon is stored as abi.encode(airnode, templateId)
BEACON_DETAILS_TYPES = ["address", "bytes32"]
BEACON_DETAILS_LENGTH = 64


class ResolutionError(Exception):
    """Raised when a dAPI cannot be resolved to its Beacons."""

    pass


def decode_feed_details(details: bytes) -> tuple[SourceRef, ...]:
    """Decode an AirseekerRegistry details blob into Beacon references.

    :param details: ABI-encoded (address[], bytes32[]), or (address, bytes32)
        for a data feed that is a single Beacon.
    :returns: Beacons in registry order.
    :raises ResolutionError: If the blob is empty, undecodable or unbalanced.
    """
    if not details:
        raise ResolutionError("Data feed details are empty")

    try:
        if len(details) == BEACON_DETAILS_LENGTH:
            airnode, template_id = abi_decode(BEACON_DETAILS_TYPES, bytes(details))
            return (SourceRef(airnode=airnode, template_id=bytes(template_id)),)
        airnodes, template_ids = abi_decode(DETAILS_TYPES, bytes(details))
    except (DecodingError, ValueError, TypeError) as e:
        raise ResolutionError(f"Failed to decode data feed details: {e}") from e

    if len(airnodes) != len(template_ids):
        raise ResolutionError(
            f"Data feed details have {len(airnodes)} airnodes "
            f"but {len(template_ids)} template IDs"
        )

    return tuple(
        SourceRef(airnode=airnode, template_id=bytes(template_id))
        for airnode, template_id in zip(airnodes, template_ids, strict=True)
    )


class FeedResolver:
    """Resolves dAPI names through Api3ServerV1 and AirseekerRegistry.

    :ivar api3_server: Api3ServerV1 contract.
    :ivar airseeker_registry: AirseekerRegistry contract.
    """

    def __init__(
        self,
        api3_server: AsyncContract,
        airseeker_registry: AsyncContract,
        w3: AsyncWeb3 | None = None,
    ) -> None:
        """Initialize the resolver.

        :param api3_server: Api3ServerV1 contract object.
        :param airseeker_registry: AirseekerRegistry contract object.
        :param w3: Optional connection owned by the resolver, released by close().
        """
        self.api3_server = api3_server
        self.airseeker_registry = airseeker_registry
        self.w3 = w3

    @classmethod
    def from_network(
        cls,
        network_name: str,
        rpc_url: str | None = None,
        api3_server_address: str | None = None,
        airseeker_registry_address: str | None = None,
    ) -> FeedResolver:
        """Create a resolver connected to a network.

        :param network_name: Network name (e.g., "arbitrum") or RPC URL.
        :param rpc_url: Optional RPC URL overriding the network default.
        :param api3_server_address: Optional Api3ServerV1 address override.
        :param airseeker_registry_address: Optional AirseekerRegistry address override.
        :returns: Configured FeedResolver.
        :raises ValueError: If no contract address is known for the network.
        """
        defaults = DEFAULT_CONTRACT_ADDRESSES.get(network_name, {})
        api3_server_address = api3_server_address or defaults.get("Api3ServerV1")
        airseeker_registry_address = airseeker_registry_address or defaults.get(
            "AirseekerRegistry"
        )
        if not api3_server_address or not airseeker_registry_address:
            raise ValueError(f"No contract addresses configured for network {network_name}")

        contract_utility = ContractUtility(network_name, rpc_url=rpc_url)
        logger.debug(
            f"Using RPC {contract_utility.network}, Api3ServerV1 {api3_server_address}, "
            f"AirseekerRegistry {airseeker_registry_address}"
        )
        return cls(
            api3_server=contract_utility.get_contract("Api3ServerV1", api3_server_address),
            airseeker_registry=contract_utility.get_contract(
                "AirseekerRegistry", airseeker_registry_address
            ),
            w3=contract_utility.w3,
        )

    async def close(self) -> None:
        """Disconnect the provider of the connection owned by this resolver."""
        if self.w3 is not None:
            await self.w3.provider.disconnect()

    async def get_data_feed_id(self, dapi_name: DapiName) -> bytes:
        """Look up the data feed ID a dAPI currently points to.

        :param dapi_name: dAPI name.
        :returns: 32-byte data feed ID.
        :raises ResolutionError: If the call fails or the dAPI is not set.
        """
        name_hash = dapi_name.compute_name_hash()
        logger.debug(f"Encoded dAPI name: 0x{dapi_name.encode_bytes32().hex()}")
        logger.debug(f"dAPI name hash: 0x{name_hash.hex()}")

        try:
            feed_id = await self.api3_server.functions.dapiNameHashToDataFeedId(
                name_hash
            ).call()
        except Exception as e:
            raise ResolutionError(f"dapiNameHashToDataFeedId failed for {dapi_name}: {e}") from e

        feed_id = bytes(feed_id)
        if feed_id == ZERO_FEED_ID:
            raise ResolutionError(f"dAPI {dapi_name} is not registered")
        return feed_id

    async def get_data_feed_details(self, feed_id: bytes) -> bytes:
        """Look up the details blob of a data feed.

        :param feed_id: 32-byte data feed ID.
        :returns: ABI-encoded details.
        :raises ResolutionError: If the call fails.
        """
        try:
            details = await self.airseeker_registry.functions.dataFeedIdToDetails(
                feed_id
            ).call()
        except Exception as e:
            raise ResolutionError(f"dataFeedIdToDetails failed for 0x{feed_id.hex()}: {e}") from e
        return bytes(details)

    async def resolve(self, dapi_name: str | DapiName) -> FeedDescriptor:
        """Resolve a dAPI name to its data feed and Beacons.

        :param dapi_name: dAPI name (e.g., "ETH/USD").
        :returns: FeedDescriptor with Beacons in registry order.
        :raises ValueError: If the name cannot be encoded as bytes32.
        :raises ResolutionError: If any lookup or decoding step fails.
        """
        name = DapiName.coerce(dapi_name)
        feed_id = await self.get_data_feed_id(name)
        details = await self.get_data_feed_details(feed_id)
        sources = decode_feed_details(details)

        descriptor = FeedDescriptor(dapi_name=str(name), feed_id=feed_id, sources=sources)
        logger.info(
            f"{name}: data feed {descriptor.feed_id_hex} with {len(sources)} beacons"
        )
        return descriptor

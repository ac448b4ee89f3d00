"""FeedDescriptor: The Beacons behind a resolved dAPI.

A dAPI points at a data feed; for a Beacon set the AirseekerRegistry stores
the feed's Airnode addresses and template IDs as two parallel arrays. Index i
of both arrays describes the same Beacon.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from web3 import Web3

from .oev import derive_oev_template_id

ZERO_FEED_ID = b"\x00" * 32


@dataclass(frozen=True)
class SourceRef:
    """One Beacon backing a dAPI.

    :ivar airnode: Checksummed Airnode address.
    :ivar template_id: 32-byte template ID.
    """

    airnode: str
    template_id: bytes

    def __post_init__(self) -> None:
        if len(self.template_id) != 32:
            raise ValueError(
                f"Template ID must be 32 bytes, got {len(self.template_id)}"
            )
        object.__setattr__(self, "airnode", Web3.to_checksum_address(self.airnode))

    @property
    def template_id_hex(self) -> str:
        """Return the template ID as a 0x-prefixed hex string."""
        return "0x" + self.template_id.hex()

    @property
    def oev_template_id(self) -> bytes:
        """Return the template ID OEV updates of this Beacon are signed under."""
        return derive_oev_template_id(self.template_id)

    def __str__(self) -> str:
        """Return a short identifier for log lines."""
        return f"{self.airnode}/{self.template_id_hex[:10]}"


@dataclass(frozen=True)
class FeedDescriptor:
    """A dAPI resolved to its data feed and Beacons.

    :ivar dapi_name: Name the descriptor was resolved from.
    :ivar feed_id: 32-byte data feed ID.
    :ivar sources: Beacons in registry order.
    """

    dapi_name: str
    feed_id: bytes
    sources: tuple[SourceRef, ...] = field(default_factory=tuple)

    @property
    def feed_id_hex(self) -> str:
        """Return the data feed ID as a 0x-prefixed hex string."""
        return "0x" + self.feed_id.hex()

    def __len__(self) -> int:
        """Return the number of Beacons."""
        return len(self.sources)

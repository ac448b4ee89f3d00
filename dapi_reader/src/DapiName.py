"""DapiName: Human-readable dAPI name and its on-chain encodings.

A dAPI is registered on-chain under the keccak256 hash of its name encoded as
a null-padded bytes32 string:
    keccak256(bytes32("ETH/USD"))

.. code-block:: python

    >>> name = DapiName("ETH/USD")
    >>> str(name)
    'ETH/USD'
    >>> len(name.encode_bytes32())
    32
    >>> name.encode_bytes32()[:7]
    b'ETH/USD'
"""

from __future__ import annotations

from web3 import Web3

# The encoded string must keep at least one trailing null byte.
MAX_NAME_BYTES = 31


class DapiName:
    """A dAPI name such as "ETH/USD".

    Unlike trading pair symbols, dAPI names are case-sensitive: "eth/usd" and
    "ETH/USD" hash to different feeds.

    :ivar name: The dAPI name as registered on-chain.
    """

    def __init__(self, name: str) -> None:
        """Initialize a dAPI name.

        :param name: dAPI name (e.g., "ETH/USD", "BTC/USD").
        :raises ValueError: If the name is empty or too long to fit in bytes32.
        """
        if not name:
            raise ValueError("dAPI name must not be empty")
        encoded = name.encode("utf-8")
        if len(encoded) > MAX_NAME_BYTES:
            raise ValueError(
                f"dAPI name '{name}' is {len(encoded)} bytes; "
                f"bytes32 strings must be at most {MAX_NAME_BYTES} bytes"
            )
        self.name = name

    def __str__(self) -> str:
        """Return the dAPI name."""
        return self.name

    def __repr__(self) -> str:
        """Return a developer-friendly string representation."""
        return f"DapiName({self.name!r})"

    def __hash__(self) -> int:
        """Return hash for use in dicts and sets."""
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        """Check equality based on the exact name."""
        if not isinstance(other, DapiName):
            return NotImplemented
        return self.name == other.name

    def encode_bytes32(self) -> bytes:
        """Encode the name as a right-padded bytes32 string.

        :returns: 32 bytes: the UTF-8 name followed by null bytes.
        """
        return self.name.encode("utf-8").ljust(32, b"\x00")

    def compute_name_hash(self) -> bytes:
        """Compute the keccak256 hash used as the key in Api3ServerV1.

        :returns: 32-byte keccak256 hash of the bytes32-encoded name.

        .. code-block:: python

            >>> name = DapiName("ETH/USD")
            >>> len(name.compute_name_hash())
            32
        """
        return bytes(Web3.keccak(self.encode_bytes32()))

    @classmethod
    def coerce(cls, value: str | DapiName) -> DapiName:
        """Return value unchanged if it is already a DapiName, else wrap it.

        :param value: dAPI name string or DapiName.
        :returns: DapiName instance.
        :raises ValueError: If the string is not a valid dAPI name.
        """
        if isinstance(value, DapiName):
            return value
        return cls(value)

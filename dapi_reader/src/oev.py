"""OEV template ID derivation.

OEV updates for a Beacon are signed under a template ID derived from the
Beacon's own template ID:
    keccak256(minimal_big_endian_bytes(templateId))

The template ID is read as an unsigned integer and re-encoded without leading
zero bytes before hashing, so template IDs starting with 0x00 hash fewer than
32 bytes.
"""

from web3 import Web3


def _to_be_bytes(value: int) -> bytes:
    """Render a non-negative integer as minimal big-endian bytes (at least one byte)."""
    length = max(1, (value.bit_length() + 7) // 8)
    return value.to_bytes(length, "big")


def derive_oev_template_id(template_id: bytes | str) -> bytes:
    """Derive the OEV template ID for a Beacon template ID.

    :param template_id: 32-byte template ID, as bytes or a 0x-prefixed hex string.
    :returns: 32-byte OEV template ID.
    :raises ValueError: If template_id is not 32 bytes.

    .. code-block:: python

        >>> oev_id = derive_oev_template_id(b"\\x11" * 32)
        >>> len(oev_id)
        32
    """
    if isinstance(template_id, str):
        template_id = bytes.fromhex(template_id.removeprefix("0x"))
    if len(template_id) != 32:
        raise ValueError(f"Template ID must be 32 bytes, got {len(template_id)}")

    value = int.from_bytes(template_id, "big")
    return bytes(Web3.keccak(_to_be_bytes(value)))

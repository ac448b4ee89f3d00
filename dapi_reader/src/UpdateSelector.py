"""UpdateSelector: Pick a Beacon's latest OEV update and decode its value.

Signed API documents are unordered, so selection never relies on response
order except to break exact timestamp ties (first seen wins).

Values are integers with 18 decimals. decode_price() divides into a float,
which is exact only up to 2**53 and otherwise rounds to the nearest float;
decode_price_exact() keeps every digit as a Decimal.

.. code-block:: python

    >>> decode_price("1500000000000000000000")
    1500.0
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, localcontext

from .FeedDescriptor import SourceRef
from .fetchers import MAX_TIMESTAMP, SignedUpdate

PRICE_DECIMALS = 18


def _normalize_hex(value: bytes | str) -> str:
    """Return a lowercase 0x-prefixed hex string."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    value = value.lower()
    return value if value.startswith("0x") else "0x" + value


def select_latest(
    updates: Iterable[SignedUpdate], oev_template_id: bytes | str
) -> SignedUpdate | None:
    """Return the newest update signed under the given template ID.

    :param updates: Signed updates of one Airnode.
    :param oev_template_id: Template ID to match exactly.
    :returns: Update with the highest timestamp, or None if none match.
    """
    wanted = _normalize_hex(oev_template_id)
    matching = [u for u in updates if _normalize_hex(u.template_id) == wanted]
    if not matching:
        return None
    # max() keeps the first of equal timestamps
    return max(matching, key=lambda u: u.timestamp)


def parse_encoded_value(encoded_value: str) -> int:
    """Parse an encoded value given as a decimal or 0x-prefixed hex string.

    :param encoded_value: Integer string.
    :returns: The integer value.
    :raises ValueError: If the string is not an integer.
    """
    text = encoded_value.strip()
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text, 10)


def decode_price(encoded_value: str) -> float:
    """Decode an 18-decimal integer string into a float price.

    :param encoded_value: Integer string.
    :returns: Price in USD, rounded to float precision.
    :raises ValueError: If the string is not an integer or exceeds float range.
    """
    value = parse_encoded_value(encoded_value)
    try:
        return value / 10**PRICE_DECIMALS
    except OverflowError as e:
        raise ValueError(f"Encoded value is out of float range: {e}") from e


def decode_price_exact(encoded_value: str) -> Decimal:
    """Decode an 18-decimal integer string into an exact Decimal price.

    :param encoded_value: Integer string.
    :returns: Price in USD with no precision loss.
    :raises ValueError: If the string is not an integer.
    """
    value = parse_encoded_value(encoded_value)
    with localcontext() as ctx:
        ctx.prec = max(len(str(abs(value))), PRICE_DECIMALS) + 1
        return Decimal(value).scaleb(-PRICE_DECIMALS)


@dataclass(frozen=True)
class DecodedPrice:
    """A Beacon's latest price.

    :ivar source: Beacon the price came from.
    :ivar price: Price in USD (float approximation).
    :ivar timestamp: Unix timestamp of the signed update.
    :ivar encoded_value: Raw integer string from the update.
    """

    source: SourceRef
    price: float
    timestamp: int
    encoded_value: str

    @classmethod
    def from_update(cls, source: SourceRef, update: SignedUpdate) -> DecodedPrice:
        """Decode a signed update into a price.

        :param source: Beacon the update belongs to.
        :param update: Selected signed update.
        :returns: DecodedPrice instance.
        :raises ValueError: If the encoded value is not an integer or the
            timestamp is out of range.
        """
        if not 0 <= update.timestamp <= MAX_TIMESTAMP:
            raise ValueError(f"Update timestamp out of range: {update.timestamp}")
        return cls(
            source=source,
            price=decode_price(update.encoded_value),
            timestamp=update.timestamp,
            encoded_value=update.encoded_value,
        )

    @property
    def price_exact(self) -> Decimal:
        """Return the price with full 18-decimal precision."""
        return decode_price_exact(self.encoded_value)

    @property
    def observed_at(self) -> datetime:
        """Return the update timestamp as a UTC datetime."""
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

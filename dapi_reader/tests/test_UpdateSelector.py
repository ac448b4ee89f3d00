"""Unit tests for UpdateSelector."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from dapi_reader.src.FeedDescriptor import SourceRef
from dapi_reader.src.fetchers import SignedUpdate
from dapi_reader.src.UpdateSelector import (
    DecodedPrice,
    decode_price,
    decode_price_exact,
    parse_encoded_value,
    select_latest,
)

OEV_ID = "0x" + "ab" * 32
OTHER_ID = "0x" + "cd" * 32


def make_update(timestamp: int, template_id: str = OEV_ID, value: str = "1") -> SignedUpdate:
    return SignedUpdate(template_id=template_id, timestamp=timestamp, encoded_value=value)


class TestSelectLatest:
    """Test select_latest()."""

    def test_picks_max_timestamp(self) -> None:
        """Newest matching update should be selected regardless of order."""
        updates = [make_update(100), make_update(300), make_update(200)]
        latest = select_latest(updates, OEV_ID)

        assert latest is not None
        assert latest.timestamp == 300

    def test_ignores_other_template_ids(self) -> None:
        """Updates for other template IDs should never be selected."""
        updates = [make_update(100), make_update(999, template_id=OTHER_ID)]
        latest = select_latest(updates, OEV_ID)

        assert latest is not None
        assert latest.timestamp == 100

    def test_no_match_returns_none(self) -> None:
        """No matching template ID should return None, not raise."""
        updates = [make_update(100, template_id=OTHER_ID)]
        assert select_latest(updates, OEV_ID) is None

    def test_empty_updates(self) -> None:
        """Empty update list should return None."""
        assert select_latest([], OEV_ID) is None

    def test_bytes_template_id(self) -> None:
        """Template ID given as bytes should match its hex form."""
        latest = select_latest([make_update(100)], bytes.fromhex("ab" * 32))
        assert latest is not None

    def test_hex_case_insensitive(self) -> None:
        """Checksum-style uppercase hex should still match."""
        updates = [make_update(100, template_id="0x" + "AB" * 32)]
        assert select_latest(updates, OEV_ID) is not None

    def test_tie_keeps_first_seen(self) -> None:
        """Equal timestamps should resolve to the first update seen."""
        first = make_update(300, value="1")
        second = make_update(300, value="2")
        assert select_latest([make_update(100), first, second], OEV_ID) is first


class TestDecoding:
    """Test value decoding."""

    def test_decode_price(self) -> None:
        """18-decimal integer should scale to USD."""
        assert decode_price("1500000000000000000000") == 1500.0

    def test_decode_fractional(self) -> None:
        """Fractional prices should decode."""
        assert decode_price("3012450000000000000000") == pytest.approx(3012.45)

    def test_decode_hex(self) -> None:
        """0x-prefixed values should be parsed as hex."""
        value = hex(1500 * 10**18)
        assert decode_price(value) == 1500.0

    def test_parse_decimal_with_leading_zero(self) -> None:
        """Decimal strings with leading zeros should parse as base 10."""
        assert parse_encoded_value("0100") == 100

    def test_invalid_value(self) -> None:
        """Non-integer strings should raise ValueError."""
        with pytest.raises(ValueError):
            decode_price("not-a-number")

    def test_value_beyond_float_range(self) -> None:
        """Values too large for a float should raise ValueError, not OverflowError."""
        with pytest.raises(ValueError, match="out of float range"):
            decode_price("1" + "0" * 400)
        assert decode_price_exact("1" + "0" * 400) == Decimal(10) ** 382

    def test_decode_exact(self) -> None:
        """Exact decoding should keep all 18 decimals."""
        assert decode_price_exact("1500000000000000000001") == Decimal(
            "1500.000000000000000001"
        )

    def test_float_is_approximation(self) -> None:
        """The float path rounds where the exact path does not."""
        encoded = "1500000000000000000001"
        assert decode_price(encoded) == 1500.0
        assert decode_price_exact(encoded) != Decimal("1500")


class TestDecodedPrice:
    """Test DecodedPrice."""

    def test_from_update(self) -> None:
        """Decoded price should carry source, price and timestamp."""
        source = SourceRef(airnode="0x" + "a1" * 20, template_id=b"\x01" * 32)
        update = make_update(1_700_000_000, value="3000000000000000000000")

        price = DecodedPrice.from_update(source, update)

        assert price.source == source
        assert price.price == 3000.0
        assert price.timestamp == 1_700_000_000
        assert price.encoded_value == "3000000000000000000000"
        assert price.price_exact == Decimal("3000")
        assert price.observed_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

    def test_timestamp_out_of_range(self) -> None:
        """Timestamps that do not fit uint32 should be rejected."""
        source = SourceRef(airnode="0x" + "a1" * 20, template_id=b"\x01" * 32)

        with pytest.raises(ValueError, match="out of range"):
            DecodedPrice.from_update(source, make_update(10**20))

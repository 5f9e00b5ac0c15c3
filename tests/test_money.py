"""Tests for fixed-point money helpers and equal-share apportionment."""

from decimal import Decimal

import pytest

from defter.money import (
    amounts_match,
    equal_shares_cents,
    from_cents,
    quantize_amount,
    to_cents,
)


class TestToCents:
    """Conversion from currency amounts to integer cents."""

    def test_exact_decimal(self):
        """Two-decimal amounts convert exactly."""
        assert to_cents(Decimal("12.34")) == 1234

    def test_rounds_half_up(self):
        """Half a cent rounds away from zero."""
        assert to_cents(Decimal("10.005")) == 1001
        assert to_cents(Decimal("10.004")) == 1000
        assert to_cents(Decimal("-10.005")) == -1001

    def test_float_has_no_binary_noise(self):
        """Floats go through their string form."""
        assert to_cents(0.1) == 10
        assert to_cents(2.675) == 268

    def test_strings_and_ints(self):
        """Numeric strings and ints are accepted."""
        assert to_cents("99.99") == 9999
        assert to_cents(20) == 2000

    def test_none_is_zero(self):
        """Missing amounts count as zero."""
        assert to_cents(None) == 0

    def test_amounts_beyond_default_precision(self):
        """Very large amounts convert exactly instead of raising."""
        assert to_cents(Decimal("1e27")) == 10**29
        assert (
            to_cents(Decimal("12345678901234567890123456789.015"))
            == 1234567890123456789012345678902
        )


class TestFromCents:
    """Conversion from cents back to Decimal."""

    def test_two_decimal_places(self):
        """Result always carries exactly two places."""
        assert str(from_cents(2000)) == "20.00"
        assert str(from_cents(1)) == "0.01"

    def test_negative(self):
        """Negative cents stay negative."""
        assert from_cents(-5) == Decimal("-0.05")

    def test_inverse_of_to_cents(self):
        """from_cents undoes to_cents for cent-precise amounts."""
        for value in ("0.00", "0.01", "19.99", "100.01", "-42.50"):
            assert from_cents(to_cents(Decimal(value))) == Decimal(value)

    def test_quantize_amount(self):
        """quantize_amount rounds to the nearest cent."""
        assert quantize_amount("2.675") == Decimal("2.68")
        assert quantize_amount(5) == Decimal("5.00")

    def test_large_amount_round_trip(self):
        """Large cent counts keep every digit."""
        assert from_cents(10**29) == Decimal("1e27")
        assert str(from_cents(10**29 + 1)) == "1000000000000000000000000000.01"


class TestAmountsMatch:
    """One-cent equality tolerance."""

    def test_within_one_cent(self):
        assert amounts_match(1000, 1001)
        assert amounts_match(1001, 1000)
        assert amounts_match(1000, 1000)

    def test_beyond_one_cent(self):
        assert not amounts_match(1000, 1002)


class TestEqualShares:
    """Splitting whole cents into equal shares."""

    def test_even_split(self):
        """No remainder gives identical shares."""
        assert equal_shares_cents(10000, 2) == [5000, 5000]

    def test_remainder_goes_to_first_shares(self):
        """Leftover cents are handed to the first shares, one each."""
        assert equal_shares_cents(10001, 3) == [3334, 3334, 3333]
        assert equal_shares_cents(1000, 3) == [334, 333, 333]

    def test_single_share(self):
        assert equal_shares_cents(777, 1) == [777]

    def test_fewer_cents_than_shares(self):
        """Shares may be zero when there are fewer cents than people."""
        assert equal_shares_cents(2, 5) == [1, 1, 0, 0, 0]

    @pytest.mark.parametrize(
        "total,count",
        [(10001, 3), (1, 7), (99999, 13), (0, 4), (123456, 11), (-700, 3)],
    )
    def test_exact_sum_and_one_cent_spread(self, total, count):
        """Shares always sum to the total and differ by at most one cent."""
        shares = equal_shares_cents(total, count)

        assert len(shares) == count
        assert sum(shares) == total
        assert max(shares) - min(shares) <= 1

    def test_deterministic(self):
        """Same inputs give the same shares."""
        assert equal_shares_cents(10001, 3) == equal_shares_cents(10001, 3)

    def test_zero_count_rejected(self):
        with pytest.raises(ValueError, match="0 shares"):
            equal_shares_cents(100, 0)

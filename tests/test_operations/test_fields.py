"""
Unit tests for field fallback resolution.
"""
import pytest

from exchanges.errors import MalformedResponseError
from operations.fields import (
    HISTORY_AMOUNT,
    OPEN_ORDER_REMAINING,
    ORDER_REFUND,
    Amount,
    require_list,
    require_mapping,
    resolve_amount,
    resolve_field,
    split_pair,
)


class TestSplitPair:
    """Test split_pair function."""

    def test_valid_pair(self):
        assert split_pair("btc_idr") == ("btc", "idr")
        assert split_pair("ETH_USDT") == ("eth", "usdt")

    @pytest.mark.parametrize("pair", ["btcidr", "_idr", "btc_", "", None])
    def test_invalid_pair(self, pair):
        with pytest.raises(ValueError, match="Invalid pair"):
            split_pair(pair)


class TestResolveField:
    """Test resolve_field function."""

    def test_first_present_key_wins(self):
        assert resolve_field({"a": "1", "b": "2"}, ["a", "b"]) == ("1", "a")

    def test_falls_back_to_later_key(self):
        assert resolve_field({"b": "2"}, ["a", "b"]) == ("2", "b")

    def test_empty_and_none_are_skipped(self):
        assert resolve_field({"a": "", "b": None, "c": "3"}, ["a", "b", "c"]) == ("3", "c")

    def test_zero_string_counts_as_present(self):
        assert resolve_field({"a": "0", "b": "5"}, ["a", "b"]) == ("0", "a")

    def test_default(self):
        assert resolve_field({}, ["a"]) == ("0", None)
        assert resolve_field({}, ["a"], default="-") == ("-", None)


class TestResolveAmount:
    """Test currency tagging of resolved amounts."""

    def test_generic_key_used_when_pair_key_missing(self):
        """Test the generic amount key is used instead of defaulting to zero."""
        amount = resolve_amount({"amount": "0.25"}, HISTORY_AMOUNT, base="btc", quote="idr")

        assert amount == Amount("0.25", "btc")

    def test_pair_specific_key_preferred(self):
        amount = resolve_amount({"eth": "1.5", "amount": "9"}, HISTORY_AMOUNT, base="eth", quote="idr")

        assert amount == Amount("1.5", "eth")

    def test_unit_follows_matched_key(self):
        """Test the currency comes from whichever key matched."""
        base_side = resolve_amount({"remain_btc": "0.1"}, OPEN_ORDER_REMAINING, base="btc", quote="idr")
        quote_side = resolve_amount({"remain_idr": "50000"}, OPEN_ORDER_REMAINING, base="btc", quote="idr")

        assert base_side.currency == "btc"
        assert quote_side.currency == "idr"

    def test_default_uses_first_candidate_currency(self):
        amount = resolve_amount({}, OPEN_ORDER_REMAINING, base="btc", quote="idr")

        assert amount == Amount("0", "btc")

    def test_optional_field(self):
        assert resolve_amount({}, ORDER_REFUND, default=None, base="btc", quote="idr") is None
        assert resolve_amount({"refund_rp": "10"}, ORDER_REFUND, default=None,
                              base="btc", quote="idr") == Amount("10", "idr")

    def test_render(self):
        assert Amount("1000", "idr").render() == "Rp1.000"
        assert Amount("1", "btc").render() == "1.00000000 BTC"


class TestStructureChecks:
    """Test require_mapping and require_list."""

    def test_require_mapping(self):
        assert require_mapping({"a": 1}, "x") == {"a": 1}
        with pytest.raises(MalformedResponseError, match="'x' to be an object"):
            require_mapping([], "x")

    def test_require_list(self):
        assert require_list([1], "x") == [1]
        with pytest.raises(MalformedResponseError, match="'x' to be a list"):
            require_list(None, "x")

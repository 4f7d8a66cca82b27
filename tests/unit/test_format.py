"""
Unit tests for display helpers.
"""

import pytest

from auctionhouse.utils.format import format_units, parse_units, short, time_left


class TestShort:
    def test_abbreviates(self):
        assert short("0x1234567890abcdef1234567890abcdef12345678") == "0x1234...5678"

    def test_empty(self):
        assert short(None) == ""
        assert short("") == ""

    def test_already_short(self):
        assert short("0xabc") == "0xabc"


class TestTimeLeft:
    def test_ended(self):
        assert time_left(100, 100) == "Ended"
        assert time_left(100, 150) == "Ended"

    def test_minutes_and_seconds(self):
        assert time_left(1000, 1000 - 125) == "2m 5s"
        assert time_left(1000, 999) == "0m 1s"


class TestUnits:
    def test_parse(self):
        assert parse_units("0.02") == 20_000_000_000_000_000
        assert parse_units("1") == 10**18
        assert parse_units("1.5", decimals=2) == 150
        assert parse_units(" 3 ", decimals=0) == 3

    def test_parse_long_amount_exact(self):
        assert parse_units("12345678901.123456789012345678") == 12345678901123456789012345678
        max_uint = 2**256 - 1
        assert parse_units(str(max_uint), decimals=0) == max_uint
        assert parse_units(format_units(max_uint)) == max_uint

    @pytest.mark.parametrize("value", ["abc", "-1", "0.001", "NaN", "inf", "1.0000000000000000000000000000001"])
    def test_parse_rejects(self, value):
        with pytest.raises(ValueError):
            parse_units(value, decimals=2)

    def test_format(self):
        assert format_units(0) == "0.0"
        assert format_units(10**18) == "1.0"
        assert format_units(20_000_000_000_000_000) == "0.02"
        assert format_units(150, decimals=2) == "1.5"

    def test_format_parses_back(self):
        for text in ("0.01", "12.345", "7.0"):
            assert format_units(parse_units(text)) == text

"""Tests for phone normalization."""

import pytest

from backend.utils.validation import is_dialable, normalize_phone


class TestNormalizePhone:
    """Test the Romanian E.164 heuristics."""

    @pytest.mark.parametrize("raw,expected", [
        ("0721234567", "+40721234567"),
        ("0721 234 567", "+40721234567"),
        ("(0721)-234-567", "+40721234567"),
        ("00721234567", "+40721234567"),
        ("40721234567", "+40721234567"),
        ("+40721234567", "+40721234567"),
        ("+44 20 7946 0958", "+442079460958"),
        ("721234567", "+40721234567"),
    ])
    def test_rules(self, raw, expected):
        assert normalize_phone(raw) == expected

    def test_already_international_passes_through(self):
        assert normalize_phone("+12025550123") == "+12025550123"

    def test_landline_with_trunk_prefix_gets_country_code(self):
        # only 07x mobile numbers get the trunk stripped
        assert normalize_phone("0212345678") == "+400212345678"

    def test_empty_input(self):
        assert normalize_phone("") == "+40"
        assert normalize_phone(None) == "+40"

    @pytest.mark.parametrize("raw", [
        "0721234567", "00721234567", "40721234567", "+40721234567",
        "721234567", "0212345678", "", "12", "+1 (202) 555-0123", "abc",
    ])
    def test_normalizing_twice_is_stable(self, raw):
        once = normalize_phone(raw)
        assert normalize_phone(once) == once


class TestIsDialable:
    def test_valid_number(self):
        assert is_dialable("+40721234567")

    def test_bare_prefix_is_not_dialable(self):
        assert not is_dialable("+40")

    def test_letters_are_not_dialable(self):
        assert not is_dialable(normalize_phone("call me"))

    def test_empty(self):
        assert not is_dialable("")

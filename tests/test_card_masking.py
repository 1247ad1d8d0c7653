"""
Tests for card number display helpers.
"""

from app.utils.card_masking import format_card_number, mask_card_number, mask_cvv


class TestMaskCardNumber:

    def test_masks_all_but_last_four(self):
        assert mask_card_number("4000001234567890") == "**** **** **** 7890"

    def test_ignores_whitespace(self):
        assert mask_card_number("4000 0012 3456 7890") == "**** **** **** 7890"

    def test_short_value_is_fully_masked(self):
        assert mask_card_number("123") == "*" * 16

    def test_none_and_empty_are_fully_masked(self):
        assert mask_card_number(None) == "*" * 16
        assert mask_card_number("") == "*" * 16

    def test_exactly_four_characters(self):
        assert mask_card_number("1234") == "**** **** **** 1234"


class TestOtherHelpers:

    def test_mask_cvv(self):
        assert mask_cvv() == "***"

    def test_format_card_number(self):
        assert format_card_number("4000001234567890") == "4000 0012 3456 7890"

    def test_format_empty(self):
        assert format_card_number(None) == ""
        assert format_card_number("") == ""

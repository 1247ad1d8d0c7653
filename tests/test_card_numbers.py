"""
Tests for card number and CVV generation and Luhn validation.

These tests verify:
  - Generated numbers are 16 digits, carry the BIN and pass Luhn
  - Known-good and known-bad numbers are classified correctly
  - Whitespace is tolerated; non-digits and bad lengths are rejected
  - CVVs are always exactly 3 digits
"""

import pytest

from app.utils.card_numbers import (
    DEFAULT_BIN,
    generate_card_number,
    generate_cvv,
    is_valid_card_number,
    luhn_check_digit,
)


class TestLuhn:
    """Tests for the check digit and the validator."""

    def test_check_digit_of_known_payload(self):
        """7992739871 is the textbook payload; its check digit is 3."""
        assert luhn_check_digit("7992739871") == 3

    @pytest.mark.parametrize(
        "number",
        ["4111111111111111", "4000 0012 3456 7899", "5555555555554444", "4000001234567899"],
    )
    def test_valid_numbers(self, number):
        assert is_valid_card_number(number) is True

    @pytest.mark.parametrize(
        "number",
        [
            "4000001234567890",   # wrong check digit
            "4111111111111112",
            "4111-1111-1111-1111",  # separators other than whitespace
            "41111111111",        # too short
            "41111111111111111111",  # too long
            "",
            None,
            "４１１１１１１１１１１１１１１１",  # full-width digits
        ],
    )
    def test_invalid_numbers(self, number):
        assert is_valid_card_number(number) is False


class TestGeneration:
    """Tests for generate_card_number() and generate_cvv()."""

    def test_generated_numbers_pass_luhn(self):
        for _ in range(200):
            number = generate_card_number()
            assert len(number) == 16
            assert number.isdigit()
            assert number.startswith(DEFAULT_BIN)
            assert is_valid_card_number(number)

    def test_custom_bin(self):
        number = generate_card_number("510000")
        assert number.startswith("510000")
        assert is_valid_card_number(number)

    def test_generated_numbers_vary(self):
        numbers = {generate_card_number() for _ in range(50)}
        assert len(numbers) > 1

    def test_cvv_is_three_digits(self):
        for _ in range(200):
            cvv = generate_cvv()
            assert len(cvv) == 3
            assert cvv.isdigit()

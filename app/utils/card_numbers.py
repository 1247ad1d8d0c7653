"""
Card number and CVV generation, plus Luhn validation.

Generated card numbers are 16 digits:

    400000 123456789 3
    ------ --------- -
    BIN    random    Luhn check digit

The random part comes from `secrets`, never from `random`, because card
numbers must not be predictable from previously issued ones.
"""

import secrets


DEFAULT_BIN = "400000"
RANDOM_DIGITS = 9
CVV_LENGTH = 3
MIN_CARD_NUMBER_LENGTH = 13
MAX_CARD_NUMBER_LENGTH = 19


def luhn_check_digit(payload: str) -> int:
    """
    Compute the Luhn (mod 10) check digit for a digit string.

    Walking right to left over the payload, every other digit starting with
    the rightmost is doubled (minus 9 if the result exceeds 9). The check
    digit brings the total up to a multiple of 10.
    """
    total = 0
    for position, char in enumerate(reversed(payload)):
        digit = int(char)
        if position % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return (10 - total % 10) % 10


def generate_card_number(bin_prefix: str = DEFAULT_BIN) -> str:
    """Generate a Luhn-valid card number: BIN + 9 random digits + check digit."""
    body = bin_prefix + "".join(str(secrets.randbelow(10)) for _ in range(RANDOM_DIGITS))
    return body + str(luhn_check_digit(body))


def generate_cvv() -> str:
    """Generate a 3-digit verification code, uniform over 000-999."""
    return f"{secrets.randbelow(10 ** CVV_LENGTH):0{CVV_LENGTH}d}"


def is_valid_card_number(card_number: str | None) -> bool:
    """
    Validate a card number with the Luhn algorithm.

    Whitespace is ignored ("4000 0012 3456 7899" is accepted). After stripping,
    the value must be 13-19 ASCII digits.
    """
    if card_number is None:
        return False

    clean = "".join(card_number.split())
    if not (clean.isascii() and clean.isdigit()):
        return False
    if not MIN_CARD_NUMBER_LENGTH <= len(clean) <= MAX_CARD_NUMBER_LENGTH:
        return False

    return luhn_check_digit(clean[:-1]) == int(clean[-1])

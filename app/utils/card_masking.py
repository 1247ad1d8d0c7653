"""
Display helpers for card numbers and CVVs.

These only ever see already-decrypted values and never touch stored
ciphertext. Masked output is what API responses carry:

    mask_card_number("4000001234567890")   -> "**** **** **** 7890"
    format_card_number("4000001234567890") -> "4000 0012 3456 7890"
"""

MASK_CHAR = "*"
VISIBLE_DIGITS = 4
GROUP_SIZE = 4
MASKED_GROUPS = 3
PLACEHOLDER_LENGTH = 16


def _strip(card_number: str) -> str:
    return "".join(card_number.split())


def mask_card_number(card_number: str | None) -> str:
    """
    Mask all but the last four digits, grouped in blocks of four.

    Values with fewer than four characters (after removing whitespace) give
    a fully masked placeholder, so nothing of a malformed value leaks.
    """
    if not card_number:
        return MASK_CHAR * PLACEHOLDER_LENGTH

    clean = _strip(card_number)
    if len(clean) < VISIBLE_DIGITS:
        return MASK_CHAR * PLACEHOLDER_LENGTH

    groups = [MASK_CHAR * GROUP_SIZE] * MASKED_GROUPS + [clean[-VISIBLE_DIGITS:]]
    return " ".join(groups)


def mask_cvv() -> str:
    """Fixed placeholder; the real CVV is never derivable from it."""
    return MASK_CHAR * 3


def format_card_number(card_number: str | None) -> str:
    """Insert a space every four characters. Only for authorized, decrypted display."""
    if not card_number:
        return ""

    clean = _strip(card_number)
    return " ".join(clean[i:i + GROUP_SIZE] for i in range(0, len(clean), GROUP_SIZE))

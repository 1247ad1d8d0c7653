"""
Card field encryption at rest.

Card numbers and CVVs are never stored in plaintext. They are encrypted with
AES-SIV (RFC 5297) from the `cryptography` package before they reach the
database and are stored as base64 text.

Determinism:
  SIV is deterministic authenticated encryption: the same plaintext under the
  same key always yields the same ciphertext, and tampering is detected on
  decrypt. The UNIQUE index on cards.card_number relies on this to keep card
  numbers unique without storing the plaintext.

Key derivation:
  The configured secret is hashed with SHA-256 and truncated to the AES-SIV
  key size (32 bytes). The secret is handed to CardFieldCipher explicitly;
  nothing in this module reads configuration except get_card_cipher(), which
  is the FastAPI dependency that builds the process-wide instance.

Enterprise note:
  In production the secret would come from a KMS or HSM-backed secret store.
  Swapping the source only changes get_card_cipher().
"""

import base64
import binascii
import hashlib
import logging
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESSIV

from app.config import settings
from app.exceptions import EncryptionError


logger = logging.getLogger(__name__)


class CardFieldCipher:
    """Symmetric encrypt/decrypt of confidential card fields."""

    KEY_SIZE = 32

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Card encryption secret must not be empty")
        key = hashlib.sha256(secret.encode("utf-8")).digest()[: self.KEY_SIZE]
        self._aead = AESSIV(key)

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a card field.

        Args:
            plaintext: Non-empty value, e.g. "4000001234567893".

        Returns:
            Base64 text safe to store in a String column.

        Raises:
            EncryptionError: If the value cannot be encrypted.
        """
        try:
            token = self._aead.encrypt(plaintext.encode("utf-8"), None)
        except (ValueError, TypeError, AttributeError) as exc:
            logger.error("card_field_encrypt_failed", exc_info=True)
            raise EncryptionError("Encryption failed") from exc
        return base64.b64encode(token).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a value produced by encrypt().

        Raises:
            EncryptionError: If the text is not valid base64, was produced
                under another key, or has been tampered with.
        """
        try:
            token = base64.b64decode(ciphertext.encode("ascii"), validate=True)
            return self._aead.decrypt(token, None).decode("utf-8")
        except (binascii.Error, InvalidTag, ValueError, TypeError, AttributeError) as exc:
            logger.error("card_field_decrypt_failed", exc_info=True)
            raise EncryptionError("Decryption failed") from exc


@lru_cache
def get_card_cipher() -> CardFieldCipher:
    """FastAPI dependency: the cipher keyed from CARD_ENCRYPTION_SECRET."""
    return CardFieldCipher(settings.CARD_ENCRYPTION_SECRET)

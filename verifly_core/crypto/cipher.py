"""
Credential Cipher
=================
Reversible symmetric encryption for API keys, API secrets and tokens at rest.

Ciphertexts are Fernet tokens (AES-128-CBC + HMAC-SHA256) which embed
their own IV and timestamp, so callers never manage IVs.
"""

import base64
import hashlib
import hmac
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ..errors import ConfigurationError, DecryptionFailure

_ENCRYPTION_CONTEXT = b"verifly-core/field-encryption/v1"
_LOOKUP_CONTEXT = b"verifly-core/credential-lookup/v1"


def _derive(secret: str, context: bytes) -> bytes:
    """Derive a 32-byte subkey from the configured secret."""
    return HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=context,
    ).derive(secret.encode("utf-8"))


def constant_time_equals(left: Optional[str], right: Optional[str]) -> bool:
    """Compare two strings without leaking the mismatch position."""
    if left is None or right is None:
        return False
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


class CredentialCipher:
    """
    Process-wide field cipher.

    The key is fixed for the life of the instance; the instance holds no
    other mutable state and is safe to share between concurrent requests.
    """

    def __init__(self, secret_key: str):
        if not secret_key:
            raise ConfigurationError("Encryption key must not be empty")
        fernet_key = base64.urlsafe_b64encode(_derive(secret_key, _ENCRYPTION_CONTEXT))
        self._fernet = Fernet(fernet_key)
        self._lookup_key = _derive(secret_key, _LOOKUP_CONTEXT)

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        """
        Encrypt a string value.

        Empty or absent input is returned unchanged.
        """
        if not plaintext:
            return plaintext
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: Optional[str]) -> Optional[str]:
        """
        Decrypt a value produced by ``encrypt``.

        Empty or absent input is returned unchanged.

        Raises:
            DecryptionFailure: Malformed ciphertext or one made with another key
        """
        if not ciphertext:
            return ciphertext
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as exc:
            raise DecryptionFailure() from exc

    def lookup_hash(self, plaintext: str) -> str:
        """
        Deterministic keyed hash used to index credentials.

        Lets the directory find an application by API key without
        decrypting every stored key.
        """
        return hmac.new(
            self._lookup_key,
            plaintext.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

"""
Crypto Module
=============
Field encryption and constant-time comparison helpers.
"""

from .cipher import CredentialCipher, constant_time_equals

__all__ = [
    "CredentialCipher",
    "constant_time_equals",
]

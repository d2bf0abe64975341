"""
Authentication Module
=====================
API key/secret authentication for client applications.
"""

from .authenticator import ApiAuthenticator, RequestContext

__all__ = [
    "ApiAuthenticator",
    "RequestContext",
]

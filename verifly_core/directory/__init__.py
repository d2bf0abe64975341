"""
Directory Module
================
Application lookup with decrypted credentials.
"""

from .resolver import ApplicationDirectory, ResolvedApplication

__all__ = [
    "ApplicationDirectory",
    "ResolvedApplication",
]

"""
Onboarding Module
=================
Application registration and service subscription management.
"""

from .definitions import ServiceDefinition, parse_definitions
from .service import Onboarding

__all__ = [
    "Onboarding",
    "ServiceDefinition",
    "parse_definitions",
]

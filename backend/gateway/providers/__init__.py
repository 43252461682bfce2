"""Outbound clients for the third-party telephony providers."""

from .api4com import Api4ComClient, AuthenticationError
from .base import ProviderError
from .liguelead import LigueLeadClient, LigueLeadCredentials

__all__ = [
    "Api4ComClient",
    "AuthenticationError",
    "LigueLeadClient",
    "LigueLeadCredentials",
    "ProviderError",
]

"""Librus Synergia portal adapter."""

from librus_bot.portal.base import PortalAuthError, PortalError, PortalSource
from librus_bot.portal.client import PortalClient
from librus_bot.portal.session import PortalSession

__all__ = [
    "PortalAuthError",
    "PortalClient",
    "PortalError",
    "PortalSession",
    "PortalSource",
]

"""
Request-facing layer: MonetizationHub orchestration, persistence sink,
settings, logging setup and the FastAPI application (hub.api).
"""

from .config import Settings, settings
from .service import (
    DuplicateReferralError,
    HubError,
    MonetizationHub,
    SelfReferralError,
    UnknownCatalogItemError,
    UnknownReferralCodeError,
)
from .sink import InMemorySink, PersistenceSink

__all__ = [
    "Settings",
    "settings",
    "DuplicateReferralError",
    "HubError",
    "MonetizationHub",
    "SelfReferralError",
    "UnknownCatalogItemError",
    "UnknownReferralCodeError",
    "InMemorySink",
    "PersistenceSink",
]

"""Backing ports and adapters: catalog access and session persistence."""

from .catalog_provider import CatalogProvider, InMemoryCatalogProvider, JsonCatalogProvider
from .session_repository import (
    InMemorySessionRepository,
    JsonSessionRepository,
    SessionRepository,
)

__all__ = [
    "CatalogProvider",
    "InMemoryCatalogProvider",
    "InMemorySessionRepository",
    "JsonCatalogProvider",
    "JsonSessionRepository",
    "SessionRepository",
]

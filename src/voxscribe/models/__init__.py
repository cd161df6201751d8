"""Model catalog and local artifact cache."""

from .catalog import CATALOG, ModelDescriptor, ModelType, describe
from .fetch import Fetcher, HttpxFetcher
from .manager import CachedModel, ModelManager

__all__ = [
    "CATALOG",
    "CachedModel",
    "Fetcher",
    "HttpxFetcher",
    "ModelDescriptor",
    "ModelManager",
    "ModelType",
    "describe",
]

"""Catalog domain services (external metadata lookup)."""

from .metadata_client import MetadataClient

__all__ = ["MetadataClient"]

"""Layered package catalog stored in the key-value store."""
from .models import Package, PackageIndexEntry, PackageVersion, Repository
from .resolver import CatalogResolver

__all__ = ["CatalogResolver", "Package", "PackageIndexEntry", "PackageVersion", "Repository"]

"""
Importer for .pkpass archives.

Extracts the archive, parses pass.json, maps it onto a Pass record and
stores it, removing every file of a failed import.
"""

from pasbook.importer.archive_extractor import ArchiveExtractor
from pasbook.importer.asset_resolver import ResolvedAssets, resolve_asset
from pasbook.importer.coordinator import ImportCoordinator, ImportStage
from pasbook.importer.descriptor_parser import parse_descriptor
from pasbook.importer.domain_mapper import map_descriptor, parse_date
from pasbook.importer.retry import import_with_retry

__all__ = [
    "ArchiveExtractor",
    "ImportCoordinator",
    "ImportStage",
    "ResolvedAssets",
    "import_with_retry",
    "map_descriptor",
    "parse_date",
    "parse_descriptor",
    "resolve_asset",
]

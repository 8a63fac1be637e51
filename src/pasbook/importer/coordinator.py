"""Drives a complete .pkpass import and owns the cleanup of failed imports"""

import logging
import uuid
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import BinaryIO

from pasbook.config import settings
from pasbook.errors import (
    ArchiveError,
    DescriptorError,
    DuplicateSerialNumber,
    InvalidArchive,
    StorageError,
)
from pasbook.importer.archive_extractor import ArchiveExtractor
from pasbook.importer.asset_resolver import ResolvedAssets
from pasbook.importer.descriptor_parser import parse_descriptor
from pasbook.importer.domain_mapper import map_descriptor
from pasbook.models.dao.pass_dao import PassDAO
from pasbook.models.pass_record import Pass
from pasbook.utils.files import atomic_copy_stream, remove_tree


class ImportStage(Enum):
    """Steps of an import, in the order they are reached"""

    START = "start"
    ARCHIVED = "archived"
    EXTRACTED = "extracted"
    PARSED = "parsed"
    MAPPED = "mapped"
    PERSISTED = "persisted"


class ImportCoordinator:
    """
    Imports packaged passes into the pass store.

    Each import gets a fresh id and its own working directory:

        <passes_dir>/<id>/pass.pkpass   copy of the imported bytes
        <passes_dir>/<id>/images/       extracted image assets

    When an import fails at any step the whole working directory is removed
    before the error propagates, so a failed import leaves nothing on disk.
    """

    def __init__(
        self,
        dao: PassDAO,
        passes_dir: Path | None = None,
        extractor: ArchiveExtractor | None = None,
    ):
        self.dao: PassDAO = dao
        self.passes_dir: Path = passes_dir or settings.PASSES_DIR_PATH
        self.extractor: ArchiveExtractor = extractor or ArchiveExtractor()
        self.logger: logging.Logger = logging.getLogger("ImportCoordinator")

    def working_directory(self, pass_id: str) -> Path:
        return self.passes_dir / pass_id

    def import_file(self, path: Path) -> Pass:
        """Import the .pkpass file at `path`"""
        try:
            source = open(path, "rb")
        except OSError as e:
            raise StorageError(f"Cannot read {path}", e) from e
        with source:
            return self.import_pass(source)

    def import_pass(self, source: BinaryIO) -> Pass:
        """
        Import a pass from a binary stream.

        Raises:
            InvalidArchive: not a ZIP, no pass.json, bad JSON or a missing
                required field
            DuplicateSerialNumber: a pass with this serial number is stored
            StorageError: the working directory or the store failed
        """
        pass_id = uuid.uuid4().hex
        work_dir = self.working_directory(pass_id)

        try:
            work_dir.mkdir(parents=True)
        except OSError as e:
            raise StorageError(f"Cannot create working directory {work_dir}", e) from e

        try:
            record = self._run(pass_id, work_dir, source)
        except BaseException as e:
            self.logger.error("Import %s failed: %s", pass_id, e)
            self._cleanup(work_dir)
            raise

        self.logger.info(
            "Imported pass %s (serial %s, %s)",
            record.id,
            record.serial_number,
            record.pass_type.value,
        )
        return record

    def _run(self, pass_id: str, work_dir: Path, source: BinaryIO) -> Pass:
        images_dir = work_dir / settings.IMAGES_DIR_NAME
        archive_path = work_dir / settings.ORIGINAL_ARCHIVE_NAME
        self._advance(pass_id, ImportStage.START)

        # The raw bytes are kept before parsing anything
        try:
            images_dir.mkdir()
            _ = atomic_copy_stream(source, archive_path)
        except OSError as e:
            raise StorageError(f"Cannot store archive for {pass_id}", e) from e
        self._advance(pass_id, ImportStage.ARCHIVED)

        try:
            manifest = self.extractor.extract(archive_path, images_dir)
        except ArchiveError as e:
            raise InvalidArchive(e) from e
        self._advance(pass_id, ImportStage.EXTRACTED)

        try:
            descriptor = parse_descriptor(manifest)
        except DescriptorError as e:
            raise InvalidArchive(e) from e
        self._advance(pass_id, ImportStage.PARSED)

        assets = ResolvedAssets.from_directory(images_dir)
        record = map_descriptor(
            descriptor, pass_id, assets, archive_path, now=datetime.now(UTC)
        )
        self._advance(pass_id, ImportStage.MAPPED)

        if self.dao.find_by_serial_number(record.serial_number) is not None:
            raise DuplicateSerialNumber(record.serial_number)

        # The store's unique constraint still rejects a concurrent duplicate
        self.dao.insert(record)
        self._advance(pass_id, ImportStage.PERSISTED)
        return record

    def _advance(self, pass_id: str, stage: ImportStage) -> None:
        self.logger.debug("Import %s: %s", pass_id, stage.value)

    def _cleanup(self, work_dir: Path) -> None:
        """Best effort, a failure here must not hide the import error"""
        if remove_tree(work_dir):
            self.logger.debug("Removed working directory %s", work_dir)
        else:
            self.logger.warning("Working directory %s was left on disk", work_dir)

    def delete_pass(self, pass_id: str) -> bool:
        """
        Delete the stored record, then its working directory.

        Returns False, touching nothing, when no record has this id.
        """
        if not self.dao.delete(pass_id):
            self.logger.debug("Pass %s is not stored, nothing to delete", pass_id)
            return False

        self._cleanup(self.working_directory(pass_id))
        self.logger.info("Deleted pass %s", pass_id)
        return True

    def get_pass(self, pass_id: str) -> Pass | None:
        return self.dao.find_by_id(pass_id)

    def list_passes(self) -> list[Pass]:
        """All passes, most recent relevant date first"""
        return self.dao.list_sorted_by_date()

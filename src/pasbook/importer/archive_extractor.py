"""Walks a .pkpass ZIP container, capturing pass.json and the image assets"""

import logging
import re
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO

from pasbook.config import settings
from pasbook.errors import MalformedArchive, ManifestMissing

MANIFEST_ENTRY: str = "pass.json"
IMAGE_FAMILIES: tuple[str, ...] = (
    "logo",
    "icon",
    "thumbnail",
    "strip",
    "background",
    "footer",
)
_IMAGE_NAME = re.compile(
    rf"^({'|'.join(IMAGE_FAMILIES)})(@[23]x)?\.png$", re.IGNORECASE
)


def image_file_name(entry_name: str) -> str | None:
    """
    Local file name for an allow-listed image entry, None for other entries.

    Path separators are flattened to underscores and the base name is
    lowercased, so `en.lproj/Logo@2X.png` becomes `en.lproj_logo@2x.png`.
    """
    parts = re.split(r"[/\\]", entry_name)
    if not _IMAGE_NAME.match(parts[-1]):
        return None
    parts[-1] = parts[-1].lower()
    return "_".join(parts)


class ArchiveExtractor:
    """
    Extracts the manifest and images from a packaged pass.

    Only the entry literally named `pass.json` is kept as the manifest.
    Images are written flat into the images directory, any other entry is
    ignored. An image that cannot be extracted is skipped.
    """

    def __init__(self, max_image_bytes: int | None = None):
        self.max_image_bytes: int = (
            max_image_bytes
            if max_image_bytes is not None
            else settings.MAX_IMAGE_ENTRY_BYTES
        )
        self.logger: logging.Logger = logging.getLogger("ArchiveExtractor")

    def extract(self, archive: Path | BinaryIO, images_dir: Path) -> bytes:
        """
        Write the images to `images_dir` and return the manifest bytes.

        Raises:
            MalformedArchive: the input is not a readable ZIP container
            ManifestMissing: no pass.json entry exists
        """
        manifest: bytes | None = None
        images_written = 0

        try:
            zip_file = zipfile.ZipFile(archive, "r")
        except (zipfile.BadZipFile, OSError, ValueError) as e:
            raise MalformedArchive(f"Not a ZIP archive: {e}") from e

        with zip_file:
            for info in zip_file.infolist():
                if info.is_dir():
                    continue

                if info.filename == MANIFEST_ENTRY:
                    manifest = self._read_manifest(zip_file, info)
                    continue

                file_name = image_file_name(info.filename)
                if file_name is None:
                    continue
                if self._extract_image(zip_file, info, images_dir / file_name):
                    images_written += 1

        if manifest is None:
            raise ManifestMissing()

        self.logger.debug(
            "Extracted manifest (%d bytes) and %d images", len(manifest), images_written
        )
        return manifest

    def _read_manifest(self, zip_file: zipfile.ZipFile, info: zipfile.ZipInfo) -> bytes:
        try:
            return zip_file.read(info)
        except (
            zipfile.BadZipFile,
            zlib.error,
            EOFError,
            NotImplementedError,
            RuntimeError,
        ) as e:
            raise MalformedArchive(f"Cannot read {MANIFEST_ENTRY}: {e}") from e

    def _extract_image(
        self, zip_file: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path
    ) -> bool:
        """Copy one image entry to disk, returns False when it was skipped"""
        if info.file_size > self.max_image_bytes:
            self.logger.warning(
                "Skipping image %s: %d bytes exceeds the %d bytes limit",
                info.filename,
                info.file_size,
                self.max_image_bytes,
            )
            return False

        try:
            data = zip_file.read(info)
            _ = target.write_bytes(data)
        except (
            zipfile.BadZipFile,
            zlib.error,
            EOFError,
            NotImplementedError,
            RuntimeError,
            OSError,
        ) as e:
            self.logger.warning("Skipping image %s: %s", info.filename, e)
            self._discard(target)
            return False
        return True

    def _discard(self, target: Path) -> None:
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            self.logger.debug("Cannot remove partial image %s: %s", target, e)

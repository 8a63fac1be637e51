"""Tests for walking .pkpass archives"""

import io
import shutil
import tempfile
import zipfile
from pathlib import Path

import pytest

from pasbook.errors import MalformedArchive, ManifestMissing
from pasbook.importer.archive_extractor import ArchiveExtractor, image_file_name
from pkpass_factory import PNG_BYTES, build_pkpass, minimal_manifest


def test_image_file_name_accepts_allow_listed_names():
    assert image_file_name("logo.png") == "logo.png"
    assert image_file_name("icon@2x.png") == "icon@2x.png"
    assert image_file_name("footer@3x.png") == "footer@3x.png"
    assert image_file_name("Strip@2X.PNG") == "strip@2x.png"


def test_image_file_name_flattens_directories():
    assert image_file_name("en.lproj/thumbnail.png") == "en.lproj_thumbnail.png"
    assert image_file_name("../../evil/logo.png") == ".._.._evil_logo.png"
    assert image_file_name("a\\b\\icon.png") == "a_b_icon.png"


def test_image_file_name_rejects_other_entries():
    assert image_file_name("pass.json") is None
    assert image_file_name("manifest.json") is None
    assert image_file_name("signature") is None
    assert image_file_name("mylogo.png") is None
    assert image_file_name("logo@4x.png") is None
    assert image_file_name("logo.jpg") is None


class TestArchiveExtractor:
    """Tests for the ArchiveExtractor class"""

    def setup_method(self):
        self.temp_dir: Path = Path(tempfile.mkdtemp())
        self.archive_path: Path = self.temp_dir / "pass.pkpass"
        self.images_dir: Path = self.temp_dir / "images"
        self.images_dir.mkdir()
        self.extractor: ArchiveExtractor = ArchiveExtractor()

    def teardown_method(self):
        if self.temp_dir.exists():
            shutil.rmtree(self.temp_dir)

    def _write(self, data: bytes) -> Path:
        _ = self.archive_path.write_bytes(data)
        return self.archive_path

    def test_returns_manifest_bytes(self):
        manifest = b'{"serialNumber": "X"}'
        archive = self._write(build_pkpass(manifest))

        assert self.extractor.extract(archive, self.images_dir) == manifest

    def test_accepts_a_stream(self):
        manifest = b'{"serialNumber": "X"}'
        stream = io.BytesIO(build_pkpass(manifest))

        assert self.extractor.extract(stream, self.images_dir) == manifest

    def test_writes_images_and_ignores_other_entries(self):
        archive = self._write(
            build_pkpass(
                minimal_manifest(),
                images={"logo.png": PNG_BYTES, "icon@2x.png": PNG_BYTES},
                extra_entries={
                    "manifest.json": b"{}",
                    "signature": b"\x00\x01",
                    "en.lproj/pass.strings": b'"a" = "b";',
                    "mylogo.png": PNG_BYTES,
                },
            )
        )

        _ = self.extractor.extract(archive, self.images_dir)

        assert sorted(p.name for p in self.images_dir.iterdir()) == [
            "icon@2x.png",
            "logo.png",
        ]
        assert (self.images_dir / "logo.png").read_bytes() == PNG_BYTES

    def test_nested_entries_are_flattened_inside_images_dir(self):
        archive = self._write(
            build_pkpass(
                minimal_manifest(),
                images={
                    "en.lproj/logo.png": PNG_BYTES,
                    "../../outside/icon.png": PNG_BYTES,
                },
            )
        )

        _ = self.extractor.extract(archive, self.images_dir)

        written = sorted(p.name for p in self.images_dir.iterdir())
        assert written == [".._.._outside_icon.png", "en.lproj_logo.png"]
        assert all(p.is_file() for p in self.images_dir.iterdir())
        assert not (self.temp_dir.parent / "outside").exists()

    def test_image_names_are_matched_case_insensitively(self):
        archive = self._write(
            build_pkpass(minimal_manifest(), images={"Logo@3X.PNG": PNG_BYTES})
        )

        _ = self.extractor.extract(archive, self.images_dir)

        assert (self.images_dir / "logo@3x.png").is_file()

    def test_not_a_zip_raises_malformed_archive(self):
        archive = self._write(b"this is definitely not a zip file")

        with pytest.raises(MalformedArchive):
            _ = self.extractor.extract(archive, self.images_dir)

    def test_empty_file_raises_malformed_archive(self):
        archive = self._write(b"")

        with pytest.raises(MalformedArchive):
            _ = self.extractor.extract(archive, self.images_dir)

    def test_missing_manifest_raises(self):
        archive = self._write(build_pkpass(None, images={"logo.png": PNG_BYTES}))

        with pytest.raises(ManifestMissing):
            _ = self.extractor.extract(archive, self.images_dir)

    def test_manifest_name_is_case_sensitive_and_top_level(self):
        archive = self._write(
            build_pkpass(
                None,
                extra_entries={"PASS.JSON": b"{}", "nested/pass.json": b"{}"},
            )
        )

        with pytest.raises(ManifestMissing):
            _ = self.extractor.extract(archive, self.images_dir)

    def test_directory_entries_are_skipped(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zip_file:
            zip_file.writestr("logo.png/", b"")
            zip_file.writestr("pass.json", b"{}")
        archive = self._write(buffer.getvalue())

        assert self.extractor.extract(archive, self.images_dir) == b"{}"
        assert list(self.images_dir.iterdir()) == []

    def test_corrupt_image_is_skipped(self):
        payload = b"A" * 64
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as zip_file:
            zip_file.writestr("pass.json", b"{}")
            zip_file.writestr("strip.png", payload)
            zip_file.writestr("icon.png", PNG_BYTES)
        # Same size, different bytes: the CRC check fails on read
        corrupted = buffer.getvalue().replace(payload, b"B" * 64)
        archive = self._write(corrupted)

        manifest = self.extractor.extract(archive, self.images_dir)

        assert manifest == b"{}"
        assert not (self.images_dir / "strip.png").exists()
        assert (self.images_dir / "icon.png").is_file()

    def test_oversized_image_is_skipped(self):
        extractor = ArchiveExtractor(max_image_bytes=10)
        archive = self._write(
            build_pkpass(
                minimal_manifest(),
                images={"logo.png": b"x" * 11, "icon.png": b"x" * 10},
            )
        )

        _ = extractor.extract(archive, self.images_dir)

        assert not (self.images_dir / "logo.png").exists()
        assert (self.images_dir / "icon.png").is_file()

    def test_missing_images_dir_is_not_fatal(self):
        shutil.rmtree(self.images_dir)
        archive = self._write(
            build_pkpass(minimal_manifest(), images={"logo.png": PNG_BYTES})
        )

        manifest = self.extractor.extract(archive, self.images_dir)

        assert b"SERIAL-0001" in manifest

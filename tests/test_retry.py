"""Tests for the import retry policy"""

from pathlib import Path

import pytest

from pasbook.errors import (
    DuplicateSerialNumber,
    InvalidArchive,
    ManifestMissing,
    StorageError,
)
from pasbook.importer.retry import import_with_retry

SOURCE = Path("/tmp/example.pkpass")


class FakeCoordinator:
    """Raises the queued outcomes in order, returns the first non-exception"""

    def __init__(self, *outcomes):
        self.outcomes: list = list(outcomes)
        self.calls: list[Path] = []

    def import_file(self, path: Path):
        self.calls.append(path)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class TestImportWithRetry:
    def setup_method(self):
        self.sleeps: list[float] = []

    def _retry(self, coordinator: FakeCoordinator, **kwargs):
        return import_with_retry(
            coordinator,
            SOURCE,
            max_attempts=3,
            initial_delay=0.5,
            multiplier=2,
            sleep=self.sleeps.append,
            **kwargs,
        )

    def test_success_on_first_attempt(self):
        coordinator = FakeCoordinator("record")

        assert self._retry(coordinator) == "record"
        assert coordinator.calls == [SOURCE]
        assert self.sleeps == []

    def test_transient_failures_are_retried_with_backoff(self):
        coordinator = FakeCoordinator(
            StorageError("busy"), StorageError("busy"), "record"
        )
        attempts: list[int] = []

        assert self._retry(coordinator, on_retry=attempts.append) == "record"
        assert len(coordinator.calls) == 3
        assert self.sleeps == [0.5, 1.0]
        assert attempts == [2, 3]

    def test_gives_up_after_max_attempts(self):
        errors = [StorageError(f"failure {i}") for i in range(3)]
        coordinator = FakeCoordinator(*errors)

        with pytest.raises(StorageError) as info:
            _ = self._retry(coordinator)

        assert info.value is errors[-1]
        assert len(coordinator.calls) == 3
        assert self.sleeps == [0.5, 1.0]

    def test_invalid_archive_is_not_retried(self):
        coordinator = FakeCoordinator(InvalidArchive(ManifestMissing()), "record")

        with pytest.raises(InvalidArchive):
            _ = self._retry(coordinator)

        assert len(coordinator.calls) == 1
        assert self.sleeps == []

    def test_duplicate_is_not_retried(self):
        coordinator = FakeCoordinator(DuplicateSerialNumber("S1"), "record")

        with pytest.raises(DuplicateSerialNumber):
            _ = self._retry(coordinator)

        assert len(coordinator.calls) == 1

    def test_unexpected_errors_are_retried(self):
        coordinator = FakeCoordinator(OSError("flaky"), "record")

        assert self._retry(coordinator) == "record"
        assert self.sleeps == [0.5]

    def test_defaults_come_from_settings(self):
        coordinator = FakeCoordinator(
            StorageError("a"), StorageError("b"), StorageError("c"), "record"
        )

        with pytest.raises(StorageError):
            _ = import_with_retry(coordinator, SOURCE, sleep=self.sleeps.append)

        assert len(coordinator.calls) == 3
        assert self.sleeps == [0.5, 1.0]

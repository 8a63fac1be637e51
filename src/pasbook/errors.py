"""Exceptions raised while importing and storing passes"""

from typing_extensions import override


class PasbookError(Exception):
    """Base class for every error raised by pasbook"""


class ArchiveError(PasbookError):
    """The archive could not be walked"""


class MalformedArchive(ArchiveError):
    """The byte stream is not a readable ZIP container"""


class ManifestMissing(ArchiveError):
    """No pass.json entry was found in the archive"""

    def __init__(self, message: str = "pass.json not found in archive"):
        super().__init__(message)


class DescriptorError(PasbookError):
    """The manifest could not be turned into a descriptor"""


class MalformedJson(DescriptorError):
    """pass.json is not a JSON object"""


class MissingRequiredField(DescriptorError):
    """A required manifest key is absent, null or of the wrong type"""

    def __init__(self, name: str):
        super().__init__(f"Missing or invalid required field '{name}'")
        self.name: str = name


class PassImportError(PasbookError):
    """Base class for the errors returned by an import"""


class InvalidArchive(PassImportError):
    """
    The archive is corrupted or not a valid pass.

    `reason` keeps the underlying ArchiveError or DescriptorError.
    """

    def __init__(self, reason: PasbookError):
        super().__init__(f"Invalid pass archive: {reason}")
        self.reason: PasbookError = reason


class DuplicateSerialNumber(PassImportError):
    """A pass with the same serial number is already stored"""

    def __init__(self, serial_number: str):
        super().__init__(f"Pass with serial number '{serial_number}' already exists")
        self.serial_number: str = serial_number


class StorageError(PassImportError):
    """Filesystem or store failure"""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause: BaseException | None = cause

    @override
    def __str__(self) -> str:
        if self.cause is None:
            return super().__str__()
        return f"{super().__str__()}: {self.cause}"

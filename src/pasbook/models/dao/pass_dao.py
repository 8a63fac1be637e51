"""
SQLite persistence for imported passes.

Scalar attributes map to columns, timestamps are stored as epoch
microseconds, and the nested parts of the record (locations, barcode,
fields) are stored as msgpack blobs.
"""

import logging
import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path
from types import TracebackType
from typing import Any, Self, cast

import msgpack

from pasbook.config import settings
from pasbook.errors import DuplicateSerialNumber, StorageError
from pasbook.models.pass_record import (
    Barcode,
    Location,
    Pass,
    PassField,
    PassType,
)

COLUMNS: tuple[str, ...] = (
    "id",
    "serial_number",
    "pass_type_identifier",
    "organization_name",
    "description",
    "team_identifier",
    "pass_type",
    "relevant_date",
    "expiration_date",
    "locations",
    "logo_text",
    "background_color",
    "foreground_color",
    "label_color",
    "barcode",
    "logo_path",
    "icon_path",
    "thumbnail_path",
    "strip_path",
    "background_path",
    "original_archive_path",
    "fields",
    "created_at",
    "modified_at",
)


EPOCH: datetime = datetime(1970, 1, 1, tzinfo=UTC)


def _to_micros(value: datetime | None) -> int | None:
    if value is None:
        return None
    return (value - EPOCH) // timedelta(microseconds=1)


def _from_micros(value: int | None) -> datetime | None:
    if value is None:
        return None
    return EPOCH + timedelta(microseconds=value)


def _pack(value: Any) -> bytes:
    return cast(bytes, msgpack.packb(value, use_bin_type=True))


def _unpack(value: bytes | None) -> Any:
    if value is None:
        return None
    return msgpack.unpackb(value, raw=False)


class PassDAO:
    """
    Store of Pass records.

    `serial_number` carries a UNIQUE constraint: a second insert with the same
    serial number fails with DuplicateSerialNumber even when two imports raced
    past the lookup.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path: Path = db_path or settings.DATABASE_PATH
        self.logger: logging.Logger = logging.getLogger("PassDAO")
        self._conn: sqlite3.Connection | None = None

    def open(self) -> None:
        """Open the database, creating the schema if needed"""
        if self._conn is not None:
            return

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
            self._create_schema()
        except (sqlite3.Error, OSError) as e:
            self.close()
            raise StorageError(f"Cannot open pass database {self.db_path}", e) from e
        self.logger.debug("Opened pass database %s", self.db_path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.open()
        return cast(sqlite3.Connection, self._conn)

    def _create_schema(self) -> None:
        if self._conn is None:
            return

        cursor = self._conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS passes (
                id TEXT PRIMARY KEY,
                serial_number TEXT NOT NULL UNIQUE,
                pass_type_identifier TEXT NOT NULL,
                organization_name TEXT NOT NULL,
                description TEXT NOT NULL,
                team_identifier TEXT NOT NULL,
                pass_type TEXT NOT NULL,
                relevant_date INTEGER,
                expiration_date INTEGER,
                locations BLOB NOT NULL,
                logo_text TEXT,
                background_color TEXT,
                foreground_color TEXT,
                label_color TEXT,
                barcode BLOB,
                logo_path TEXT,
                icon_path TEXT,
                thumbnail_path TEXT,
                strip_path TEXT,
                background_path TEXT,
                original_archive_path TEXT NOT NULL,
                fields BLOB NOT NULL,
                created_at INTEGER NOT NULL,
                modified_at INTEGER NOT NULL
            )
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_relevant_date ON passes(relevant_date)
        """)
        self._conn.commit()

    def insert(self, record: Pass) -> None:
        """
        Store a new record.

        Raises:
            DuplicateSerialNumber: the serial number is already stored
            StorageError: any other database failure, or text the store
                cannot encode
        """
        conn = self._connection()
        placeholders = ", ".join("?" for _ in COLUMNS)
        try:
            with conn:
                conn.execute(
                    f"INSERT INTO passes ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                    self._to_row(record),
                )
        except sqlite3.IntegrityError as e:
            if self.find_by_serial_number(record.serial_number) is not None:
                raise DuplicateSerialNumber(record.serial_number) from e
            raise StorageError(f"Cannot insert pass {record.id}", e) from e
        except (sqlite3.Error, UnicodeEncodeError) as e:
            raise StorageError(f"Cannot insert pass {record.id}", e) from e
        self.logger.debug("Inserted pass %s (%s)", record.id, record.serial_number)

    def find_by_id(self, pass_id: str) -> Pass | None:
        return self._find_one("SELECT * FROM passes WHERE id = ?", pass_id)

    def find_by_serial_number(self, serial_number: str) -> Pass | None:
        return self._find_one(
            "SELECT * FROM passes WHERE serial_number = ?", serial_number
        )

    def delete(self, pass_id: str) -> bool:
        """Remove the record, returns False when it was not stored"""
        conn = self._connection()
        try:
            with conn:
                cursor = conn.execute("DELETE FROM passes WHERE id = ?", (pass_id,))
        except (sqlite3.Error, UnicodeEncodeError) as e:
            raise StorageError(f"Cannot delete pass {pass_id}", e) from e
        return cursor.rowcount > 0

    def list_sorted_by_date(self) -> list[Pass]:
        """Most recent relevant date first, passes without one last"""
        conn = self._connection()
        try:
            rows = conn.execute("""
                SELECT * FROM passes
                ORDER BY CASE WHEN relevant_date IS NULL THEN 1 ELSE 0 END,
                         relevant_date DESC,
                         created_at DESC
            """).fetchall()
        except sqlite3.Error as e:
            raise StorageError("Cannot list passes", e) from e
        return [self._from_row(row) for row in rows]

    def _find_one(self, query: str, value: str) -> Pass | None:
        conn = self._connection()
        try:
            row = conn.execute(query, (value,)).fetchone()
        except (sqlite3.Error, UnicodeEncodeError) as e:
            raise StorageError("Cannot query passes", e) from e
        return self._from_row(row) if row is not None else None

    @staticmethod
    def _to_row(record: Pass) -> tuple[Any, ...]:
        return (
            record.id,
            record.serial_number,
            record.pass_type_identifier,
            record.organization_name,
            record.description,
            record.team_identifier,
            record.pass_type.value,
            _to_micros(record.relevant_date),
            _to_micros(record.expiration_date),
            _pack([location.to_dict() for location in record.locations]),
            record.logo_text,
            record.background_color,
            record.foreground_color,
            record.label_color,
            _pack(record.barcode.to_dict()) if record.barcode else None,
            record.logo_path,
            record.icon_path,
            record.thumbnail_path,
            record.strip_path,
            record.background_path,
            record.original_archive_path,
            _pack({key: value.to_dict() for key, value in record.fields.items()}),
            _to_micros(record.created_at),
            _to_micros(record.modified_at),
        )

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Pass:
        barcode = _unpack(row["barcode"])
        return Pass(
            id=row["id"],
            serial_number=row["serial_number"],
            pass_type_identifier=row["pass_type_identifier"],
            organization_name=row["organization_name"],
            description=row["description"],
            team_identifier=row["team_identifier"],
            pass_type=PassType(row["pass_type"]),
            relevant_date=_from_micros(row["relevant_date"]),
            expiration_date=_from_micros(row["expiration_date"]),
            locations=[Location.from_dict(item) for item in _unpack(row["locations"])],
            logo_text=row["logo_text"],
            background_color=row["background_color"],
            foreground_color=row["foreground_color"],
            label_color=row["label_color"],
            barcode=Barcode.from_dict(barcode) if barcode else None,
            logo_path=row["logo_path"],
            icon_path=row["icon_path"],
            thumbnail_path=row["thumbnail_path"],
            strip_path=row["strip_path"],
            background_path=row["background_path"],
            original_archive_path=row["original_archive_path"],
            fields={
                key: PassField.from_dict(value)
                for key, value in _unpack(row["fields"]).items()
            },
            created_at=cast(datetime, _from_micros(row["created_at"])),
            modified_at=cast(datetime, _from_micros(row["modified_at"])),
        )

"""
Maps a PassDescriptor onto the Pass domain record.

Nothing here raises: a date, barcode format or alignment that cannot be
understood degrades to "absent" (or to the documented default).
"""

import re
from datetime import UTC, date, datetime, time
from decimal import Decimal
from pathlib import Path

from pasbook.config import settings
from pasbook.importer.asset_resolver import ResolvedAssets
from pasbook.models.descriptor import (
    BarcodeDescriptor,
    FieldDescriptor,
    LocationDescriptor,
    PassDescriptor,
)
from pasbook.models.pass_record import (
    Barcode,
    BarcodeFormat,
    Location,
    Pass,
    PassField,
    TextAlignment,
)

BARCODE_FORMATS: dict[str, BarcodeFormat] = {
    "PKBarcodeFormatQR": BarcodeFormat.QR,
    "PKBarcodeFormatPDF417": BarcodeFormat.PDF417,
    "PKBarcodeFormatAztec": BarcodeFormat.AZTEC,
    "PKBarcodeFormatCode128": BarcodeFormat.CODE128,
}
DEFAULT_BARCODE_FORMAT: BarcodeFormat = BarcodeFormat.QR

# Accepted shapes, narrower than what datetime.fromisoformat understands
_DATE = r"\d{4}-\d{2}-\d{2}"
_TIME = r"\d{2}:\d{2}(?::\d{2}(?:\.\d{1,9})?)?"
OFFSET_DATETIME = re.compile(rf"{_DATE}T{_TIME}(?:Z|[+-]\d{{2}}:\d{{2}})", re.ASCII)
LOCAL_DATETIME = re.compile(rf"{_DATE}T{_TIME}", re.ASCII)
CALENDAR_DATE = re.compile(_DATE, re.ASCII)

# Keys are upper-cased before lookup
TEXT_ALIGNMENTS: dict[str, TextAlignment] = {
    "PKTEXTALIGNMENTLEFT": TextAlignment.LEFT,
    "LEFT": TextAlignment.LEFT,
    "PKTEXTALIGNMENTCENTER": TextAlignment.CENTER,
    "CENTER": TextAlignment.CENTER,
    "PKTEXTALIGNMENTRIGHT": TextAlignment.RIGHT,
    "RIGHT": TextAlignment.RIGHT,
    "PKTEXTALIGNMENTNATURAL": TextAlignment.NATURAL,
    "NATURAL": TextAlignment.NATURAL,
}


def _parse_offset_datetime(value: str) -> datetime | None:
    """`2024-12-25T20:00:00Z` or `2024-12-25T20:00:00+01:00`"""
    if not OFFSET_DATETIME.fullmatch(value):
        return None
    try:
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            return None
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError):
        return None


def _parse_local_datetime(value: str) -> datetime | None:
    """`2024-12-25T20:00:00`, read as UTC"""
    if not LOCAL_DATETIME.fullmatch(value):
        return None
    try:
        return datetime.fromisoformat(value + "Z").astimezone(UTC)
    except (ValueError, OverflowError):
        return None


def _parse_calendar_date(value: str) -> datetime | None:
    """`2024-12-25`, read as midnight UTC"""
    if not CALENDAR_DATE.fullmatch(value):
        return None
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return None
    return datetime.combine(parsed, time.min, tzinfo=UTC)


DATE_PARSERS = (_parse_offset_datetime, _parse_local_datetime, _parse_calendar_date)


def parse_date(value: str | None) -> datetime | None:
    """First successful parser of DATE_PARSERS wins, None otherwise"""
    if value is None or not value.strip():
        return None
    value = value.strip()
    for parser in DATE_PARSERS:
        parsed = parser(value)
        if parsed is not None:
            return parsed
    return None


def parse_barcode_format(value: str | None) -> BarcodeFormat:
    if value is None:
        return DEFAULT_BARCODE_FORMAT
    return BARCODE_FORMATS.get(value, DEFAULT_BARCODE_FORMAT)


def parse_alignment(value: str | None) -> TextAlignment | None:
    if value is None:
        return None
    return TEXT_ALIGNMENTS.get(value.upper())


def field_value_text(value: str | int | float) -> str:
    """Numbers become their plain decimal form, strings pass through"""
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    return format(Decimal(repr(value)), "f")


def map_location(location: LocationDescriptor) -> Location:
    return Location(
        latitude=location.latitude,
        longitude=location.longitude,
        altitude=location.altitude,
        relevant_text=location.relevant_text,
    )


def map_barcode(barcode: BarcodeDescriptor) -> Barcode:
    return Barcode(
        message=barcode.message,
        format=parse_barcode_format(barcode.format),
        encoding=barcode.message_encoding or settings.DEFAULT_MESSAGE_ENCODING,
        alt_text=barcode.alt_text,
    )


def map_field(field: FieldDescriptor) -> PassField:
    return PassField(
        value=field_value_text(field.value),
        label=field.label,
        alignment=parse_alignment(field.text_alignment),
    )


def _as_text(path: Path | None) -> str | None:
    return str(path) if path is not None else None


def map_descriptor(
    descriptor: PassDescriptor,
    pass_id: str,
    assets: ResolvedAssets,
    archive_path: Path,
    now: datetime | None = None,
) -> Pass:
    """Build the Pass record for a freshly imported descriptor"""
    now = now or datetime.now(UTC)
    primary_barcode = descriptor.primary_barcode

    return Pass(
        id=pass_id,
        serial_number=descriptor.serial_number,
        pass_type_identifier=descriptor.pass_type_identifier,
        organization_name=descriptor.organization_name,
        description=descriptor.description,
        team_identifier=descriptor.team_identifier,
        pass_type=descriptor.pass_type,
        relevant_date=parse_date(descriptor.relevant_date),
        expiration_date=parse_date(descriptor.expiration_date),
        locations=[map_location(location) for location in descriptor.locations],
        logo_text=descriptor.logo_text,
        background_color=descriptor.background_color,
        foreground_color=descriptor.foreground_color,
        label_color=descriptor.label_color,
        barcode=(
            map_barcode(primary_barcode) if primary_barcode is not None else None
        ),
        logo_path=_as_text(assets.logo),
        icon_path=_as_text(assets.icon),
        thumbnail_path=_as_text(assets.thumbnail),
        strip_path=_as_text(assets.strip),
        background_path=_as_text(assets.background),
        original_archive_path=str(archive_path),
        fields={
            key: map_field(field) for key, field in descriptor.all_fields().items()
        },
        created_at=now,
        modified_at=now,
    )

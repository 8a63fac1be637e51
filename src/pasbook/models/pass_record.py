"""Domain model of an imported pass"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class PassType(Enum):
    """Type of pass, decided by the structure present in pass.json"""

    BOARDING_PASS = "BOARDING_PASS"
    EVENT_TICKET = "EVENT_TICKET"
    COUPON = "COUPON"
    STORE_CARD = "STORE_CARD"
    GENERIC = "GENERIC"


class BarcodeFormat(Enum):
    """Supported barcode symbologies"""

    QR = "QR"
    PDF417 = "PDF417"
    AZTEC = "AZTEC"
    CODE128 = "CODE128"


class TextAlignment(Enum):
    """Text alignment of a field value"""

    LEFT = "LEFT"
    CENTER = "CENTER"
    RIGHT = "RIGHT"
    NATURAL = "NATURAL"


@dataclass(frozen=True)
class Location:
    """Geographic location where the pass is relevant"""

    latitude: float
    longitude: float
    altitude: float | None = None
    relevant_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "lat": self.latitude,
            "lon": self.longitude,
            "alt": self.altitude,
            "text": self.relevant_text,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Location":
        return cls(
            latitude=data["lat"],
            longitude=data["lon"],
            altitude=data.get("alt"),
            relevant_text=data.get("text"),
        )


@dataclass(frozen=True)
class Barcode:
    """Primary barcode of the pass"""

    message: str
    format: BarcodeFormat
    encoding: str
    alt_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "format": self.format.value,
            "encoding": self.encoding,
            "alt": self.alt_text,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Barcode":
        return cls(
            message=data["message"],
            format=BarcodeFormat(data["format"]),
            encoding=data["encoding"],
            alt_text=data.get("alt"),
        )


@dataclass(frozen=True)
class PassField:
    """A single label/value pair shown on the pass"""

    value: str
    label: str | None = None
    alignment: TextAlignment | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "label": self.label,
            "align": self.alignment.value if self.alignment else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PassField":
        alignment = data.get("align")
        return cls(
            value=data["value"],
            label=data.get("label"),
            alignment=TextAlignment(alignment) if alignment else None,
        )


@dataclass(frozen=True)
class Pass:
    """
    A pass imported from a .pkpass archive.

    Every asset path and `original_archive_path` live under the working
    directory named after `id`. Records are never modified after import.
    """

    id: str
    serial_number: str
    pass_type_identifier: str
    organization_name: str
    description: str
    team_identifier: str
    original_archive_path: str
    created_at: datetime
    modified_at: datetime
    pass_type: PassType = PassType.GENERIC
    relevant_date: datetime | None = None
    expiration_date: datetime | None = None
    locations: list[Location] = field(default_factory=list)
    logo_text: str | None = None
    background_color: str | None = None
    foreground_color: str | None = None
    label_color: str | None = None
    barcode: Barcode | None = None
    logo_path: str | None = None
    icon_path: str | None = None
    thumbnail_path: str | None = None
    strip_path: str | None = None
    background_path: str | None = None
    fields: dict[str, PassField] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the pass, dates as ISO-8601 strings"""
        return {
            "id": self.id,
            "serialNumber": self.serial_number,
            "passTypeIdentifier": self.pass_type_identifier,
            "organizationName": self.organization_name,
            "description": self.description,
            "teamIdentifier": self.team_identifier,
            "passType": self.pass_type.value,
            "relevantDate": _isoformat(self.relevant_date),
            "expirationDate": _isoformat(self.expiration_date),
            "locations": [location.to_dict() for location in self.locations],
            "logoText": self.logo_text,
            "backgroundColor": self.background_color,
            "foregroundColor": self.foreground_color,
            "labelColor": self.label_color,
            "barcode": self.barcode.to_dict() if self.barcode else None,
            "logoPath": self.logo_path,
            "iconPath": self.icon_path,
            "thumbnailPath": self.thumbnail_path,
            "stripPath": self.strip_path,
            "backgroundPath": self.background_path,
            "originalArchivePath": self.original_archive_path,
            "fields": {key: value.to_dict() for key, value in self.fields.items()},
            "createdAt": _isoformat(self.created_at),
            "modifiedAt": _isoformat(self.modified_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Pass":
        """Builds the object from a dictionary produced by to_dict"""
        barcode = data.get("barcode")
        return cls(
            id=data["id"],
            serial_number=data["serialNumber"],
            pass_type_identifier=data["passTypeIdentifier"],
            organization_name=data["organizationName"],
            description=data["description"],
            team_identifier=data["teamIdentifier"],
            pass_type=PassType(data.get("passType", PassType.GENERIC.value)),
            relevant_date=_fromisoformat(data.get("relevantDate")),
            expiration_date=_fromisoformat(data.get("expirationDate")),
            locations=[Location.from_dict(item) for item in data.get("locations", [])],
            logo_text=data.get("logoText"),
            background_color=data.get("backgroundColor"),
            foreground_color=data.get("foregroundColor"),
            label_color=data.get("labelColor"),
            barcode=Barcode.from_dict(barcode) if barcode else None,
            logo_path=data.get("logoPath"),
            icon_path=data.get("iconPath"),
            thumbnail_path=data.get("thumbnailPath"),
            strip_path=data.get("stripPath"),
            background_path=data.get("backgroundPath"),
            original_archive_path=data["originalArchivePath"],
            fields={
                key: PassField.from_dict(value)
                for key, value in data.get("fields", {}).items()
            },
            created_at=datetime.fromisoformat(data["createdAt"]),
            modified_at=datetime.fromisoformat(data["modifiedAt"]),
        )


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _fromisoformat(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None

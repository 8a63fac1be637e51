"""
Typed form of pass.json.

Only the six identity keys are mandatory. Every optional part is parsed
leniently: a malformed optional item is dropped (and logged) instead of
failing the whole manifest.
"""

import logging
from typing import Annotated, Any, ClassVar, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

from pasbook.models.pass_record import PassType

REQUIRED_FIELDS: tuple[str, ...] = (
    "formatVersion",
    "passTypeIdentifier",
    "serialNumber",
    "teamIdentifier",
    "organizationName",
    "description",
)

# Probing order for the type-specific structure, first present wins
STRUCTURE_KEYS: tuple[str, ...] = (
    "boardingPass",
    "eventTicket",
    "coupon",
    "storeCard",
    "generic",
)

# Merge order of the field groups: on a key collision the later group wins
FIELD_GROUP_ORDER: tuple[str, ...] = (
    "header_fields",
    "primary_fields",
    "secondary_fields",
    "auxiliary_fields",
    "back_fields",
)


def _warn_dropped(what: str, value: object) -> None:
    logging.getLogger("Descriptor").warning(
        "Ignoring malformed %s: %.80r", what, value
    )


def _text_or_none(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    _warn_dropped("text value", value)
    return None


def _number_or_none(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    _warn_dropped("number", value)
    return None


def _flag_or_none(value: Any) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    _warn_dropped("flag", value)
    return None


def _drop_invalid(item_type: type[BaseModel], what: str) -> BeforeValidator:
    """Validate an optional object, replacing it by None when malformed"""
    adapter = TypeAdapter(item_type)

    def validate(value: Any) -> BaseModel | None:
        if value is None:
            return None
        try:
            return adapter.validate_python(value)
        except ValidationError:
            _warn_dropped(what, value)
            return None

    return BeforeValidator(validate)


def _drop_invalid_items(
    item_type: type[BaseModel], what: str
) -> BeforeValidator:
    """Validate a list, keeping only its well-formed items"""
    adapter = TypeAdapter(item_type)

    def validate(value: Any) -> list[BaseModel]:
        if value is None:
            return []
        if not isinstance(value, list):
            _warn_dropped(f"{what} list", value)
            return []
        items: list[BaseModel] = []
        for raw in value:
            try:
                items.append(adapter.validate_python(raw))
            except ValidationError:
                _warn_dropped(what, raw)
        return items

    return BeforeValidator(validate)


OptionalText = Annotated[str | None, BeforeValidator(_text_or_none)]
OptionalNumber = Annotated[float | None, BeforeValidator(_number_or_none)]
OptionalFlag = Annotated[bool | None, BeforeValidator(_flag_or_none)]
# Strings and booleans are not coordinates
Coordinate = Annotated[StrictFloat | StrictInt, AfterValidator(float)]


class _ManifestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, extra="ignore", frozen=True)


class FieldDescriptor(_ManifestModel):
    """A field of one of the five field groups"""

    key: StrictStr
    value: StrictStr | StrictInt | StrictFloat
    label: OptionalText = None
    text_alignment: OptionalText = None
    attributed_value: OptionalText = None
    change_message: OptionalText = None
    date_style: OptionalText = None
    time_style: OptionalText = None
    number_style: OptionalText = None
    currency_code: OptionalText = None


class LocationDescriptor(_ManifestModel):
    latitude: Coordinate
    longitude: Coordinate
    altitude: OptionalNumber = None
    relevant_text: OptionalText = None


class BarcodeDescriptor(_ManifestModel):
    message: StrictStr
    format: OptionalText = None
    message_encoding: OptionalText = None
    alt_text: OptionalText = None


FieldGroup = Annotated[
    list[FieldDescriptor], _drop_invalid_items(FieldDescriptor, "field")
]


class PassStructure(_ManifestModel):
    """The five field groups shared by every pass style"""

    PASS_TYPE: ClassVar[PassType]

    header_fields: FieldGroup = []
    primary_fields: FieldGroup = []
    secondary_fields: FieldGroup = []
    auxiliary_fields: FieldGroup = []
    back_fields: FieldGroup = []

    def all_fields(self) -> dict[str, FieldDescriptor]:
        """Flatten the groups into a key -> field map, later groups win"""
        merged: dict[str, FieldDescriptor] = {}
        for group in FIELD_GROUP_ORDER:
            for field in getattr(self, group):
                merged[field.key] = field
        return merged


class BoardingPass(PassStructure):
    PASS_TYPE: ClassVar[PassType] = PassType.BOARDING_PASS
    kind: Literal["boardingPass"] = "boardingPass"
    transit_type: OptionalText = None


class EventTicket(PassStructure):
    PASS_TYPE: ClassVar[PassType] = PassType.EVENT_TICKET
    kind: Literal["eventTicket"] = "eventTicket"


class Coupon(PassStructure):
    PASS_TYPE: ClassVar[PassType] = PassType.COUPON
    kind: Literal["coupon"] = "coupon"


class StoreCard(PassStructure):
    PASS_TYPE: ClassVar[PassType] = PassType.STORE_CARD
    kind: Literal["storeCard"] = "storeCard"


class Generic(PassStructure):
    PASS_TYPE: ClassVar[PassType] = PassType.GENERIC
    kind: Literal["generic"] = "generic"


ActiveStructure = Annotated[
    BoardingPass | EventTicket | Coupon | StoreCard | Generic,
    Field(discriminator="kind"),
]


class PassDescriptor(_ManifestModel):
    """The whole manifest, with the active structure as a tagged union"""

    format_version: StrictInt
    pass_type_identifier: StrictStr
    serial_number: StrictStr
    team_identifier: StrictStr
    organization_name: StrictStr
    description: StrictStr

    background_color: OptionalText = None
    foreground_color: OptionalText = None
    label_color: OptionalText = None
    logo_text: OptionalText = None

    relevant_date: OptionalText = None
    expiration_date: OptionalText = None
    locations: Annotated[
        list[LocationDescriptor], _drop_invalid_items(LocationDescriptor, "location")
    ] = []
    max_distance: OptionalNumber = None

    barcode: Annotated[
        BarcodeDescriptor | None, _drop_invalid(BarcodeDescriptor, "barcode")
    ] = None
    barcodes: Annotated[
        list[BarcodeDescriptor], _drop_invalid_items(BarcodeDescriptor, "barcode")
    ] = []

    web_service_url: Annotated[OptionalText, Field(alias="webServiceURL")] = None
    authentication_token: OptionalText = None
    sharing_prohibited: OptionalFlag = None

    structure: ActiveStructure | None = None

    @model_validator(mode="before")
    @classmethod
    def _select_structure(cls, data: Any) -> Any:
        """Tag the first present type-specific structure"""
        if not isinstance(data, dict):
            return data
        data = {key: value for key, value in data.items() if key != "structure"}
        for key in STRUCTURE_KEYS:
            raw = data.get(key)
            if raw is None:
                continue
            if not isinstance(raw, dict):
                _warn_dropped(key, raw)
                continue
            data["structure"] = {**raw, "kind": key}
            break
        return data

    @property
    def pass_type(self) -> PassType:
        """GENERIC when no type-specific structure is present"""
        if self.structure is None:
            return PassType.GENERIC
        return self.structure.PASS_TYPE

    @property
    def primary_barcode(self) -> BarcodeDescriptor | None:
        """The first entry of `barcodes`, else the legacy `barcode`"""
        if self.barcodes:
            return self.barcodes[0]
        return self.barcode

    def all_fields(self) -> dict[str, FieldDescriptor]:
        if self.structure is None:
            return {}
        return self.structure.all_fields()


"""Turns the raw pass.json bytes into a PassDescriptor"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from pasbook.errors import DescriptorError, MalformedJson, MissingRequiredField
from pasbook.models.descriptor import REQUIRED_FIELDS, PassDescriptor


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant {name}")


def _is_encodable(value: Any) -> bool:
    """False when a string of `value` holds a lone surrogate"""
    try:
        _ = json.dumps(value, ensure_ascii=False).encode("utf-8")
    except (UnicodeEncodeError, RecursionError):
        return False
    return True


def parse_descriptor(manifest: bytes) -> PassDescriptor:
    """
    Deserialize and schema-check the manifest.

    Raises:
        MalformedJson: the bytes are not a UTF-8 encoded JSON object, or a
            string escapes to text that cannot be encoded
        MissingRequiredField: an identity key is absent, null or mistyped
    """
    logger = logging.getLogger("DescriptorParser")

    try:
        # utf-8-sig tolerates a leading byte order mark
        data = json.loads(
            manifest.decode("utf-8-sig"), parse_constant=_reject_constant
        )
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise MalformedJson(f"pass.json is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedJson(
            f"pass.json must hold a JSON object, not {type(data).__name__}"
        )

    for name in REQUIRED_FIELDS:
        if data.get(name) is None or not _is_encodable(data[name]):
            raise MissingRequiredField(name)

    if not _is_encodable(data):
        raise MalformedJson("pass.json holds text that cannot be encoded")

    try:
        descriptor = PassDescriptor.model_validate(data)
    except ValidationError as e:
        for error in e.errors():
            location = error.get("loc", ())
            if location and location[0] in REQUIRED_FIELDS:
                raise MissingRequiredField(str(location[0])) from e
        raise DescriptorError(f"pass.json failed validation: {e}") from e

    logger.debug(
        "Parsed descriptor %s (type %s, %d fields)",
        descriptor.serial_number,
        descriptor.pass_type.value,
        len(descriptor.all_fields()),
    )
    return descriptor

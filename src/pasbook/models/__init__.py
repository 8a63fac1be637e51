"""The models used to represent a pass, before and after import"""

__all__ = [
    "Barcode",
    "BarcodeFormat",
    "Location",
    "Pass",
    "PassDAO",
    "PassDescriptor",
    "PassField",
    "PassType",
    "TextAlignment",
]

from .pass_record import Barcode
from .pass_record import BarcodeFormat
from .pass_record import Location
from .pass_record import Pass
from .pass_record import PassField
from .pass_record import PassType
from .pass_record import TextAlignment

from .descriptor import PassDescriptor
from .dao.pass_dao import PassDAO

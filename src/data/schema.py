"""
Canonical crop-type catalog for the fertilizer suggestion screen.
"""

from enum import Enum
from typing import List, Union

from src.intake.errors import InvalidCropError


class CropType(str, Enum):
    """Crop types offered by the crop picker (closed enumeration)."""
    MAIZE = "Maize"
    SUGARCANE = "Sugarcane"
    COTTON = "Cotton"
    TOBACCO = "Tobacco"
    PADDY = "Paddy"
    BARLEY = "Barley"
    WHEAT = "Wheat"
    MILLETS = "Millets"
    OIL_SEEDS = "Oil seeds"
    PULSES = "Pulses"
    GROUND_NUTS = "Ground Nuts"


# ---------- Display order (as offered by the picker) ----------
CROP_TYPES: List[str] = [c.value for c in CropType]

CROP_BY_VALUE = {c.value: c for c in CropType}


def parse_crop_type(value: Union[str, CropType]) -> CropType:
    """
    Validate a crop picker value against the catalog.

    Only exact catalog values are accepted; the picker never produces
    anything else, so a miss is a wiring defect rather than user error.

    Raises:
        InvalidCropError: If the value is not one of CROP_TYPES.
    """
    if isinstance(value, CropType):
        return value
    if isinstance(value, str) and value in CROP_BY_VALUE:
        return CROP_BY_VALUE[value]
    raise InvalidCropError(
        f"Unknown crop type {value!r}. Expected one of: {', '.join(CROP_TYPES)}"
    )

from enum import Enum
from typing import Tuple


class HazardCategory(str, Enum):
    PPE = "PPE"
    HOUSEKEEPING = "Housekeeping"
    ELECTRICAL = "Electrical"
    FALL_RISK = "Fall Risk"
    OTHER = "Other"


# Checked in order; the first group with a matching keyword wins.
KEYWORD_GROUPS: Tuple[Tuple[HazardCategory, Tuple[str, ...]], ...] = (
    (HazardCategory.PPE, ("helmet", "hard hat", "vest")),
    (HazardCategory.HOUSEKEEPING, ("debris", "clutter")),
    (HazardCategory.ELECTRICAL, ("wire", "electric")),
    (HazardCategory.FALL_RISK, ("fall", "height")),
)


def categorize_hazard(description: str) -> HazardCategory:
    """Map a free-text hazard description to a single category label.

    Matching is a case-insensitive substring test, so "Exposed wiring" hits
    the "wire" keyword. Descriptions matching nothing fall into ``OTHER``.
    """
    t = description.lower()

    for category, keywords in KEYWORD_GROUPS:
        if any(k in t for k in keywords):
            return category
    return HazardCategory.OTHER

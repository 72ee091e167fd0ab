from enum import IntEnum


class CriteriaId(IntEnum):
    """Validation criteria ids as stored in criteria_site.criteria_id."""

    overlapping = 3

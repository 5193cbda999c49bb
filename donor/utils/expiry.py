"""Shelf life of blood components and the expiry date it implies."""

from datetime import date, datetime, timedelta
from typing import Union

WHOLE_BLOOD = "Whole Blood"
RED_BLOOD_CELLS = "Red Blood Cells"
PLATELETS = "Platelets"
FRESH_FROZEN_PLASMA = "Fresh Frozen Plasma"
CRYOPRECIPITATE = "Cryoprecipitate"

SHELF_LIFE_DAYS = {
    WHOLE_BLOOD: 35,
    RED_BLOOD_CELLS: 42,
    PLATELETS: 5,
    FRESH_FROZEN_PLASMA: 365,
    CRYOPRECIPITATE: 365,
}

DEFAULT_SHELF_LIFE_DAYS = SHELF_LIFE_DAYS[WHOLE_BLOOD]

COMPONENT_CHOICES = [(name, name) for name in SHELF_LIFE_DAYS]


def shelf_life_days(component_type: str) -> int:
    return SHELF_LIFE_DAYS.get(component_type, DEFAULT_SHELF_LIFE_DAYS)


def _as_date(value: Union[date, str]) -> date:
    # Calendar dates only; a datetime is truncated rather than shifted between zones.
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # The whole string must be the date.
    return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()


def calculate_expiry(component_type: str, collection_date: Union[date, str]) -> date:
    """Collection date plus the component's shelf life (35 days when unknown)."""
    return _as_date(collection_date) + timedelta(days=shelf_life_days(component_type))

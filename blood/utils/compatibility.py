# blood/utils/compatibility.py
# ABO/Rh transfusion compatibility for red-cell products.
from typing import FrozenSet, Tuple

ABO_GROUPS = ("A", "B", "AB", "O")
RH_FACTORS = ("+", "-")
BLOOD_TYPES = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")

BLOOD_TYPE_CHOICES = [(bt, bt) for bt in BLOOD_TYPES]

# recipient -> donor types it can safely receive
_DONORS_FOR_RECIPIENT = {
    "AB+": frozenset(BLOOD_TYPES),  # universal recipient
    "AB-": frozenset({"AB-", "A-", "B-", "O-"}),
    "A+": frozenset({"A+", "A-", "O+", "O-"}),
    "A-": frozenset({"A-", "O-"}),
    "B+": frozenset({"B+", "B-", "O+", "O-"}),
    "B-": frozenset({"B-", "O-"}),
    "O+": frozenset({"O+", "O-"}),
    "O-": frozenset({"O-"}),
}


def compatible_donor_types(recipient_type: str) -> FrozenSet[str]:
    """
    Return the donor blood types a recipient can safely receive.
    Unknown types only match themselves.
    """
    return _DONORS_FOR_RECIPIENT.get(recipient_type, frozenset({recipient_type}))


def split_blood_type(blood_type: str) -> Tuple[str, str]:
    """'AB-' -> ('AB', '-'). Raises ValueError for anything outside the eight types."""
    value = (blood_type or "").strip().upper()
    if value not in BLOOD_TYPES:
        raise ValueError(f"Unknown blood type: {blood_type!r}")
    return value[:-1], value[-1]

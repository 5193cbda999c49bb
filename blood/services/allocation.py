"""Transfer-candidate filtering and request fulfilment.

The machine narrows the choice to safe, on-hand units and lists them
earliest-expiring first; the staff member picks the unit. Nothing here chooses
a unit on its own.
"""

from __future__ import annotations

import logging
from functools import reduce
from operator import or_
from typing import Iterable, List, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from blood import models as bmodels
from blood.services import notifications
from blood.utils.compatibility import compatible_donor_types, split_blood_type
from donor.models import Donation

logger = logging.getLogger(__name__)


class AllocationError(Exception):
    """A fulfilment attempt the operator can correct and retry."""

    status_code = 409


class RequestNotApproved(AllocationError):
    pass


class UnitUnavailable(AllocationError):
    pass


class IncompatibleUnit(AllocationError):
    status_code = 400


class NoAvailableUnits(AllocationError):
    pass


def _blood_type_filter(blood_types: Iterable[str]) -> Optional[Q]:
    clauses = []
    for blood_type in sorted(set(blood_types)):
        try:
            group, rh = split_blood_type(blood_type)
        except ValueError:
            continue
        clauses.append(Q(blood_type=group, rh_factor=rh))
    if not clauses:
        return None
    return reduce(or_, clauses)


def available_units(hospital, blood_types: Iterable[str], *, today=None) -> List[Donation]:
    """On-hand, unexpired, untransferred units of ``hospital`` matching ``blood_types``."""

    type_filter = _blood_type_filter(blood_types)
    if type_filter is None:
        return []
    return list(
        Donation.objects.available(hospital, today=today)
        .filter(type_filter)
        .select_related('donor')
        .order_by('expiry_date', 'id')
    )


def candidates_for_request(blood_request, *, today=None) -> List[Donation]:
    return available_units(
        blood_request.hospital,
        compatible_donor_types(blood_request.blood_type),
        today=today,
    )


def fulfil_request(blood_request, unit: Donation, *, notes: str = "", today=None) -> bmodels.Transfer:
    """Link the operator's chosen ``unit`` to ``blood_request`` and close the request."""

    today = today or timezone.localdate()

    with transaction.atomic():
        # Re-read both rows under lock so two operators cannot spend the same unit.
        blood_request = bmodels.BloodRequest.objects.select_for_update().get(pk=blood_request.pk)
        unit = Donation.objects.select_for_update().get(pk=unit.pk)

        if blood_request.status != bmodels.BloodRequest.STATUS_APPROVED:
            raise RequestNotApproved(
                f"Request #{blood_request.id} is {blood_request.status}; only approved requests can be fulfilled."
            )

        if unit.hospital_id != blood_request.hospital_id:
            raise UnitUnavailable(f"Unit {unit.blood_id} is not held by this hospital.")

        if not candidates_for_request(blood_request, today=today):
            raise NoAvailableUnits("No available units compatible with this request.")

        if unit.full_blood_type not in compatible_donor_types(blood_request.blood_type):
            raise IncompatibleUnit(
                f"{unit.full_blood_type} unit {unit.blood_id} is not compatible with a {blood_request.blood_type} recipient."
            )

        already_linked = bmodels.Transfer.objects.filter(unit=unit).exists()
        if unit.status != Donation.STATUS_AVAILABLE or unit.expiry_date < today or already_linked:
            raise UnitUnavailable(f"Unit {unit.blood_id} is no longer available; pick another unit.")

        transfer = bmodels.Transfer.objects.create(
            unit=unit,
            request=blood_request,
            hospital=blood_request.hospital,
            transfer_date=timezone.now(),
            notes=notes,
        )

        unit.status = Donation.STATUS_TRANSFERRED
        unit.save(update_fields=['status'])

        blood_request.status = bmodels.BloodRequest.STATUS_FULFILLED
        blood_request.save(update_fields=['status'])

        notifications.request_removed(blood_request, reason='fulfilled')

    logger.info(
        "Transfer %s: unit %s (%s) fulfilled request %s (%s)",
        transfer.id,
        unit.blood_id,
        unit.full_blood_type,
        blood_request.id,
        blood_request.blood_type,
    )
    return transfer

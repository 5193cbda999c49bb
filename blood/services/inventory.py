"""Aggregates behind the dashboard, inventory and analytics pages."""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import timedelta
from typing import Dict, List, Optional

from django.conf import settings
from django.db.models import Count, Min, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from blood import models as bmodels
from blood.utils.compatibility import BLOOD_TYPES
from donor.models import Donation, Donor

logger = logging.getLogger(__name__)

# Volume of one standard unit, used wherever volume is reported as unit counts.
ML_PER_UNIT = 350


def _today(today=None):
    return today or timezone.localdate()


def _per_type_rows(queryset):
    return (
        queryset.values('blood_type', 'rh_factor')
        .annotate(units=Count('id'), volume=Sum('volume_ml'), earliest=Min('expiry_date'))
    )


def blood_type_inventory(hospital, *, today=None) -> Dict[str, int]:
    """Available volume (ml) per blood type; every type is present."""

    inventory = OrderedDict((blood_type, 0) for blood_type in BLOOD_TYPES)
    for row in _per_type_rows(Donation.objects.available(hospital, today=_today(today))):
        key = f"{row['blood_type']}{row['rh_factor']}"
        inventory[key] = int(row['volume'] or 0)
    return inventory


def dashboard_stats(hospital, *, today=None) -> dict:
    today = _today(today)
    available = Donation.objects.available(hospital, today=today)
    totals = available.aggregate(units=Count('id'), volume=Sum('volume_ml'))
    requests = bmodels.BloodRequest.objects.filter(hospital=hospital)

    return {
        'stats': {
            'totalUnits': totals['units'] or 0,
            'totalVolume': int(totals['volume'] or 0),
            'donorCount': Donor.objects.filter(hospital=hospital).count(),
            'pendingTransfers': requests.filter(status=bmodels.BloodRequest.STATUS_APPROVED).count(),
            'urgentRequests': requests.filter(
                status=bmodels.BloodRequest.STATUS_PENDING,
                urgency__in=[bmodels.BloodRequest.URGENCY_URGENT, bmodels.BloodRequest.URGENCY_CRITICAL],
            ).count(),
            'pendingRequests': requests.filter(status=bmodels.BloodRequest.STATUS_PENDING).count(),
        },
        'bloodTypeInventory': blood_type_inventory(hospital, today=today),
    }


def low_stock(hospital, threshold: Optional[int] = None, *, today=None) -> List[dict]:
    """Blood types holding fewer than ``threshold`` available units, emptiest first."""

    if threshold is None:
        threshold = int(getattr(settings, 'LOW_STOCK_THRESHOLD', 5))
    counts = {
        f"{row['blood_type']}{row['rh_factor']}": row
        for row in _per_type_rows(Donation.objects.available(hospital, today=_today(today)))
    }

    items = []
    for blood_type in BLOOD_TYPES:
        row = counts.get(blood_type)
        units = row['units'] if row else 0
        if units >= threshold:
            continue
        items.append({
            'bloodType': blood_type,
            'unitCount': units,
            'totalVolumeMl': int(row['volume'] or 0) if row else 0,
            'earliestExpiry': row['earliest'].isoformat() if row and row['earliest'] else None,
        })
    items.sort(key=lambda item: (item['unitCount'], BLOOD_TYPES.index(item['bloodType'])))
    return items


def expiring_units(hospital, days: Optional[int] = None, *, today=None) -> List[dict]:
    if days is None:
        days = int(getattr(settings, 'EXPIRING_WINDOW_DAYS', 7))
    today = _today(today)
    units = (
        Donation.objects.available(hospital, today=today)
        .filter(expiry_date__lte=today + timedelta(days=days))
        .select_related('donor')
        .order_by('expiry_date', 'id')
    )
    return [
        {
            'bloodId': unit.blood_id,
            'bloodType': unit.full_blood_type,
            'componentType': unit.component_type,
            'volumeMl': unit.volume_ml,
            'expiryDate': unit.expiry_date.isoformat(),
            'collectionDate': unit.collection_date.isoformat(),
            'storageLocation': unit.storage_location,
            'daysUntilExpiry': unit.days_until_expiry(today),
            'donorName': unit.donor.get_name if unit.donor_id else None,
        }
        for unit in units
    ]


def _daily_series(start, end, rows, value_keys, day_key='day'):
    series = OrderedDict()
    day = start
    while day <= end:
        series[day] = {key: 0 for key in value_keys}
        day += timedelta(days=1)
    for row in rows:
        if row[day_key] in series:
            for key in value_keys:
                series[row[day_key]][key] = int(row[key] or 0)
    return [{'date': day.isoformat(), **values} for day, values in series.items()]


def analytics(hospital, *, today=None) -> dict:
    today = _today(today)
    week_start = today - timedelta(days=6)
    month_start = today - timedelta(days=29)
    donations = Donation.objects.filter(hospital=hospital)

    per_day = (
        donations.filter(collection_date__gte=week_start, collection_date__lte=today)
        .values('collection_date')
        .annotate(count=Count('id'), volume=Sum('volume_ml'))
    )

    components = (
        Donation.objects.available(hospital, today=today)
        .values('component_type')
        .annotate(units=Count('id'), volume=Sum('volume_ml'))
        .order_by('component_type')
    )

    trends = (
        donations.filter(collection_date__gte=month_start, collection_date__lte=today)
        .values('collection_date', 'blood_type', 'rh_factor')
        .annotate(count=Count('id'))
        .order_by('collection_date', 'blood_type', 'rh_factor')
    )

    expiring_by_type = OrderedDict()
    for unit in expiring_units(hospital, today=today):
        entry = expiring_by_type.setdefault(unit['bloodType'], {
            'bloodType': unit['bloodType'],
            'expiringUnits': 0,
            'expiringVolume': 0,
            'minDaysLeft': unit['daysUntilExpiry'],
            'maxDaysLeft': unit['daysUntilExpiry'],
        })
        entry['expiringUnits'] += 1
        entry['expiringVolume'] += unit['volumeMl']
        entry['minDaysLeft'] = min(entry['minDaysLeft'], unit['daysUntilExpiry'])
        entry['maxDaysLeft'] = max(entry['maxDaysLeft'], unit['daysUntilExpiry'])

    registrations = (
        Donor.objects.filter(hospital=hospital, created_at__date__gte=month_start)
        .annotate(day=TruncDate('created_at'))
        .values('day')
        .annotate(newDonors=Count('id'))
    )

    recent = donations.select_related('donor').order_by('-collection_date', '-id')[:5]

    return {
        'totalDonors': Donor.objects.filter(hospital=hospital).count(),
        'donationsPerDay': _daily_series(week_start, today, per_day, ('count', 'volume'), day_key='collection_date'),
        'componentDistribution': [
            {'componentType': row['component_type'], 'unitCount': row['units'], 'totalVolume': int(row['volume'] or 0)}
            for row in components
        ],
        'bloodTypeTrends': [
            {
                'date': row['collection_date'].isoformat(),
                'bloodType': f"{row['blood_type']}{row['rh_factor']}",
                'count': row['count'],
            }
            for row in trends
        ],
        'expiringByBloodType': list(expiring_by_type.values()),
        'donorRegistrations': [
            {'date': row['date'], 'newDonors': row['newDonors']}
            for row in _daily_series(month_start, today, registrations, ('newDonors',))
            if row['newDonors']
        ],
        'recentDonors': [
            {
                'date': donation.collection_date.isoformat(),
                'donor_name': donation.donor.get_name,
                'blood_type': donation.full_blood_type,
            }
            for donation in recent
        ],
    }


def expire_stale_units(*, today=None) -> int:
    """Move available units past their expiry date to ``expired``."""

    today = _today(today)
    count = Donation.objects.filter(
        status=Donation.STATUS_AVAILABLE,
        expiry_date__lt=today,
    ).update(status=Donation.STATUS_EXPIRED)
    if count:
        logger.info("Marked %s blood units as expired (before %s)", count, today)
    return count

import logging

from django.db.models import Prefetch
from django.views.decorators.http import require_http_methods, require_POST

from blood.services import notifications
from hospital.api import form_error, hospital_api, ok
from .forms import DonationForm, DonorForm
from .models import Donation, Donor
from .serializers import donation_to_dict, donor_to_dict

logger = logging.getLogger(__name__)


@require_http_methods(['GET', 'POST'])
@hospital_api
def donors_view(request):
    if request.method == 'POST':
        return _create_donor(request)

    donors = (
        Donor.objects.filter(hospital=request.hospital)
        .prefetch_related(Prefetch('donations', queryset=Donation.objects.order_by('-collection_date', '-id')))
    )
    data = []
    for donor in donors:
        donations = list(donor.donations.all())
        data.append(donor_to_dict(donor, donations[0] if donations else None))
    return ok(data, revision=notifications.current_revision(request.hospital))


def _create_donor(request):
    form = DonorForm(request.json)
    if not form.is_valid():
        return form_error(form)

    donor = form.save(commit=False)
    donor.hospital = request.hospital
    donor.save()
    logger.info("Registered donor %s for hospital %s", donor.id, request.hospital.id)
    return ok(donor_to_dict(donor), status=201)


@require_POST
@hospital_api
def donations_view(request):
    form = DonationForm(request.json, hospital=request.hospital)
    if not form.is_valid():
        return form_error(form)

    donation = form.save()
    logger.info(
        "Recorded donation %s (%s %s, %sml) expiring %s",
        donation.blood_id,
        donation.full_blood_type,
        donation.component_type,
        donation.volume_ml,
        donation.expiry_date,
    )
    return ok(donation_to_dict(donation), status=201)

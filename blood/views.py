import logging

from django.db import transaction
from django.utils import timezone
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from donor.serializers import donation_to_dict
from hospital.api import error, form_error, hospital_api, ok, public_api
from . import forms, models, tasks
from .serializers import request_to_dict, transfer_to_dict
from .services import allocation, assistant, inventory, notifications
from .utils.compatibility import BLOOD_TYPES

logger = logging.getLogger(__name__)


def _int_param(request, name, default, *, minimum=0):
    raw = request.GET.get(name)
    if raw in (None, ''):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value >= minimum else None


def _hospital_request(request, request_id):
    return models.BloodRequest.objects.filter(pk=request_id, hospital=request.hospital).first()


@require_GET
@hospital_api
def dashboard_stats_view(request):
    return ok(inventory.dashboard_stats(request.hospital), revision=notifications.current_revision(request.hospital))


@require_GET
@hospital_api
def hospital_requests_view(request):
    blood_requests = models.BloodRequest.objects.filter(hospital=request.hospital).select_related('transfer')
    status = request.GET.get('status')
    if status:
        if status not in dict(models.BloodRequest.STATUS_CHOICES):
            return error(f"Unknown status '{status}'", status=400)
        blood_requests = blood_requests.filter(status=status)
    return ok(
        [request_to_dict(blood_request) for blood_request in blood_requests],
        revision=notifications.current_revision(request.hospital),
    )


@require_http_methods(['PUT', 'PATCH'])
@hospital_api
def request_status_view(request, request_id):
    form = forms.StatusUpdateForm(request.json)
    if not form.is_valid():
        return form_error(form)

    with transaction.atomic():
        blood_request = (
            models.BloodRequest.objects.select_for_update()
            .filter(pk=request_id, hospital=request.hospital)
            .first()
        )
        if blood_request is None:
            return error('Request not found', status=404)
        if blood_request.status != models.BloodRequest.STATUS_PENDING:
            return error(
                f"Request is already {blood_request.status}",
                status=409,
                message='Only pending requests can be approved or rejected.',
            )

        blood_request.status = form.cleaned_data['status']
        blood_request.hospital_notes = form.cleaned_data.get('notes') or ''
        blood_request.responded_at = timezone.now()
        blood_request.save(update_fields=['status', 'hospital_notes', 'responded_at'])

        if blood_request.status == models.BloodRequest.STATUS_REJECTED:
            notifications.request_removed(blood_request, reason='rejected')

    logger.info("Request %s %s by hospital %s", blood_request.id, blood_request.status, request.hospital.id)
    return ok(request_to_dict(blood_request))


def _parse_blood_types(raw):
    # An unencoded '+' in a query string arrives as a space.
    tokens = [token.lstrip().replace(' ', '+').upper() for token in raw.split(',')]
    tokens = [token for token in tokens if token]
    unknown = [token for token in tokens if token not in BLOOD_TYPES]
    return tokens, unknown


@require_GET
@hospital_api
def available_donations_view(request):
    request_id = request.GET.get('request_id')
    raw_types = request.GET.get('blood_types')

    if request_id:
        blood_request = _hospital_request(request, request_id) if request_id.isdigit() else None
        if blood_request is None:
            return error('Request not found', status=404)
        units = allocation.candidates_for_request(blood_request)
    elif raw_types:
        blood_types, unknown = _parse_blood_types(raw_types)
        if unknown:
            return error(f"Unknown blood type(s): {', '.join(unknown)}", status=400)
        units = allocation.available_units(request.hospital, blood_types)
    else:
        return error('Provide request_id or blood_types', status=400)

    today = timezone.localdate()
    data = [donation_to_dict(unit, today=today) for unit in units]
    extra = {'revision': notifications.current_revision(request.hospital)}
    if not data:
        extra['message'] = 'No available units'
    return ok(data, **extra)


@require_http_methods(['GET', 'POST'])
@hospital_api
def transfers_view(request):
    if request.method == 'POST':
        return _create_transfer(request)

    transfers = (
        models.Transfer.objects.filter(hospital=request.hospital)
        .select_related('unit__donor', 'request')
    )
    return ok(
        [transfer_to_dict(transfer) for transfer in transfers],
        revision=notifications.current_revision(request.hospital),
    )


def _create_transfer(request):
    form = forms.TransferForm(request.json, hospital=request.hospital)
    if not form.is_valid():
        return form_error(form)

    try:
        transfer = allocation.fulfil_request(
            form.cleaned_data['blood_request'],
            form.cleaned_data['unit'],
            notes=form.cleaned_data.get('notes') or '',
        )
    except allocation.AllocationError as exc:
        logger.info("Transfer refused for hospital %s: %s", request.hospital.id, exc)
        return error(str(exc), status=exc.status_code)

    transfer = models.Transfer.objects.select_related('unit__donor', 'request').get(pk=transfer.pk)
    return ok(transfer_to_dict(transfer), status=201)


@require_GET
@hospital_api
def low_stock_view(request):
    threshold = _int_param(request, 'threshold', None, minimum=1)
    if threshold is None and request.GET.get('threshold'):
        return error('threshold must be a positive integer', status=400)
    return ok(
        inventory.low_stock(request.hospital, threshold),
        revision=notifications.current_revision(request.hospital),
    )


@require_GET
@hospital_api
def expiring_blood_view(request):
    days = _int_param(request, 'days', None)
    if days is None and request.GET.get('days'):
        return error('days must be a non-negative integer', status=400)
    return ok(
        inventory.expiring_units(request.hospital, days),
        revision=notifications.current_revision(request.hospital),
    )


@require_GET
@hospital_api
def analytics_view(request):
    return ok(inventory.analytics(request.hospital), revision=notifications.current_revision(request.hospital))


@require_GET
@hospital_api
def events_view(request):
    after = _int_param(request, 'after', 0)
    if after is None:
        return error('after must be a non-negative integer', status=400)
    records = notifications.events_since(request.hospital, after)
    return ok(
        [notifications.event_to_dict(record) for record in records],
        revision=notifications.current_revision(request.hospital),
    )


@require_POST
@hospital_api
def chatbot_view(request):
    message = request.json.get('message')
    if not isinstance(message, str):
        return error('message must be a string', status=400)

    reply = assistant.respond(request.hospital, message)
    return ok(reply.as_dict())


@require_POST
@public_api
def request_intake_view(request):
    form = forms.RequestIntakeForm(request.json)
    if not form.is_valid():
        return form_error(form)

    with transaction.atomic():
        blood_request = form.save()
        notifications.new_request(blood_request)
        if blood_request.urgency == models.BloodRequest.URGENCY_CRITICAL:
            transaction.on_commit(lambda: tasks.send_donor_outreach.delay(blood_request.id))

    logger.info(
        "New %s request %s for %s at hospital %s",
        blood_request.urgency,
        blood_request.id,
        blood_request.blood_type,
        blood_request.hospital_id,
    )
    return ok(request_to_dict(blood_request), status=201)

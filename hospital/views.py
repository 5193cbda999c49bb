import logging

from django.contrib.auth import authenticate
from django.contrib.auth.models import Group, User
from django.db import transaction
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from donor.models import Donation, Donor
from . import tasks
from .api import error, form_error, hospital_api, ok, public_api
from .forms import LoginForm, PasscodeForm, PasswordResetForm, RegistrationForm, ResendPasscodeForm
from .models import Hospital, OneTimePasscode
from .services import otp, sessions

logger = logging.getLogger(__name__)


def _send_passcode(hospital, purpose):
    code = otp.issue(hospital, purpose)
    transaction.on_commit(lambda: tasks.send_passcode_email.delay(hospital.id, code, purpose))


def _lookup_hospital(hospital_id=None, email=None):
    queryset = Hospital.objects.select_related('user')
    if hospital_id:
        return queryset.filter(pk=hospital_id).first()
    if email:
        return queryset.filter(user__username=email.strip().lower()).first()
    return None


@require_POST
@public_api
def register_view(request):
    form = RegistrationForm(request.json)
    if not form.is_valid():
        return form_error(form)

    data = form.cleaned_data
    with transaction.atomic():
        user = User.objects.create_user(
            username=data['email'],
            email=data['email'],
            password=data['password'],
        )
        hospital = Hospital.objects.create(
            user=user,
            name=data['hospitalName'],
            phone=data.get('phone', ''),
            address=data.get('address', ''),
            city=data.get('city', ''),
            state=data.get('state', ''),
            postal_code=data.get('postal_code', ''),
        )
        staff_group, _ = Group.objects.get_or_create(name='HOSPITAL')
        staff_group.user_set.add(user)
        _send_passcode(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL)

    logger.info("Registered hospital %s (%s)", hospital.id, hospital.name)
    return ok({
        'hospital_id': hospital.id,
        'email': hospital.email,
        'hospitalName': hospital.name,
        'requiresVerification': True,
    }, status=201)


@require_POST
@public_api
def login_view(request):
    form = LoginForm(request.json)
    if not form.is_valid():
        return form_error(form)

    user = authenticate(request, username=form.cleaned_data['email'], password=form.cleaned_data['password'])
    hospital = getattr(user, 'hospital', None) if user is not None else None
    if hospital is None:
        logger.debug("Login failed for %s", form.cleaned_data['email'])
        return error('Invalid email or password', status=401)

    if not hospital.email_verified:
        return error(
            'Email not verified',
            status=403,
            requiresVerification=True,
            hospital_id=hospital.id,
            email=hospital.email,
            message='Please verify your email with the code we sent you.',
        )

    session = sessions.issue(hospital)
    return ok(sessions.session_payload(session))


@require_POST
@public_api
def verify_otp_view(request):
    form = PasscodeForm(request.json)
    if not form.is_valid():
        return form_error(form)

    hospital = _lookup_hospital(form.cleaned_data.get('hospital_id'), form.cleaned_data.get('email'))
    if hospital is None:
        return error('Account not found', status=404)

    try:
        otp.verify(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL, form.cleaned_data['otp'])
    except otp.PasscodeExpired as exc:
        return error(str(exc), status=400, expired=True, message=exc.remedy)
    except otp.PasscodeInvalid as exc:
        return error(str(exc), status=400, expired=False, message=exc.remedy)

    if not hospital.email_verified:
        hospital.email_verified = True
        hospital.save(update_fields=['email_verified'])
    logger.info("Hospital %s verified its email", hospital.id)

    session = sessions.issue(hospital)
    return ok(sessions.session_payload(session))


@require_POST
@public_api
def resend_otp_view(request):
    form = ResendPasscodeForm(request.json)
    if not form.is_valid():
        return form_error(form)

    hospital = _lookup_hospital(form.cleaned_data.get('hospital_id'), form.cleaned_data.get('email'))
    if hospital is None:
        return error('Account not found', status=404)
    if hospital.email_verified:
        return error('Email already verified', status=409)

    with transaction.atomic():
        _send_passcode(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL)
    return ok({'sent': True, 'email': hospital.email})


@require_POST
@public_api
def reset_password_view(request):
    form = PasswordResetForm(request.json)
    if not form.is_valid():
        return form_error(form)

    hospital = _lookup_hospital(email=form.cleaned_data['email'])

    if not form.is_confirmation:
        # Same answer whether or not the account exists.
        if hospital is not None:
            with transaction.atomic():
                _send_passcode(hospital, OneTimePasscode.PURPOSE_RESET_PASSWORD)
        return ok({'sent': True})

    if hospital is None:
        return error('Invalid code.', status=400, expired=False)

    try:
        otp.verify(hospital, OneTimePasscode.PURPOSE_RESET_PASSWORD, form.cleaned_data['otp'])
    except otp.PasscodeExpired as exc:
        return error(str(exc), status=400, expired=True, message=exc.remedy)
    except otp.PasscodeInvalid as exc:
        return error(str(exc), status=400, expired=False, message=exc.remedy)

    with transaction.atomic():
        hospital.user.set_password(form.cleaned_data['newPassword'])
        hospital.user.save(update_fields=['password'])
        revoked = sessions.revoke_all(hospital)
    logger.info("Password reset for hospital %s, %s sessions revoked", hospital.id, revoked)
    return ok({'reset': True})


@require_POST
@hospital_api
def refresh_view(request):
    session = sessions.refresh(request.auth_session)
    return ok(sessions.session_payload(session))


@require_POST
@hospital_api
def logout_view(request):
    sessions.revoke(request.auth_session)
    return ok({'loggedOut': True})


@require_GET
@hospital_api
def profile_view(request):
    hospital = request.hospital
    today = timezone.localdate()
    return ok({
        'hospital_id': hospital.id,
        'name': hospital.name,
        'address': hospital.address or None,
        'city': hospital.city or None,
        'state': hospital.state or None,
        'postal_code': hospital.postal_code or None,
        'phone': hospital.phone or None,
        'email': hospital.email,
        'created_at': hospital.created_at.isoformat() if hospital.created_at else None,
        'accountType': 'email',
        'stats': {
            'totalDonors': Donor.objects.filter(hospital=hospital).count(),
            'totalDonations': Donation.objects.filter(hospital=hospital).count(),
            'availableUnits': Donation.objects.available(hospital, today=today).count(),
        },
    })

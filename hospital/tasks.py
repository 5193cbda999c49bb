import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from hospital.models import Hospital, OneTimePasscode


logger = logging.getLogger(__name__)


SUBJECTS = {
    OneTimePasscode.PURPOSE_VERIFY_EMAIL: "Verify your Blood Inventory account",
    OneTimePasscode.PURPOSE_RESET_PASSWORD: "Your Blood Inventory password reset code",
}


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_passcode_email(self, hospital_id: int, code: str, purpose: str) -> None:
    hospital = Hospital.objects.select_related('user').get(pk=hospital_id)
    minutes = int(getattr(settings, 'OTP_TTL_MINUTES', 10))
    message = (
        f"Hello {hospital.name},\n\n"
        f"Your one-time code is {code}. It expires in {minutes} minutes.\n\n"
        "If you did not ask for this code you can ignore this email."
    )
    send_mail(
        SUBJECTS.get(purpose, "Your Blood Inventory code"),
        message,
        settings.DEFAULT_FROM_EMAIL,
        [hospital.email],
    )
    logger.info("Sent %s passcode email to hospital %s", purpose, hospital_id)

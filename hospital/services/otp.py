from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.db.models import F
from django.utils import timezone

from hospital.models import Hospital, OneTimePasscode

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
MAX_FAILED_ATTEMPTS = 5


class PasscodeError(Exception):
    """Base class for one-time passcode failures the user can recover from."""

    remedy = "Please request a new code."


class PasscodeExpired(PasscodeError):
    pass


class PasscodeInvalid(PasscodeError):
    remedy = "Check the code and try again."


def generate_code() -> str:
    return "".join(secrets.choice("0123456789") for _ in range(CODE_LENGTH))


def issue(hospital: Hospital, purpose: str) -> str:
    """Create a fresh code for ``purpose`` and invalidate the older ones."""

    now = timezone.now()
    OneTimePasscode.objects.filter(hospital=hospital, purpose=purpose, consumed_at__isnull=True).update(consumed_at=now)
    code = generate_code()
    OneTimePasscode.objects.create(
        hospital=hospital,
        purpose=purpose,
        code_hash=make_password(code),
        expires_at=now + timedelta(minutes=int(getattr(settings, "OTP_TTL_MINUTES", 10))),
    )
    logger.info("Issued %s passcode for hospital %s", purpose, hospital.id)
    return code


def verify(hospital: Hospital, purpose: str, code: str) -> None:
    """Consume the active code or raise.

    A code that has been guessed wrong ``MAX_FAILED_ATTEMPTS`` times is burnt
    and reported as expired so the user asks for a new one.
    """
    passcode = (
        OneTimePasscode.objects.filter(hospital=hospital, purpose=purpose, consumed_at__isnull=True)
        .order_by("-created_at", "-id")
        .first()
    )
    if passcode is None:
        raise PasscodeInvalid("No active code for this account.")
    if passcode.is_expired:
        raise PasscodeExpired("This code has expired.")
    if not check_password((code or "").strip(), passcode.code_hash):
        OneTimePasscode.objects.filter(pk=passcode.pk).update(failed_attempts=F("failed_attempts") + 1)
        passcode.refresh_from_db(fields=["failed_attempts"])
        if passcode.failed_attempts >= MAX_FAILED_ATTEMPTS:
            passcode.consumed_at = timezone.now()
            passcode.save(update_fields=["consumed_at"])
            logger.warning(
                "Burnt %s passcode for hospital %s after %s failed attempts",
                purpose,
                hospital.id,
                passcode.failed_attempts,
            )
            raise PasscodeExpired("Too many incorrect attempts.")
        raise PasscodeInvalid("Invalid code.")

    passcode.consumed_at = timezone.now()
    passcode.save(update_fields=["consumed_at"])

"""Bearer-token sessions for the dashboard API.

A session moves through issue -> (refresh)* -> expiry or revoke. The client
only ever holds the opaque key; everything else lives here.
"""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.utils import timezone

from hospital.models import AuthSession, Hospital

logger = logging.getLogger(__name__)


def _ttl() -> timedelta:
    return timedelta(hours=int(getattr(settings, "AUTH_SESSION_TTL_HOURS", 24)))


def issue(hospital: Hospital) -> AuthSession:
    session = AuthSession.objects.create(
        hospital=hospital,
        key=secrets.token_hex(32),
        expires_at=timezone.now() + _ttl(),
    )
    logger.info("Issued session %s for hospital %s", session.id, hospital.id)
    return session


def resolve(key: Optional[str]) -> Optional[AuthSession]:
    """Return the live session for ``key`` or None when unknown, expired or revoked."""

    if not key:
        return None
    session = AuthSession.objects.select_related("hospital__user").filter(key=key).first()
    if session is None or not session.is_active:
        return None
    return session


def refresh(session: AuthSession) -> AuthSession:
    revoke(session)
    return issue(session.hospital)


def revoke(session: AuthSession) -> None:
    if session.revoked_at is None:
        session.revoked_at = timezone.now()
        session.save(update_fields=["revoked_at"])


def revoke_all(hospital: Hospital) -> int:
    return AuthSession.objects.filter(hospital=hospital, revoked_at__isnull=True).update(revoked_at=timezone.now())


def session_payload(session: AuthSession) -> dict:
    payload = session.hospital.as_user_payload()
    payload["token"] = session.key
    payload["expiresAt"] = session.expires_at.isoformat()
    return payload

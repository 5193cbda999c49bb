"""JSON plumbing shared by every ``/api/`` view."""

from __future__ import annotations

import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from hospital.services import sessions

logger = logging.getLogger(__name__)


class BadRequest(Exception):
    pass


def parse_json(request) -> dict:
    if request.method not in ('POST', 'PUT', 'PATCH'):
        return {}
    # Only JSON bodies carry arguments; anything else (a bare POST) is empty.
    if request.content_type != 'application/json' or not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (TypeError, ValueError) as exc:
        raise BadRequest("Request body must be valid JSON") from exc
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    return data


def ok(data, *, status=200, **extra) -> JsonResponse:
    body = {'data': data}
    body.update(extra)
    return JsonResponse(body, status=status)


def error(text: str, *, status=400, **extra) -> JsonResponse:
    body = {'error': text}
    body.update(extra)
    return JsonResponse(body, status=status)


def form_error(form) -> JsonResponse:
    details = {field: [str(e) for e in errors] for field, errors in form.errors.items()}
    missing = [field for field, errors in form.errors.as_data().items() if any(e.code == 'required' for e in errors)]
    extra = {'details': details}
    if missing:
        extra['missing'] = missing
    return error('Validation failed', status=400, **extra)


def _bearer_key(request):
    header = request.headers.get('Authorization', '')
    scheme, _, key = header.partition(' ')
    if scheme.lower() != 'bearer':
        return None
    return key.strip() or None


def _claimed_hospital_id(request, body):
    claimed = request.GET.get('hospital_id') or body.get('hospital_id')
    if claimed in (None, ''):
        return None
    return str(claimed)


def hospital_api(view):
    """Resolve the bearer session and attach ``request.hospital``.

    Any ``hospital_id`` the client sends must name the session's own hospital.
    """

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        session = sessions.resolve(_bearer_key(request))
        if session is None:
            return error('Authentication required', status=401)

        try:
            body = parse_json(request)
        except BadRequest as exc:
            return error(str(exc), status=400)

        claimed = _claimed_hospital_id(request, body)
        if claimed is not None and claimed != str(session.hospital_id):
            logger.warning(
                "Session for hospital %s tried to act as hospital %s",
                session.hospital_id,
                claimed,
            )
            return error('Hospital mismatch', status=403)

        request.auth_session = session
        request.hospital = session.hospital
        request.json = body
        return view(request, *args, **kwargs)

    return csrf_exempt(wrapper)


def public_api(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            request.json = parse_json(request)
        except BadRequest as exc:
            return error(str(exc), status=400)
        return view(request, *args, **kwargs)

    return csrf_exempt(wrapper)

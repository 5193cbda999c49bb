"""Per-hospital event channel.

Events are written to the ``HospitalEvent`` outbox in the same transaction as
the change they describe. Dashboards pull them by id; when an SNS topic is
configured a Celery task also fans each event out to subscribers.
"""

from __future__ import annotations

import json
import logging
from typing import List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Max

from blood.models import HospitalEvent

logger = logging.getLogger(__name__)


def publish(hospital, event: str, payload: dict) -> HospitalEvent:
	record = HospitalEvent.objects.create(hospital=hospital, event=event, payload=payload)
	logger.info("Recorded %s event %s for hospital %s", event, record.id, hospital.id)

	if getattr(settings, "AWS_SNS_EVENTS_TOPIC_ARN", ""):
		from blood import tasks

		transaction.on_commit(lambda: tasks.fan_out_event.delay(record.id))
	return record


def new_request(blood_request) -> HospitalEvent:
	return publish(
		blood_request.hospital,
		HospitalEvent.NEW_REQUEST,
		{
			"request_id": blood_request.id,
			"hospital_id": blood_request.hospital_id,
			"request": {
				"blood_type": blood_request.blood_type,
				"urgency": blood_request.urgency,
				"units_needed": blood_request.units_needed,
			},
		},
	)


def request_removed(blood_request, reason: str) -> HospitalEvent:
	return publish(
		blood_request.hospital,
		HospitalEvent.REQUEST_REMOVED,
		{"request_id": blood_request.id, "hospital_id": blood_request.hospital_id, "reason": reason},
	)


def events_since(hospital, after_id: int = 0, *, limit: int = 100) -> List[HospitalEvent]:
	return list(HospitalEvent.objects.filter(hospital=hospital, id__gt=after_id).order_by("id")[:limit])


def current_revision(hospital) -> int:
	return HospitalEvent.objects.filter(hospital=hospital).aggregate(latest=Max("id"))["latest"] or 0


def event_to_dict(record: HospitalEvent) -> dict:
	return {
		"id": record.id,
		"event": record.event,
		"payload": record.payload,
		"created_at": record.created_at.isoformat(),
	}


def send_to_topic(record: HospitalEvent, *, sns_client=None) -> Optional[str]:
	"""Publish one outbox row to the SNS events topic; returns the message id."""

	topic_arn = getattr(settings, "AWS_SNS_EVENTS_TOPIC_ARN", "")
	if not topic_arn:
		return None

	if sns_client is None:
		from blood.services.sms import get_sns_client

		sns_client = get_sns_client()

	response = sns_client.publish(
		TopicArn=topic_arn,
		Message=json.dumps(event_to_dict(record)),
		MessageAttributes={
			"event": {"DataType": "String", "StringValue": record.event},
			"hospital_id": {"DataType": "String", "StringValue": str(record.hospital_id)},
		},
	)
	return response.get("MessageId")

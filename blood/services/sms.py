"""AWS SNS outreach to donors when a critical request arrives."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import reduce
from operator import or_
from typing import List, Optional, Sequence, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.db.models import Q

from blood.utils.compatibility import compatible_donor_types, split_blood_type
from donor.models import Donor


logger = logging.getLogger(__name__)


@dataclass
class AlertResult:
	"""Summary of one outreach dispatch."""

	enabled: bool
	attempted: int = 0
	delivered: int = 0
	recipients: List[str] = field(default_factory=list)
	skipped: List[str] = field(default_factory=list)
	reason: Optional[str] = None


def get_sns_client():
	return boto3.client("sns", region_name=settings.AWS_SNS_REGION)


def notify_compatible_donors(blood_request, *, sns_client=None) -> AlertResult:
	"""Text the hospital's donors whose blood type can supply ``blood_request``."""

	if blood_request.urgency != blood_request.URGENCY_CRITICAL:
		return AlertResult(True, reason="not-critical")

	if not settings.AWS_SNS_ENABLED:
		logger.info("AWS SNS alerts disabled; skipping outreach for request %s", blood_request.id)
		return AlertResult(False, reason="sns-disabled")

	donors = select_donors_for_request(blood_request)
	if not donors:
		logger.warning("No donors to contact for request %s (%s)", blood_request.id, blood_request.blood_type)
		return AlertResult(True, reason="no-donors")

	if sns_client is None:
		sns_client = get_sns_client()

	message = build_message(blood_request)
	attributes = _message_attributes()
	result = AlertResult(True, attempted=len(donors))

	for donor, phone in donors:
		try:
			sns_client.publish(PhoneNumber=phone, Message=message, MessageAttributes=attributes)
		except (BotoCoreError, ClientError) as exc:
			result.skipped.append(phone)
			logger.error(
				"Failed to text donor %s for request %s: %s",
				donor.id,
				blood_request.id,
				exc,
			)
			continue
		result.recipients.append(phone)
		result.delivered += 1

	logger.info("Outreach for request %s delivered to %s/%s donors", blood_request.id, result.delivered, result.attempted)
	return result


def select_donors_for_request(blood_request) -> Sequence[Tuple[Donor, str]]:
	type_filters = []
	for donor_type in sorted(compatible_donor_types(blood_request.blood_type)):
		try:
			group, rh = split_blood_type(donor_type)
		except ValueError:
			continue
		type_filters.append(Q(donations__blood_type=group, donations__rh_factor=rh))
	if not type_filters:
		return []

	queryset = (
		Donor.objects.filter(hospital_id=blood_request.hospital_id)
		.filter(reduce(or_, type_filters))
		.exclude(phone="")
		.distinct()
		.order_by("id")
	)

	max_recipients = max(int(settings.AWS_SNS_MAX_RECIPIENTS), 1)
	selected: List[Tuple[Donor, str]] = []
	seen = set()
	for donor in queryset:
		phone = normalize_phone_number(donor.phone)
		if not phone or phone in seen:
			continue
		seen.add(phone)
		selected.append((donor, phone))
		if len(selected) >= max_recipients:
			break
	return selected


def build_message(blood_request) -> str:
	hospital = blood_request.hospital
	return (
		f"{hospital.name}: critical need for {blood_request.blood_type} blood "
		f"({blood_request.units_needed} unit{'s' if blood_request.units_needed != 1 else ''}). "
		f"If you can donate today please call {hospital.phone or 'the blood bank'}."
	)[:1200]


def normalize_phone_number(raw: Optional[str]) -> Optional[str]:
	"""E.164 form of ``raw``; bare national numbers get AWS_SNS_DEFAULT_COUNTRY_CODE."""

	if not raw:
		return None
	cleaned = re.sub(r"[\s\-().]+", "", str(raw).strip())
	if cleaned.startswith("+"):
		digits = "+" + re.sub(r"[^0-9]", "", cleaned)
		return digits if len(digits) >= 8 else None

	digits_only = re.sub(r"[^0-9]", "", cleaned).lstrip("0")
	if not digits_only:
		return None
	country_code = str(settings.AWS_SNS_DEFAULT_COUNTRY_CODE or "+1")
	if not country_code.startswith("+"):
		country_code = f"+{country_code}"
	if digits_only.startswith(country_code.lstrip("+")) and len(digits_only) > 10:
		return f"+{digits_only}"
	return f"{country_code}{digits_only}"


def _message_attributes():
	attributes = {
		"AWS.SNS.SMS.SMSType": {"DataType": "String", "StringValue": settings.AWS_SNS_SMS_TYPE},
	}
	if settings.AWS_SNS_SENDER_ID:
		attributes["AWS.SNS.SMS.SenderID"] = {
			"DataType": "String",
			"StringValue": settings.AWS_SNS_SENDER_ID[:11],
		}
	return attributes

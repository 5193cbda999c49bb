import logging

from celery import shared_task

from blood import models
from blood.services import inventory
from blood.services import notifications
from blood.services import sms as sms_service


logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def fan_out_event(self, event_id: int) -> None:
    record = models.HospitalEvent.objects.get(pk=event_id)
    message_id = notifications.send_to_topic(record)
    logger.info("Event %s (%s) fanned out as %s", record.id, record.event, message_id)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_donor_outreach(self, blood_request_id: int) -> dict:
    blood_request = models.BloodRequest.objects.select_related('hospital').get(pk=blood_request_id)
    result = sms_service.notify_compatible_donors(blood_request)
    return {
        'enabled': result.enabled,
        'attempted': result.attempted,
        'delivered': result.delivered,
        'reason': result.reason,
    }


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def expire_stale_units(self) -> int:
    return inventory.expire_stale_units()

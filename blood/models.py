from django.db import models

from donor.models import Donation
from hospital.models import Hospital
from .utils.compatibility import BLOOD_TYPE_CHOICES


class BloodRequest(models.Model):
    URGENCY_ROUTINE = 'routine'
    URGENCY_URGENT = 'urgent'
    URGENCY_CRITICAL = 'critical'
    URGENCY_CHOICES = (
        (URGENCY_ROUTINE, 'Routine'),
        (URGENCY_URGENT, 'Urgent'),
        (URGENCY_CRITICAL, 'Critical'),
    )

    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_FULFILLED = 'fulfilled'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_FULFILLED, 'Fulfilled'),
    )

    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='blood_requests')
    patient_name = models.CharField(max_length=100)
    patient_age = models.PositiveIntegerField(null=True, blank=True)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)
    urgency = models.CharField(max_length=10, choices=URGENCY_CHOICES, default=URGENCY_ROUTINE)
    units_needed = models.PositiveIntegerField(default=1)
    contact_number = models.CharField(max_length=20)
    address = models.CharField(max_length=255, blank=True)
    medical_notes = models.TextField(blank=True)
    requester_name = models.CharField(max_length=100, blank=True)
    requester_email = models.EmailField(blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    hospital_notes = models.CharField(max_length=500, blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.patient_name} - {self.blood_type} ({self.status})"


class Transfer(models.Model):
    unit = models.OneToOneField(Donation, on_delete=models.PROTECT, related_name='transfer')
    request = models.OneToOneField(BloodRequest, on_delete=models.PROTECT, related_name='transfer')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='transfers')
    transfer_date = models.DateTimeField()
    notes = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-transfer_date', '-id']

    def __str__(self):
        return f"{self.unit.blood_id} -> request #{self.request_id}"


class HospitalEvent(models.Model):
    NEW_REQUEST = 'new-request'
    REQUEST_REMOVED = 'request-removed'
    EVENT_CHOICES = (
        (NEW_REQUEST, 'New request'),
        (REQUEST_REMOVED, 'Request removed'),
    )

    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='events')
    event = models.CharField(max_length=30, choices=EVENT_CHOICES)
    payload = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"#{self.id} {self.event} for {self.hospital}"

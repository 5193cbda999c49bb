import uuid

from django.db import models
from django.utils import timezone

from blood.utils.compatibility import ABO_GROUPS, RH_FACTORS
from hospital.models import Hospital
from .utils.expiry import COMPONENT_CHOICES, WHOLE_BLOOD, calculate_expiry


class Donor(models.Model):
    GENDER_CHOICES = (
        ('Male', 'Male'),
        ('Female', 'Female'),
        ('Other', 'Other'),
    )

    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='donors')
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, default='Male')
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=12, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    @property
    def get_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self):
        return self.get_name


class DonationQuerySet(models.QuerySet):
    def available(self, hospital=None, *, today=None):
        """On-hand units: status available, not past expiry, never transferred."""
        today = today or timezone.localdate()
        qs = self.filter(status=Donation.STATUS_AVAILABLE, expiry_date__gte=today, transfer__isnull=True)
        if hospital is not None:
            qs = qs.filter(hospital=hospital)
        return qs


class Donation(models.Model):
    STATUS_AVAILABLE = 'available'
    STATUS_TRANSFERRED = 'transferred'
    STATUS_EXPIRED = 'expired'
    STATUS_CHOICES = (
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_TRANSFERRED, 'Transferred'),
        (STATUS_EXPIRED, 'Expired'),
    )
    ABO_CHOICES = [(group, group) for group in ABO_GROUPS]
    RH_CHOICES = [(rh, rh) for rh in RH_FACTORS]

    blood_id = models.CharField(max_length=20, unique=True, editable=False)
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='donations')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='donations')
    blood_type = models.CharField(max_length=2, choices=ABO_CHOICES)
    rh_factor = models.CharField(max_length=1, choices=RH_CHOICES)
    component_type = models.CharField(max_length=30, choices=COMPONENT_CHOICES, default=WHOLE_BLOOD)
    volume_ml = models.PositiveIntegerField(default=450)
    collection_date = models.DateField()
    expiry_date = models.DateField(editable=False)
    storage_location = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = DonationQuerySet.as_manager()

    class Meta:
        ordering = ['expiry_date', 'id']
        verbose_name = "Blood Unit"
        verbose_name_plural = "Blood Units"

    def __str__(self):
        return f"{self.blood_id} - {self.full_blood_type} {self.component_type}"

    @property
    def full_blood_type(self):
        return f"{self.blood_type}{self.rh_factor}"

    def save(self, *args, **kwargs):
        if not self.blood_id:
            self.blood_id = self._generate_blood_id()
        self.expiry_date = calculate_expiry(self.component_type, self.collection_date)
        super().save(*args, **kwargs)

    @classmethod
    def _generate_blood_id(cls):
        for _ in range(10):
            candidate = f"BLD-{uuid.uuid4().hex[:10].upper()}"
            if not cls.objects.filter(blood_id=candidate).exists():
                return candidate
        raise RuntimeError("Failed to generate a unique blood id after several attempts.")

    def days_until_expiry(self, today=None):
        today = today or timezone.localdate()
        return (self.expiry_date - today).days

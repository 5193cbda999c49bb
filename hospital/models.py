from django.contrib.auth.models import User
from django.db import models
from django.utils import timezone


class Hospital(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='hospital')
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=12, blank=True)
    email_verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name', 'id']

    def __str__(self):
        return self.name

    @property
    def email(self):
        return self.user.email

    def as_user_payload(self):
        """Shape consumed by the dashboard's auth context."""
        return {
            'hospital_id': self.id,
            'email': self.email,
            'hospitalName': self.name,
            'phone': self.phone,
            'address': self.address,
            'city': self.city,
            'state': self.state,
        }


class OneTimePasscode(models.Model):
    PURPOSE_VERIFY_EMAIL = 'verify-email'
    PURPOSE_RESET_PASSWORD = 'reset-password'
    PURPOSE_CHOICES = (
        (PURPOSE_VERIFY_EMAIL, 'Verify email'),
        (PURPOSE_RESET_PASSWORD, 'Reset password'),
    )

    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='passcodes')
    purpose = models.CharField(max_length=20, choices=PURPOSE_CHOICES)
    code_hash = models.CharField(max_length=128)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()
    consumed_at = models.DateTimeField(null=True, blank=True)
    failed_attempts = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.hospital} - {self.purpose}"

    @property
    def is_expired(self):
        return timezone.now() >= self.expires_at


class AuthSession(models.Model):
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='sessions')
    key = models.CharField(max_length=64, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField()
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.hospital} session {self.key[:8]}"

    @property
    def is_active(self):
        return self.revoked_at is None and timezone.now() < self.expires_at

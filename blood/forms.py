from django import forms

from donor.models import Donation
from hospital.models import Hospital
from . import models


class RequestIntakeForm(forms.ModelForm):
    """Public request form; the caller names the hospital that should receive it."""

    hospital_id = forms.IntegerField()
    urgency = forms.ChoiceField(choices=models.BloodRequest.URGENCY_CHOICES, required=False)
    units_needed = forms.IntegerField(min_value=1, max_value=50, required=False)

    class Meta:
        model = models.BloodRequest
        fields = [
            'patient_name', 'patient_age', 'blood_type', 'urgency', 'units_needed', 'contact_number',
            'address', 'medical_notes', 'requester_name', 'requester_email',
        ]

    def clean_hospital_id(self):
        hospital = Hospital.objects.filter(pk=self.cleaned_data['hospital_id']).first()
        if hospital is None:
            raise forms.ValidationError('Hospital not found.')
        self.hospital = hospital
        return hospital.id

    def clean_urgency(self):
        return self.cleaned_data.get('urgency') or models.BloodRequest.URGENCY_ROUTINE

    def clean_units_needed(self):
        return self.cleaned_data.get('units_needed') or 1

    def save(self, commit=True):
        blood_request = super().save(commit=False)
        blood_request.hospital = self.hospital
        if commit:
            blood_request.save()
        return blood_request


class StatusUpdateForm(forms.Form):
    status = forms.ChoiceField(choices=[
        (models.BloodRequest.STATUS_APPROVED, 'Approved'),
        (models.BloodRequest.STATUS_REJECTED, 'Rejected'),
    ])
    notes = forms.CharField(max_length=500, required=False)


class TransferForm(forms.Form):
    blood_id = forms.CharField(max_length=20)
    request_id = forms.IntegerField()
    notes = forms.CharField(max_length=500, required=False)

    def __init__(self, *args, hospital=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.hospital = hospital

    def clean_blood_id(self):
        blood_id = self.cleaned_data['blood_id'].strip().upper()
        unit = Donation.objects.filter(blood_id=blood_id, hospital=self.hospital).first()
        if unit is None:
            raise forms.ValidationError('Blood unit not found for this hospital.')
        self.cleaned_data['unit'] = unit
        return blood_id

    def clean_request_id(self):
        blood_request = models.BloodRequest.objects.filter(
            pk=self.cleaned_data['request_id'], hospital=self.hospital,
        ).first()
        if blood_request is None:
            raise forms.ValidationError('Blood request not found for this hospital.')
        self.cleaned_data['blood_request'] = blood_request
        return blood_request.id

from django import forms

from blood.utils.compatibility import split_blood_type
from .models import Donor, Donation
from .utils.expiry import WHOLE_BLOOD


class DonorForm(forms.ModelForm):
    class Meta:
        model = Donor
        fields = [
            'first_name', 'last_name', 'date_of_birth', 'gender', 'phone',
            'email', 'address', 'city', 'state', 'postal_code',
        ]


class DonationForm(forms.ModelForm):
    donor_id = forms.IntegerField()

    class Meta:
        model = Donation
        fields = ['blood_type', 'rh_factor', 'component_type', 'volume_ml', 'collection_date', 'storage_location']

    def __init__(self, data=None, *args, hospital=None, **kwargs):
        if data is not None:
            data = self._expand_combined_type(dict(data))
        super().__init__(data, *args, **kwargs)
        self.hospital = hospital
        self.fields['component_type'].required = False
        self.fields['volume_ml'].required = False

    @staticmethod
    def _expand_combined_type(data):
        # Accept "O-" in blood_type when rh_factor is left out.
        raw = str(data.get('blood_type') or '')
        if not data.get('rh_factor') and raw[-1:] in ('+', '-'):
            try:
                data['blood_type'], data['rh_factor'] = split_blood_type(raw)
            except ValueError:
                pass  # left for field validation
        return data

    def clean_component_type(self):
        return self.cleaned_data.get('component_type') or WHOLE_BLOOD

    def clean_volume_ml(self):
        volume = self.cleaned_data.get('volume_ml')
        if volume is None:
            return Donation._meta.get_field('volume_ml').default
        if not 50 <= volume <= 1000:
            raise forms.ValidationError('Volume must be between 50 and 1000 ml.')
        return volume

    def clean(self):
        cleaned = super().clean()
        donor_id = cleaned.get('donor_id')
        if donor_id is not None:
            donor = Donor.objects.filter(pk=donor_id, hospital=self.hospital).first()
            if donor is None:
                self.add_error('donor_id', 'Donor not found for this hospital.')
            else:
                cleaned['donor'] = donor
        return cleaned

    def save(self, commit=True):
        donation = super().save(commit=False)
        donation.donor = self.cleaned_data['donor']
        donation.hospital = self.hospital
        if commit:
            donation.save()
        return donation

from django import forms
from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password


class RegistrationForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField(min_length=8)
    hospitalName = forms.CharField(max_length=255)
    phone = forms.CharField(max_length=20, required=False)
    address = forms.CharField(max_length=255, required=False)
    city = forms.CharField(max_length=100, required=False)
    state = forms.CharField(max_length=100, required=False)
    postal_code = forms.CharField(max_length=12, required=False)

    def clean_email(self):
        email = self.cleaned_data['email'].strip().lower()
        if User.objects.filter(username=email).exists():
            raise forms.ValidationError('An account with this email already exists.')
        return email

    def clean_password(self):
        password = self.cleaned_data['password']
        validate_password(password)
        return password


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField()

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()


class PasscodeForm(forms.Form):
    hospital_id = forms.IntegerField(required=False)
    email = forms.EmailField(required=False)
    otp = forms.RegexField(regex=r'^\d{6}$', error_messages={'invalid': 'Please enter a 6-digit OTP.'})

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get('hospital_id') and not cleaned.get('email'):
            raise forms.ValidationError('Provide hospital_id or email.')
        return cleaned


class ResendPasscodeForm(forms.Form):
    hospital_id = forms.IntegerField(required=False)
    email = forms.EmailField(required=False)

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get('hospital_id') and not cleaned.get('email'):
            raise forms.ValidationError('Provide hospital_id or email.')
        return cleaned


class PasswordResetForm(forms.Form):
    email = forms.EmailField()
    otp = forms.RegexField(regex=r'^\d{6}$', required=False)
    newPassword = forms.CharField(min_length=8, required=False)

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('otp') and not cleaned.get('newPassword'):
            self.add_error('newPassword', 'A new password is required with the reset code.')
        elif cleaned.get('newPassword'):
            validate_password(cleaned['newPassword'])
        return cleaned

    @property
    def is_confirmation(self):
        return bool(self.cleaned_data.get('otp'))

from django.contrib.auth.models import User
from django.utils import timezone

from donor.models import Donation, Donor
from hospital.models import Hospital
from hospital.services import sessions

PASSWORD = "Transfus10n-Ready!"


def create_hospital(email="staff@stmarys.test", name="St Mary's", *, verified=True, password=PASSWORD):
    user = User.objects.create_user(username=email, email=email, password=password)
    return Hospital.objects.create(user=user, name=name, phone="+15550001111", city="Springfield", email_verified=verified)


def auth_headers(hospital):
    session = sessions.issue(hospital)
    return {"HTTP_AUTHORIZATION": f"Bearer {session.key}"}


def create_donor(hospital, first_name="Ada", last_name="Lovelace", phone="+15551230000"):
    return Donor.objects.create(hospital=hospital, first_name=first_name, last_name=last_name, phone=phone)


def create_unit(donor, blood_type="O-", component_type="Whole Blood", collected=None, volume_ml=450, **extra):
    group, rh = blood_type[:-1], blood_type[-1]
    return Donation.objects.create(
        donor=donor,
        hospital=donor.hospital,
        blood_type=group,
        rh_factor=rh,
        component_type=component_type,
        volume_ml=volume_ml,
        collection_date=collected or timezone.localdate(),
        **extra,
    )

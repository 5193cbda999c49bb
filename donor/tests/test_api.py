import json
from datetime import date, timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from donor.forms import DonationForm
from donor.models import Donation, Donor
from hospital.tests.helpers import auth_headers, create_donor, create_hospital, create_unit


class DonorApiTests(TestCase):
    def setUp(self):
        self.hospital = create_hospital()
        self.headers = auth_headers(self.hospital)

    def _post(self, name, payload):
        return self.client.post(reverse(name), data=json.dumps(payload), content_type="application/json", **self.headers)

    def test_create_and_list_donors(self):
        response = self._post("donors", {
            "first_name": "Grace",
            "last_name": "Hopper",
            "date_of_birth": "1980-12-09",
            "gender": "Female",
            "phone": "+1 555 010 2000",
        })
        self.assertEqual(response.status_code, 201)
        donor_id = response.json()["data"]["donor_id"]
        self.assertEqual(Donor.objects.get(pk=donor_id).hospital, self.hospital)

        listing = self.client.get(reverse("donors"), **self.headers)
        self.assertEqual(listing.status_code, 200)
        self.assertEqual([row["donor_id"] for row in listing.json()["data"]], [donor_id])
        self.assertIn("revision", listing.json())

    def test_donor_list_is_scoped_to_the_session_hospital(self):
        other = create_hospital(email="other@general.test", name="Other")
        create_donor(other, first_name="Not", last_name="Mine")
        response = self.client.get(reverse("donors"), **self.headers)
        self.assertEqual(response.json()["data"], [])

    def test_donation_expiry_is_derived_server_side(self):
        donor = create_donor(self.hospital)
        response = self._post("donations", {
            "donor_id": donor.id,
            "blood_type": "O",
            "rh_factor": "-",
            "component_type": "Red Blood Cells",
            "volume_ml": 450,
            "collection_date": "2025-06-01",
            "expiry_date": "2099-01-01",
        })
        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["expiry_date"], "2025-07-13")
        self.assertTrue(data["blood_id"].startswith("BLD-"))
        self.assertEqual(len(data["blood_id"]), 14)

    def test_donation_accepts_combined_blood_type(self):
        donor = create_donor(self.hospital)
        response = self._post("donations", {
            "donor_id": donor.id,
            "blood_type": "AB-",
            "component_type": "Platelets",
            "volume_ml": 250,
            "collection_date": str(timezone.localdate()),
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["full_blood_type"], "AB-")

    def test_donation_for_foreign_donor_is_rejected(self):
        other = create_hospital(email="other@general.test", name="Other")
        foreign = create_donor(other)
        response = self._post("donations", {
            "donor_id": foreign.id,
            "blood_type": "A",
            "rh_factor": "+",
            "collection_date": "2025-06-01",
            "volume_ml": 450,
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn("donor_id", response.json()["details"])
        self.assertFalse(Donation.objects.exists())


class DonationFormTests(TestCase):
    def setUp(self):
        self.hospital = create_hospital()
        self.donor = create_donor(self.hospital)

    def test_volume_bounds(self):
        form = DonationForm({
            "donor_id": self.donor.id,
            "blood_type": "A",
            "rh_factor": "+",
            "collection_date": "2025-06-01",
            "volume_ml": 1500,
        }, hospital=self.hospital)
        self.assertFalse(form.is_valid())
        self.assertIn("volume_ml", form.errors)

    def test_unknown_blood_type_is_a_field_error(self):
        form = DonationForm({
            "donor_id": self.donor.id,
            "blood_type": "C+",
            "collection_date": "2025-06-01",
            "volume_ml": 450,
        }, hospital=self.hospital)
        self.assertFalse(form.is_valid())
        self.assertIn("blood_type", form.errors)


class AvailableQuerySetTests(TestCase):
    def test_available_excludes_expired_and_spent_units(self):
        hospital = create_hospital()
        donor = create_donor(hospital)
        today = date(2025, 6, 10)
        fresh = create_unit(donor, "A+", collected=date(2025, 6, 1))
        create_unit(donor, "A+", component_type="Platelets", collected=date(2025, 6, 1))
        create_unit(donor, "A+", collected=date(2025, 6, 1), status=Donation.STATUS_TRANSFERRED)

        available = list(Donation.objects.available(hospital, today=today))
        self.assertEqual(available, [fresh])
        self.assertEqual(fresh.days_until_expiry(today), (fresh.expiry_date - today).days)
        self.assertEqual(fresh.expiry_date, date(2025, 6, 1) + timedelta(days=35))

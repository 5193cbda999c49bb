from datetime import date

from django.test import TestCase

from blood.models import BloodRequest, HospitalEvent, Transfer
from blood.services import allocation
from blood.utils.compatibility import compatible_donor_types
from donor.models import Donation
from hospital.tests.helpers import create_donor, create_hospital, create_unit

TODAY = date(2025, 6, 10)


class AllocationTests(TestCase):
    def setUp(self):
        self.hospital = create_hospital()
        self.donor = create_donor(self.hospital)

    def _request(self, blood_type="A+", status=BloodRequest.STATUS_APPROVED, hospital=None):
        return BloodRequest.objects.create(
            hospital=hospital or self.hospital,
            patient_name="Jane Patient",
            blood_type=blood_type,
            contact_number="+15559990000",
            status=status,
        )

    def test_candidates_are_compatible_and_earliest_expiry_first(self):
        late = create_unit(self.donor, "O-", component_type="Red Blood Cells", collected=date(2025, 6, 1))
        early = create_unit(self.donor, "A+", collected=date(2025, 6, 1))
        create_unit(self.donor, "B+", collected=date(2025, 6, 1))
        create_unit(self.donor, "AB-", collected=date(2025, 6, 1))

        candidates = allocation.candidates_for_request(self._request("A+"), today=TODAY)

        self.assertEqual(candidates, [early, late])
        for unit in candidates:
            self.assertIn(unit.full_blood_type, compatible_donor_types("A+"))

    def test_red_cell_unit_collected_in_june_is_a_candidate(self):
        unit = create_unit(self.donor, "O+", component_type="Red Blood Cells", collected=date(2025, 6, 1))
        self.assertEqual(unit.expiry_date, date(2025, 7, 13))
        self.assertEqual(allocation.candidates_for_request(self._request("AB+"), today=TODAY), [unit])

    def test_candidates_skip_expired_transferred_and_foreign_units(self):
        create_unit(self.donor, "O-", component_type="Platelets", collected=date(2025, 6, 1))
        create_unit(self.donor, "O-", collected=date(2025, 6, 1), status=Donation.STATUS_TRANSFERRED)
        other = create_hospital(email="other@general.test", name="Other")
        create_unit(create_donor(other), "O-", collected=date(2025, 6, 1))

        self.assertEqual(allocation.candidates_for_request(self._request("O-"), today=TODAY), [])

    def test_fulfil_links_unit_and_closes_request(self):
        unit = create_unit(self.donor, "O-", collected=date(2025, 6, 1))
        blood_request = self._request("B-")

        transfer = allocation.fulfil_request(blood_request, unit, notes="Ward 4", today=TODAY)

        unit.refresh_from_db()
        blood_request.refresh_from_db()
        self.assertEqual(transfer.unit, unit)
        self.assertEqual(unit.status, Donation.STATUS_TRANSFERRED)
        self.assertEqual(blood_request.status, BloodRequest.STATUS_FULFILLED)
        event = HospitalEvent.objects.get(hospital=self.hospital)
        self.assertEqual(event.event, HospitalEvent.REQUEST_REMOVED)
        self.assertEqual(event.payload["reason"], "fulfilled")

        # A spent unit never comes back as a candidate.
        self.assertEqual(allocation.candidates_for_request(self._request("B-"), today=TODAY), [])

    def test_incompatible_unit_is_refused(self):
        unit = create_unit(self.donor, "A+", collected=date(2025, 6, 1))
        create_unit(self.donor, "O-", collected=date(2025, 6, 1))
        with self.assertRaises(allocation.IncompatibleUnit):
            allocation.fulfil_request(self._request("O+"), unit, today=TODAY)
        self.assertFalse(Transfer.objects.exists())

    def test_request_must_be_approved(self):
        unit = create_unit(self.donor, "O-", collected=date(2025, 6, 1))
        with self.assertRaises(allocation.RequestNotApproved):
            allocation.fulfil_request(self._request("O-", status=BloodRequest.STATUS_PENDING), unit, today=TODAY)

    def test_spent_unit_with_alternatives_asks_for_another_pick(self):
        spent = create_unit(self.donor, "O-", collected=date(2025, 6, 1))
        create_unit(self.donor, "O-", collected=date(2025, 6, 2))
        allocation.fulfil_request(self._request("O-"), spent, today=TODAY)

        with self.assertRaises(allocation.UnitUnavailable):
            allocation.fulfil_request(self._request("O-"), spent, today=TODAY)

    def test_spent_unit_without_alternatives_reports_no_units(self):
        spent = create_unit(self.donor, "O-", collected=date(2025, 6, 1))
        allocation.fulfil_request(self._request("O-"), spent, today=TODAY)

        with self.assertRaises(allocation.NoAvailableUnits) as ctx:
            allocation.fulfil_request(self._request("O-"), spent, today=TODAY)
        self.assertEqual(ctx.exception.status_code, 409)

    def test_unit_from_another_hospital_is_refused(self):
        other = create_hospital(email="other@general.test", name="Other")
        foreign = create_unit(create_donor(other), "O-", collected=date(2025, 6, 1))
        with self.assertRaises(allocation.UnitUnavailable):
            allocation.fulfil_request(self._request("O-"), foreign, today=TODAY)

    def test_no_compatible_stock_is_reported_before_the_unit_mismatch(self):
        unit = create_unit(self.donor, "A+", collected=date(2025, 6, 1))
        with self.assertRaises(allocation.NoAvailableUnits) as ctx:
            allocation.fulfil_request(self._request("O-"), unit, today=TODAY)
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertFalse(Transfer.objects.exists())

from django.test import SimpleTestCase

from blood.utils.compatibility import (
    BLOOD_TYPES,
    compatible_donor_types,
    split_blood_type,
)

EXPECTED_DONORS = {
    "A+": {"A+", "A-", "O+", "O-"},
    "A-": {"A-", "O-"},
    "B+": {"B+", "B-", "O+", "O-"},
    "B-": {"B-", "O-"},
    "AB+": set(BLOOD_TYPES),
    "AB-": {"AB-", "A-", "B-", "O-"},
    "O+": {"O+", "O-"},
    "O-": {"O-"},
}


class CompatibilityTests(SimpleTestCase):
    def test_donor_table(self):
        for recipient, donors in EXPECTED_DONORS.items():
            with self.subTest(recipient=recipient):
                self.assertEqual(set(compatible_donor_types(recipient)), donors)

    def test_every_type_can_receive_its_own_type(self):
        for blood_type in BLOOD_TYPES:
            self.assertIn(blood_type, compatible_donor_types(blood_type))

    def test_unknown_type_only_matches_itself(self):
        self.assertEqual(compatible_donor_types("Bombay"), frozenset({"Bombay"}))

    def test_split_blood_type(self):
        self.assertEqual(split_blood_type("ab-"), ("AB", "-"))
        self.assertEqual(split_blood_type(" O+ "), ("O", "+"))
        with self.assertRaises(ValueError):
            split_blood_type("C+")

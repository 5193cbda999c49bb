import json
from datetime import timedelta
from unittest.mock import patch

from django.contrib.auth.models import User
from django.core import mail
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from hospital.models import AuthSession, Hospital, OneTimePasscode
from hospital.services import otp, sessions
from hospital.tests.helpers import PASSWORD, auth_headers, create_hospital


class ApiTestCase(TestCase):
    def post_json(self, name, payload, **extra):
        return self.client.post(reverse(name), data=json.dumps(payload), content_type="application/json", **extra)


class RegistrationTests(ApiTestCase):
    @patch("hospital.services.otp.generate_code", return_value="123456")
    def test_register_creates_unverified_hospital_and_mails_code(self, _code):
        with self.captureOnCommitCallbacks(execute=True):
            response = self.post_json("auth-register", {
                "email": "Blood.Bank@General.test",
                "password": PASSWORD,
                "hospitalName": "General Hospital",
                "city": "Springfield",
            })

        self.assertEqual(response.status_code, 201)
        body = response.json()["data"]
        self.assertTrue(body["requiresVerification"])
        self.assertEqual(body["email"], "blood.bank@general.test")

        hospital = Hospital.objects.get(pk=body["hospital_id"])
        self.assertFalse(hospital.email_verified)
        self.assertTrue(hospital.user.groups.filter(name="HOSPITAL").exists())
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("123456", mail.outbox[0].body)

    def test_register_rejects_duplicate_email(self):
        create_hospital(email="dup@general.test")
        response = self.post_json("auth-register", {
            "email": "dup@general.test",
            "password": PASSWORD,
            "hospitalName": "Another",
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn("email", response.json()["details"])

    def test_register_lists_missing_fields(self):
        response = self.post_json("auth-register", {"email": "x@general.test"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(sorted(response.json()["missing"]), ["hospitalName", "password"])

    def test_malformed_json_is_rejected(self):
        response = self.client.post(reverse("auth-register"), data="{not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Request body must be valid JSON")

    def test_form_encoded_body_is_not_parsed_as_json(self):
        response = self.client.post(reverse("auth-login"), data={"email": "a@b.test", "password": "x"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Validation failed")
        self.assertEqual(sorted(response.json()["missing"]), ["email", "password"])


class LoginAndVerificationTests(ApiTestCase):
    def test_unverified_login_requires_verification(self):
        hospital = create_hospital(verified=False)
        response = self.post_json("auth-login", {"email": hospital.email, "password": PASSWORD})
        self.assertEqual(response.status_code, 403)
        self.assertTrue(response.json()["requiresVerification"])
        self.assertEqual(response.json()["hospital_id"], hospital.id)
        self.assertEqual(response.json()["error"], "Email not verified")
        self.assertIn("verify your email", response.json()["message"])

    def test_bad_credentials(self):
        hospital = create_hospital()
        response = self.post_json("auth-login", {"email": hospital.email, "password": "wrong-password"})
        self.assertEqual(response.status_code, 401)

    def test_verified_login_returns_session(self):
        hospital = create_hospital()
        response = self.post_json("auth-login", {"email": hospital.email.upper(), "password": PASSWORD})
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["hospital_id"], hospital.id)
        self.assertEqual(data["hospitalName"], hospital.name)
        self.assertTrue(AuthSession.objects.filter(key=data["token"]).exists())
        self.assertIn("expiresAt", data)

    @patch("hospital.services.otp.generate_code", return_value="654321")
    def test_verify_otp_marks_email_verified(self, _code):
        hospital = create_hospital(verified=False)
        otp.issue(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL)

        wrong = self.post_json("auth-verify-otp", {"hospital_id": hospital.id, "otp": "000000"})
        self.assertEqual(wrong.status_code, 400)
        self.assertFalse(wrong.json()["expired"])

        response = self.post_json("auth-verify-otp", {"email": hospital.email, "otp": "654321"})
        self.assertEqual(response.status_code, 200)
        self.assertIn("token", response.json()["data"])
        hospital.refresh_from_db()
        self.assertTrue(hospital.email_verified)

    @patch("hospital.services.otp.generate_code", return_value="111222")
    def test_expired_code_is_reported(self, _code):
        hospital = create_hospital(verified=False)
        otp.issue(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL)
        OneTimePasscode.objects.filter(hospital=hospital).update(expires_at=timezone.now() - timedelta(minutes=1))

        response = self.post_json("auth-verify-otp", {"hospital_id": hospital.id, "otp": "111222"})
        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.json()["expired"])
        self.assertEqual(response.json()["message"], otp.PasscodeExpired.remedy)

    def test_resend_replaces_previous_code(self):
        hospital = create_hospital(verified=False)
        with patch("hospital.services.otp.generate_code", return_value="999999"):
            otp.issue(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL)
        with patch("hospital.services.otp.generate_code", return_value="888888"):
            with self.captureOnCommitCallbacks(execute=True):
                response = self.post_json("auth-resend-otp", {"hospital_id": hospital.id})
        self.assertEqual(response.status_code, 200)

        with self.assertRaises(otp.PasscodeInvalid):
            otp.verify(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL, "999999")
        otp.verify(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL, "888888")

    def test_resend_for_verified_account_conflicts(self):
        hospital = create_hospital()
        response = self.post_json("auth-resend-otp", {"email": hospital.email})
        self.assertEqual(response.status_code, 409)


class SessionLifecycleTests(ApiTestCase):
    def setUp(self):
        self.hospital = create_hospital()

    def test_protected_endpoint_requires_token(self):
        response = self.client.get(reverse("hospital-profile"))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Authentication required")

    def test_profile_reports_account_stats(self):
        response = self.client.get(reverse("hospital-profile"), **auth_headers(self.hospital))
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["accountType"], "email")
        self.assertEqual(data["stats"], {"totalDonors": 0, "totalDonations": 0, "availableUnits": 0})

    def test_hospital_mismatch_is_forbidden(self):
        other = create_hospital(email="other@general.test", name="Other")
        response = self.client.get(
            reverse("hospital-profile"),
            {"hospital_id": other.id},
            **auth_headers(self.hospital),
        )
        self.assertEqual(response.status_code, 403)

    def test_refresh_rotates_the_key(self):
        headers = auth_headers(self.hospital)
        response = self.client.post(reverse("auth-refresh"), **headers)
        self.assertEqual(response.status_code, 200)
        new_key = response.json()["data"]["token"]

        self.assertEqual(self.client.get(reverse("hospital-profile"), **headers).status_code, 401)
        self.assertEqual(
            self.client.get(reverse("hospital-profile"), HTTP_AUTHORIZATION=f"Bearer {new_key}").status_code,
            200,
        )

    def test_logout_revokes_session(self):
        headers = auth_headers(self.hospital)
        self.assertEqual(self.client.post(reverse("auth-logout"), **headers).status_code, 200)
        self.assertEqual(self.client.get(reverse("hospital-profile"), **headers).status_code, 401)

    def test_expired_session_is_rejected(self):
        session = sessions.issue(self.hospital)
        AuthSession.objects.filter(pk=session.pk).update(expires_at=timezone.now() - timedelta(seconds=1))
        response = self.client.get(reverse("hospital-profile"), HTTP_AUTHORIZATION=f"Bearer {session.key}")
        self.assertEqual(response.status_code, 401)


class PasswordResetTests(ApiTestCase):
    def test_unknown_email_gets_the_same_answer(self):
        response = self.post_json("auth-reset-password", {"email": "nobody@general.test"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"], {"sent": True})
        self.assertEqual(len(mail.outbox), 0)

    @patch("hospital.services.otp.generate_code", return_value="246810")
    def test_reset_with_code_changes_password_and_revokes_sessions(self, _code):
        hospital = create_hospital()
        headers = auth_headers(hospital)

        with self.captureOnCommitCallbacks(execute=True):
            self.post_json("auth-reset-password", {"email": hospital.email})
        self.assertEqual(len(mail.outbox), 1)

        response = self.post_json("auth-reset-password", {
            "email": hospital.email,
            "otp": "246810",
            "newPassword": "An0ther-Strong-Pass",
        })
        self.assertEqual(response.status_code, 200)

        user = User.objects.get(pk=hospital.user_id)
        self.assertTrue(user.check_password("An0ther-Strong-Pass"))
        self.assertEqual(self.client.get(reverse("hospital-profile"), **headers).status_code, 401)

    def test_code_without_new_password_is_invalid(self):
        hospital = create_hospital()
        response = self.post_json("auth-reset-password", {"email": hospital.email, "otp": "123456"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("newPassword", response.json()["details"])

    @patch("hospital.services.otp.generate_code", return_value="424242")
    def test_reset_code_is_burnt_after_repeated_wrong_guesses(self, _code):
        hospital = create_hospital()
        otp.issue(hospital, OneTimePasscode.PURPOSE_RESET_PASSWORD)
        payload = {"email": hospital.email, "newPassword": "An0ther-Strong-Pass"}

        for _ in range(otp.MAX_FAILED_ATTEMPTS - 1):
            response = self.post_json("auth-reset-password", dict(payload, otp="000000"))
            self.assertEqual(response.status_code, 400)
            self.assertFalse(response.json()["expired"])

        response = self.post_json("auth-reset-password", dict(payload, otp="000001"))
        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.json()["expired"])
        self.assertEqual(response.json()["message"], otp.PasscodeExpired.remedy)

        response = self.post_json("auth-reset-password", dict(payload, otp="424242"))
        self.assertEqual(response.status_code, 400)
        self.assertTrue(User.objects.get(pk=hospital.user_id).check_password(PASSWORD))


class PasscodeServiceTests(TestCase):
    @patch("hospital.services.otp.generate_code", return_value="135790")
    def test_wrong_guesses_are_counted_until_the_code_is_consumed(self, _code):
        hospital = create_hospital(verified=False)
        otp.issue(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL)

        for _ in range(otp.MAX_FAILED_ATTEMPTS - 1):
            with self.assertRaises(otp.PasscodeInvalid):
                otp.verify(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL, "000000")
        passcode = OneTimePasscode.objects.get(hospital=hospital)
        self.assertEqual(passcode.failed_attempts, otp.MAX_FAILED_ATTEMPTS - 1)
        self.assertIsNone(passcode.consumed_at)

        with self.assertRaises(otp.PasscodeExpired):
            otp.verify(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL, "000000")
        with self.assertRaises(otp.PasscodeInvalid):
            otp.verify(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL, "135790")

    @patch("hospital.services.otp.generate_code", return_value="135790")
    def test_correct_code_within_the_limit_is_accepted(self, _code):
        hospital = create_hospital(verified=False)
        otp.issue(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL)
        for _ in range(otp.MAX_FAILED_ATTEMPTS - 1):
            with self.assertRaises(otp.PasscodeInvalid):
                otp.verify(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL, "000000")

        otp.verify(hospital, OneTimePasscode.PURPOSE_VERIFY_EMAIL, "135790")
        self.assertIsNotNone(OneTimePasscode.objects.get(hospital=hospital).consumed_at)

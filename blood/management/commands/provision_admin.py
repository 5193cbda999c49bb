import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from hospital.models import Hospital


class Command(BaseCommand):
    help = (
        "Provision a blood-bank supervisor from ADMIN_* environment variables: a Django admin "
        "superuser, optionally linked to a verified hospital account for the dashboard."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--hospital-name",
            default=os.getenv("ADMIN_HOSPITAL_NAME", ""),
            help="Also give the supervisor a verified hospital profile with this name",
        )
        parser.add_argument(
            "--reset-password",
            action="store_true",
            default=(os.getenv("ADMIN_RESET_PASSWORD") or "false").lower() == "true",
            help="Overwrite the password of an existing account",
        )

    def handle(self, *args, **options):
        email = (os.getenv("ADMIN_EMAIL") or "").strip().lower()
        password = os.getenv("ADMIN_PASSWORD") or ""

        if not email or not password:
            self.stdout.write("Skipping supervisor provisioning (ADMIN_EMAIL/ADMIN_PASSWORD not set).")
            return

        User = get_user_model()

        with transaction.atomic():
            # Hospital logins use the email as username, so the supervisor does too.
            user, created = User.objects.get_or_create(
                username=email,
                defaults={"email": email, "is_staff": True, "is_superuser": True},
            )

            if created or options["reset_password"]:
                user.set_password(password)
            user.email = email
            user.is_staff = True
            user.is_superuser = True
            user.save()

            hospital_name = (options.get("hospital_name") or "").strip()
            if hospital_name:
                hospital, hospital_created = Hospital.objects.update_or_create(
                    user=user,
                    defaults={"name": hospital_name, "email_verified": True},
                )
                verb = "Linked" if hospital_created else "Updated"
                self.stdout.write(f"{verb} hospital profile '{hospital.name}' (hospital_id={hospital.id})")

        self.stdout.write(f"{'Created' if created else 'Updated'} supervisor account: {email}")

import random
from datetime import timedelta

from django.contrib.auth.models import Group, User
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone
from faker import Faker

from blood import models as blood_models
from blood.services import notifications
from blood.utils.compatibility import ABO_GROUPS, BLOOD_TYPES, RH_FACTORS
from donor import models as donor_models
from donor.utils.expiry import COMPONENT_CHOICES, SHELF_LIFE_DAYS
from hospital.models import Hospital

DONATION_VOLUMES = [350, 400, 450, 450, 450, 500]
STORAGE_LOCATIONS = ["Fridge A1", "Fridge A2", "Fridge B1", "Freezer C1", "Platelet Agitator 1"]
URGENCY_WEIGHTS = [
    (blood_models.BloodRequest.URGENCY_ROUTINE, 6),
    (blood_models.BloodRequest.URGENCY_URGENT, 3),
    (blood_models.BloodRequest.URGENCY_CRITICAL, 1),
]
DEFAULT_PASSWORD = "DemoPass123!"


class Command(BaseCommand):
    help = "Generate a realistic demo hospital with donors, donated units and incoming blood requests"

    def add_arguments(self, parser):
        parser.add_argument("--email", default="demo@hospital.local", help="Login email of the demo hospital")
        parser.add_argument("--donors", type=int, help="Number of donors to create (default random between 40-60)")
        parser.add_argument("--requests", type=int, help="Number of blood requests to create (default random between 10-20)")
        parser.add_argument("--seed", type=int, help="Random seed for deterministic runs")
        parser.add_argument("--purge", action="store_true", help="Delete the demo hospital's existing records before seeding")

    def handle(self, *args, **options):
        faker = Faker()
        if options.get("seed") is not None:
            Faker.seed(options["seed"])
            random.seed(options["seed"])

        donor_target = options["donors"] if options.get("donors") is not None else random.randint(40, 60)
        request_target = options["requests"] if options.get("requests") is not None else random.randint(10, 20)
        if donor_target < 1 or request_target < 0:
            raise CommandError("--donors must be positive and --requests non-negative.")

        with transaction.atomic():
            hospital = self._ensure_hospital(options["email"].strip().lower(), faker)
            if options.get("purge"):
                self._purge_existing(hospital)
            donors = self._create_donors(hospital, donor_target, faker)
            donation_count = self._create_donations(hospital, donors)
            request_count = self._create_requests(hospital, request_target, faker)

        summary = (
            f"Seed complete for '{hospital.name}' (hospital_id={hospital.id}): {len(donors)} donors, "
            f"{donation_count} donated units, {request_count} blood requests."
        )
        self.stdout.write(self.style.SUCCESS(summary))
        self.stdout.write(
            self.style.SUCCESS(
                f"Log in as {hospital.email} with password '" + DEFAULT_PASSWORD + "'"
            )
        )

    # ------------------------------------------------------------------
    def _ensure_hospital(self, email, faker):
        user, created = User.objects.get_or_create(username=email, defaults={"email": email})
        if created:
            user.set_password(DEFAULT_PASSWORD)
            user.save()
        group, _ = Group.objects.get_or_create(name="HOSPITAL")
        group.user_set.add(user)

        hospital, _ = Hospital.objects.get_or_create(
            user=user,
            defaults={
                "name": f"{faker.city()} General Hospital",
                "phone": faker.msisdn()[:12],
                "address": faker.street_address(),
                "city": faker.city(),
                "state": faker.state(),
                "postal_code": faker.postcode()[:12],
                "email_verified": True,
            },
        )
        return hospital

    def _purge_existing(self, hospital):
        self.stdout.write("Purging existing demo records…")
        # Transfers protect their unit and request rows, so they go first.
        blood_models.Transfer.objects.filter(hospital=hospital).delete()
        blood_models.BloodRequest.objects.filter(hospital=hospital).delete()
        blood_models.HospitalEvent.objects.filter(hospital=hospital).delete()
        donor_models.Donation.objects.filter(hospital=hospital).delete()
        donor_models.Donor.objects.filter(hospital=hospital).delete()
        self.stdout.write(self.style.WARNING("Existing demo records removed."))

    def _create_donors(self, hospital, target, faker):
        donors = []
        for _ in range(target):
            gender = random.choice(donor_models.Donor.GENDER_CHOICES)[0]
            donors.append(donor_models.Donor.objects.create(
                hospital=hospital,
                first_name=faker.first_name(),
                last_name=faker.last_name(),
                date_of_birth=faker.date_of_birth(minimum_age=18, maximum_age=65),
                gender=gender,
                phone=faker.msisdn()[:12],
                email=faker.free_email(),
                address=faker.street_address(),
                city=hospital.city,
                state=hospital.state,
                postal_code=faker.postcode()[:12],
            ))
        return donors

    def _create_donations(self, hospital, donors):
        today = timezone.localdate()
        components = [code for code, _ in COMPONENT_CHOICES]
        count = 0
        for donor in donors:
            group = random.choice(ABO_GROUPS)
            rh = random.choices(RH_FACTORS, weights=[85, 15])[0]
            for _ in range(random.randint(1, 3)):
                component = random.choice(components)
                # Keep most units inside their shelf life so the inventory is not all expired.
                max_age = max(SHELF_LIFE_DAYS[component] - 1, 0)
                collected = today - timedelta(days=random.randint(0, min(max_age, 40)))
                donor_models.Donation.objects.create(
                    donor=donor,
                    hospital=hospital,
                    blood_type=group,
                    rh_factor=rh,
                    component_type=component,
                    volume_ml=random.choice(DONATION_VOLUMES),
                    collection_date=collected,
                    storage_location=random.choice(STORAGE_LOCATIONS),
                )
                count += 1
        return count

    def _create_requests(self, hospital, target, faker):
        urgencies = [urgency for urgency, _ in URGENCY_WEIGHTS]
        weights = [weight for _, weight in URGENCY_WEIGHTS]
        for _ in range(target):
            blood_request = blood_models.BloodRequest.objects.create(
                hospital=hospital,
                patient_name=faker.name(),
                patient_age=random.randint(1, 90),
                blood_type=random.choice(BLOOD_TYPES),
                urgency=random.choices(urgencies, weights=weights)[0],
                units_needed=random.randint(1, 4),
                contact_number=faker.msisdn()[:12],
                address=faker.street_address(),
                requester_name=faker.name(),
                requester_email=faker.free_email(),
            )
            notifications.new_request(blood_request)
        return target

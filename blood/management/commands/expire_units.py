from datetime import date

from django.core.management.base import BaseCommand, CommandError

from blood.services.inventory import expire_stale_units


class Command(BaseCommand):
    help = "Mark available blood units whose expiry date has passed as expired"

    def add_arguments(self, parser):
        parser.add_argument("--as-of", help="Treat this YYYY-MM-DD date as today")

    def handle(self, *args, **options):
        today = None
        if options.get("as_of"):
            try:
                today = date.fromisoformat(options["as_of"])
            except ValueError as exc:
                raise CommandError(f"Invalid --as-of date: {options['as_of']}") from exc

        count = expire_stale_units(today=today)
        self.stdout.write(self.style.SUCCESS(f"Expired {count} blood unit(s)."))

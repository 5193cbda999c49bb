import os

from celery import Celery
from celery.schedules import crontab
from dotenv import load_dotenv


load_dotenv(override=False)


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "bloodinventory.settings")

app = Celery("bloodinventory")

# Load any CELERY_* settings from Django settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from installed apps
app.autodiscover_tasks()

app.conf.beat_schedule = {
	"expire-stale-units": {
		"task": "blood.tasks.expire_stale_units",
		"schedule": crontab(hour=0, minute=15),
	},
}

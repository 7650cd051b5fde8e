"""
Add celery-beat schedule for the escrow auto-release scheduler.

Creates the periodic task for process_auto_release_escrows, running every
ESCROW_AUTO_RELEASE_INTERVAL_MINUTES (default 5) to release escrows whose
buyer confirmation deadline has passed.
"""

from django.conf import settings
from django.db import migrations

TASK_NAME = "Auto-release Lapsed Escrows"


def create_periodic_task(apps, schema_editor):
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=settings.ESCROW_AUTO_RELEASE_INTERVAL_MINUTES,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "escrow.tasks.process_auto_release_escrows",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Releases pending_confirmation escrows whose confirmation "
                "deadline has passed and reports funded escrows past their "
                "long-stop date."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("escrow", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]

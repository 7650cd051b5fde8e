import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("payment", "Payment"),
                            ("escrow", "Escrow"),
                            ("order", "Order"),
                            ("dispute", "Dispute"),
                            ("system", "System"),
                        ],
                        db_index=True,
                        default="system",
                        help_text="Notification category",
                        max_length=20,
                    ),
                ),
                ("title", models.CharField(help_text="Short headline", max_length=200)),
                ("message", models.TextField(blank=True, default="", help_text="Notification body")),
                ("data", models.JSONField(blank=True, default=dict, help_text="Identifiers of related records")),
                ("is_read", models.BooleanField(db_index=True, default=False, help_text="Whether the recipient has read the notification")),
                ("read_at", models.DateTimeField(blank=True, help_text="When the notification was marked read", null=True)),
                (
                    "idempotency_key",
                    models.CharField(
                        blank=True,
                        help_text="Optional key preventing duplicate notifications",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        help_text="User receiving the notification",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Notification",
                "verbose_name_plural": "Notifications",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["recipient", "is_read", "created_at"], name="notif_recipient_read_idx"),
                ],
            },
        ),
    ]

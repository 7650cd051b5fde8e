import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models

import disputes.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Dispute",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("quality-issues", "Quality Issues"),
                            ("wrong-item", "Wrong Item"),
                            ("missing-item", "Missing Item"),
                            ("damaged", "Damaged"),
                            ("late-delivery", "Late Delivery"),
                            ("other", "Other"),
                        ],
                        max_length=20,
                    ),
                ),
                ("description", models.TextField()),
                ("evidence", models.JSONField(blank=True, default=disputes.models.empty_evidence, help_text="List of evidence URLs or notes")),
                ("respondent_message", models.TextField(blank=True, default="")),
                ("respondent_evidence", models.JSONField(blank=True, default=disputes.models.empty_evidence)),
                ("responded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "priority",
                    models.CharField(
                        choices=[("low", "Low"), ("medium", "Medium"), ("high", "High"), ("urgent", "Urgent")],
                        db_index=True,
                        default="medium",
                        max_length=10,
                    ),
                ),
                ("escalation_reason", models.TextField(blank=True, default="")),
                ("escalated_at", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("open", "Open"),
                            ("under_review", "Under Review"),
                            ("resolved_buyer", "Resolved for Buyer"),
                            ("resolved_vendor", "Resolved for Vendor"),
                            ("closed", "Closed"),
                        ],
                        db_index=True,
                        default="open",
                        max_length=50,
                        protected=True,
                    ),
                ),
                ("outcome", models.CharField(blank=True, choices=[("buyer", "Buyer"), ("vendor", "Vendor")], default="", max_length=10)),
                ("resolution", models.TextField(blank=True, default="")),
                ("admin_notes", models.TextField(blank=True, default="")),
                ("refund_amount_cents", models.PositiveBigIntegerField(blank=True, help_text="Amount returned to the buyer by the resolution", null=True)),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "admin",
                    models.ForeignKey(
                        blank=True,
                        help_text="Admin reviewing or resolving the dispute",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assigned_disputes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                ("buyer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="buyer_disputes", to=settings.AUTH_USER_MODEL)),
                ("opened_by", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="opened_disputes", to=settings.AUTH_USER_MODEL)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="disputes", to="orders.order")),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="vendor_disputes", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Dispute",
                "verbose_name_plural": "Disputes",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["order", "status"], name="dispute_order_status_idx"),
                    models.Index(fields=["buyer", "status"], name="dispute_buyer_status_idx"),
                    models.Index(fields=["vendor", "status"], name="dispute_vendor_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ["open", "under_review"])),
                        fields=("order",),
                        name="dispute_one_active_per_order",
                    ),
                ],
            },
        ),
    ]

import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models

import escrow.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("disputes", "0001_initial"),
        ("orders", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Escrow",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("amount_cents", models.PositiveBigIntegerField(help_text="Escrowed amount in smallest currency unit")),
                ("currency", models.CharField(default="SLE", help_text="ISO 4217 currency code", max_length=3)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("funded", "Funded"),
                            ("pending_confirmation", "Pending Confirmation"),
                            ("released_to_vendor", "Released to Vendor"),
                            ("refunded_to_buyer", "Refunded to Buyer"),
                            ("disputed", "Disputed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current state of the escrow (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                ("payment_reference", models.CharField(blank=True, default="", help_text="Provider reference that funded this escrow", max_length=100)),
                ("auto_release_after_days", models.PositiveSmallIntegerField(default=escrow.models.default_auto_release_after_days, help_text="Days the buyer has to confirm delivery")),
                ("requires_delivery_confirmation", models.BooleanField(default=True)),
                ("requires_buyer_approval", models.BooleanField(default=True)),
                ("funded_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("confirmation_deadline", models.DateTimeField(blank=True, db_index=True, help_text="After this instant, absent buyer action or dispute, funds auto-release", null=True)),
                ("buyer_confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("released_at", models.DateTimeField(blank=True, null=True)),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                ("auto_release_date", models.DateTimeField(blank=True, help_text="Long-stop date computed at funding; reported, never acted on", null=True)),
                ("disputed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "release_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("buyer_approval", "Buyer Approval"),
                            ("auto_release", "Auto Release"),
                            ("admin_release", "Admin Release"),
                            ("dispute_resolution", "Dispute Resolution"),
                        ],
                        default="",
                        max_length=20,
                    ),
                ),
                ("refund_reason", models.CharField(blank=True, choices=[("dispute_resolution", "Dispute Resolution")], default="", max_length=20)),
                ("cancellation_reason", models.TextField(blank=True, default="")),
                ("admin_notes", models.TextField(blank=True, default="")),
                ("release_amount_cents", models.PositiveBigIntegerField(blank=True, null=True)),
                ("refund_amount_cents", models.PositiveBigIntegerField(blank=True, null=True)),
                ("transaction_fee_cents", models.PositiveBigIntegerField(default=0)),
                ("vendor_payout_amount_cents", models.PositiveBigIntegerField(blank=True, null=True)),
                ("vendor_payout_id", models.CharField(blank=True, default="", max_length=100)),
                ("vendor_payout_date", models.DateTimeField(blank=True, null=True)),
                (
                    "vendor_payout_status",
                    models.CharField(
                        blank=True,
                        choices=[("pending", "Pending"), ("completed", "Completed"), ("failed", "Failed")],
                        default="",
                        max_length=20,
                    ),
                ),
                ("buyer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="buyer_escrows", to=settings.AUTH_USER_MODEL)),
                (
                    "dispute",
                    models.ForeignKey(
                        blank=True,
                        help_text="Dispute that froze this escrow",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="frozen_escrows",
                        to="disputes.dispute",
                    ),
                ),
                (
                    "order",
                    models.OneToOneField(
                        help_text="Order these funds are held for",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrow",
                        to="orders.order",
                    ),
                ),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="vendor_escrows", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Escrow",
                "verbose_name_plural": "Escrows",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "confirmation_deadline"], name="escrow_status_deadline_idx"),
                    models.Index(fields=["buyer", "status"], name="escrow_buyer_status_idx"),
                    models.Index(fields=["vendor", "status"], name="escrow_vendor_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount_cents__gt", 0)), name="escrow_amount_positive"),
                    models.CheckConstraint(
                        condition=models.Q(("released_at__isnull", True), ("refunded_at__isnull", True), _connector="OR"),
                        name="escrow_release_refund_exclusive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("release_amount_cents__isnull", True),
                            ("release_amount_cents__lte", models.F("amount_cents")),
                            _connector="OR",
                        ),
                        name="escrow_release_within_amount",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("refund_amount_cents__isnull", True),
                            ("refund_amount_cents__lte", models.F("amount_cents")),
                            _connector="OR",
                        ),
                        name="escrow_refund_within_amount",
                    ),
                ],
            },
        ),
    ]

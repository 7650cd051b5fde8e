import uuid

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
            name="Order",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("order_number", models.CharField(help_text="Human-readable order number", max_length=32, unique=True)),
                ("total_amount_cents", models.PositiveBigIntegerField(help_text="Order total in smallest currency unit")),
                ("currency", models.CharField(default="SLE", help_text="ISO 4217 currency code", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("pending_payment", "Pending Payment"),
                            ("confirmed", "Confirmed"),
                            ("processing", "Processing"),
                            ("shipped", "Shipped"),
                            ("delivered", "Delivered"),
                            ("completed", "Completed"),
                            ("refunded", "Refunded"),
                            ("cancelled", "Cancelled"),
                            ("disputed", "Disputed"),
                            ("payment_failed", "Payment Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Visible order status, mirrored from the escrow ledger",
                        max_length=20,
                    ),
                ),
                ("delivered_at", models.DateTimeField(blank=True, help_text="When delivery was marked", null=True)),
                (
                    "payment_provider",
                    models.CharField(
                        choices=[("monime", "Monime"), ("manual", "Manual")],
                        default="monime",
                        help_text="Payment provider handling this order",
                        max_length=20,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("orange_money", "Orange Money"),
                            ("afrimoney", "Afrimoney"),
                            ("africell_money", "Africell Money"),
                            ("bank_transfer", "Bank Transfer"),
                            ("cash_on_delivery", "Cash on Delivery"),
                        ],
                        default="",
                        help_text="Payment method chosen by the buyer",
                        max_length=20,
                    ),
                ),
                ("payment_reference", models.CharField(blank=True, db_index=True, help_text="Provider correlation reference (idempotency key)", max_length=100, null=True, unique=True)),
                ("payment_id", models.CharField(blank=True, default="", help_text="Provider payment/session identifier", max_length=100)),
                ("payment_transaction_id", models.CharField(blank=True, default="", help_text="Provider transaction identifier", max_length=100)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Normalized payment status",
                        max_length=20,
                    ),
                ),
                ("payment_amount_cents", models.PositiveBigIntegerField(blank=True, help_text="Amount snapshot sent to the provider", null=True)),
                ("payment_currency", models.CharField(blank=True, default="", help_text="Currency snapshot sent to the provider", max_length=3)),
                ("payment_initiated_at", models.DateTimeField(blank=True, help_text="When the payment was initiated", null=True)),
                ("payment_completed_at", models.DateTimeField(blank=True, help_text="When the provider reported completion", null=True)),
                ("payment_updated_at", models.DateTimeField(blank=True, help_text="When the payment sub-record last changed", null=True)),
                (
                    "buyer",
                    models.ForeignKey(
                        help_text="User paying for the order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        help_text="User fulfilling the order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["buyer", "status"], name="order_buyer_status_idx"),
                    models.Index(fields=["vendor", "status"], name="order_vendor_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("total_amount_cents__gt", 0)), name="order_total_positive"),
                ],
            },
        ),
    ]

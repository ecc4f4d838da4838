"""Initial migration for the agreements app."""

from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="RentalAgreement",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("agreement_text", models.TextField()),
                ("custom_terms", models.TextField(blank=True, default="")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("sent", "Sent"),
                            ("signed", "Signed"),
                            ("expired", "Expired"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="draft",
                        max_length=16,
                    ),
                ),
                (
                    "delivery_method",
                    models.CharField(
                        choices=[
                            ("self-pickup", "Self Pickup"),
                            ("home-delivery", "Home Delivery"),
                            ("meet-halfway", "Meet Halfway"),
                            ("to-be-arranged", "To be arranged"),
                        ],
                        default="to-be-arranged",
                        max_length=20,
                    ),
                ),
                (
                    "late_fee_per_day",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10),
                ),
                (
                    "deposit_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10),
                ),
                (
                    "generated_by",
                    models.CharField(
                        choices=[("ai", "AI"), ("template", "Template")],
                        default="template",
                        max_length=16,
                    ),
                ),
                ("signed_by_owner", models.BooleanField(default=False)),
                ("signed_by_renter", models.BooleanField(default=False)),
                ("owner_signature_data", models.JSONField(blank=True, default=dict)),
                ("renter_signature_data", models.JSONField(blank=True, default=dict)),
                ("owner_signed_at", models.DateTimeField(blank=True, null=True)),
                ("renter_signed_at", models.DateTimeField(blank=True, null=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("agreed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="agreements",
                        to="bookings.booking",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="created_agreements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "expires_at"],
                        name="agreement_status_expiry_idx",
                    )
                ],
            },
        ),
    ]

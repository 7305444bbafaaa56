import uuid

import django.db.models.deletion
import simple_history.models
from django.conf import settings
from django.db import migrations, models


CESSION_STATUS_CHOICES = [
    ("draft", "Brouillon"),
    ("pending", "En attente de signature"),
    ("sent", "Envoyée"),
    ("signed", "Signée"),
    ("rejected", "Rejetée"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CessionCreance",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("client_id", models.UUIDField(blank=True, null=True)),
                ("recipient_name", models.CharField(max_length=255)),
                ("recipient_email", models.EmailField(max_length=254)),
                ("recipient_company", models.CharField(blank=True, max_length=255)),
                ("recipient_address", models.TextField(blank=True)),
                ("recipient_phone", models.CharField(blank=True, max_length=20)),
                ("recipient_siret", models.CharField(blank=True, max_length=20)),
                ("recipient_ape_code", models.CharField(blank=True, max_length=10)),
                ("recipient_rcs", models.CharField(blank=True, max_length=50)),
                ("recipient_website", models.CharField(blank=True, max_length=255)),
                ("invoice_id", models.UUIDField()),
                ("invoice_number", models.CharField(blank=True, max_length=50)),
                ("invoice_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                (
                    "invoice_snapshot",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Véhicule, assureur et date du sinistre figés à la création",
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("due_date", models.DateField()),
                ("notes", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=CESSION_STATUS_CHOICES,
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("client_sign_token", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("repairer_sign_token", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("client_signature_url", models.TextField(blank=True, null=True)),
                ("dealer_signature_url", models.TextField(blank=True, null=True)),
                ("document_url", models.TextField(blank=True, null=True)),
                ("signed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cessions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Cession de créance",
                "verbose_name_plural": "Cessions de créance",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="HistoricalCessionCreance",
            fields=[
                ("id", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False)),
                ("created_at", models.DateTimeField(blank=True, editable=False)),
                ("updated_at", models.DateTimeField(blank=True, editable=False)),
                ("client_id", models.UUIDField(blank=True, null=True)),
                ("recipient_name", models.CharField(max_length=255)),
                ("recipient_email", models.EmailField(max_length=254)),
                ("recipient_company", models.CharField(blank=True, max_length=255)),
                ("recipient_address", models.TextField(blank=True)),
                ("recipient_phone", models.CharField(blank=True, max_length=20)),
                ("recipient_siret", models.CharField(blank=True, max_length=20)),
                ("recipient_ape_code", models.CharField(blank=True, max_length=10)),
                ("recipient_rcs", models.CharField(blank=True, max_length=50)),
                ("recipient_website", models.CharField(blank=True, max_length=255)),
                ("invoice_id", models.UUIDField()),
                ("invoice_number", models.CharField(blank=True, max_length=50)),
                ("invoice_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                (
                    "invoice_snapshot",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Véhicule, assureur et date du sinistre figés à la création",
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("due_date", models.DateField()),
                ("notes", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=CESSION_STATUS_CHOICES,
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("client_sign_token", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False)),
                ("repairer_sign_token", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False)),
                ("client_signature_url", models.TextField(blank=True, null=True)),
                ("dealer_signature_url", models.TextField(blank=True, null=True)),
                ("document_url", models.TextField(blank=True, null=True)),
                ("signed_at", models.DateTimeField(blank=True, null=True)),
                ("history_id", models.AutoField(primary_key=True, serialize=False)),
                ("history_date", models.DateTimeField(db_index=True)),
                ("history_change_reason", models.CharField(max_length=100, null=True)),
                (
                    "history_type",
                    models.CharField(
                        choices=[("+", "Created"), ("~", "Changed"), ("-", "Deleted")],
                        max_length=1,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "history_user",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "historical Cession de créance",
                "verbose_name_plural": "historical Cessions de créance",
                "ordering": ("-history_date", "-history_id"),
                "get_latest_by": ("history_date", "history_id"),
            },
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]

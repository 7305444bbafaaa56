import uuid

from django.conf import settings
from django.db import models
from simple_history.models import HistoricalRecords

from core.models import BaseModel

from .document_status import SIGNATURE_FIELDS, CessionStatus, SignerRole, is_locked


class CessionCreance(BaseModel):
    """
    Cession de créance d'une facture de réparation.

    Le client (débiteur cédé) et le carrossier (cédant) signent chacun via
    leur propre lien. Le statut passe à SIGNED uniquement quand les deux
    signatures sont présentes.
    """

    # Débiteur cédé
    client_id = models.UUIDField(null=True, blank=True)
    recipient_name = models.CharField(max_length=255)
    recipient_email = models.EmailField()
    recipient_company = models.CharField(max_length=255, blank=True)
    recipient_address = models.TextField(blank=True)
    recipient_phone = models.CharField(max_length=20, blank=True)
    recipient_siret = models.CharField(max_length=20, blank=True)
    recipient_ape_code = models.CharField(max_length=10, blank=True)
    recipient_rcs = models.CharField(max_length=50, blank=True)
    recipient_website = models.CharField(max_length=255, blank=True)

    # Facture (copie au moment de la création)
    invoice_id = models.UUIDField()
    invoice_number = models.CharField(max_length=50, blank=True)
    invoice_amount = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    invoice_snapshot = models.JSONField(
        default=dict,
        blank=True,
        help_text="Véhicule, assureur et date du sinistre figés à la création",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    due_date = models.DateField()
    notes = models.TextField(blank=True)

    status = models.CharField(
        max_length=20,
        choices=CessionStatus.choices,
        default=CessionStatus.PENDING,
        db_index=True,
    )

    # Liens de signature (un par partie)
    client_sign_token = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    repairer_sign_token = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)

    client_signature_url = models.TextField(null=True, blank=True)
    dealer_signature_url = models.TextField(null=True, blank=True)
    document_url = models.TextField(null=True, blank=True)
    signed_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cessions",
    )

    history = HistoricalRecords()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Cession de créance"
        verbose_name_plural = "Cessions de créance"

    def __str__(self):
        return f"Cession {self.invoice_number or self.invoice_id} - {self.recipient_name}"

    @property
    def is_locked(self):
        return is_locked(self.status)

    @property
    def is_fully_signed(self):
        return bool(self.client_signature_url and self.dealer_signature_url)

    def signature_url_for(self, role):
        return getattr(self, SIGNATURE_FIELDS[SignerRole(role)])

    def token_for(self, role):
        if SignerRole(role) == SignerRole.CLIENT:
            return self.client_sign_token
        return self.repairer_sign_token

    @property
    def vehicle(self):
        return (self.invoice_snapshot or {}).get("vehicle") or {}

    @property
    def insurer(self):
        return (self.invoice_snapshot or {}).get("insurer") or {}

    @property
    def accident_date(self):
        return (self.invoice_snapshot or {}).get("accident_date")

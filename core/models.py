import uuid

from django.conf import settings
from django.db import models


class BaseModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class CompanyProfile(BaseModel):
    """
    Informations légales du garage (le cédant).

    Renseignées depuis les paramètres du compte, lues pour le bloc
    « CÉDANT » et le tampon professionnel de la cession.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="company_profile",
    )
    company_name = models.CharField(max_length=255)
    address = models.CharField(max_length=255, blank=True)
    zip_code = models.CharField(max_length=10, blank=True)
    city = models.CharField(max_length=100, blank=True)
    siret = models.CharField(max_length=20, blank=True)
    rcs = models.CharField(max_length=50, blank=True)
    vat_number = models.CharField(max_length=30, blank=True)
    ape_code = models.CharField(max_length=10, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    website = models.CharField(max_length=255, blank=True)
    logo_url = models.URLField(max_length=500, blank=True)

    class Meta:
        verbose_name = "Profil société"
        verbose_name_plural = "Profils société"

    def __str__(self):
        return self.company_name


class Invoice(BaseModel):
    """Facture de réparation, référencée par les cessions de créance."""

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="invoices",
    )
    invoice_number = models.CharField(max_length=50)
    client_id = models.UUIDField(null=True, blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    # {"make": ..., "model": ..., "registration": ...}
    vehicle_info = models.JSONField(default=dict, blank=True)
    # {"company": ..., "policy_number": ..., "claim_number": ..., "address": ...}
    insurance_info = models.JSONField(default=dict, blank=True)
    accident_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Facture"
        verbose_name_plural = "Factures"

    def __str__(self):
        return f"Facture {self.invoice_number}"

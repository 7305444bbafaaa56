"""
Contrats des services externes consommés par la cession de créance.

Le profil société (cédant) et la facture sont gérés ailleurs dans
l'application : on ne les lit qu'à travers ces deux fonctions, dont
l'implémentation est choisie par les settings
CESSION_COMPANY_PROFILE_PROVIDER et CESSION_INVOICE_PROVIDER.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.utils.module_loading import import_string


@dataclass(frozen=True)
class CompanyInfo:
    name: str
    address: str = ""
    zip_code: str = ""
    city: str = ""
    siret: str = ""
    rcs: str = ""
    vat_number: str = ""
    ape_code: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    logo_url: str = ""


@dataclass(frozen=True)
class InvoiceSnapshot:
    id: str
    number: str
    total_amount: Decimal
    client_id: str | None = None
    vehicle: dict = field(default_factory=dict)
    insurer: dict = field(default_factory=dict)
    accident_date: date | None = None

    def as_json(self) -> dict:
        """Copie figée stockée sur la cession (véhicule, assureur, sinistre)."""
        return {
            "vehicle": dict(self.vehicle),
            "insurer": dict(self.insurer),
            "accident_date": self.accident_date.isoformat() if self.accident_date else None,
            "total_amount": str(self.total_amount),
        }


def get_company_profile(user) -> CompanyInfo | None:
    provider = import_string(settings.CESSION_COMPANY_PROFILE_PROVIDER)
    return provider(user)


def get_invoice(invoice_id, user) -> InvoiceSnapshot | None:
    provider = import_string(settings.CESSION_INVOICE_PROVIDER)
    return provider(invoice_id, user)

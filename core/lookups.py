"""
Implémentations par défaut des collaborateurs de la cession de créance,
adossées aux modèles CompanyProfile et Invoice.
"""

import logging

from django.core.exceptions import ValidationError

from cession.collaborators import CompanyInfo, InvoiceSnapshot

from .models import CompanyProfile, Invoice

logger = logging.getLogger(__name__)


def company_profile_for_user(user) -> CompanyInfo | None:
    if user is None:
        return None

    profile = CompanyProfile.objects.filter(user=user).first()
    if profile is None:
        logger.warning(f"Aucun profil société pour l'utilisateur {user.pk}")
        return None

    return CompanyInfo(
        name=profile.company_name,
        address=profile.address,
        zip_code=profile.zip_code,
        city=profile.city,
        siret=profile.siret,
        rcs=profile.rcs,
        vat_number=profile.vat_number,
        ape_code=profile.ape_code,
        phone=profile.phone,
        email=profile.email,
        website=profile.website,
        logo_url=profile.logo_url,
    )


def invoice_for_user(invoice_id, user) -> InvoiceSnapshot | None:
    try:
        invoice = Invoice.objects.filter(id=invoice_id, owner=user).first()
    except ValidationError:
        # Identifiant mal formé
        return None

    if invoice is None:
        return None

    return InvoiceSnapshot(
        id=str(invoice.id),
        number=invoice.invoice_number,
        total_amount=invoice.total_amount,
        client_id=str(invoice.client_id) if invoice.client_id else None,
        vehicle=invoice.vehicle_info or {},
        insurer=invoice.insurance_info or {},
        accident_date=invoice.accident_date,
    )

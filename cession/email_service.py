"""
Service d'envoi d'emails pour les cessions de créance.
"""

import logging

from core.email_service import EmailService
from core.url_builders import get_cession_url, get_signing_url

from .collaborators import CompanyInfo
from .constants import SIGNING_PAGE_LEGAL_NOTE
from .document_status import SignerRole
from .models import CessionCreance
from .pdf_generation import format_euros

logger = logging.getLogger(__name__)


def _base_context(cession: CessionCreance, company: CompanyInfo | None) -> dict:
    return {
        "recipient_name": cession.recipient_name,
        "company_name": company.name if company else "Votre carrossier",
        "invoice_number": cession.invoice_number,
        "amount": format_euros(cession.amount),
        "legal_note": SIGNING_PAGE_LEGAL_NOTE,
    }


def send_signature_request_email(cession: CessionCreance, company: CompanyInfo | None) -> bool:
    """
    Envoie au client (débiteur cédé) son lien de signature.
    """
    context = _base_context(cession, company)
    context["signing_url"] = get_signing_url(cession.token_for(SignerRole.CLIENT))

    reply_to = [company.email] if company and company.email else None
    success = EmailService.send(
        to=cession.recipient_email,
        template="cession/demande_signature",
        context=context,
        reply_to=reply_to,
    )

    if success:
        logger.info(f"Lien de signature envoyé pour la cession {cession.id}")
    else:
        logger.error(f"Erreur envoi du lien de signature pour la cession {cession.id}")
    return success


def send_signed_email(cession: CessionCreance, company: CompanyInfo | None) -> bool:
    """Confirme la signature aux deux parties, avec le lien du document."""
    context = _base_context(cession, company)
    context["document_url"] = cession.document_url
    context["dashboard_url"] = get_cession_url(cession.id)

    recipients = [cession.recipient_email]
    creator_email = getattr(cession.created_by, "email", "")
    if creator_email:
        recipients.append(creator_email)

    return EmailService.send(to=recipients, template="cession/signee", context=context)

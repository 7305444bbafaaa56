"""
Génération du PDF de cession de créance.

Le document est une fonction des données de la cession, du profil société
et des deux images de signature : HTML Django rendu en PDF par WeasyPrint.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from io import BytesIO

from django.conf import settings
from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone
from num2words import num2words
from PIL import Image, UnidentifiedImageError
from slugify import slugify

from backend.pdf_utils import bytes_to_base64_data_uri
from backend.storage_utils import delete_stored_file, download_bytes, upload_bytes

from . import constants
from .collaborators import CompanyInfo
from .document_status import SignerRole
from .errors import SignatureImageUnavailable, StorageWriteFailed
from .repository import set_document_url

logger = logging.getLogger(__name__)

PDF_TEMPLATE = "pdf/cession/cession.html"

PIL_CONTENT_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
}


@dataclass(frozen=True)
class LoadedImage:
    content: bytes
    content_type: str

    def as_data_uri(self) -> str:
        return bytes_to_base64_data_uri(self.content, self.content_type)


@dataclass(frozen=True)
class DocumentArtifact:
    content: bytes
    filename: str
    content_type: str = "application/pdf"


def amount_to_words_french(amount) -> str:
    """
    Convertit un montant en euros en mots français avec num2words.
    Exemple: 650.50 -> "six cent cinquante euros et cinquante centimes"
    """
    amount = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    euros = int(amount)
    centimes = int((amount - euros) * 100)

    if euros == 0:
        euros_text = "zéro euro"
    elif euros == 1:
        euros_text = "un euro"
    else:
        euros_text = num2words(euros, lang="fr") + " euros"

    if centimes == 0:
        return euros_text
    if centimes == 1:
        return euros_text + " et un centime"
    return euros_text + " et " + num2words(centimes, lang="fr") + " centimes"


def format_euros(amount) -> str:
    """1234.5 -> "1 234,50 €" """
    if amount in (None, ""):
        return ""
    try:
        value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return f"{amount} €"
    formatted = f"{value:,.2f}".replace(",", " ").replace(".", ",")
    return f"{formatted} €"


def format_date(value) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    return value.strftime("%d/%m/%Y")


def _load_image(url: str) -> LoadedImage:
    content = download_bytes(url)
    with Image.open(BytesIO(content)) as image:
        image_format = image.format
        image.verify()
    return LoadedImage(
        content=content,
        content_type=PIL_CONTENT_TYPES.get(image_format, "image/jpeg"),
    )


def load_signature_images(cession) -> dict:
    """
    Charge les images de signature enregistrées sur la cession.

    Une signature absente vaut None ; une signature enregistrée mais
    illisible interrompt la génération.

    Raises:
        SignatureImageUnavailable
    """
    images = {}
    for role in SignerRole:
        url = cession.signature_url_for(role)
        if not url:
            images[role] = None
            continue
        try:
            images[role] = _load_image(url)
        except (OSError, ValueError, UnidentifiedImageError, SyntaxError) as e:
            logger.error(f"Signature {role} illisible pour la cession {cession.id}: {e}")
            raise SignatureImageUnavailable(
                f"Impossible de charger la signature du {SignerRole(role).label.lower()}"
            )
    return images


def load_logo_data_uri(company: CompanyInfo | None) -> str | None:
    if not company or not company.logo_url:
        return None
    try:
        return _load_image(company.logo_url).as_data_uri()
    except (OSError, ValueError, UnidentifiedImageError, SyntaxError) as e:
        logger.warning(f"Logo ignoré ({company.logo_url}): {e}")
        return None


def _address_lines(address: str) -> list[str]:
    return [line.strip() for line in (address or "").splitlines() if line.strip()]


def _insurer_lines(cession) -> list[tuple[str, str]]:
    insurer = cession.insurer
    candidates = [
        ("Compagnie d'assurance :", insurer.get("company")),
        ("N° de contrat :", insurer.get("policy_number")),
        ("N° de sinistre :", insurer.get("claim_number")),
        ("Date du sinistre :", format_date(cession.accident_date)),
    ]
    return [(label, value) for label, value in candidates if value]


def _repair_amount(cession):
    snapshot_total = (cession.invoice_snapshot or {}).get("total_amount")
    if snapshot_total not in (None, ""):
        return snapshot_total
    if cession.invoice_amount is not None:
        return cession.invoice_amount
    return cession.amount


def _cedant_block(company: CompanyInfo | None) -> dict | None:
    if company is None:
        return None
    city_line = " ".join(part for part in (company.zip_code, company.city) if part)
    rcs = ""
    if company.rcs:
        rcs = " ".join(part for part in ("RCS", company.city.upper(), company.rcs) if part)
    return {
        "name": company.name,
        "street": company.address,
        "city_line": city_line,
        "siret": f"SIRET {company.siret}" if company.siret else "",
        "rcs": rcs,
        "vat": f"TVA {company.vat_number}" if company.vat_number else "",
        "phone": company.phone,
    }


def build_context(cession, company: CompanyInfo | None, signatures: dict, logo_data_uri=None) -> dict:
    vehicle = cession.vehicle
    vehicle_label = " ".join(part for part in (vehicle.get("make"), vehicle.get("model")) if part)
    signed_on = timezone.localtime(cession.signed_at).date() if cession.signed_at else timezone.localdate()

    client_image = signatures.get(SignerRole.CLIENT)
    repairer_image = signatures.get(SignerRole.REPAIRER)
    cedant = _cedant_block(company)

    return {
        "title": constants.DOCUMENT_TITLE,
        "page_size": constants.PAGE_SIZE,
        "page_margin_mm": constants.PAGE_MARGIN_MM,
        "content_width_mm": constants.CONTENT_WIDTH_MM,
        "logo_width_mm": constants.LOGO_BOX_MM[0],
        "logo_height_mm": constants.LOGO_BOX_MM[1],
        "signature_width_mm": constants.SIGNATURE_BOX_MM[0],
        "signature_height_mm": constants.SIGNATURE_BOX_MM[1],
        "stamp_diameter_mm": constants.STAMP_DIAMETER_MM,
        "legal_font_size_pt": constants.LEGAL_FONT_SIZE_PT,
        "logo_data_uri": logo_data_uri,
        "insurer_lines": _insurer_lines(cession),
        "repair_amount": format_euros(_repair_amount(cession)),
        "debtor_title": constants.DEBTOR_BLOCK_TITLE,
        "debtor": {
            "name": cession.recipient_name,
            "company": cession.recipient_company,
            "address_lines": _address_lines(cession.recipient_address),
            "vehicle": vehicle_label,
            "registration": vehicle.get("registration", ""),
            "invoice_number": cession.invoice_number,
        },
        "signature_date": format_date(signed_on),
        "cedant_title": constants.CEDANT_BLOCK_TITLE,
        "cedant": cedant,
        "amount": format_euros(cession.amount),
        "amount_words": amount_to_words_french(cession.amount),
        "due_date": format_date(cession.due_date),
        "legal_paragraphs": [
            {"text": text, "is_heading": is_heading}
            for text, is_heading in constants.LEGAL_PARAGRAPHS
        ],
        "client_signature_label": constants.CLIENT_SIGNATURE_LABEL,
        "repairer_signature_label": constants.REPAIRER_SIGNATURE_LABEL,
        "client_signature": client_image.as_data_uri() if client_image else None,
        "repairer_signature": repairer_image.as_data_uri() if repairer_image else None,
        # Tampon apposé avec la signature du carrossier
        "stamp": cedant if (cedant and repairer_image) else None,
        "footer_notice": constants.FOOTER_LEGAL_NOTICE,
        "issuer_attribution": settings.CESSION_ISSUER_ATTRIBUTION,
    }


def render_cession_html(context: dict) -> str:
    return render_to_string(PDF_TEMPLATE, context)


def html_to_pdf(html: str) -> bytes:
    from weasyprint import HTML

    return HTML(string=html, base_url=str(settings.BASE_DIR)).write_pdf()


def document_filename(cession) -> str:
    reference = slugify(cession.invoice_number or str(cession.id))
    return f"cession-creance-{reference}.pdf"


def assemble(cession, company: CompanyInfo | None, signatures: dict) -> DocumentArtifact:
    """Produit le PDF de la cession à partir des données et des signatures chargées."""
    context = build_context(cession, company, signatures, load_logo_data_uri(company))
    html = render_cession_html(context)
    content = html_to_pdf(html)
    logger.info(f"📄 PDF de la cession {cession.id} généré ({len(content)} octets)")
    return DocumentArtifact(content=content, filename=document_filename(cession))


def store_document(cession, artifact: DocumentArtifact) -> str:
    """
    Stocke le PDF sous un nom unique et remplace document_url.

    L'ancien PDF est supprimé après validation de la transaction.

    Raises:
        StorageWriteFailed
    """
    path = f"{constants.DOCUMENT_STORAGE_DIR}/cession_{cession.id}_{uuid.uuid4().hex[:12]}.pdf"
    try:
        url = upload_bytes(path, artifact.content, artifact.content_type)
    except Exception as e:
        logger.exception(f"Échec de l'enregistrement du PDF de la cession {cession.id}")
        raise StorageWriteFailed("Erreur lors de l'enregistrement du document") from e

    try:
        previous_url = set_document_url(cession.id, url)
    except Exception:
        delete_stored_file(url)
        raise
    cession.document_url = url
    if previous_url and previous_url != url:
        transaction.on_commit(lambda: delete_stored_file(previous_url))
    return url

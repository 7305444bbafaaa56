"""
Orchestration du workflow de cession de créance :
création, signature par lien, génération et envoi.
"""

import logging
import uuid
from dataclasses import dataclass

import sentry_sdk
from django.db import transaction

from backend.storage_utils import cleanup_on_error, delete_stored_file, upload_bytes

from . import repository
from .collaborators import get_company_profile, get_invoice
from .constants import SIGNATURE_STORAGE_DIR
from .document_status import CessionStatus, SignerRole, can_sign
from .email_service import send_signature_request_email, send_signed_email
from .errors import (
    CessionValidationError,
    InvalidTransition,
    StorageWriteFailed,
)
from .models import CessionCreance
from .pdf_generation import assemble, load_signature_images, store_document
from .repository import SIGNING_REFUSED_MESSAGES
from .signature_capture import SignatureArtifact
from .token_resolver import ResolvedToken, resolve_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignatureOutcome:
    cession: CessionCreance
    role: SignerRole
    completed: bool
    document_ready: bool


def upload_signature(artifact: SignatureArtifact) -> str:
    """
    Stocke l'image de signature et retourne son URL.

    Raises:
        StorageWriteFailed
    """
    path = f"{SIGNATURE_STORAGE_DIR}/signature_{artifact.role}_{uuid.uuid4().hex}.{artifact.extension}"
    try:
        return upload_bytes(path, artifact.content, artifact.content_type)
    except Exception as e:
        logger.exception(f"Échec de l'enregistrement de la signature {artifact.role}")
        raise StorageWriteFailed("Erreur lors de l'enregistrement de la signature") from e


def invoice_fields(data: dict, user) -> dict:
    """
    Copie figée de la facture : numéro, montant, véhicule, assureur.

    Le montant cédé vaut le total de la facture s'il n'est pas fourni.
    """
    invoice = get_invoice(data.get("invoice_id"), user)
    if invoice is None:
        raise CessionValidationError(
            "Facture introuvable", field_errors={"invoice_id": ["Facture introuvable"]}
        )

    fields = {
        "invoice_number": invoice.number,
        "invoice_amount": invoice.total_amount,
        "invoice_snapshot": invoice.as_json(),
    }
    if data.get("amount") is None:
        fields["amount"] = invoice.total_amount
    if not data.get("client_id") and invoice.client_id:
        fields["client_id"] = invoice.client_id
    return fields


def finalize_document(cession: CessionCreance) -> str:
    """
    Génère et stocke le PDF de la cession, puis met à jour document_url.

    Raises:
        SignatureImageUnavailable, StorageWriteFailed
    """
    signatures = load_signature_images(cession)
    company = get_company_profile(cession.created_by)
    artifact = assemble(cession, company, signatures)
    return store_document(cession, artifact)


def _notify_signed(cession: CessionCreance):
    send_signed_email(cession, get_company_profile(cession.created_by))


def create_cession_with_signatures(
    data: dict,
    *,
    user,
    client_artifact: SignatureArtifact | None = None,
    dealer_artifact: SignatureArtifact | None = None,
) -> CessionCreance:
    """
    Crée une cession, avec signatures éventuellement capturées dès la saisie.

    Si les deux signatures sont fournies, la cession est finalisée (statut
    SIGNED + PDF) dans la même transaction : un échec de génération annule
    la création et supprime les images déjà stockées.
    """
    data = dict(data)
    data.update(invoice_fields(data, user))

    uploaded = []
    with cleanup_on_error(uploaded):
        for artifact, field in (
            (client_artifact, "client_signature_url"),
            (dealer_artifact, "dealer_signature_url"),
        ):
            if artifact is not None:
                url = upload_signature(artifact)
                uploaded.append(url)
                data[field] = url

        with transaction.atomic():
            cession = repository.create_cession(data, user=user)
            if repository.complete_if_fully_signed(cession.pk):
                cession.refresh_from_db()
                finalize_document(cession)

    if cession.status == CessionStatus.PENDING:
        send_signature_request_email(cession, get_company_profile(user))
    elif cession.status == CessionStatus.SIGNED:
        _notify_signed(cession)
    return cession


def check_can_sign(resolved: ResolvedToken):
    status = resolved.cession.status
    if not can_sign(status):
        raise InvalidTransition(SIGNING_REFUSED_MESSAGES.get(status, "Signature impossible"))


def sign_cession(resolved: ResolvedToken, artifact: SignatureArtifact) -> SignatureOutcome:
    """
    Enregistre la signature de la partie désignée par le lien.

    L'appelant qui complète la cession génère le PDF. Si la génération
    échoue, la signature reste acquise et le PDF pourra être régénéré
    depuis la fiche de la cession.
    """
    check_can_sign(resolved)
    if artifact.role != resolved.role:
        raise CessionValidationError("Signature incohérente avec le lien utilisé")

    url = upload_signature(artifact)
    try:
        update = repository.update_signature(resolved.cession.pk, resolved.role, url)
    except Exception:
        delete_stored_file(url)
        raise

    if update.previous_url and update.previous_url != url:
        previous_url = update.previous_url
        transaction.on_commit(lambda: delete_stored_file(previous_url))

    document_ready = bool(update.cession.document_url)
    if update.completed:
        try:
            with transaction.atomic():
                finalize_document(update.cession)
            document_ready = True
        except Exception as e:
            # La cession reste signée : le PDF sera régénéré depuis sa fiche
            document_ready = False
            logger.exception(f"Génération du PDF impossible pour la cession {update.cession.id}")
            sentry_sdk.capture_message(
                "Génération du PDF de cession échouée après signature",
                level="warning",
                extras={"cession_id": str(update.cession.id), "error": str(e)},
            )
        _notify_signed(update.cession)

    return SignatureOutcome(
        cession=update.cession,
        role=resolved.role,
        completed=update.completed,
        document_ready=document_ready,
    )


def sign_with_token(token, artifact: SignatureArtifact) -> SignatureOutcome:
    """Résout le lien de signature puis enregistre la signature de sa partie."""
    return sign_cession(resolve_token(token), artifact)


def get_or_build_document(cession: CessionCreance, *, regenerate: bool = False) -> str:
    """URL du PDF existant, ou génération à la demande."""
    if cession.document_url and not regenerate:
        return cession.document_url
    logger.info(f"Génération à la demande du PDF de la cession {cession.id}")
    return finalize_document(cession)


def send_for_signature(cession: CessionCreance, *, user) -> bool:
    """
    Envoie au client son lien de signature et passe la cession à « Envoyée ».
    """
    if cession.status not in (CessionStatus.DRAFT, CessionStatus.PENDING, CessionStatus.SENT):
        raise InvalidTransition("Cette cession ne peut plus être envoyée pour signature")

    sent = send_signature_request_email(cession, get_company_profile(user))
    if sent and cession.status != CessionStatus.SENT:
        repository.update_status(cession.pk, CessionStatus.SENT, user=user)
        cession.refresh_from_db()
    return sent


def update_cession(cession_id, data: dict, *, user) -> CessionCreance:
    """
    Modifie une cession non signée et régénère son PDF s'il existait.

    Modification et régénération forment une seule transaction : si le PDF
    ne peut pas être régénéré, la modification est annulée.
    """
    with transaction.atomic():
        cession, changed = repository.update_fields(cession_id, data, user=user)
        if changed and cession.document_url:
            finalize_document(cession)
    return cession

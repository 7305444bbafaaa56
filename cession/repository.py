"""
Accès aux cessions de créance.

Toutes les écritures sont partielles (update_fields ou UPDATE conditionnel) :
une signature ne réécrit jamais les autres colonnes, et le passage à SIGNED
est un UPDATE filtré sur l'état réellement stocké, gagné par un seul appelant.
"""

import logging
from dataclasses import dataclass

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from backend.storage_utils import delete_stored_file

from .document_status import (
    COMPLETABLE_STATUSES,
    CREATION_STATUSES,
    CessionStatus,
    can_set_status,
    can_sign,
    signature_field_for,
)
from .errors import CessionNotFound, CessionValidationError, InvalidTransition
from .models import CessionCreance

logger = logging.getLogger(__name__)

CREATABLE_FIELDS = (
    "client_id",
    "recipient_name",
    "recipient_email",
    "recipient_company",
    "recipient_address",
    "recipient_phone",
    "recipient_siret",
    "recipient_ape_code",
    "recipient_rcs",
    "recipient_website",
    "invoice_id",
    "invoice_number",
    "invoice_amount",
    "invoice_snapshot",
    "amount",
    "due_date",
    "notes",
    "client_signature_url",
    "dealer_signature_url",
)

EDITABLE_FIELDS = (
    "recipient_name",
    "recipient_email",
    "recipient_company",
    "recipient_address",
    "recipient_phone",
    "recipient_siret",
    "recipient_ape_code",
    "recipient_rcs",
    "recipient_website",
    "amount",
    "due_date",
    "notes",
)

SIGNING_REFUSED_MESSAGES = {
    CessionStatus.SIGNED: "Ce document a déjà été signé par les deux parties",
    CessionStatus.REJECTED: "Ce document a été rejeté",
    CessionStatus.DRAFT: "Ce document n'est pas encore ouvert à la signature",
}


@dataclass(frozen=True)
class SignatureUpdate:
    cession: CessionCreance
    completed: bool
    previous_url: str | None


def _scoped_queryset(user=None):
    queryset = CessionCreance.objects.all()
    if user is not None:
        queryset = queryset.filter(created_by=user)
    return queryset


def _get_for_update(cession_id, user=None) -> CessionCreance:
    try:
        cession = _scoped_queryset(user).select_for_update().filter(pk=cession_id).first()
    except ValidationError:
        cession = None
    if cession is None:
        raise CessionNotFound()
    return cession


def get_cession(cession_id, *, user=None) -> CessionCreance:
    """
    Raises:
        CessionNotFound: id inconnu, mal formé ou cession d'un autre garage
    """
    try:
        cession = _scoped_queryset(user).filter(pk=cession_id).first()
    except ValidationError:
        cession = None
    if cession is None:
        raise CessionNotFound()
    return cession


def list_cessions(*, user, status=None, search=None):
    """
    Cessions du garage, plus récentes d'abord.

    `search` cherche (sans casse) dans le nom du destinataire OU le numéro de
    facture ; `status` filtre en plus ("all" ou vide = pas de filtre).
    """
    queryset = _scoped_queryset(user)

    if status and status != "all":
        if status not in CessionStatus.values:
            raise CessionValidationError(f"Statut inconnu : {status}")
        queryset = queryset.filter(status=status)

    search = (search or "").strip()
    if search:
        queryset = queryset.filter(
            Q(recipient_name__icontains=search) | Q(invoice_number__icontains=search)
        )

    return queryset.order_by("-created_at")


def create_cession(data: dict, *, user) -> CessionCreance:
    status = data.get("status") or CessionStatus.PENDING
    if status not in CREATION_STATUSES:
        raise InvalidTransition(f"Une cession ne peut pas être créée au statut « {status} »")

    fields = {name: data[name] for name in CREATABLE_FIELDS if name in data}
    cession = CessionCreance.objects.create(created_by=user, status=status, **fields)
    logger.info(f"Cession {cession.id} créée ({status}) par l'utilisateur {user.pk}")
    return cession


def complete_if_fully_signed(cession_id) -> bool:
    """
    Passe la cession à SIGNED si, dans l'état stocké, les deux signatures
    sont présentes. Un seul appelant obtient True pour une cession donnée.
    """
    now = timezone.now()
    updated = (
        CessionCreance.objects.filter(
            pk=cession_id,
            status__in=COMPLETABLE_STATUSES,
            client_signature_url__isnull=False,
            dealer_signature_url__isnull=False,
        )
        .exclude(client_signature_url="")
        .exclude(dealer_signature_url="")
        .update(status=CessionStatus.SIGNED, signed_at=now, updated_at=now)
    )
    if updated != 1:
        return False

    # L'UPDATE ne passe pas par save() : on journalise l'état final
    cession = CessionCreance.objects.get(pk=cession_id)
    cession.save(update_fields=["updated_at"])
    logger.info(f"✅ Cession {cession_id} signée par les deux parties")
    return True


def update_signature(cession_id, role, url) -> SignatureUpdate:
    """
    Enregistre la signature d'une partie (sa colonne uniquement) puis évalue
    la complétude sur la ligne relue sous verrou.

    Raises:
        CessionNotFound: cession supprimée entre-temps
        InvalidTransition: statut ne permettant pas la signature
    """
    field = signature_field_for(role)

    with transaction.atomic():
        cession = _get_for_update(cession_id)
        if not can_sign(cession.status):
            raise InvalidTransition(
                SIGNING_REFUSED_MESSAGES.get(cession.status, "Signature impossible")
            )

        previous_url = getattr(cession, field)
        setattr(cession, field, url)
        cession.save(update_fields=[field, "updated_at"])

        completed = complete_if_fully_signed(cession.pk)
        if completed:
            cession.refresh_from_db()
        elif not cession.is_fully_signed:
            logger.info(f"Cession {cession_id} en attente de la seconde signature")

    logger.info(f"Signature {role} enregistrée pour la cession {cession_id}")
    return SignatureUpdate(cession=cession, completed=completed, previous_url=previous_url)


def update_status(cession_id, status, *, user) -> CessionCreance:
    """
    Changement de statut manuel par le carrossier.

    SIGNED n'est jamais accepté ici, et une cession signée est verrouillée.
    """
    if status == CessionStatus.SIGNED:
        raise InvalidTransition(
            "Le statut « Signée » est attribué automatiquement après les deux signatures"
        )
    if status not in CessionStatus.values:
        raise CessionValidationError(f"Statut inconnu : {status}")

    with transaction.atomic():
        cession = _get_for_update(cession_id, user)
        if not can_set_status(cession.status, status):
            raise InvalidTransition("Une cession signée ne peut plus changer de statut")
        if cession.status != status:
            previous = cession.status
            cession.status = status
            cession.save(update_fields=["status", "updated_at"])
            logger.info(f"Cession {cession_id}: {previous} → {status}")
    return cession


def update_fields(cession_id, data: dict, *, user) -> tuple[CessionCreance, list[str]]:
    """
    Modifie les champs éditables d'une cession non signée.

    Returns:
        (cession, noms des champs réellement modifiés)
    """
    with transaction.atomic():
        cession = _get_for_update(cession_id, user)
        if cession.is_locked:
            raise InvalidTransition("Une cession signée ne peut plus être modifiée")

        changed = []
        for name in EDITABLE_FIELDS:
            if name in data and getattr(cession, name) != data[name]:
                setattr(cession, name, data[name])
                changed.append(name)

        if changed:
            cession.save(update_fields=changed + ["updated_at"])
            logger.info(f"Cession {cession_id} modifiée: {', '.join(changed)}")
    return cession, changed


def set_document_url(cession_id, url) -> str | None:
    """Enregistre l'URL du PDF et retourne l'URL précédente."""
    with transaction.atomic():
        cession = _get_for_update(cession_id)
        previous_url = cession.document_url
        cession.document_url = url
        cession.save(update_fields=["document_url", "updated_at"])
    return previous_url


def delete_cession(cession_id, *, user) -> None:
    """
    Suppression définitive (y compris d'une cession signée).

    Les fichiers stockés sont supprimés une fois la transaction validée.
    """
    with transaction.atomic():
        cession = _get_for_update(cession_id, user)
        stored_urls = [
            cession.client_signature_url,
            cession.dealer_signature_url,
            cession.document_url,
        ]
        if cession.status == CessionStatus.SIGNED:
            logger.warning(f"Suppression d'une cession signée: {cession_id}")
        cession.delete()

        def _cleanup():
            for url in stored_urls:
                delete_stored_file(url)

        transaction.on_commit(_cleanup)
    logger.info(f"Cession {cession_id} supprimée")

"""
Statuts de la cession de créance et règles de transition.

Le passage à « signed » n'est jamais demandé explicitement : il résulte de
la présence des deux signatures (voir repository.update_signature).
"""

from django.db import models


class CessionStatus(models.TextChoices):
    DRAFT = "draft", "Brouillon"
    PENDING = "pending", "En attente de signature"
    SENT = "sent", "Envoyée"
    SIGNED = "signed", "Signée"
    REJECTED = "rejected", "Rejetée"


class SignerRole(models.TextChoices):
    CLIENT = "client", "Client"
    REPAIRER = "repairer", "Carrossier"


# Statuts possibles à la création
CREATION_STATUSES = frozenset({CessionStatus.DRAFT, CessionStatus.PENDING})

# Statuts que le carrossier peut choisir lui-même
MANUAL_STATUSES = frozenset(
    {
        CessionStatus.DRAFT,
        CessionStatus.PENDING,
        CessionStatus.SENT,
        CessionStatus.REJECTED,
    }
)

# Statuts dans lesquels une partie peut signer via son lien
SIGNABLE_STATUSES = frozenset({CessionStatus.PENDING, CessionStatus.SENT})

# Statuts depuis lesquels la présence des deux signatures finalise la cession
COMPLETABLE_STATUSES = frozenset(
    {CessionStatus.DRAFT, CessionStatus.PENDING, CessionStatus.SENT}
)

TERMINAL_STATUSES = frozenset({CessionStatus.SIGNED, CessionStatus.REJECTED})

SIGNATURE_FIELDS = {
    SignerRole.CLIENT: "client_signature_url",
    SignerRole.REPAIRER: "dealer_signature_url",
}


def is_locked(status) -> bool:
    """Une cession signée n'est plus modifiable."""
    return status == CessionStatus.SIGNED


def can_sign(status) -> bool:
    return status in SIGNABLE_STATUSES


def can_set_status(current, target) -> bool:
    """Le carrossier peut changer le statut tant que la cession n'est pas signée."""
    if is_locked(current):
        return False
    return target in MANUAL_STATUSES


def signature_field_for(role) -> str:
    try:
        return SIGNATURE_FIELDS[SignerRole(role)]
    except ValueError:
        raise ValueError(f"Rôle de signataire inconnu: {role}")

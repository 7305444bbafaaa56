"""
Résolution des liens de signature publics.

Le jeton est la seule autorisation : pas de compte, pas d'expiration.
Un jeton inconnu ou mal formé donne toujours la même erreur, sans indiquer
pourquoi.
"""

import logging
import uuid
from dataclasses import dataclass

from django.db.models import Q

from .document_status import SignerRole
from .errors import CessionNotFound
from .models import CessionCreance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedToken:
    cession: CessionCreance
    role: SignerRole


def parse_token(token) -> uuid.UUID | None:
    if isinstance(token, uuid.UUID):
        return token
    try:
        return uuid.UUID(str(token))
    except (TypeError, ValueError, AttributeError):
        return None


def resolve_token(token) -> ResolvedToken:
    """
    Retrouve la cession et le rôle (client ou carrossier) associés au jeton.

    Raises:
        CessionNotFound: jeton mal formé, inconnu ou ambigu
    """
    parsed = parse_token(token)
    if parsed is None:
        raise CessionNotFound()

    matches = list(
        CessionCreance.objects.filter(
            Q(client_sign_token=parsed) | Q(repairer_sign_token=parsed)
        )[:2]
    )
    if len(matches) != 1:
        if len(matches) > 1:
            logger.error(f"Jeton de signature partagé par plusieurs cessions: {parsed}")
        raise CessionNotFound()

    cession = matches[0]
    if cession.client_sign_token == parsed:
        role = SignerRole.CLIENT
    else:
        role = SignerRole.REPAIRER
    return ResolvedToken(cession=cession, role=role)

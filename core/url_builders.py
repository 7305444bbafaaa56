"""
Utilitaires pour construire les URLs frontend de la cession de créance.

- Page de signature publique : /cessions/sign/{token}
- Fiche de la cession (espace garage) : /dashboard/cessions/{cession_id}
"""

from django.conf import settings

SIGNING_PATH = "/cessions/sign"
DASHBOARD_CESSIONS_PATH = "/dashboard/cessions"


def get_signing_url(token) -> str:
    """
    URL publique de signature pour un jeton (client ou carrossier).

    Le jeton est la seule preuve d'autorisation : l'URL ne doit être
    transmise qu'à la partie concernée.
    """
    return f"{settings.FRONTEND_URL}{SIGNING_PATH}/{token}"


def get_cession_url(cession_id=None) -> str:
    """URL de la fiche cession (ou de la liste si aucun id)."""
    base = f"{settings.FRONTEND_URL}{DASHBOARD_CESSIONS_PATH}"
    if cession_id:
        return f"{base}/{cession_id}"
    return base

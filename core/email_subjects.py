"""
Sujets d'email standardisés pour tous les templates MJML.

Usage:
    from core.email_subjects import get_subject
    subject = get_subject("cession/demande_signature", invoice_number="F-2024-001")
"""

EMAIL_SUBJECTS = {
    # === CESSION DE CRÉANCE ===
    "cession/demande_signature": "Votre signature est requise pour la cession de créance {invoice_number}",
    "cession/signee": "La cession de créance {invoice_number} est signée par les deux parties",
}


def get_subject(template: str, **kwargs) -> str:
    """
    Retourne le sujet d'un template, formaté avec les variables fournies.

    Les variables absentes ne lèvent pas d'erreur : les accolades sont retirées.
    """
    subject = EMAIL_SUBJECTS.get(template, "Notification AutoCoreAI")
    try:
        return subject.format(**kwargs)
    except (KeyError, IndexError):
        return subject.replace("{", "").replace("}", "")

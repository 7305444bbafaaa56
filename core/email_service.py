"""
Service centralisé d'envoi d'emails avec templates MJML.

Utilise mrml (Rust port de MJML) pour compiler les templates en HTML
compatible avec tous les clients mail (Gmail, Outlook, etc.).

L'envoi est « fire-and-forget » : un échec est journalisé et signalé par
un booléen, jamais propagé à l'appelant.
"""

import logging
import re
from typing import Any

import mrml
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils import timezone

from .email_subjects import get_subject

logger = logging.getLogger(__name__)

DEFAULT_LOGO_URL = "https://www.autocoreai.com/logo.png"


class EmailService:
    """Service d'envoi d'emails stylisés avec MJML."""

    @staticmethod
    def render_mjml(template_path: str, context: dict[str, Any]) -> str:
        """
        Render un template MJML avec le contexte Django et compile en HTML.

        Args:
            template_path: Chemin vers le template (ex: "emails/cession/demande_signature.mjml")
            context: Contexte Django pour le template

        Returns:
            HTML compilé prêt à être envoyé
        """
        context.setdefault("frontend_url", settings.FRONTEND_URL)
        context.setdefault("logo_url", getattr(settings, "EMAIL_LOGO_URL", DEFAULT_LOGO_URL))
        context.setdefault("current_year", str(timezone.now().year))

        mjml_content = render_to_string(template_path, context)

        # Compiler MJML → HTML via mrml (Rust)
        try:
            result = mrml.to_html(mjml_content)
            if result.warnings:
                for warning in result.warnings:
                    logger.warning(f"MJML warning ({template_path}): {warning}")
            return result.content
        except Exception as e:
            logger.error(f"Erreur compilation MJML {template_path}: {e}")
            # Fallback: contenu brut
            return mjml_content

    @staticmethod
    def send(
        to: str | list[str],
        template: str,
        context: dict[str, Any],
        subject: str | None = None,
        from_email: str | None = None,
        reply_to: list[str] | None = None,
    ) -> bool:
        """
        Envoie un email stylisé avec un template MJML.

        Args:
            to: Email(s) destinataire(s)
            template: Nom du template (ex: "cession/demande_signature")
            context: Variables pour le template (aussi utilisées pour le sujet)
            subject: Sujet explicite (défaut: EMAIL_SUBJECTS[template])
            from_email: Email expéditeur (défaut: DEFAULT_FROM_EMAIL)
            reply_to: Liste des emails pour réponse

        Returns:
            True si envoyé avec succès, False sinon
        """
        if isinstance(to, str):
            to = [to]
        to = [address for address in to if address]
        if not to:
            logger.warning(f"Aucun destinataire pour l'email {template}")
            return False

        subject = subject or get_subject(template, **context)
        template_path = f"emails/{template}.mjml"

        try:
            html_content = EmailService.render_mjml(template_path, dict(context))

            email = EmailMultiAlternatives(
                subject=subject,
                body=EmailService._html_to_text(html_content),
                from_email=from_email or settings.DEFAULT_FROM_EMAIL,
                to=to,
                reply_to=reply_to,
            )
            email.attach_alternative(html_content, "text/html")
            email.send(fail_silently=False)

            logger.info(f"Email envoyé: '{subject}' → {to}")
            return True

        except Exception as e:
            logger.error(f"Erreur envoi email '{subject}' → {to}: {e}")
            return False

    @staticmethod
    def _html_to_text(html: str) -> str:
        """Convertit HTML en texte brut simple (fallback)."""
        text = re.sub(r"<(style|script)[^>]*>.*?</\1>", "", html, flags=re.S | re.I)
        text = re.sub(r"<[^>]+>", "", text)
        text = re.sub(r"[ \t]+", " ", text)
        return "\n".join(line.strip() for line in text.split("\n") if line.strip())

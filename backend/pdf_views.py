import logging
import os

from django.core.files.storage import default_storage
from django.http import Http404, HttpResponse
from django.views.decorators.clickjacking import xframe_options_exempt
from django.views.decorators.csrf import csrf_exempt

logger = logging.getLogger(__name__)

# Seuls les documents générés sont servis, jamais les images de signature
SERVED_PDF_PREFIXES = ("cessions/",)


def serve_pdf_response(pdf_content, file_path, cache_max_age=0, inline=True):
    """
    Helper pour créer une réponse HTTP de PDF avec les bons headers.

    Args:
        pdf_content: Contenu binaire du PDF
        file_path: Chemin du fichier (pour extraire le nom)
        cache_max_age: Durée du cache en secondes
        inline: Affichage dans le navigateur (True) ou téléchargement (False)

    Returns:
        HttpResponse configuré
    """
    response = HttpResponse(pdf_content, content_type="application/pdf")
    filename = os.path.basename(file_path)
    disposition = "inline" if inline else "attachment"
    response["Content-Disposition"] = f'{disposition}; filename="{filename}"'
    if cache_max_age:
        response["Cache-Control"] = f"private, max-age={cache_max_age}"
    else:
        response["Cache-Control"] = "no-store"
    return response


@xframe_options_exempt
@csrf_exempt
def serve_pdf_for_iframe(request, file_path):
    """
    Sert les cessions générées (S3/MinIO) sans restrictions X-Frame-Options.
    Utilisé pour l'aperçu du document dans la page de signature.
    """
    if not file_path.lower().endswith(".pdf"):
        raise Http404("Le fichier demandé n'est pas un PDF")
    if not file_path.startswith(SERVED_PDF_PREFIXES) or ".." in file_path:
        raise Http404("Fichier PDF non trouvé")

    try:
        if not default_storage.exists(file_path):
            raise Http404("Fichier PDF non trouvé")

        with default_storage.open(file_path, "rb") as pdf_file:
            pdf_content = pdf_file.read()
    except OSError as e:
        logger.warning(f"Erreur lors du service du PDF {file_path}: {e}")
        raise Http404("Erreur lors du chargement du PDF")

    return serve_pdf_response(pdf_content, file_path, cache_max_age=3600)

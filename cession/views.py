import json
import logging

from django.conf import settings
from django.http import JsonResponse
from django_ratelimit.decorators import ratelimit
from rest_framework.decorators import (
    api_view,
    authentication_classes,
    permission_classes,
)
from rest_framework.permissions import AllowAny, IsAuthenticated

from backend.pdf_views import serve_pdf_response
from backend.storage_utils import download_bytes

from . import repository, services
from .collaborators import get_company_profile
from .document_status import SignerRole
from .errors import CessionError, CessionValidationError, StorageWriteFailed
from .pdf_generation import document_filename
from .serializers import (
    CessionCreateSerializer,
    CessionListSerializer,
    CessionSerializer,
    CessionUpdateSerializer,
    SignatureSubmissionSerializer,
    StatusUpdateSerializer,
    public_signing_payload,
)
from .signature_capture import (
    capture_from_data_url,
    capture_from_drawing,
    capture_from_upload,
)
from .token_resolver import resolve_token

logger = logging.getLogger(__name__)


# Les liens de signature sont publics : on limite les appels par IP
# Désactivé en mode DEBUG pour permettre les tests E2E parallèles
def signing_rate_limit(view_func):
    if settings.DEBUG:
        return view_func
    return ratelimit(key="ip", rate=settings.CESSION_SIGNING_RATE, block=True)(view_func)


def error_response(error: CessionError) -> JsonResponse:
    return JsonResponse(error.as_response_data(), status=error.http_status)


def server_error_response(message="Erreur interne du serveur") -> JsonResponse:
    return JsonResponse({"success": False, "error": message}, status=500)


def _validated(serializer):
    if not serializer.is_valid():
        errors = serializer.errors
        first_message = next(
            (messages[0] for messages in errors.values() if messages),
            "Données invalides",
        )
        raise CessionValidationError(str(first_message), field_errors=errors)
    return serializer.validated_data


def _parse_strokes(raw):
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except ValueError:
            raise CessionValidationError("Tracé de signature invalide")
    return raw


def _artifact_from_request(request, role, prefix=""):
    """
    Construit la signature envoyée par le frontend, si présente.

    Ordre de priorité : fichier importé, export canvas (data URL), tracé.
    """
    uploaded = request.FILES.get(f"{prefix}signature")
    if uploaded is not None:
        return capture_from_upload(uploaded, role)

    data_url = request.data.get(f"{prefix}signature_image") or request.data.get(
        f"{prefix}signatureImage"
    )
    if data_url:
        return capture_from_data_url(data_url, role)

    strokes = request.data.get(f"{prefix}strokes")
    if strokes:
        return capture_from_drawing(
            _parse_strokes(strokes),
            role,
            device_pixel_ratio=request.data.get(f"{prefix}device_pixel_ratio", 1),
            user_agent=request.META.get("HTTP_USER_AGENT"),
        )
    return None


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def cession_list_create(request):
    """
    GET : liste des cessions du garage (?status=&search=)
    POST : création d'une cession (signatures optionnelles)
    """
    try:
        if request.method == "GET":
            cessions = repository.list_cessions(
                user=request.user,
                status=request.query_params.get("status"),
                search=request.query_params.get("search"),
            )
            return JsonResponse(
                {"success": True, "cessions": CessionListSerializer(cessions, many=True).data}
            )

        data = _validated(CessionCreateSerializer(data=request.data))
        client_artifact = _artifact_from_request(request, SignerRole.CLIENT, prefix="client_")
        dealer_artifact = _artifact_from_request(request, SignerRole.REPAIRER, prefix="dealer_")

        cession = services.create_cession_with_signatures(
            data,
            user=request.user,
            client_artifact=client_artifact,
            dealer_artifact=dealer_artifact,
        )
        return JsonResponse(
            {
                "success": True,
                "id": str(cession.id),
                "status": cession.status,
                "cession": CessionSerializer(cession).data,
            },
            status=201,
        )

    except CessionError as e:
        logger.warning(f"Cession refusée: {e.message}")
        return error_response(e)
    except Exception:
        logger.exception("Erreur lors du traitement des cessions")
        return server_error_response()


@api_view(["GET", "PATCH", "DELETE"])
@permission_classes([IsAuthenticated])
def cession_detail(request, cession_id):
    try:
        if request.method == "GET":
            cession = repository.get_cession(cession_id, user=request.user)
            return JsonResponse({"success": True, "cession": CessionSerializer(cession).data})

        if request.method == "PATCH":
            data = _validated(CessionUpdateSerializer(data=request.data, partial=True))
            cession = services.update_cession(cession_id, data, user=request.user)
            return JsonResponse({"success": True, "cession": CessionSerializer(cession).data})

        repository.delete_cession(cession_id, user=request.user)
        return JsonResponse({"success": True})

    except CessionError as e:
        logger.warning(f"Action refusée sur la cession {cession_id}: {e.message}")
        return error_response(e)
    except Exception:
        logger.exception(f"Erreur sur la cession {cession_id}")
        return server_error_response()


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def cession_update_status(request, cession_id):
    try:
        data = _validated(StatusUpdateSerializer(data=request.data))
        cession = repository.update_status(cession_id, data["status"], user=request.user)
        return JsonResponse(
            {"success": True, "status": cession.status, "status_label": cession.get_status_display()}
        )
    except CessionError as e:
        logger.warning(f"Changement de statut refusé pour la cession {cession_id}: {e.message}")
        return error_response(e)
    except Exception:
        logger.exception(f"Erreur lors du changement de statut de la cession {cession_id}")
        return server_error_response()


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def cession_send(request, cession_id):
    """Envoie le lien de signature au client."""
    try:
        cession = repository.get_cession(cession_id, user=request.user)
        if not services.send_for_signature(cession, user=request.user):
            return JsonResponse(
                {"success": False, "error": "L'email n'a pas pu être envoyé"}, status=502
            )
        return JsonResponse({"success": True, "status": cession.status})
    except CessionError as e:
        logger.warning(f"Envoi refusé pour la cession {cession_id}: {e.message}")
        return error_response(e)
    except Exception:
        logger.exception(f"Erreur lors de l'envoi de la cession {cession_id}")
        return server_error_response()


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def cession_document(request, cession_id):
    """
    URL du PDF, généré à la demande s'il n'existe pas encore.

    ?regenerate=true force une nouvelle génération, ?download=true renvoie le fichier.
    """
    try:
        cession = repository.get_cession(cession_id, user=request.user)
        regenerate = request.query_params.get("regenerate") in ("1", "true")
        url = services.get_or_build_document(cession, regenerate=regenerate)

        if request.query_params.get("download") in ("1", "true"):
            try:
                content = download_bytes(url)
            except Exception as e:
                raise StorageWriteFailed("Document indisponible") from e
            return serve_pdf_response(content, document_filename(cession), inline=False)

        return JsonResponse({"success": True, "document_url": url})
    except CessionError as e:
        logger.warning(f"PDF indisponible pour la cession {cession_id}: {e.message}")
        return error_response(e)
    except Exception:
        logger.exception(f"Erreur lors de la génération du PDF de la cession {cession_id}")
        return server_error_response("Erreur lors de la génération du PDF")


@api_view(["GET", "POST"])
@authentication_classes([])
@permission_classes([AllowAny])
@signing_rate_limit
def cession_sign(request, token):
    """
    Page de signature publique (lien client ou carrossier).

    GET : données de la cession pour le signataire
    POST : enregistrement de sa signature
    """
    try:
        resolved = resolve_token(token)

        if request.method == "GET":
            company = get_company_profile(resolved.cession.created_by)
            return JsonResponse(
                {
                    "success": True,
                    "cession": public_signing_payload(resolved.cession, resolved.role, company),
                }
            )

        services.check_can_sign(resolved)
        _validated(SignatureSubmissionSerializer(data=request.data))
        artifact = _artifact_from_request(request, resolved.role)
        if artifact is None:
            raise CessionValidationError("Veuillez signer ou télécharger une signature")

        outcome = services.sign_cession(resolved, artifact)
        return JsonResponse(
            {
                "success": True,
                "role": outcome.role.value,
                "status": outcome.cession.status,
                "completed": outcome.completed,
                "document_ready": outcome.document_ready,
            }
        )

    except CessionError as e:
        if request.method == "POST":
            logger.warning(f"Signature refusée: {e.kind}")
        return error_response(e)
    except Exception:
        logger.exception("Erreur lors de la signature d'une cession")
        return server_error_response("Erreur lors de l'enregistrement de la signature")

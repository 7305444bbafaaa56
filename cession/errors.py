"""
Erreurs métier de la cession de créance.

Chaque erreur porte un ErrorKind stable (renvoyé au frontend dans le champ
"code") et le statut HTTP correspondant. Les vues les convertissent en
réponse JSON {"success": False, "error": ..., "code": ...}.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    INVALID_ARTIFACT_TYPE = "invalid_artifact_type"
    ARTIFACT_TOO_LARGE = "artifact_too_large"
    ARTIFACT_ENCODING_FAILED = "artifact_encoding_failed"
    SIGNATURE_IMAGE_UNAVAILABLE = "signature_image_unavailable"
    STORAGE_WRITE_FAILED = "storage_write_failed"
    VALIDATION_ERROR = "validation_error"
    INVALID_TRANSITION = "invalid_transition"


class CessionError(Exception):
    kind = ErrorKind.VALIDATION_ERROR
    http_status = 400
    default_message = "Requête invalide"

    def __init__(self, message=None, field_errors=None):
        self.message = message or self.default_message
        self.field_errors = field_errors or {}
        super().__init__(self.message)

    def as_response_data(self) -> dict:
        data = {"success": False, "error": self.message, "code": str(self.kind)}
        if self.field_errors:
            data["errors"] = self.field_errors
        return data


class CessionNotFound(CessionError):
    kind = ErrorKind.NOT_FOUND
    http_status = 404
    default_message = "Document introuvable"


class InvalidArtifactType(CessionError):
    kind = ErrorKind.INVALID_ARTIFACT_TYPE
    default_message = "Veuillez sélectionner une image"


class ArtifactTooLarge(CessionError):
    kind = ErrorKind.ARTIFACT_TOO_LARGE
    http_status = 413
    default_message = "Signature trop volumineuse"


class ArtifactEncodingFailed(CessionError):
    kind = ErrorKind.ARTIFACT_ENCODING_FAILED
    default_message = "Erreur lors de la génération de la signature"


class SignatureImageUnavailable(CessionError):
    kind = ErrorKind.SIGNATURE_IMAGE_UNAVAILABLE
    http_status = 422
    default_message = "Impossible de charger les images de signature"


class StorageWriteFailed(CessionError):
    kind = ErrorKind.STORAGE_WRITE_FAILED
    http_status = 502
    default_message = "Erreur lors de l'enregistrement du fichier"


class CessionValidationError(CessionError):
    kind = ErrorKind.VALIDATION_ERROR
    default_message = "Données invalides"


class InvalidTransition(CessionError):
    kind = ErrorKind.INVALID_TRANSITION
    http_status = 409
    default_message = "Action impossible dans l'état actuel du document"

"""
Capture des signatures (tracé au doigt/souris, image importée ou export
canvas en data URL) et conversion en image JPEG prête à être stockée.

Aucun effet de bord : le stockage est à la charge de l'appelant.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from io import BytesIO

from django.conf import settings
from PIL import Image, ImageDraw, UnidentifiedImageError

from .constants import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    INK_COLOR,
    JPEG_QUALITY,
    MAX_DEVICE_PIXEL_RATIO,
    SIGNATURE_CONTENT_TYPE,
    STROKE_WIDTH,
)
from .document_status import SignerRole
from .errors import (
    ArtifactEncodingFailed,
    ArtifactTooLarge,
    CessionValidationError,
    InvalidArtifactType,
)

logger = logging.getLogger(__name__)

DATA_URL_RE = re.compile(r"^data:(?P<content_type>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.S)

# Safari iOS : l'export direct du canvas produit parfois un blob vide
IOS_USER_AGENT_RE = re.compile(r"iP(?:hone|ad|od)")

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class SignatureArtifact:
    content: bytes
    content_type: str
    role: SignerRole

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return EXTENSIONS.get(self.content_type, "img")


def max_signature_bytes() -> int:
    return settings.CESSION_SIGNATURE_MAX_BYTES


def _check_size(size: int):
    if size > max_signature_bytes():
        raise ArtifactTooLarge()


def _check_decodable(content: bytes):
    if not content:
        raise ArtifactEncodingFailed()
    try:
        with Image.open(BytesIO(content)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        logger.warning(f"Image de signature illisible: {e}")
        raise ArtifactEncodingFailed("Image de signature illisible")


def _normalize_point(point) -> tuple[float, float]:
    if isinstance(point, dict):
        x, y = point.get("x"), point.get("y")
    else:
        x, y = point[0], point[1]
    return float(x), float(y)


def normalize_strokes(strokes) -> list[list[tuple[float, float]]]:
    """
    Convertit les tracés reçus du frontend en listes de points (x, y).

    Accepte [[x, y], ...] ou [{"x": .., "y": ..}, ...] pour chaque tracé.
    Les tracés vides sont ignorés.
    """
    if strokes is None:
        return []
    try:
        normalized = [[_normalize_point(point) for point in stroke] for stroke in strokes]
    except (TypeError, ValueError, IndexError, KeyError):
        raise CessionValidationError("Tracé de signature invalide")
    return [stroke for stroke in normalized if stroke]


def effective_pixel_ratio(device_pixel_ratio) -> float:
    try:
        ratio = float(device_pixel_ratio or 1)
    except (TypeError, ValueError):
        ratio = 1.0
    if ratio <= 0:
        ratio = 1.0
    return min(ratio, MAX_DEVICE_PIXEL_RATIO)


def render_strokes(strokes, width=CANVAS_WIDTH, height=CANVAS_HEIGHT, pixel_ratio=1.0) -> Image.Image:
    """Dessine les tracés en noir sur fond blanc, traits arrondis de 2px CSS."""
    image = Image.new(
        "RGB", (round(width * pixel_ratio), round(height * pixel_ratio)), "white"
    )
    draw = ImageDraw.Draw(image)
    line_width = max(1, round(STROKE_WIDTH * pixel_ratio))
    radius = line_width / 2

    for stroke in strokes:
        points = [(x * pixel_ratio, y * pixel_ratio) for x, y in stroke]
        if len(points) > 1:
            draw.line(points, fill=INK_COLOR, width=line_width, joint="curve")
        # Extrémités arrondies (et point isolé)
        for x, y in (points[0], points[-1]):
            draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=INK_COLOR)

    return image


def encode_jpeg(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=JPEG_QUALITY, optimize=True)
    return buffer.getvalue()


def encode_jpeg_via_data_url(image: Image.Image) -> bytes:
    """
    Variante passant par une data URL base64, puis décodée en octets.

    Même résultat visuel que encode_jpeg ; utilisée quand l'export direct
    n'est pas fiable.
    """
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    data_url = "data:image/jpeg;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
    _, content = decode_data_url(data_url)
    return content


def prefers_data_url_export(user_agent: str | None) -> bool:
    return bool(user_agent and IOS_USER_AGENT_RE.search(user_agent))


def capture_from_drawing(
    strokes,
    role,
    *,
    device_pixel_ratio=1,
    user_agent=None,
    width=CANVAS_WIDTH,
    height=CANVAS_HEIGHT,
) -> SignatureArtifact:
    """
    Transforme un tracé de signature en JPEG.

    Args:
        strokes: tracés en pixels CSS relatifs au pad
        role: SignerRole du signataire
        device_pixel_ratio: densité de l'écran (plafonnée à 2)
        user_agent: navigateur du signataire, choisit le chemin d'encodage

    Raises:
        CessionValidationError: aucun tracé
        ArtifactEncodingFailed: image vide ou illisible
        ArtifactTooLarge: image au-delà de CESSION_SIGNATURE_MAX_BYTES
    """
    normalized = normalize_strokes(strokes)
    if not normalized:
        raise CessionValidationError("Veuillez signer ou télécharger une signature")

    pixel_ratio = effective_pixel_ratio(device_pixel_ratio)
    image = render_strokes(normalized, width, height, pixel_ratio)

    content = b""
    if not prefers_data_url_export(user_agent):
        try:
            content = encode_jpeg(image)
        except (OSError, ValueError) as e:
            logger.warning(f"Export JPEG direct impossible, passage par data URL: {e}")

    if not content:
        try:
            content = encode_jpeg_via_data_url(image)
        except (OSError, ValueError, CessionValidationError) as e:
            logger.error(f"Échec de l'encodage de la signature: {e}")
            raise ArtifactEncodingFailed()

    _check_decodable(content)
    _check_size(len(content))

    logger.info(
        f"✍️ Signature {role} capturée: {len(content)} octets, ratio {pixel_ratio}"
    )
    return SignatureArtifact(content=content, content_type=SIGNATURE_CONTENT_TYPE, role=SignerRole(role))


def capture_from_upload(uploaded_file, role) -> SignatureArtifact:
    """
    Valide une image de signature importée (Django UploadedFile).

    Raises:
        InvalidArtifactType: le type déclaré n'est pas image/*
        ArtifactTooLarge: fichier au-delà de CESSION_SIGNATURE_MAX_BYTES
        ArtifactEncodingFailed: le fichier ne se décode pas comme une image
    """
    content_type = (getattr(uploaded_file, "content_type", "") or "").lower()
    if not content_type.startswith("image/"):
        raise InvalidArtifactType()

    declared_size = getattr(uploaded_file, "size", None)
    if declared_size is not None:
        _check_size(declared_size)

    content = uploaded_file.read()
    _check_size(len(content))
    _check_decodable(content)

    return SignatureArtifact(content=content, content_type=content_type, role=SignerRole(role))


def decode_data_url(data_url: str) -> tuple[str, bytes]:
    match = DATA_URL_RE.match(data_url or "")
    if not match:
        raise CessionValidationError("Format de signature invalide")
    try:
        content = base64.b64decode(match.group("payload"), validate=False)
    except (binascii.Error, ValueError):
        raise CessionValidationError("Format de signature invalide")
    return match.group("content_type").lower(), content


def capture_from_data_url(data_url: str, role) -> SignatureArtifact:
    """Valide un export canvas reçu sous forme de data URL base64."""
    content_type, content = decode_data_url(data_url)
    if not content_type.startswith("image/"):
        raise InvalidArtifactType()

    _check_size(len(content))
    _check_decodable(content)

    return SignatureArtifact(content=content, content_type=content_type, role=SignerRole(role))

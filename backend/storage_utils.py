"""
Utilities for handling file storage operations with S3-compatible storage

This module provides helpers to upload/download/delete blobs addressed by URL
(Cloudflare R2 in production, MinIO or the local filesystem in development).

Signature images and assembled cession PDFs are stored by URL on the
records, so every helper here works from a URL rather than a FieldFile.
"""

import base64
import logging
from contextlib import contextmanager
from typing import Optional
from urllib.parse import unquote, urlsplit

import requests
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


def upload_bytes(path: str, content: bytes, content_type: str) -> str:
    """
    Upload raw bytes to the default storage and return the public URL.

    Args:
        path: Storage path (ex: "signatures/signature_client_<uuid>.jpg")
        content: Raw bytes to store
        content_type: MIME type of the content

    Returns:
        str: URL of the stored blob
    """
    if not content:
        raise ValueError(f"Refusing to store an empty blob at {path}")

    logger.info(f"Uploading {len(content)} bytes ({content_type}) to storage: {path}")

    file = ContentFile(content)
    file.content_type = content_type
    name = default_storage.save(path, file)
    url = default_storage.url(name)

    logger.info(f"File saved successfully: {name}")
    return url


def storage_name_from_url(url: Optional[str]) -> Optional[str]:
    """
    Retrouve le nom de stockage d'une URL produite par default_storage.url().

    Returns:
        str | None: storage name, or None if the URL does not belong to the storage
    """
    if not url or url.startswith("data:"):
        return None

    path = urlsplit(url).path
    base_path = urlsplit(default_storage.url("")).path
    if base_path and path.startswith(base_path):
        return unquote(path[len(base_path):]) or None
    return None


def _decode_data_url(url: str) -> bytes:
    header, _, payload = url.partition(",")
    if not payload:
        raise ValueError("Empty data URL")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=False)
    return unquote(payload).encode("latin-1")


def download_bytes(url: str) -> bytes:
    """
    Download the bytes addressed by a URL.

    Handles data URLs, URLs of the configured storage, and remote
    http(s) URLs (fetched with requests).
    """
    if not url:
        raise ValueError("URL is empty or None")

    if url.startswith("data:"):
        return _decode_data_url(url)

    name = storage_name_from_url(url)
    if name is not None and default_storage.exists(name):
        logger.info(f"Reading file from storage: {name}")
        with default_storage.open(name, "rb") as f:
            return f.read()

    if urlsplit(url).scheme in ("http", "https"):
        logger.info(f"Fetching remote file: {url}")
        response = requests.get(url, timeout=settings.CESSION_REMOTE_FETCH_TIMEOUT)
        response.raise_for_status()
        return response.content

    raise FileNotFoundError(f"File not found for URL: {url}")


def delete_stored_file(url: Optional[str]) -> bool:
    """
    Delete the blob behind a storage URL. Foreign or data URLs are ignored.

    Returns:
        bool: True if a blob was deleted
    """
    name = storage_name_from_url(url)
    if name is None:
        return False

    try:
        if default_storage.exists(name):
            default_storage.delete(name)
            logger.info(f"Deleted file from storage: {name}")
            return True
    except OSError as e:
        logger.warning(f"Failed to delete stored file {name}: {e}")
    return False


@contextmanager
def cleanup_on_error(urls: list):
    """
    Context manager removing the blobs listed in `urls` if the block raises.

    Usage:
        uploaded = []
        with cleanup_on_error(uploaded):
            uploaded.append(upload_bytes(...))
            create_record(...)
    """
    try:
        yield urls
    except Exception:
        for url in urls:
            delete_stored_file(url)
        raise

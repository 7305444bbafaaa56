"""
Tests des utilitaires de stockage et des helpers transverses (sujets d'email, URLs).
"""

import base64

import pytest
from django.core.files.storage import default_storage

from backend.storage_utils import (
    cleanup_on_error,
    delete_stored_file,
    download_bytes,
    storage_name_from_url,
    upload_bytes,
)
from core.email_subjects import get_subject
from core.url_builders import get_cession_url, get_signing_url


class TestStorage:
    def test_upload_then_download(self):
        url = upload_bytes("signatures/test.jpg", b"\xff\xd8contenu", "image/jpeg")

        assert storage_name_from_url(url) == "signatures/test.jpg"
        assert download_bytes(url) == b"\xff\xd8contenu"

    def test_upload_empty_is_refused(self):
        with pytest.raises(ValueError):
            upload_bytes("signatures/vide.jpg", b"", "image/jpeg")

    def test_data_url(self):
        url = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode("ascii")

        assert download_bytes(url) == b"png-bytes"
        assert storage_name_from_url(url) is None

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            download_bytes("/media/signatures/absent.jpg")

    def test_delete_ignores_foreign_urls(self):
        assert delete_stored_file("https://cdn.ailleurs.fr/x.jpg") is False
        assert delete_stored_file(None) is False

    def test_delete(self):
        url = upload_bytes("cessions/a.pdf", b"%PDF", "application/pdf")

        assert delete_stored_file(url) is True
        assert not default_storage.exists("cessions/a.pdf")

    def test_cleanup_on_error(self):
        uploaded = []

        with pytest.raises(RuntimeError):
            with cleanup_on_error(uploaded):
                uploaded.append(upload_bytes("signatures/tmp.jpg", b"x", "image/jpeg"))
                raise RuntimeError("création impossible")

        assert not default_storage.exists("signatures/tmp.jpg")

    def test_cleanup_keeps_files_on_success(self):
        uploaded = []

        with cleanup_on_error(uploaded):
            uploaded.append(upload_bytes("signatures/ok.jpg", b"x", "image/jpeg"))

        assert default_storage.exists("signatures/ok.jpg")


class TestEmailSubjects:
    def test_known_template(self):
        subject = get_subject("cession/demande_signature", invoice_number="F-2024-001")

        assert subject == "Votre signature est requise pour la cession de créance F-2024-001"

    def test_missing_variable(self):
        assert "{" not in get_subject("cession/signee")

    def test_unknown_template(self):
        assert get_subject("inconnu") == "Notification AutoCoreAI"


class TestUrlBuilders:
    def test_signing_url(self):
        assert get_signing_url("abc") == "https://app.example.com/cessions/sign/abc"

    def test_cession_url(self):
        assert get_cession_url() == "https://app.example.com/dashboard/cessions"
        assert get_cession_url("42") == "https://app.example.com/dashboard/cessions/42"


class TestPdfIframe:
    def test_serves_generated_cession(self, client):
        upload_bytes("cessions/cession_test.pdf", b"%PDF-1.4", "application/pdf")

        response = client.get("/pdf/iframe/cessions/cession_test.pdf")

        assert response.status_code == 200
        assert response["Content-Type"] == "application/pdf"
        assert response["Content-Disposition"].startswith("inline")
        assert "X-Frame-Options" not in response

    def test_signature_images_are_not_served(self, client):
        upload_bytes("signatures/s.pdf", b"%PDF-1.4", "application/pdf")

        assert client.get("/pdf/iframe/signatures/s.pdf").status_code == 404

    def test_missing_file(self, client):
        assert client.get("/pdf/iframe/cessions/absent.pdf").status_code == 404

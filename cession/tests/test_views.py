"""
Tests des endpoints /api/cessions/.
"""

import base64
import json
from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from cession.document_status import CessionStatus
from cession.factories import CessionCreanceFactory, make_signature_jpeg
from cession.models import CessionCreance
from core.factories import UserFactory

STROKES = [[[20, 20], [120, 90], [220, 30]]]


def _sign_url(token):
    return f"/api/cessions/sign/{token}/"


@pytest.mark.django_db
class TestCessionListCreate:
    def test_requires_authentication(self, api_client):
        response = api_client.get("/api/cessions/")

        assert response.status_code in (401, 403)

    def test_list_with_filters(self, authenticated_client, user):
        CessionCreanceFactory(created_by=user, recipient_name="Marie Dupont", status=CessionStatus.SENT)
        CessionCreanceFactory(created_by=user, recipient_name="Paul Martin")
        CessionCreanceFactory(recipient_name="Marie Dupont")

        response = authenticated_client.get("/api/cessions/", {"search": "dupont", "status": "sent"})

        data = response.json()
        assert response.status_code == 200
        assert data["success"] is True
        assert [c["recipient_name"] for c in data["cessions"]] == ["Marie Dupont"]
        assert data["cessions"][0]["status_label"] == "Envoyée"

    def test_create(self, authenticated_client, invoice, company_profile):
        response = authenticated_client.post(
            "/api/cessions/",
            {
                "invoice_id": str(invoice.id),
                "recipient_name": "Marie Client",
                "recipient_email": "marie@example.com",
                "due_date": "2030-06-30",
            },
            format="json",
        )

        data = response.json()
        assert response.status_code == 201
        assert data["status"] == "pending"
        cession = CessionCreance.objects.get(pk=data["id"])
        assert cession.amount == invoice.total_amount
        assert data["cession"]["client_signing_url"].endswith(f"/cessions/sign/{cession.client_sign_token}")

    def test_create_requires_due_date(self, authenticated_client, invoice):
        response = authenticated_client.post(
            "/api/cessions/",
            {
                "invoice_id": str(invoice.id),
                "recipient_name": "Marie Client",
                "recipient_email": "marie@example.com",
            },
            format="json",
        )

        data = response.json()
        assert response.status_code == 400
        assert data["success"] is False
        assert data["code"] == "validation_error"
        assert data["error"] == "La date d'échéance est requise"
        assert CessionCreance.objects.count() == 0

    def test_create_with_uploaded_signatures(self, authenticated_client, invoice, company_profile):
        response = authenticated_client.post(
            "/api/cessions/",
            {
                "invoice_id": str(invoice.id),
                "recipient_name": "Marie Client",
                "recipient_email": "marie@example.com",
                "due_date": "2030-06-30",
                "client_signature": SimpleUploadedFile(
                    "client.jpg", make_signature_jpeg(), content_type="image/jpeg"
                ),
                "dealer_strokes": json.dumps(STROKES),
            },
            format="multipart",
        )

        data = response.json()
        assert response.status_code == 201
        assert data["status"] == "signed"
        assert data["cession"]["document_url"].endswith(".pdf")

    def test_create_rejects_non_image_signature(self, authenticated_client, invoice):
        response = authenticated_client.post(
            "/api/cessions/",
            {
                "invoice_id": str(invoice.id),
                "recipient_name": "Marie Client",
                "recipient_email": "marie@example.com",
                "due_date": "2030-06-30",
                "client_signature": SimpleUploadedFile("x.pdf", b"%PDF", content_type="application/pdf"),
            },
            format="multipart",
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_artifact_type"


@pytest.mark.django_db
class TestCessionDetail:
    def test_detail(self, authenticated_client, cession):
        response = authenticated_client.get(f"/api/cessions/{cession.id}/")

        data = response.json()["cession"]
        assert data["id"] == str(cession.id)
        assert data["vehicle"]["registration"] == "EF-456-GH"

    def test_detail_of_other_garage(self, authenticated_client):
        cession = CessionCreanceFactory(created_by=UserFactory())

        response = authenticated_client.get(f"/api/cessions/{cession.id}/")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_patch(self, authenticated_client, cession):
        response = authenticated_client.patch(
            f"/api/cessions/{cession.id}/", {"amount": "321.50"}, format="json"
        )

        assert response.status_code == 200
        assert CessionCreance.objects.get(pk=cession.pk).amount == Decimal("321.50")

    def test_delete(self, authenticated_client, cession):
        response = authenticated_client.delete(f"/api/cessions/{cession.id}/")

        assert response.status_code == 200
        assert not CessionCreance.objects.filter(pk=cession.pk).exists()

    def test_status_change(self, authenticated_client, cession):
        response = authenticated_client.post(
            f"/api/cessions/{cession.id}/status/", {"status": "rejected"}, format="json"
        )

        assert response.json() == {"success": True, "status": "rejected", "status_label": "Rejetée"}

    def test_status_signed_is_refused(self, authenticated_client, cession):
        response = authenticated_client.post(
            f"/api/cessions/{cession.id}/status/", {"status": "signed"}, format="json"
        )

        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"

    def test_send(self, authenticated_client, cession, mailoutbox):
        response = authenticated_client.post(f"/api/cessions/{cession.id}/send/")

        assert response.json()["status"] == "sent"
        assert len(mailoutbox) == 1

    def test_document_on_demand(self, authenticated_client, cession):
        response = authenticated_client.get(f"/api/cessions/{cession.id}/document/")

        assert response.status_code == 200
        assert response.json()["document_url"].endswith(".pdf")

    def test_document_download(self, authenticated_client, cession):
        response = authenticated_client.get(f"/api/cessions/{cession.id}/document/", {"download": "true"})

        assert response.status_code == 200
        assert response["Content-Type"] == "application/pdf"
        assert "attachment" in response["Content-Disposition"]
        assert response.content.startswith(b"%PDF")


@pytest.mark.django_db
class TestPublicSigning:
    def test_resolve_client_link(self, api_client, cession):
        response = api_client.get(_sign_url(cession.client_sign_token))

        data = response.json()["cession"]
        assert data["role"] == "client"
        assert data["already_signed"] is False
        assert data["company_name"] == "Carrosserie Dupont"
        assert "client_sign_token" not in data
        assert str(cession.repairer_sign_token) not in json.dumps(data)

    def test_unknown_and_malformed_tokens_look_the_same(self, api_client, cession):
        unknown = api_client.get(_sign_url("6f1c1f38-6a55-4c8b-9a53-8d9e1f0c1a11"))
        malformed = api_client.get(_sign_url("abc123"))

        assert unknown.status_code == malformed.status_code == 404
        assert unknown.json() == malformed.json() == {
            "success": False,
            "error": "Document introuvable",
            "code": "not_found",
        }

    def test_sign_with_strokes(self, api_client, cession):
        response = api_client.post(
            _sign_url(cession.client_sign_token),
            {"strokes": STROKES, "device_pixel_ratio": 3},
            format="json",
        )

        data = response.json()
        assert response.status_code == 200
        assert data == {
            "success": True,
            "role": "client",
            "status": "pending",
            "completed": False,
            "document_ready": False,
        }
        assert CessionCreance.objects.get(pk=cession.pk).client_signature_url

    def test_sign_with_data_url(self, api_client, cession):
        data_url = "data:image/jpeg;base64," + base64.b64encode(make_signature_jpeg()).decode("ascii")

        response = api_client.post(
            _sign_url(cession.repairer_sign_token), {"signatureImage": data_url}, format="json"
        )

        assert response.json()["role"] == "repairer"
        assert CessionCreance.objects.get(pk=cession.pk).dealer_signature_url

    def test_sign_with_upload(self, api_client, cession):
        response = api_client.post(
            _sign_url(cession.client_sign_token),
            {"signature": SimpleUploadedFile("s.jpg", make_signature_jpeg(), content_type="image/jpeg")},
            format="multipart",
        )

        assert response.status_code == 200

    def test_sign_without_signature(self, api_client, cession):
        response = api_client.post(_sign_url(cession.client_sign_token), {}, format="json")

        assert response.status_code == 400
        assert response.json()["error"] == "Veuillez signer ou télécharger une signature"

    def test_sign_too_large(self, api_client, cession, settings):
        settings.CESSION_SIGNATURE_MAX_BYTES = 10

        response = api_client.post(
            _sign_url(cession.client_sign_token),
            {"signature": SimpleUploadedFile("s.jpg", make_signature_jpeg(), content_type="image/jpeg")},
            format="multipart",
        )

        assert response.status_code == 413
        assert response.json()["error"] == "Signature trop volumineuse"
        assert CessionCreance.objects.get(pk=cession.pk).client_signature_url is None

    def test_signed_cession_refuses_new_signature(self, api_client, user):
        cession = CessionCreanceFactory(created_by=user, signed=True)
        before = cession.client_signature_url

        response = api_client.post(
            _sign_url(cession.client_sign_token), {"strokes": STROKES}, format="json"
        )

        assert response.status_code == 409
        assert CessionCreance.objects.get(pk=cession.pk).client_signature_url == before


@pytest.mark.django_db
class TestFailurePaths:
    def test_renderer_crash_after_last_signature(self, api_client, user, company_profile, monkeypatch, mailoutbox):
        cession = CessionCreanceFactory(created_by=user, client_signed=True)

        def broken_html_to_pdf(html):
            raise RuntimeError("moteur PDF en panne")

        monkeypatch.setattr("cession.pdf_generation.html_to_pdf", broken_html_to_pdf)

        response = api_client.post(
            _sign_url(cession.repairer_sign_token), {"strokes": STROKES}, format="json"
        )

        data = response.json()
        assert response.status_code == 200
        assert data["completed"] is True
        assert data["document_ready"] is False
        stored = CessionCreance.objects.get(pk=cession.pk)
        assert stored.status == CessionStatus.SIGNED
        assert stored.document_url is None
        assert len(mailoutbox) == 1

        # Le PDF peut être régénéré depuis la fiche
        monkeypatch.setattr("cession.pdf_generation.html_to_pdf", lambda html: b"%PDF-1.4\n%%EOF\n")
        api_client.force_authenticate(user=user)
        document = api_client.get(f"/api/cessions/{cession.id}/document/")
        assert document.json()["document_url"].endswith(".pdf")

    def test_failed_regeneration_does_not_keep_the_edit(self, authenticated_client, cession, monkeypatch):
        first = authenticated_client.get(f"/api/cessions/{cession.id}/document/").json()["document_url"]
        renderer_down = [True]

        def flaky_html_to_pdf(html):
            if renderer_down[0]:
                raise OSError("WeasyPrint indisponible")
            return b"%PDF-1.4\n%%EOF\n"

        monkeypatch.setattr("cession.pdf_generation.html_to_pdf", flaky_html_to_pdf)

        failed = authenticated_client.patch(f"/api/cessions/{cession.id}/", {"amount": "800.00"}, format="json")

        assert failed.status_code == 500
        assert CessionCreance.objects.get(pk=cession.pk).amount == cession.amount

        renderer_down[0] = False
        retried = authenticated_client.patch(f"/api/cessions/{cession.id}/", {"amount": "800.00"}, format="json")

        stored = CessionCreance.objects.get(pk=cession.pk)
        assert retried.status_code == 200
        assert stored.amount == Decimal("800.00")
        assert stored.document_url != first

    def test_refused_status_change_is_logged(self, authenticated_client, user, caplog):
        cession = CessionCreanceFactory(created_by=user, signed=True)

        with caplog.at_level("WARNING", logger="cession.views"):
            response = authenticated_client.post(
                f"/api/cessions/{cession.id}/status/", {"status": "draft"}, format="json"
            )

        assert response.status_code == 409
        assert f"Changement de statut refusé pour la cession {cession.id}" in caplog.text

"""
Configuration pytest pour les tests de la cession de créance.

Ce fichier définit des fixtures réutilisables pour tous les tests.
"""

import pytest
from django.conf import settings
from rest_framework.test import APIClient

from cession.factories import CessionCreanceFactory
from core.factories import CompanyProfileFactory, InvoiceFactory

FAKE_PDF = b"%PDF-1.4\n% cession de test\n%%EOF\n"


# ==============================
# CONFIGURATION DJANGO POUR TESTS
# ==============================


@pytest.fixture(scope="session", autouse=True)
def configure_django_for_tests():
    """Configure Django settings pour les tests."""
    if "testserver" not in settings.ALLOWED_HOSTS:
        settings.ALLOWED_HOSTS.append("testserver")
    yield


@pytest.fixture(autouse=True)
def isolated_storage(settings, tmp_path):
    """Stockage fichiers dans un répertoire temporaire, rate limit désactivé."""
    settings.MEDIA_ROOT = str(tmp_path / "media")
    settings.RATELIMIT_ENABLE = False
    settings.FRONTEND_URL = "https://app.example.com"
    return tmp_path / "media"


@pytest.fixture(autouse=True)
def stub_pdf_rendering(request, monkeypatch):
    """
    Remplace le rendu WeasyPrint par un PDF factice.

    Les tests marqués `weasyprint` utilisent le vrai moteur. Le HTML rendu
    est conservé dans la liste retournée.
    """
    rendered = []
    if request.node.get_closest_marker("weasyprint"):
        return rendered

    def fake_html_to_pdf(html):
        rendered.append(html)
        return FAKE_PDF

    monkeypatch.setattr("cession.pdf_generation.html_to_pdf", fake_html_to_pdf)
    return rendered


# ==============================
# FIXTURES API CLIENT
# ==============================


@pytest.fixture
def api_client():
    """Client API REST Framework pour les tests."""
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, user):
    """Client API authentifié avec le garage de test."""
    api_client.force_authenticate(user=user)
    return api_client


# ==============================
# FIXTURES GARAGE
# ==============================


@pytest.fixture
def user(django_user_model):
    """Utilisateur garage de test."""
    return django_user_model.objects.create_user(
        username="garage", email="garage@example.com", password="testpass123"
    )


@pytest.fixture
def company_profile(user):
    """Profil société du garage (cédant)."""
    return CompanyProfileFactory(
        user=user,
        company_name="Carrosserie Dupont",
        address="5 avenue Jean Jaurès",
        zip_code="69007",
        city="Lyon",
        siret="12345678900012",
        rcs="123 456 789",
        vat_number="FR12123456789",
    )


@pytest.fixture
def invoice(user):
    """Facture de réparation du garage de test."""
    return InvoiceFactory(owner=user)


@pytest.fixture
def cession(user, company_profile):
    """Cession en attente de signature appartenant au garage de test."""
    return CessionCreanceFactory(created_by=user)


# ==============================
# MARKERS PYTEST
# ==============================


def pytest_configure(config):
    """Configure les markers pytest personnalisés."""
    config.addinivalue_line("markers", "e2e: Tests end-to-end complets")
    config.addinivalue_line("markers", "unit: Tests unitaires")
    config.addinivalue_line("markers", "integration: Tests d'intégration")
    config.addinivalue_line("markers", "weasyprint: Rendu PDF réel avec WeasyPrint")

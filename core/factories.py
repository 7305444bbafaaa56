"""
Factories pour les tests - garage (utilisateur + profil société) et factures.

Usage dans les tests:
    from core.factories import CompanyProfileFactory, InvoiceFactory

    profile = CompanyProfileFactory(city="Lyon")
    invoice = InvoiceFactory(owner=profile.user, total_amount=Decimal("1250.00"))
"""

import uuid
from datetime import date, timedelta
from decimal import Decimal

import factory
from django.contrib.auth import get_user_model
from factory.django import DjangoModelFactory

from core.models import CompanyProfile, Invoice


class UserFactory(DjangoModelFactory):
    class Meta:
        model = get_user_model()
        django_get_or_create = ("username",)

    username = factory.Sequence(lambda n: f"garage{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    password = factory.django.Password("testpass123")


class CompanyProfileFactory(DjangoModelFactory):
    """Profil société du carrossier (cédant)."""

    class Meta:
        model = CompanyProfile

    user = factory.SubFactory(UserFactory)
    company_name = factory.Faker("company", locale="fr_FR")
    address = factory.Faker("street_address", locale="fr_FR")
    zip_code = factory.Faker("postcode", locale="fr_FR")
    city = factory.Faker("city", locale="fr_FR")
    siret = factory.Faker("numerify", text="##############")
    rcs = factory.Faker("numerify", text="### ### ###")
    vat_number = factory.Faker("numerify", text="FR###########")
    phone = factory.Faker("phone_number", locale="fr_FR")
    email = factory.LazyAttribute(lambda o: o.user.email)


class InvoiceFactory(DjangoModelFactory):
    class Meta:
        model = Invoice

    owner = factory.SubFactory(UserFactory)
    invoice_number = factory.Sequence(lambda n: f"F-2024-{n:04d}")
    client_id = factory.LazyFunction(uuid.uuid4)
    total_amount = Decimal("1450.80")
    vehicle_info = factory.LazyFunction(
        lambda: {"make": "Peugeot", "model": "308", "registration": "AB-123-CD"}
    )
    insurance_info = factory.LazyFunction(
        lambda: {
            "company": "MAAF Assurances",
            "policy_number": "POL-778899",
            "claim_number": "SIN-2024-0042",
        }
    )
    accident_date = factory.LazyFunction(lambda: date.today() - timedelta(days=20))

"""
Factories pour les tests de la cession de créance.

Usage dans les tests:
    from cession.factories import CessionCreanceFactory

    cession = CessionCreanceFactory()                 # en attente, sans signature
    cession = CessionCreanceFactory(client_signed=True)
    cession = CessionCreanceFactory(signed=True)      # deux signatures + SIGNED
"""

import base64
import uuid
from datetime import date, timedelta
from decimal import Decimal
from io import BytesIO

import factory
from django.utils import timezone
from factory.django import DjangoModelFactory
from PIL import Image, ImageDraw

from cession.document_status import CessionStatus
from cession.models import CessionCreance
from core.factories import UserFactory


def make_signature_jpeg(width=240, height=80) -> bytes:
    """Petite signature JPEG valide (trait noir sur fond blanc)."""
    image = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(image)
    draw.line([(10, height - 20), (width // 2, 15), (width - 10, height - 25)], fill="black", width=3)
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=80)
    return buffer.getvalue()


def signature_data_url() -> str:
    encoded = base64.b64encode(make_signature_jpeg()).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"


class CessionCreanceFactory(DjangoModelFactory):
    class Meta:
        model = CessionCreance

    created_by = factory.SubFactory(UserFactory)
    client_id = factory.LazyFunction(uuid.uuid4)
    recipient_name = factory.Faker("name", locale="fr_FR")
    recipient_email = factory.Faker("email", locale="fr_FR")
    recipient_company = ""
    recipient_address = "12 rue des Lilas\n69003 Lyon"
    recipient_phone = factory.Faker("phone_number", locale="fr_FR")

    invoice_id = factory.LazyFunction(uuid.uuid4)
    invoice_number = factory.Sequence(lambda n: f"F-2024-{n:04d}")
    invoice_amount = Decimal("1450.80")
    invoice_snapshot = factory.LazyFunction(
        lambda: {
            "vehicle": {"make": "Renault", "model": "Clio", "registration": "EF-456-GH"},
            "insurer": {
                "company": "AXA France",
                "policy_number": "POL-123456",
                "claim_number": "SIN-0001",
            },
            "accident_date": "2024-03-14",
            "total_amount": "1450.80",
        }
    )
    amount = Decimal("1450.80")
    due_date = factory.LazyFunction(lambda: date.today() + timedelta(days=30))
    status = CessionStatus.PENDING

    class Params:
        client_signed = factory.Trait(client_signature_url=factory.LazyFunction(signature_data_url))
        dealer_signed = factory.Trait(dealer_signature_url=factory.LazyFunction(signature_data_url))
        signed = factory.Trait(
            status=CessionStatus.SIGNED,
            client_signature_url=factory.LazyFunction(signature_data_url),
            dealer_signature_url=factory.LazyFunction(signature_data_url),
            signed_at=factory.LazyFunction(timezone.now),
        )

from decimal import Decimal

from rest_framework import serializers

from core.url_builders import get_signing_url

from .constants import SIGNING_PAGE_LEGAL_NOTE
from .document_status import CREATION_STATUSES, CessionStatus, SignerRole
from .models import CessionCreance


class RecipientFieldsMixin(serializers.Serializer):
    recipient_company = serializers.CharField(max_length=255, required=False, allow_blank=True)
    recipient_address = serializers.CharField(required=False, allow_blank=True)
    recipient_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    recipient_siret = serializers.CharField(max_length=20, required=False, allow_blank=True)
    recipient_ape_code = serializers.CharField(max_length=10, required=False, allow_blank=True)
    recipient_rcs = serializers.CharField(max_length=50, required=False, allow_blank=True)
    recipient_website = serializers.CharField(max_length=255, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class CessionCreateSerializer(RecipientFieldsMixin):
    """Formulaire de création d'une cession de créance."""

    invoice_id = serializers.UUIDField(
        error_messages={"required": "La facture est requise", "invalid": "Facture invalide"}
    )
    client_id = serializers.UUIDField(required=False, allow_null=True)
    recipient_name = serializers.CharField(
        max_length=255, error_messages={"required": "Le nom du destinataire est requis"}
    )
    recipient_email = serializers.EmailField(
        error_messages={"required": "L'email du destinataire est requis"}
    )
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.01"),
        required=False,
        allow_null=True,
    )
    due_date = serializers.DateField(
        error_messages={
            "required": "La date d'échéance est requise",
            "null": "La date d'échéance est requise",
        }
    )
    status = serializers.ChoiceField(
        choices=[(status.value, status.label) for status in CessionStatus if status in CREATION_STATUSES],
        default=CessionStatus.PENDING,
    )


class CessionUpdateSerializer(RecipientFieldsMixin):
    recipient_name = serializers.CharField(max_length=255, required=False)
    recipient_email = serializers.EmailField(required=False)
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0.01"), required=False
    )
    due_date = serializers.DateField(required=False)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CessionStatus.choices)


class SignatureSubmissionSerializer(serializers.Serializer):
    """Signature tracée (points) ou export canvas (data URL)."""

    strokes = serializers.JSONField(required=False)
    device_pixel_ratio = serializers.FloatField(required=False, default=1)
    signatureImage = serializers.CharField(required=False, allow_blank=False)


class CessionListSerializer(serializers.ModelSerializer):
    status_label = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = CessionCreance
        fields = [
            "id",
            "recipient_name",
            "recipient_company",
            "recipient_email",
            "invoice_number",
            "amount",
            "due_date",
            "status",
            "status_label",
            "document_url",
            "signed_at",
            "created_at",
        ]


class CessionSerializer(serializers.ModelSerializer):
    """Fiche complète pour le garage, avec les deux liens de signature."""

    status_label = serializers.CharField(source="get_status_display", read_only=True)
    client_signing_url = serializers.SerializerMethodField()
    repairer_signing_url = serializers.SerializerMethodField()
    vehicle = serializers.JSONField(read_only=True)
    insurer = serializers.JSONField(read_only=True)

    class Meta:
        model = CessionCreance
        fields = [
            "id",
            "client_id",
            "recipient_name",
            "recipient_email",
            "recipient_company",
            "recipient_address",
            "recipient_phone",
            "recipient_siret",
            "recipient_ape_code",
            "recipient_rcs",
            "recipient_website",
            "invoice_id",
            "invoice_number",
            "invoice_amount",
            "amount",
            "due_date",
            "notes",
            "status",
            "status_label",
            "vehicle",
            "insurer",
            "client_signature_url",
            "dealer_signature_url",
            "document_url",
            "signed_at",
            "client_signing_url",
            "repairer_signing_url",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_client_signing_url(self, obj):
        return get_signing_url(obj.token_for(SignerRole.CLIENT))

    def get_repairer_signing_url(self, obj):
        return get_signing_url(obj.token_for(SignerRole.REPAIRER))


def public_signing_payload(cession: CessionCreance, role, company=None) -> dict:
    """
    Données exposées sur la page de signature publique.

    Ni les jetons ni les URLs des images de signature ne sont renvoyés.
    """
    role = SignerRole(role)
    other_role = SignerRole.REPAIRER if role == SignerRole.CLIENT else SignerRole.CLIENT
    return {
        "id": str(cession.id),
        "role": role.value,
        "role_label": role.label,
        "status": cession.status,
        "status_label": cession.get_status_display(),
        "recipient_name": cession.recipient_name,
        "recipient_company": cession.recipient_company,
        "invoice_number": cession.invoice_number,
        "amount": str(cession.amount),
        "due_date": cession.due_date.isoformat() if cession.due_date else None,
        "company_name": company.name if company else "",
        "vehicle": cession.vehicle,
        "already_signed": bool(cession.signature_url_for(role)),
        "other_party_signed": bool(cession.signature_url_for(other_role)),
        "document_url": cession.document_url if cession.status == CessionStatus.SIGNED else None,
        "legal_note": SIGNING_PAGE_LEGAL_NOTE,
    }

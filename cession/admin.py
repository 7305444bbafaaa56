from django.contrib import admin
from django.utils.html import format_html
from simple_history.admin import SimpleHistoryAdmin

from .models import CessionCreance


@admin.register(CessionCreance)
class CessionCreanceAdmin(SimpleHistoryAdmin):
    """Administration des cessions de créance"""

    list_display = [
        "id_short",
        "recipient_name",
        "invoice_number",
        "amount",
        "status",
        "signatures_display",
        "pdf_link",
        "created_at",
    ]
    list_filter = ["status", "created_at", "signed_at"]
    search_fields = ["recipient_name", "recipient_email", "invoice_number", "created_by__email"]
    readonly_fields = [
        "id",
        "client_sign_token",
        "repairer_sign_token",
        "client_signature_url",
        "dealer_signature_url",
        "document_url",
        "signed_at",
        "invoice_snapshot",
        "created_at",
        "updated_at",
    ]

    fieldsets = (
        (
            "Débiteur cédé",
            {
                "fields": (
                    "client_id",
                    "recipient_name",
                    "recipient_email",
                    "recipient_company",
                    "recipient_address",
                    "recipient_phone",
                )
            },
        ),
        (
            "Facture",
            {"fields": ("invoice_id", "invoice_number", "invoice_amount", "invoice_snapshot")},
        ),
        ("Cession", {"fields": ("amount", "due_date", "notes", "status", "created_by")}),
        (
            "Signatures",
            {
                "fields": (
                    "client_sign_token",
                    "repairer_sign_token",
                    "client_signature_url",
                    "dealer_signature_url",
                    "signed_at",
                    "document_url",
                )
            },
        ),
        ("Métadonnées", {"fields": ("id", "created_at", "updated_at"), "classes": ("collapse",)}),
    )

    @admin.display(description="ID")
    def id_short(self, obj):
        return str(obj.id)[:8]

    @admin.display(description="Signatures")
    def signatures_display(self, obj):
        client = "✅" if obj.client_signature_url else "⏳"
        dealer = "✅" if obj.dealer_signature_url else "⏳"
        return f"Client {client} / Carrossier {dealer}"

    @admin.display(description="PDF")
    def pdf_link(self, obj):
        if obj.document_url:
            return format_html('<a href="{}" target="_blank">📄 Voir</a>', obj.document_url)
        return "-"

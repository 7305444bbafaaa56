from django.contrib import admin

from .models import CompanyProfile, Invoice


@admin.register(CompanyProfile)
class CompanyProfileAdmin(admin.ModelAdmin):
    list_display = ["company_name", "user", "city", "siret"]
    search_fields = ["company_name", "siret", "user__email"]


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ["invoice_number", "owner", "total_amount", "accident_date", "created_at"]
    search_fields = ["invoice_number", "owner__email"]
    readonly_fields = ["created_at", "updated_at"]

# patients/admin.py
from django.contrib import admin
from django.db import transaction

from clinical.linker import ClinicalRecordLinker
from .models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'email', 'contact_number', 'has_payroll_deduction', 'company_name', 'created_at']
    list_filter = ['has_payroll_deduction', 'company_name', 'created_at']
    search_fields = ['first_name', 'last_name', 'email', 'contact_number', 'company_name']
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        ('Personal Information', {
            'fields': ('first_name', 'last_name', 'date_of_birth')
        }),
        ('Contact Information', {
            'fields': ('email', 'contact_number', 'address')
        }),
        ('Billing', {
            'fields': ('has_payroll_deduction', 'company_name')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ['collapse']
        }),
    )

    def save_model(self, request, obj, form, change):
        # Every patient owns exactly one clinical record
        with transaction.atomic():
            super().save_model(request, obj, form, change)
            if not change:
                ClinicalRecordLinker().ensure_record(obj.pk)

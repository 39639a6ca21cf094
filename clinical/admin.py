# clinical/admin.py
from django.contrib import admin

from .models import ClinicalRecord, ClinicalRecordEntry


class ClinicalRecordEntryInline(admin.TabularInline):
    model = ClinicalRecordEntry
    extra = 0
    fields = ['date', 'treatment_type', 'appointment', 'report']
    readonly_fields = ['date', 'treatment_type', 'appointment', 'report']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(ClinicalRecord)
class ClinicalRecordAdmin(admin.ModelAdmin):
    list_display = ['patient', 'entry_count', 'created_at']
    search_fields = ['patient__first_name', 'patient__last_name', 'patient__email']
    readonly_fields = ['patient', 'created_at', 'updated_at']
    inlines = [ClinicalRecordEntryInline]

    def entry_count(self, obj):
        return obj.entries.count()
    entry_count.short_description = 'Entries'

    def has_add_permission(self, request):
        # Records are created with their patient
        return False


@admin.register(ClinicalRecordEntry)
class ClinicalRecordEntryAdmin(admin.ModelAdmin):
    list_display = ['record', 'treatment_type', 'date', 'appointment']
    list_filter = ['treatment_type', 'date']
    search_fields = ['record__patient__first_name', 'record__patient__last_name', 'report']
    list_select_related = ['record__patient', 'treatment_type']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

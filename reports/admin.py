# reports/admin.py
from django.contrib import admin

from .models import Report


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ['report_type', 'date', 'start_date', 'end_date', 'total_amount', 'company_name', 'created_at']
    list_filter = ['report_type', 'created_at']
    search_fields = ['company_name']
    readonly_fields = [
        'report_type', 'date', 'start_date', 'end_date', 'total_amount',
        'company_name', 'data', 'created_at',
    ]
    date_hierarchy = 'date'

    def has_add_permission(self, request):
        # Reports are generated, never entered by hand
        return False

    def has_change_permission(self, request, obj=None):
        return False

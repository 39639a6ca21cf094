# appointments/admin.py
from django.contrib import admin

from core.errors import ClinicError
from .lifecycle import AppointmentLifecycleManager
from .models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['patient_display', 'date', 'time', 'treatment_type', 'status', 'payroll_deduction_amount']
    list_filter = ['status', 'treatment_type', 'date']
    search_fields = ['patient__first_name', 'patient__last_name', 'patient__email', 'notes']
    readonly_fields = ['status', 'created_at', 'updated_at']
    date_hierarchy = 'date'

    fieldsets = (
        ('Appointment Details', {
            'fields': ('patient', 'treatment_type', 'date', 'time', 'status')
        }),
        ('Payroll Deduction', {
            'fields': ('payroll_deduction_months', 'payroll_deduction_amount'),
            'classes': ['collapse']
        }),
        ('Notes', {
            'fields': ('notes',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ['collapse']
        }),
    )

    actions = ['complete_selected_appointments', 'cancel_selected_appointments']

    def patient_display(self, obj):
        return obj.patient.full_name if obj.patient_id else '-'
    patient_display.short_description = 'Patient'

    def _apply_status(self, request, queryset, status):
        """Status changes go through the lifecycle manager so side effects run"""
        manager = AppointmentLifecycleManager()
        changed_count = 0
        errors = []

        for appointment in queryset.filter(status=Appointment.STATUS_SCHEDULED):
            try:
                manager.update(appointment.pk, {'status': status}, user=request.user)
                changed_count += 1
            except ClinicError as e:
                errors.append(f"#{appointment.pk}: {e.message}")

        if changed_count:
            self.message_user(request, f"Successfully updated {changed_count} appointment(s).")

        if errors:
            self.message_user(request, f"Errors: {'; '.join(errors)}", level='ERROR')

    def complete_selected_appointments(self, request, queryset):
        self._apply_status(request, queryset, Appointment.STATUS_COMPLETED)
    complete_selected_appointments.short_description = "Mark selected appointments as completed"

    def cancel_selected_appointments(self, request, queryset):
        self._apply_status(request, queryset, Appointment.STATUS_CANCELLED)
    cancel_selected_appointments.short_description = "Cancel selected appointments"

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('patient', 'treatment_type')


# Custom admin site configuration
admin.site.site_header = "Dental Office Administration"
admin.site.site_title = "Dental Office Admin"

# appointments/forms.py - Request validation for the appointment endpoints
from django import forms

from patients.models import Patient
from treatments.models import TreatmentType
from .models import Appointment, validate_slot_time


class AppointmentForm(forms.ModelForm):
    """
    Validates an appointment create payload.

    Only request shape is checked here (types, 30-minute slots, known
    treatment type and patient); business rules are enforced by
    AppointmentLifecycleManager.
    """

    class Meta:
        model = Appointment
        fields = [
            'date', 'time', 'treatment_type', 'patient', 'status', 'notes',
            'payroll_deduction_months', 'payroll_deduction_amount',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['treatment_type'].queryset = TreatmentType.objects.order_by('label')
        self.fields['patient'].queryset = Patient.objects.order_by('last_name', 'first_name')
        self.fields['patient'].required = False
        self.fields['status'].required = False
        self.fields['notes'].required = False

    def clean_time(self):
        value = self.cleaned_data.get('time')
        validate_slot_time(value)
        return value

    def clean_status(self):
        return self.cleaned_data.get('status') or Appointment.STATUS_SCHEDULED

    def _post_clean(self):
        # Model-level checks (completion rules) belong to the lifecycle manager
        pass

    def payload(self):
        """cleaned_data keyed for AppointmentLifecycleManager.create()"""
        return dict(self.cleaned_data)


class AppointmentPatchForm(AppointmentForm):
    """
    Validates a partial update. Every field is optional; only the keys
    present in the submitted data end up in the patch.
    """
    # Columns that cannot be cleared; a null value for them is ignored
    REQUIRED_COLUMNS = {'date', 'time', 'treatment_type', 'status'}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field in self.fields.values():
            field.required = False

    def clean_status(self):
        return self.cleaned_data.get('status') or None

    def payload(self):
        return {
            name: value
            for name, value in self.cleaned_data.items()
            if name in self.data and not (value is None and name in self.REQUIRED_COLUMNS)
        }

# appointments/models.py - Appointment scheduling with locked completion
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


SLOT_MINUTES = 30


def validate_slot_time(value):
    """Appointments start on a 30-minute boundary (e.g. 09:00, 09:30)"""
    if value is None:
        return
    if value.minute % SLOT_MINUTES != 0 or value.second or value.microsecond:
        raise ValidationError(
            f'Time must be in {SLOT_MINUTES}-minute intervals (got {value.strftime("%H:%M")}).'
        )


class AppointmentQuerySet(models.QuerySet):

    def completed(self):
        return self.filter(status=Appointment.STATUS_COMPLETED)

    def in_range(self, start_date, end_date):
        """Appointments dated within [start_date, end_date] inclusive"""
        return self.filter(date__gte=start_date, date__lte=end_date)


class Appointment(models.Model):
    """
    Scheduled visit for a treatment.

    Status moves scheduled -> completed or scheduled -> cancelled; both
    targets are terminal. Transitions go through
    appointments.lifecycle.AppointmentLifecycleManager, which also spawns
    the linked clinical record entry on completion.
    """
    STATUS_SCHEDULED = 'scheduled'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    # Date and time
    date = models.DateField(help_text="Date of appointment")
    time = models.TimeField(
        validators=[validate_slot_time],
        help_text="Start time, aligned to 30-minute slots"
    )

    treatment_type = models.ForeignKey(
        'treatments.TreatmentType',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.CASCADE,
        related_name='appointments',
        null=True,
        blank=True,
        help_text="Required before the appointment can be completed"
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    notes = models.TextField(blank=True, null=True, help_text="Becomes the clinical report on completion")

    # Payroll deduction (only validated for patients with payroll deduction)
    payroll_deduction_months = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Number of monthly instalments"
    )
    payroll_deduction_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Total amount deducted over the instalment months"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AppointmentQuerySet.as_manager()

    class Meta:
        ordering = ['date', 'time']
        indexes = [
            models.Index(fields=['status', 'date'], name='appt_status_date_idx'),
            models.Index(fields=['patient'], name='appt_patient_idx'),
            models.Index(fields=['date', 'time'], name='appt_date_time_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(status='completed') | models.Q(patient__isnull=False),
                name='appt_completed_requires_patient',
            ),
        ]

    def __str__(self):
        who = self.patient.full_name if self.patient_id else 'Unassigned'
        return f"{who} - {self.date} {self.time.strftime('%I:%M %p')} ({self.get_status_display()})"

# clinical/models.py
from django.db import models


class ClinicalRecord(models.Model):
    """
    One-per-patient container of treatment history entries.
    Created together with the patient and deleted only with it.
    """
    patient = models.OneToOneField(
        'patients.Patient',
        on_delete=models.CASCADE,
        related_name='clinical_record'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Clinical Record'
        verbose_name_plural = 'Clinical Records'

    def __str__(self):
        return f"Clinical Record - {self.patient.full_name}"


class ClinicalRecordEntry(models.Model):
    """
    A single historical treatment note.

    Entries spawned by a completed appointment keep a reference to it; the
    unique reference guarantees at most one entry per appointment. Deleting
    the appointment leaves the entry in place with the reference cleared.
    """
    record = models.ForeignKey(
        ClinicalRecord,
        on_delete=models.CASCADE,
        related_name='entries'
    )
    treatment_type = models.ForeignKey(
        'treatments.TreatmentType',
        on_delete=models.PROTECT,
        related_name='clinical_entries'
    )
    appointment = models.OneToOneField(
        'appointments.Appointment',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='clinical_entry',
        help_text="Appointment whose completion created this entry"
    )
    date = models.DateField()
    report = models.TextField(blank=True, help_text="Dentist's report for this treatment")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date', '-created_at']
        verbose_name = 'Clinical Record Entry'
        verbose_name_plural = 'Clinical Record Entries'
        indexes = [
            models.Index(fields=['record', 'date'], name='clinical_entry_rec_date_idx'),
        ]

    def __str__(self):
        return f"{self.treatment_type.label} - {self.date}"

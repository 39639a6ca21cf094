# clinical/tests.py
"""
Tests for ClinicalRecordLinker: record get-or-create and idempotent entries
"""
from datetime import date, time
from unittest import mock

from django.test import TestCase

from appointments.models import Appointment
from core.errors import ClinicError
from patients.models import Patient
from treatments.models import TreatmentType
from .linker import ClinicalRecordLinker
from .models import ClinicalRecord, ClinicalRecordEntry


class ClinicalRecordLinkerTest(TestCase):
    """Test ClinicalRecordLinker"""

    def setUp(self):
        self.linker = ClinicalRecordLinker()
        self.patient = Patient.objects.create(first_name='Ana', last_name='Reyes', email='ana@example.com')
        self.cleaning = TreatmentType.objects.create(label='Cleaning')
        self.appointment = Appointment.objects.create(
            date=date(2024, 3, 1),
            time=time(9, 0),
            treatment_type=self.cleaning,
            patient=self.patient,
        )

    def test_ensure_record_is_idempotent(self):
        first = self.linker.ensure_record(self.patient.pk)
        second = self.linker.ensure_record(self.patient.pk)

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(ClinicalRecord.objects.count(), 1)

    def test_one_record_per_patient(self):
        other = Patient.objects.create(first_name='Ben', last_name='Cruz', email='ben@example.com')

        record_a = self.linker.ensure_record(self.patient.pk)
        record_b = self.linker.ensure_record(other.pk)

        self.assertNotEqual(record_a.pk, record_b.pk)
        self.assertEqual(ClinicalRecord.objects.count(), 2)

    def test_ensure_record_lost_race_reads_winner(self):
        winner = ClinicalRecord.objects.create(patient=self.patient)

        # Simulate the row appearing between the lookup and the insert
        with mock.patch.object(self.linker, '_find_record', return_value=None):
            record = self.linker.ensure_record(self.patient.pk)

        self.assertEqual(record.pk, winner.pk)
        self.assertEqual(ClinicalRecord.objects.count(), 1)

    def test_ensure_entry_is_idempotent(self):
        record = self.linker.ensure_record(self.patient.pk)

        first = self.linker.ensure_entry_for_appointment(
            self.appointment.pk, record.pk, self.cleaning.pk, self.appointment.date, 'Plaque removed'
        )
        second = self.linker.ensure_entry_for_appointment(
            self.appointment.pk, record.pk, self.cleaning.pk, self.appointment.date, 'Different text'
        )

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(ClinicalRecordEntry.objects.count(), 1)
        self.assertEqual(ClinicalRecordEntry.objects.get().report, 'Plaque removed')

    def test_ensure_entry_lost_race_reads_winner(self):
        record = self.linker.ensure_record(self.patient.pk)
        winner = ClinicalRecordEntry.objects.create(
            record=record,
            appointment=self.appointment,
            treatment_type=self.cleaning,
            date=self.appointment.date,
            report='Winner',
        )

        with mock.patch.object(self.linker, '_find_entry_for_appointment', return_value=None):
            entry = self.linker.ensure_entry_for_appointment(
                self.appointment.pk, record.pk, self.cleaning.pk, self.appointment.date, 'Loser'
            )

        self.assertEqual(entry.pk, winner.pk)
        self.assertEqual(ClinicalRecordEntry.objects.count(), 1)

    def test_entry_report_defaults_to_empty(self):
        record = self.linker.ensure_record(self.patient.pk)
        entry = self.linker.ensure_entry_for_appointment(
            self.appointment.pk, record.pk, self.cleaning.pk, self.appointment.date, None
        )
        self.assertEqual(entry.report, '')

    def test_manual_entry_and_update(self):
        record = self.linker.ensure_record(self.patient.pk)
        entry = self.linker.create_entry(record.pk, self.cleaning.pk, date(2024, 2, 1), 'Walk-in check')

        self.assertIsNone(entry.appointment_id)

        self.linker.update_entry(entry.pk, report='Walk-in check, no caries')
        self.assertEqual(ClinicalRecordEntry.objects.get(pk=entry.pk).report, 'Walk-in check, no caries')

    def test_update_missing_entry(self):
        with self.assertRaises(ClinicError) as ctx:
            self.linker.update_entry(999, report='x')
        self.assertEqual(ctx.exception.code, 'MEDICAL_RECORD_ENTRY_NOT_FOUND')

    def test_record_for_patient_lists_entries_newest_first(self):
        record = self.linker.ensure_record(self.patient.pk)
        self.linker.create_entry(record.pk, self.cleaning.pk, date(2024, 1, 1))
        self.linker.create_entry(record.pk, self.cleaning.pk, date(2024, 2, 1))

        loaded = self.linker.record_for_patient(self.patient.pk)

        self.assertEqual([e.date for e in loaded.entries.all()], [date(2024, 2, 1), date(2024, 1, 1)])

    def test_deleting_appointment_keeps_entry(self):
        record = self.linker.ensure_record(self.patient.pk)
        entry = self.linker.ensure_entry_for_appointment(
            self.appointment.pk, record.pk, self.cleaning.pk, self.appointment.date, ''
        )

        self.appointment.delete()

        entry.refresh_from_db()
        self.assertIsNone(entry.appointment_id)

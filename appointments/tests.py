# appointments/tests.py
"""
Tests for the appointment lifecycle: status locking, completion side
effects, payroll validation and the JSON endpoints
"""
import json
from datetime import date, time
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase, Client
from django.urls import reverse

from clinical.models import ClinicalRecord, ClinicalRecordEntry
from core.errors import ClinicError, ErrorKind
from core.models import AuditLog
from patients.models import Patient
from treatments.models import TreatmentType
from .forms import AppointmentForm
from .lifecycle import AppointmentLifecycleManager
from .models import Appointment
from .payroll import PayrollDeductionValidator

User = get_user_model()


class PayrollDeductionValidatorTest(TestCase):
    """Test PayrollDeductionValidator"""

    def setUp(self):
        self.validator = PayrollDeductionValidator()

    def assertFailsWith(self, kind, months, amount):
        with self.assertRaises(ClinicError) as ctx:
            self.validator.validate(months, amount)
        self.assertEqual(ctx.exception.kind, kind)

    def test_valid_terms(self):
        self.validator.validate(6, Decimal('600.00'))
        self.validator.validate(1, 0.5)

    def test_months_required(self):
        self.assertFailsWith(ErrorKind.PAYROLL_MONTHS_REQUIRED, None, Decimal('600'))
        self.assertFailsWith(ErrorKind.PAYROLL_MONTHS_REQUIRED, 0, Decimal('600'))

    def test_amount_required(self):
        self.assertFailsWith(ErrorKind.PAYROLL_AMOUNT_REQUIRED, 6, None)
        self.assertFailsWith(ErrorKind.PAYROLL_AMOUNT_REQUIRED, 6, Decimal('0'))
        self.assertFailsWith(ErrorKind.PAYROLL_AMOUNT_REQUIRED, 6, Decimal('-5'))
        self.assertFailsWith(ErrorKind.PAYROLL_AMOUNT_REQUIRED, 6, 'abc')
        self.assertFailsWith(ErrorKind.PAYROLL_AMOUNT_REQUIRED, 6, float('nan'))
        self.assertFailsWith(ErrorKind.PAYROLL_AMOUNT_REQUIRED, 6, float('inf'))

    def test_months_checked_before_amount(self):
        self.assertFailsWith(ErrorKind.PAYROLL_MONTHS_REQUIRED, None, None)


class AppointmentLifecycleTestMixin:

    def setUp(self):
        self.manager = AppointmentLifecycleManager()
        self.cleaning = TreatmentType.objects.create(label='Cleaning')
        self.patient = Patient.objects.create(
            first_name='Ana', last_name='Reyes', email='ana@example.com'
        )
        self.payroll_patient = Patient.objects.create(
            first_name='Ben', last_name='Cruz', email='ben@example.com',
            has_payroll_deduction=True, company_name='Acme Corp',
        )

    def appointment_data(self, **overrides):
        data = {
            'date': date(2024, 3, 1),
            'time': time(9, 0),
            'treatment_type': self.cleaning,
            'patient': self.patient,
            'notes': 'Routine cleaning',
        }
        data.update(overrides)
        return data


class AppointmentCreateTest(AppointmentLifecycleTestMixin, TestCase):
    """Test AppointmentLifecycleManager.create"""

    def test_create_scheduled(self):
        appointment = self.manager.create(self.appointment_data(patient=None))

        self.assertEqual(appointment.status, Appointment.STATUS_SCHEDULED)
        self.assertFalse(ClinicalRecordEntry.objects.exists())

    def test_create_completed_without_patient(self):
        with self.assertRaises(ClinicError) as ctx:
            self.manager.create(self.appointment_data(patient=None, status='completed'))

        self.assertEqual(ctx.exception.kind, ErrorKind.PATIENT_REQUIRED_FOR_COMPLETION)
        self.assertFalse(Appointment.objects.exists())

    def test_create_completed_spawns_entry(self):
        appointment = self.manager.create(self.appointment_data(status='completed'))

        entry = ClinicalRecordEntry.objects.get(appointment=appointment)
        self.assertEqual(entry.record.patient, self.patient)
        self.assertEqual(entry.treatment_type, self.cleaning)
        self.assertEqual(entry.date, date(2024, 3, 1))
        self.assertEqual(entry.report, 'Routine cleaning')
        self.assertTrue(AuditLog.objects.filter(model_name='appointment', object_id=appointment.pk).exists())

    def test_create_completed_with_missing_patient(self):
        with self.assertRaises(ClinicError) as ctx:
            self.manager.create(self.appointment_data(patient=None, patient_id=999, status='completed'))

        self.assertEqual(ctx.exception.kind, ErrorKind.PATIENT_NOT_FOUND)
        self.assertFalse(Appointment.objects.exists())

    def test_payroll_months_missing_rolls_back(self):
        with self.assertRaises(ClinicError) as ctx:
            self.manager.create(self.appointment_data(
                patient=self.payroll_patient,
                status='completed',
                payroll_deduction_amount=Decimal('600.00'),
            ))

        self.assertEqual(ctx.exception.kind, ErrorKind.PAYROLL_MONTHS_REQUIRED)
        self.assertFalse(Appointment.objects.exists())
        self.assertFalse(ClinicalRecord.objects.exists())
        self.assertFalse(ClinicalRecordEntry.objects.exists())

    def test_payroll_amount_missing(self):
        with self.assertRaises(ClinicError) as ctx:
            self.manager.create(self.appointment_data(
                patient=self.payroll_patient,
                status='completed',
                payroll_deduction_months=6,
            ))
        self.assertEqual(ctx.exception.kind, ErrorKind.PAYROLL_AMOUNT_REQUIRED)

    def test_payroll_terms_not_checked_for_regular_patient(self):
        appointment = self.manager.create(self.appointment_data(status='completed'))
        self.assertIsNone(appointment.payroll_deduction_months)

    def test_failure_after_insert_rolls_back_everything(self):
        with mock.patch.object(
            self.manager.linker, 'ensure_entry_for_appointment', side_effect=RuntimeError('boom')
        ):
            with self.assertRaises(RuntimeError):
                self.manager.create(self.appointment_data(status='completed'))

        self.assertFalse(Appointment.objects.exists())
        self.assertFalse(ClinicalRecord.objects.exists())

    def test_invalid_status(self):
        with self.assertRaises(ValidationError):
            self.manager.create(self.appointment_data(status='archived'))

    def test_time_must_be_on_slot(self):
        with self.assertRaises(ValidationError) as ctx:
            self.manager.create(self.appointment_data(time=time(9, 15)))

        self.assertIn('time', ctx.exception.message_dict)
        self.assertFalse(Appointment.objects.exists())


class AppointmentUpdateTest(AppointmentLifecycleTestMixin, TestCase):
    """Test AppointmentLifecycleManager.update"""

    def test_complete_scheduled_appointment(self):
        appointment = self.manager.create(self.appointment_data())

        updated = self.manager.update(appointment.pk, {'status': 'completed', 'notes': 'Plaque removed'})

        self.assertEqual(updated.status, Appointment.STATUS_COMPLETED)
        entry = ClinicalRecordEntry.objects.get(appointment=appointment)
        self.assertEqual(entry.report, 'Plaque removed')
        self.assertTrue(
            AuditLog.objects.filter(action='status_change', object_id=appointment.pk).exists()
        )

    def test_completed_status_is_locked(self):
        appointment = self.manager.create(self.appointment_data(status='completed'))

        for status in ('scheduled', 'cancelled'):
            with self.assertRaises(ClinicError) as ctx:
                self.manager.update(appointment.pk, {'status': status})
            self.assertEqual(ctx.exception.kind, ErrorKind.LOCKED_STATUS)
            self.assertEqual(ctx.exception.code, 'CANNOT_CHANGE_COMPLETED_STATUS')

        self.assertEqual(Appointment.objects.get(pk=appointment.pk).status, 'completed')

    def test_cancelled_is_terminal(self):
        appointment = self.manager.create(self.appointment_data())
        self.manager.update(appointment.pk, {'status': 'cancelled'})

        with self.assertRaises(ClinicError) as ctx:
            self.manager.update(appointment.pk, {'status': 'scheduled'})

        self.assertEqual(ctx.exception.kind, ErrorKind.LOCKED_STATUS)
        self.assertEqual(ctx.exception.code, 'CANNOT_CHANGE_CANCELLED_STATUS')
        self.assertEqual(Appointment.objects.get(pk=appointment.pk).status, 'cancelled')

    def test_completing_twice_creates_one_entry(self):
        appointment = self.manager.create(self.appointment_data())

        self.manager.update(appointment.pk, {'status': 'completed'})
        self.manager.update(appointment.pk, {'status': 'completed', 'notes': 'Follow-up note'})

        self.assertEqual(ClinicalRecordEntry.objects.filter(appointment=appointment).count(), 1)
        self.assertEqual(Appointment.objects.get(pk=appointment.pk).notes, 'Follow-up note')

    def test_complete_without_patient(self):
        appointment = self.manager.create(self.appointment_data(patient=None))

        with self.assertRaises(ClinicError) as ctx:
            self.manager.update(appointment.pk, {'status': 'completed'})

        self.assertEqual(ctx.exception.kind, ErrorKind.PATIENT_REQUIRED_FOR_COMPLETION)
        self.assertEqual(Appointment.objects.get(pk=appointment.pk).status, 'scheduled')

    def test_complete_with_patient_in_patch(self):
        appointment = self.manager.create(self.appointment_data(patient=None))

        self.manager.update(appointment.pk, {'status': 'completed', 'patient': self.patient})

        appointment.refresh_from_db()
        self.assertEqual(appointment.patient, self.patient)
        self.assertTrue(ClinicalRecordEntry.objects.filter(appointment=appointment).exists())

    def test_cannot_clear_patient_of_completed(self):
        appointment = self.manager.create(self.appointment_data(status='completed'))

        with self.assertRaises(ClinicError) as ctx:
            self.manager.update(appointment.pk, {'patient': None})

        self.assertEqual(ctx.exception.kind, ErrorKind.PATIENT_REQUIRED_FOR_COMPLETION)

    def test_payroll_validation_uses_existing_values(self):
        appointment = self.manager.create(self.appointment_data(
            patient=self.payroll_patient,
            payroll_deduction_months=6,
        ))

        self.manager.update(appointment.pk, {
            'status': 'completed',
            'payroll_deduction_amount': Decimal('600.00'),
        })

        appointment.refresh_from_db()
        self.assertEqual(appointment.payroll_deduction_months, 6)
        self.assertEqual(appointment.payroll_deduction_amount, Decimal('600.00'))

    def test_payroll_failure_leaves_appointment_unchanged(self):
        appointment = self.manager.create(self.appointment_data(patient=self.payroll_patient))

        with self.assertRaises(ClinicError) as ctx:
            self.manager.update(appointment.pk, {'status': 'completed', 'notes': 'Changed'})

        self.assertEqual(ctx.exception.kind, ErrorKind.PAYROLL_MONTHS_REQUIRED)
        appointment.refresh_from_db()
        self.assertEqual(appointment.status, 'scheduled')
        self.assertEqual(appointment.notes, 'Routine cleaning')
        self.assertFalse(ClinicalRecordEntry.objects.exists())

    def test_first_completions_for_two_patients(self):
        other = Patient.objects.create(first_name='Cara', last_name='Lim', email='cara@example.com')
        first = self.manager.create(self.appointment_data())
        second = self.manager.create(self.appointment_data(patient=other, time=time(9, 30)))

        self.manager.update(first.pk, {'status': 'completed'})
        self.manager.update(second.pk, {'status': 'completed'})

        self.assertEqual(ClinicalRecord.objects.filter(patient=self.patient).count(), 1)
        self.assertEqual(ClinicalRecord.objects.filter(patient=other).count(), 1)

    def test_completion_after_lost_record_race(self):
        appointment = self.manager.create(self.appointment_data())
        existing = ClinicalRecord.objects.create(patient=self.patient)

        with mock.patch.object(self.manager.linker, '_find_record', return_value=None):
            self.manager.update(appointment.pk, {'status': 'completed'})

        self.assertEqual(ClinicalRecord.objects.filter(patient=self.patient).count(), 1)
        self.assertEqual(ClinicalRecordEntry.objects.get(appointment=appointment).record, existing)

    def test_update_time_must_be_on_slot(self):
        appointment = self.manager.create(self.appointment_data())

        with self.assertRaises(ValidationError):
            self.manager.update(appointment.pk, {'time': time(9, 15)})

        self.assertEqual(Appointment.objects.get(pk=appointment.pk).time, time(9, 0))

    def test_update_missing(self):
        with self.assertRaises(ClinicError) as ctx:
            self.manager.update(999, {'notes': 'x'})
        self.assertEqual(ctx.exception.code, 'APPOINTMENT_NOT_FOUND')


class AppointmentRemoveTest(AppointmentLifecycleTestMixin, TestCase):
    """Test AppointmentLifecycleManager.remove"""

    def test_remove_keeps_clinical_entry(self):
        appointment = self.manager.create(self.appointment_data(status='completed'))
        entry = ClinicalRecordEntry.objects.get(appointment=appointment)

        self.manager.remove(appointment.pk)

        self.assertFalse(Appointment.objects.exists())
        entry.refresh_from_db()
        self.assertIsNone(entry.appointment_id)

    def test_remove_missing(self):
        with self.assertRaises(ClinicError) as ctx:
            self.manager.remove(999)
        self.assertEqual(ctx.exception.kind, ErrorKind.NOT_FOUND)
        self.assertEqual(ctx.exception.code, 'APPOINTMENT_NOT_FOUND')

    def test_list_in_range(self):
        self.manager.create(self.appointment_data(date=date(2024, 3, 1)))
        self.manager.create(self.appointment_data(date=date(2024, 3, 5)))
        self.manager.create(self.appointment_data(date=date(2024, 4, 1)))

        appointments = self.manager.list(date(2024, 3, 1), date(2024, 3, 31))

        self.assertEqual([a.date for a in appointments], [date(2024, 3, 1), date(2024, 3, 5)])
        self.assertEqual(len(self.manager.list()), 3)


class AppointmentFormTest(AppointmentLifecycleTestMixin, TestCase):

    def test_time_must_be_on_slot(self):
        form = AppointmentForm(data={
            'date': '2024-03-01',
            'time': '09:15',
            'treatment_type': self.cleaning.pk,
        })
        self.assertFalse(form.is_valid())
        self.assertIn('time', form.errors)

    def test_status_defaults_to_scheduled(self):
        form = AppointmentForm(data={
            'date': '2024-03-01',
            'time': '09:30',
            'treatment_type': self.cleaning.pk,
        })
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.payload()['status'], 'scheduled')


class AppointmentViewTest(AppointmentLifecycleTestMixin, TestCase):
    """Test the appointment JSON endpoints"""

    def setUp(self):
        super().setUp()
        self.user = User.objects.create_user(username='frontdesk', password='secret')
        self.client = Client()
        self.client.force_login(self.user)
        self.list_url = reverse('appointments:appointment_list')

    def detail_url(self, pk):
        return reverse('appointments:appointment_detail', args=[pk])

    def post_json(self, url, data):
        return self.client.post(url, data=json.dumps(data), content_type='application/json')

    def patch_json(self, url, data):
        return self.client.patch(url, data=json.dumps(data), content_type='application/json')

    def test_login_required(self):
        response = Client().get(self.list_url)
        self.assertEqual(response.status_code, 302)

    def test_create_completed(self):
        response = self.post_json(self.list_url, {
            'date': '2024-03-01',
            'time': '10:00',
            'treatment_type': self.cleaning.pk,
            'patient': self.patient.pk,
            'status': 'completed',
            'notes': 'Done',
        })

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['status'], 'completed')
        self.assertEqual(body['patient']['id'], self.patient.pk)
        self.assertEqual(ClinicalRecordEntry.objects.count(), 1)

    def test_create_completed_without_patient_is_400(self):
        response = self.post_json(self.list_url, {
            'date': '2024-03-01',
            'time': '10:00',
            'treatment_type': self.cleaning.pk,
            'status': 'completed',
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'PATIENT_REQUIRED_FOR_COMPLETION')
        self.assertFalse(Appointment.objects.exists())

    def test_create_payroll_error_codes(self):
        response = self.post_json(self.list_url, {
            'date': '2024-03-01',
            'time': '10:00',
            'treatment_type': self.cleaning.pk,
            'patient': self.payroll_patient.pk,
            'status': 'completed',
            'payroll_deduction_months': 6,
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'PAYROLL_DEDUCTION_AMOUNT_REQUIRED')

    def test_create_invalid_payload(self):
        response = self.post_json(self.list_url, {'date': 'not-a-date', 'time': '10:00'})

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body['error'], 'VALIDATION_ERROR')
        self.assertIn('date', body['fields'])
        self.assertIn('treatment_type', body['fields'])

    def test_invalid_json_body(self):
        response = self.client.post(self.list_url, data='[1, 2]', content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_list_filters_by_date(self):
        self.manager.create(self.appointment_data(date=date(2024, 3, 1)))
        self.manager.create(self.appointment_data(date=date(2024, 5, 1)))

        response = self.client.get(self.list_url, {'start_date': '2024-03-01', 'end_date': '2024-03-31'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['appointments']), 1)

    def test_list_invalid_date(self):
        response = self.client.get(self.list_url, {'start_date': '03/01/2024', 'end_date': '2024-03-31'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'INVALID_DATE')

    def test_patch_locked_status_is_400(self):
        appointment = self.manager.create(self.appointment_data(status='completed'))

        response = self.patch_json(self.detail_url(appointment.pk), {'status': 'cancelled'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'CANNOT_CHANGE_COMPLETED_STATUS')
        self.assertEqual(Appointment.objects.get(pk=appointment.pk).status, 'completed')

    def test_patch_only_touches_submitted_fields(self):
        appointment = self.manager.create(self.appointment_data())

        response = self.patch_json(self.detail_url(appointment.pk), {'status': 'completed'})

        self.assertEqual(response.status_code, 200)
        appointment.refresh_from_db()
        self.assertEqual(appointment.status, 'completed')
        self.assertEqual(appointment.notes, 'Routine cleaning')
        self.assertEqual(appointment.patient, self.patient)

    def test_get_and_delete(self):
        appointment = self.manager.create(self.appointment_data())

        response = self.client.get(self.detail_url(appointment.pk))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['time'], '09:00')

        response = self.client.delete(self.detail_url(appointment.pk))
        self.assertEqual(response.status_code, 200)

        response = self.client.delete(self.detail_url(appointment.pk))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'APPOINTMENT_NOT_FOUND')

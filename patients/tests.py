# patients/tests.py
"""
Tests for patient registration and its clinical record
"""
from django.core.exceptions import ValidationError
from django.test import TestCase

from clinical.models import ClinicalRecord
from core.errors import ClinicError, ErrorKind
from .models import Patient
from .registry import PatientRegistry


class PatientRegistryTest(TestCase):
    """Test PatientRegistry"""

    def setUp(self):
        self.registry = PatientRegistry()
        self.data = {
            'first_name': 'Juan',
            'last_name': 'Dela Cruz',
            'email': 'juan@example.com',
        }

    def test_create_creates_clinical_record(self):
        patient = self.registry.create(self.data)

        self.assertEqual(patient.full_name, 'Juan Dela Cruz')
        self.assertEqual(ClinicalRecord.objects.filter(patient=patient).count(), 1)

    def test_duplicate_email_conflicts(self):
        self.registry.create(self.data)

        with self.assertRaises(ClinicError) as ctx:
            self.registry.create({**self.data, 'email': 'JUAN@example.com'})

        self.assertEqual(ctx.exception.kind, ErrorKind.CONFLICT)
        self.assertEqual(ctx.exception.code, 'EMAIL_ALREADY_EXISTS')
        self.assertEqual(Patient.objects.count(), 1)

    def test_payroll_patient_requires_company(self):
        with self.assertRaises(ValidationError):
            self.registry.create({**self.data, 'has_payroll_deduction': True})

        self.assertFalse(Patient.objects.exists())
        self.assertFalse(ClinicalRecord.objects.exists())

    def test_update(self):
        patient = self.registry.create(self.data)

        updated = self.registry.update(patient.pk, {
            'has_payroll_deduction': True,
            'company_name': 'Acme Corp',
        })

        self.assertTrue(updated.has_payroll_deduction)
        self.assertEqual(Patient.objects.get(pk=patient.pk).company_name, 'Acme Corp')

    def test_update_keeps_own_email(self):
        patient = self.registry.create(self.data)
        self.registry.update(patient.pk, {'email': 'juan@example.com', 'contact_number': '0917'})
        self.assertEqual(Patient.objects.get(pk=patient.pk).contact_number, '0917')

    def test_get_missing_patient(self):
        with self.assertRaises(ClinicError) as ctx:
            self.registry.get(999)
        self.assertEqual(ctx.exception.code, 'PATIENT_NOT_FOUND')

    def test_remove_cascades_to_record(self):
        patient = self.registry.create(self.data)

        self.registry.remove(patient.pk)

        self.assertFalse(Patient.objects.exists())
        self.assertFalse(ClinicalRecord.objects.exists())

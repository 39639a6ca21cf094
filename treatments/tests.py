# treatments/tests.py
"""
Tests for treatment types, the price list and the price catalog
"""
from datetime import date, time
from decimal import Decimal
from io import StringIO

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase

from appointments.models import Appointment
from clinical.models import ClinicalRecord, ClinicalRecordEntry
from core.errors import ClinicError, ErrorKind
from patients.models import Patient
from .catalog import PriceCatalog
from .models import TreatmentType, PriceListItem
from .registry import TreatmentTypeRegistry, PriceListRegistry


class TreatmentTypeRegistryTest(TestCase):
    """Test TreatmentTypeRegistry"""

    def setUp(self):
        self.registry = TreatmentTypeRegistry()
        self.cleaning = self.registry.create('Cleaning')

    def test_create_collapses_whitespace(self):
        treatment_type = self.registry.create('  Root   Canal ')
        self.assertEqual(treatment_type.label, 'Root Canal')

    def test_duplicate_label_case_insensitive(self):
        with self.assertRaises(ClinicError) as ctx:
            self.registry.create('CLEANING')

        self.assertEqual(ctx.exception.kind, ErrorKind.CONFLICT)
        self.assertEqual(ctx.exception.code, 'TREATMENT_TYPE_ALREADY_EXISTS')

    def test_model_clean_rejects_duplicate(self):
        with self.assertRaises(ValidationError):
            TreatmentType(label='cleaning').full_clean()

    def test_update_label(self):
        self.registry.update(self.cleaning.pk, 'Deep Cleaning')
        self.assertEqual(TreatmentType.objects.get(pk=self.cleaning.pk).label, 'Deep Cleaning')

    def test_update_same_label_other_case(self):
        self.registry.update(self.cleaning.pk, 'cleaning')
        self.assertEqual(TreatmentType.objects.get(pk=self.cleaning.pk).label, 'cleaning')

    def test_remove_unreferenced(self):
        self.registry.remove(self.cleaning.pk)
        self.assertFalse(TreatmentType.objects.exists())

    def test_remove_used_by_appointment(self):
        Appointment.objects.create(date=date(2024, 3, 1), time=time(9, 0), treatment_type=self.cleaning)

        with self.assertRaises(ClinicError) as ctx:
            self.registry.remove(self.cleaning.pk)

        self.assertEqual(ctx.exception.kind, ErrorKind.REFERENTIAL_CONFLICT)
        self.assertEqual(ctx.exception.code, 'TREATMENT_TYPE_IN_USE_APPOINTMENTS')
        self.assertTrue(TreatmentType.objects.filter(pk=self.cleaning.pk).exists())

    def test_remove_used_by_clinical_entry(self):
        patient = Patient.objects.create(first_name='Ana', last_name='Reyes', email='ana@example.com')
        record = ClinicalRecord.objects.create(patient=patient)
        ClinicalRecordEntry.objects.create(record=record, treatment_type=self.cleaning, date=date(2024, 3, 1))

        with self.assertRaises(ClinicError) as ctx:
            self.registry.remove(self.cleaning.pk)

        self.assertEqual(ctx.exception.kind, ErrorKind.REFERENTIAL_CONFLICT)
        self.assertEqual(ctx.exception.code, 'TREATMENT_TYPE_IN_USE_MEDICAL_RECORDS')
        self.assertTrue(self.cleaning.is_in_use())

    def test_get_missing(self):
        with self.assertRaises(ClinicError) as ctx:
            self.registry.get(999)
        self.assertEqual(ctx.exception.code, 'TREATMENT_TYPE_NOT_FOUND')


class PriceListRegistryTest(TestCase):
    """Test PriceListRegistry"""

    def setUp(self):
        self.registry = PriceListRegistry()
        self.filling = TreatmentType.objects.create(label='Filling')

    def test_create_price(self):
        item = self.registry.create(self.filling.pk, Decimal('50.00'))
        self.assertEqual(item.price, Decimal('50.00'))
        self.assertEqual(item.price_display, '₱50.00')

    def test_one_price_per_treatment_type(self):
        self.registry.create(self.filling.pk, Decimal('50.00'))

        with self.assertRaises(ClinicError) as ctx:
            self.registry.create(self.filling.pk, Decimal('60.00'))

        self.assertEqual(ctx.exception.code, 'PRICE_ALREADY_EXISTS')
        self.assertEqual(PriceListItem.objects.count(), 1)

    def test_unknown_treatment_type(self):
        with self.assertRaises(ClinicError) as ctx:
            self.registry.create(999, Decimal('50.00'))
        self.assertEqual(ctx.exception.code, 'TREATMENT_TYPE_NOT_FOUND')

    def test_price_must_be_positive(self):
        with self.assertRaises(ValidationError):
            self.registry.create(self.filling.pk, Decimal('0'))
        self.assertFalse(PriceListItem.objects.exists())

    def test_update_and_remove(self):
        item = self.registry.create(self.filling.pk, Decimal('50.00'))

        self.registry.update(item.pk, Decimal('55.50'))
        self.assertEqual(PriceListItem.objects.get(pk=item.pk).price, Decimal('55.50'))

        self.registry.remove(item.pk)
        self.assertFalse(PriceListItem.objects.exists())

    def test_deleting_treatment_type_removes_price(self):
        self.registry.create(self.filling.pk, Decimal('50.00'))
        self.filling.delete()
        self.assertFalse(PriceListItem.objects.exists())


class PriceCatalogTest(TestCase):
    """Test PriceCatalog"""

    def setUp(self):
        self.cleaning = TreatmentType.objects.create(label='Cleaning')
        self.whitening = TreatmentType.objects.create(label='Whitening')
        PriceListItem.objects.create(treatment_type=self.cleaning, price=Decimal('20.00'))
        self.catalog = PriceCatalog()

    def test_find_all(self):
        self.assertEqual(self.catalog.find_all(), {self.cleaning.pk: Decimal('20.00')})

    def test_price_for(self):
        self.assertEqual(self.catalog.price_for(self.cleaning.pk), Decimal('20.00'))
        self.assertIsNone(self.catalog.price_for(self.whitening.pk))


class SeedTreatmentTypesCommandTest(TestCase):

    def test_seed_is_idempotent(self):
        TreatmentType.objects.create(label='cleaning')

        call_command('seed_treatment_types', stdout=StringIO())
        call_command('seed_treatment_types', stdout=StringIO())

        self.assertEqual(TreatmentType.objects.count(), 5)
        self.assertTrue(TreatmentType.objects.filter(label='cleaning').exists())

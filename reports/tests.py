# reports/tests.py
"""
Tests for report generation, payloads and the report endpoints
"""
import json
from datetime import date, time
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase, Client
from django.urls import reverse

from appointments.models import Appointment
from core.errors import ClinicError, ErrorKind
from core.models import SystemSetting
from patients.models import Patient
from treatments.models import TreatmentType, PriceListItem
from .generator import ReportGenerator, period_bounds
from .models import Report
from .payloads import PayrollDeductionPayload, PeriodRevenuePayload

User = get_user_model()


class ReportTestMixin:

    def setUp(self):
        self.cleaning = TreatmentType.objects.create(label='Cleaning')
        self.filling = TreatmentType.objects.create(label='Filling')
        self.whitening = TreatmentType.objects.create(label='Whitening')
        PriceListItem.objects.create(treatment_type=self.cleaning, price=Decimal('20.00'))
        PriceListItem.objects.create(treatment_type=self.filling, price=Decimal('50.00'))

        self.patient = Patient.objects.create(first_name='Ana', last_name='Reyes', email='ana@example.com')
        self.payroll_patient = Patient.objects.create(
            first_name='Ben', last_name='Cruz', email='ben@example.com',
            has_payroll_deduction=True, company_name='Acme Corp',
        )
        self.generator = ReportGenerator(clock=lambda: date(2024, 3, 13))

    def completed(self, treatment_type, on, patient=None, at=time(9, 0), **extra):
        return Appointment.objects.create(
            date=on,
            time=at,
            treatment_type=treatment_type,
            patient=patient or self.patient,
            status=Appointment.STATUS_COMPLETED,
            **extra
        )

    def payroll(self, on, amount='600.00', months=6, patient=None):
        return self.completed(
            self.cleaning, on,
            patient=patient or self.payroll_patient,
            payroll_deduction_amount=Decimal(amount),
            payroll_deduction_months=months,
        )


class PeriodReportTest(ReportTestMixin, TestCase):
    """Test daily/weekly/monthly revenue reports"""

    def test_daily_report(self):
        day = date(2024, 3, 13)
        self.completed(self.cleaning, day, at=time(9, 0))
        self.completed(self.filling, day, at=time(9, 30))
        self.completed(self.cleaning, day, at=time(10, 0))

        report = self.generator.create('daily', day)

        self.assertEqual(report.total_amount, Decimal('90.00'))
        self.assertEqual(report.start_date, day)
        self.assertEqual(report.end_date, day)
        self.assertEqual(report.data, [
            {'treatmentType': 'Cleaning', 'count': 2, 'price': '20.00', 'total': '40.00', 'priceExists': True},
            {'treatmentType': 'Filling', 'count': 1, 'price': '50.00', 'total': '50.00', 'priceExists': True},
        ])

    def test_only_completed_in_period_are_counted(self):
        day = date(2024, 3, 13)
        self.completed(self.cleaning, day)
        self.completed(self.cleaning, date(2024, 3, 12))
        Appointment.objects.create(date=day, time=time(11, 0), treatment_type=self.filling)
        Appointment.objects.create(
            date=day, time=time(11, 30), treatment_type=self.filling,
            patient=self.patient, status=Appointment.STATUS_CANCELLED,
        )

        report = self.generator.create('daily', day)

        self.assertEqual(report.total_amount, Decimal('20.00'))
        self.assertEqual(len(report.data), 1)

    def test_unpriced_treatment_type_still_listed(self):
        day = date(2024, 3, 13)
        self.completed(self.whitening, day)
        self.completed(self.cleaning, day, at=time(10, 0))

        report = self.generator.create('daily', day)
        summaries = report.payload.summaries

        self.assertEqual(summaries[0].treatment_type, 'Whitening')
        self.assertFalse(summaries[0].price_exists)
        self.assertIsNone(summaries[0].price)
        self.assertEqual(summaries[0].total, Decimal('0.00'))
        self.assertEqual(report.total_amount, Decimal('20.00'))

    def test_weekly_report_covers_monday_to_sunday(self):
        self.completed(self.cleaning, date(2024, 3, 10))  # previous Sunday
        self.completed(self.cleaning, date(2024, 3, 11))  # Monday
        self.completed(self.filling, date(2024, 3, 17))  # Sunday
        self.completed(self.filling, date(2024, 3, 18))  # next Monday

        report = self.generator.create('weekly', date(2024, 3, 13))

        self.assertEqual((report.start_date, report.end_date), (date(2024, 3, 11), date(2024, 3, 17)))
        self.assertEqual(report.total_amount, Decimal('70.00'))

    def test_monthly_report(self):
        self.completed(self.cleaning, date(2024, 2, 1))
        self.completed(self.cleaning, date(2024, 2, 29))
        self.completed(self.cleaning, date(2024, 3, 1))

        report = self.generator.create('monthly', date(2024, 2, 10))

        self.assertEqual((report.start_date, report.end_date), (date(2024, 2, 1), date(2024, 2, 29)))
        self.assertEqual(report.payload.summaries[0].count, 2)
        self.assertEqual(report.total_amount, Decimal('40.00'))

    def test_empty_period(self):
        report = self.generator.create('daily', date(2024, 3, 13))
        self.assertEqual(report.total_amount, Decimal('0.00'))
        self.assertEqual(report.data, [])

    def test_reference_date_defaults_to_clock(self):
        report = self.generator.create('daily')
        self.assertEqual(report.date, date(2024, 3, 13))

    def test_reference_date_string(self):
        report = self.generator.create('daily', '2024-03-01')
        self.assertEqual(report.date, date(2024, 3, 1))

    def test_period_bounds(self):
        self.assertEqual(period_bounds('daily', date(2024, 3, 13)), (date(2024, 3, 13), date(2024, 3, 13)))
        with self.assertRaises(ClinicError):
            period_bounds('yearly', date(2024, 3, 13))


class PayrollReportTest(ReportTestMixin, TestCase):
    """Test payroll deduction amortization reports"""

    def test_active_deduction_included(self):
        self.payroll(date(2024, 1, 15))

        report = self.generator.create('payrollDeduction', date(2024, 6, 15))
        entry = report.payload.entries[0]

        self.assertEqual(entry.monthly_rate, Decimal('100.00'))
        self.assertEqual(entry.months_passed, 5)
        self.assertEqual(entry.paid_amount, Decimal('500.00'))
        self.assertEqual(entry.remaining_months, 1)
        self.assertEqual(entry.total_months, 6)
        self.assertEqual(entry.total_amount, Decimal('600.00'))
        self.assertEqual(entry.company_name, 'Acme Corp')
        self.assertEqual(entry.patient_name, 'Ben Cruz')
        self.assertEqual(entry.treatment_type, 'Cleaning')
        self.assertEqual(report.total_amount, Decimal('100.00'))
        self.assertEqual((report.start_date, report.end_date), (date(2024, 6, 15), date(2024, 6, 15)))

    def test_fully_amortized_deduction_excluded(self):
        self.payroll(date(2024, 1, 15))

        report = self.generator.create('payrollDeduction', date(2024, 7, 15))

        self.assertEqual(report.data, [])
        self.assertEqual(report.total_amount, Decimal('0.00'))

    def test_future_appointment_excluded(self):
        self.payroll(date(2024, 7, 1))

        report = self.generator.create('payrollDeduction', date(2024, 6, 15))

        self.assertEqual(report.data, [])

    def test_same_month_deduction_has_nothing_paid(self):
        self.payroll(date(2024, 6, 1), amount='300.00', months=3)

        entry = self.generator.build_payroll_payload(date(2024, 6, 15)).entries[0]

        self.assertEqual(entry.months_passed, 0)
        self.assertEqual(entry.paid_amount, Decimal('0.00'))
        self.assertEqual(entry.remaining_months, 3)

    def test_company_filter(self):
        other = Patient.objects.create(
            first_name='Cara', last_name='Lim', email='cara@example.com',
            has_payroll_deduction=True, company_name='Globex',
        )
        self.payroll(date(2024, 5, 1))
        self.payroll(date(2024, 5, 1), amount='1200.00', months=12, patient=other)

        report = self.generator.create('payrollDeduction', date(2024, 6, 15), company_name='Globex')

        self.assertEqual(report.company_name, 'Globex')
        self.assertEqual([e['companyName'] for e in report.data], ['Globex'])
        self.assertEqual(report.total_amount, Decimal('100.00'))

        unfiltered = self.generator.create('payrollDeduction', date(2024, 6, 15))
        self.assertEqual(len(unfiltered.data), 2)
        self.assertEqual(unfiltered.total_amount, Decimal('200.00'))

    def test_appointments_without_deduction_ignored(self):
        self.completed(self.cleaning, date(2024, 5, 1))
        self.payroll(date(2024, 5, 1), amount='0.00')

        report = self.generator.create('payrollDeduction', date(2024, 6, 15))

        self.assertEqual(report.data, [])

    def test_uneven_monthly_rate_rounds_to_cents(self):
        self.payroll(date(2024, 5, 1), amount='100.00', months=3)

        entry = self.generator.build_payroll_payload(date(2024, 6, 15)).entries[0]

        self.assertEqual(entry.monthly_rate, Decimal('33.33'))
        self.assertEqual(entry.paid_amount, Decimal('33.33'))

    def test_total_rounds_once_over_exact_rates(self):
        for at in (time(9, 0), time(9, 30), time(10, 0)):
            self.completed(
                self.cleaning, date(2024, 5, 1), patient=self.payroll_patient, at=at,
                payroll_deduction_amount=Decimal('100.00'), payroll_deduction_months=3,
            )

        report = self.generator.create('payrollDeduction', date(2024, 6, 15))

        self.assertEqual([e['monthlyRate'] for e in report.data], ['33.33'] * 3)
        self.assertEqual(report.total_amount, Decimal('100.00'))

    def test_month_end_deduction_fully_amortized(self):
        self.payroll(date(2024, 1, 31), amount='100.00', months=1)

        report = self.generator.create('payrollDeduction', date(2024, 2, 29))

        self.assertEqual(report.data, [])
        self.assertEqual(report.total_amount, Decimal('0.00'))

    def test_month_end_deduction_active_before_last_day(self):
        self.payroll(date(2024, 1, 31), amount='100.00', months=1)

        entry = self.generator.build_payroll_payload(date(2024, 2, 28)).entries[0]

        self.assertEqual(entry.months_passed, 0)
        self.assertEqual(entry.remaining_months, 1)


class ReportGeneratorTest(ReportTestMixin, TestCase):
    """Test report type checks, listing and removal"""

    def test_invalid_report_type(self):
        with self.assertRaises(ClinicError) as ctx:
            self.generator.create('yearly', date(2024, 3, 13))

        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_REPORT_TYPE)
        self.assertFalse(Report.objects.exists())

    def test_report_is_immutable(self):
        report = self.generator.create('daily', date(2024, 3, 13))
        report.total_amount = Decimal('999.00')

        with self.assertRaises(ValidationError):
            report.save()

        self.assertEqual(Report.objects.get(pk=report.pk).total_amount, Decimal('0.00'))

    def test_list_filters_by_type(self):
        daily = self.generator.create('daily', date(2024, 3, 13))
        self.generator.create('monthly', date(2024, 3, 13))

        self.assertEqual(len(self.generator.list()), 2)
        self.assertEqual([r.pk for r in self.generator.list('daily')], [daily.pk])

        with self.assertRaises(ClinicError):
            self.generator.list('yearly')

    def test_remove(self):
        report = self.generator.create('daily', date(2024, 3, 13))

        self.generator.remove(report.pk)

        self.assertFalse(Report.objects.exists())
        with self.assertRaises(ClinicError) as ctx:
            self.generator.remove(report.pk)
        self.assertEqual(ctx.exception.code, 'REPORT_NOT_FOUND')

    def test_payload_variants(self):
        daily = self.generator.create('daily', date(2024, 3, 13))
        payroll = self.generator.create('payrollDeduction', date(2024, 3, 13))

        self.assertIsInstance(daily.payload, PeriodRevenuePayload)
        self.assertIsInstance(payroll.payload, PayrollDeductionPayload)
        self.assertTrue(payroll.is_payroll)


class ReportViewTest(ReportTestMixin, TestCase):
    """Test the report JSON endpoints and PDF export"""

    def setUp(self):
        super().setUp()
        self.user = User.objects.create_user(username='owner', password='secret')
        self.client = Client()
        self.client.force_login(self.user)
        self.list_url = reverse('reports:report_list')

    def post_json(self, data):
        return self.client.post(self.list_url, data=json.dumps(data), content_type='application/json')

    def test_create_daily(self):
        self.completed(self.cleaning, date(2024, 3, 13))

        response = self.post_json({'type': 'daily', 'date': '2024-03-13'})

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['type'], 'daily')
        self.assertEqual(body['total_amount'], '20.00')
        self.assertEqual(body['data'][0]['treatmentType'], 'Cleaning')

    def test_create_invalid_type(self):
        response = self.post_json({'type': 'yearly'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'INVALID_REPORT_TYPE')

    def test_create_missing_type(self):
        response = self.post_json({'date': '2024-03-13'})

        self.assertEqual(response.status_code, 400)
        self.assertIn('type', response.json()['fields'])

    def test_list_and_filter(self):
        self.post_json({'type': 'daily', 'date': '2024-03-13'})
        self.post_json({'type': 'payrollDeduction', 'date': '2024-03-13', 'company_name': 'Acme Corp'})

        response = self.client.get(self.list_url, {'type': 'payrollDeduction'})

        self.assertEqual(response.status_code, 200)
        reports = response.json()['reports']
        self.assertEqual(len(reports), 1)
        self.assertEqual(reports[0]['company_name'], 'Acme Corp')

    def test_list_invalid_type(self):
        response = self.client.get(self.list_url, {'type': 'yearly'})
        self.assertEqual(response.status_code, 400)

    def test_delete(self):
        report = self.generator.create('daily', date(2024, 3, 13))
        url = reverse('reports:report_detail', args=[report.pk])

        self.assertEqual(self.client.delete(url).status_code, 200)
        self.assertEqual(self.client.delete(url).status_code, 404)

    def test_pdf_export(self):
        SystemSetting.set_setting('clinic_name', 'Smile Clinic')
        self.completed(self.whitening, date(2024, 3, 13))
        report = self.generator.create('daily', date(2024, 3, 13))

        response = self.client.get(reverse('reports:report_pdf', args=[report.pk]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_pdf_missing_report(self):
        response = self.client.get(reverse('reports:report_pdf', args=[999]))
        self.assertEqual(response.status_code, 404)


class InitializeReportsCommandTest(TestCase):

    def test_seeds_clinic_settings(self):
        call_command('initialize_reports', stdout=StringIO())
        call_command('initialize_reports', stdout=StringIO())

        self.assertEqual(SystemSetting.objects.filter(key__startswith='clinic_').count(), 4)
        self.assertIsNotNone(SystemSetting.get_setting('clinic_name'))

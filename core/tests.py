# core/tests.py
"""
Tests for shared errors, date helpers, settings and the health endpoint
"""
from datetime import date, datetime

from django.test import TestCase, Client
from django.urls import reverse

from .errors import ClinicError, ErrorKind, error_response
from .models import SystemSetting, AuditLog
from .utils import parse_date, week_bounds, month_bounds, whole_months_between


class ClinicErrorTest(TestCase):
    """Test error kinds and their HTTP mapping"""

    def test_status_codes(self):
        self.assertEqual(ClinicError(ErrorKind.NOT_FOUND).status_code, 404)
        self.assertEqual(ClinicError(ErrorKind.PATIENT_NOT_FOUND).status_code, 404)
        self.assertEqual(ClinicError(ErrorKind.CONFLICT).status_code, 409)
        self.assertEqual(ClinicError(ErrorKind.REFERENTIAL_CONFLICT).status_code, 409)
        self.assertEqual(ClinicError(ErrorKind.LOCKED_STATUS).status_code, 400)
        self.assertEqual(ClinicError(ErrorKind.INVALID_REPORT_TYPE).status_code, 400)

    def test_code_defaults_to_kind_name(self):
        error = ClinicError(ErrorKind.PATIENT_REQUIRED_FOR_COMPLETION)
        self.assertEqual(error.code, 'PATIENT_REQUIRED_FOR_COMPLETION')
        self.assertEqual(error.message, 'Patient is required to mark appointment as completed')

    def test_explicit_code_and_message(self):
        error = ClinicError(ErrorKind.NOT_FOUND, code='REPORT_NOT_FOUND', message='Report not found')
        self.assertEqual(error.as_dict(), {
            'error': 'REPORT_NOT_FOUND',
            'kind': 'not_found',
            'message': 'Report not found',
        })
        self.assertEqual(str(error), 'Report not found')

    def test_error_response(self):
        response = error_response(ClinicError(ErrorKind.CONFLICT, code='EMAIL_ALREADY_EXISTS'))
        self.assertEqual(response.status_code, 409)
        self.assertIn(b'EMAIL_ALREADY_EXISTS', response.content)


class DateUtilsTest(TestCase):
    """Test period and month arithmetic"""

    def test_parse_date(self):
        self.assertIsNone(parse_date(None))
        self.assertIsNone(parse_date(''))
        self.assertEqual(parse_date('2024-03-15'), date(2024, 3, 15))
        self.assertEqual(parse_date(date(2024, 3, 15)), date(2024, 3, 15))
        self.assertEqual(parse_date(datetime(2024, 3, 15, 9, 30)), date(2024, 3, 15))
        with self.assertRaises(ValueError):
            parse_date('15/03/2024')

    def test_week_bounds_monday_to_sunday(self):
        # 2024-03-13 is a Wednesday
        self.assertEqual(week_bounds(date(2024, 3, 13)), (date(2024, 3, 11), date(2024, 3, 17)))
        self.assertEqual(week_bounds(date(2024, 3, 11)), (date(2024, 3, 11), date(2024, 3, 17)))
        self.assertEqual(week_bounds(date(2024, 3, 17)), (date(2024, 3, 11), date(2024, 3, 17)))

    def test_week_bounds_across_month_and_year(self):
        self.assertEqual(week_bounds(date(2024, 3, 1)), (date(2024, 2, 26), date(2024, 3, 3)))
        self.assertEqual(week_bounds(date(2025, 1, 1)), (date(2024, 12, 30), date(2025, 1, 5)))

    def test_month_bounds(self):
        self.assertEqual(month_bounds(date(2024, 2, 10)), (date(2024, 2, 1), date(2024, 2, 29)))
        self.assertEqual(month_bounds(date(2023, 12, 31)), (date(2023, 12, 1), date(2023, 12, 31)))

    def test_whole_months_between(self):
        self.assertEqual(whole_months_between(date(2024, 1, 15), date(2024, 1, 15)), 0)
        self.assertEqual(whole_months_between(date(2024, 1, 15), date(2024, 2, 14)), 0)
        self.assertEqual(whole_months_between(date(2024, 1, 15), date(2024, 2, 15)), 1)
        self.assertEqual(whole_months_between(date(2024, 1, 15), date(2024, 6, 20)), 5)
        self.assertEqual(whole_months_between(date(2023, 11, 1), date(2024, 2, 1)), 3)

    def test_whole_months_between_month_end(self):
        self.assertEqual(whole_months_between(date(2024, 1, 31), date(2024, 2, 29)), 1)
        self.assertEqual(whole_months_between(date(2024, 1, 31), date(2024, 2, 28)), 0)
        self.assertEqual(whole_months_between(date(2023, 1, 31), date(2023, 2, 28)), 1)
        self.assertEqual(whole_months_between(date(2024, 1, 31), date(2024, 3, 30)), 1)

    def test_whole_months_between_end_before_start(self):
        self.assertEqual(whole_months_between(date(2024, 6, 1), date(2024, 1, 1)), 0)


class SystemSettingTest(TestCase):
    """Test key/value settings"""

    def test_get_and_set(self):
        self.assertEqual(SystemSetting.get_setting('clinic_phone', 'n/a'), 'n/a')
        SystemSetting.set_setting('clinic_phone', '+63 900 000 0000')
        self.assertEqual(SystemSetting.get_setting('clinic_phone'), '+63 900 000 0000')

    def test_inactive_setting_ignored(self):
        setting = SystemSetting.set_setting('clinic_email', 'a@example.com')
        setting.is_active = False
        setting.save()
        self.assertIsNone(SystemSetting.get_setting('clinic_email'))

    def test_clinic_header(self):
        SystemSetting.set_setting('clinic_name', 'Smile Clinic')
        header = SystemSetting.clinic_header()
        self.assertEqual(header['name'], 'Smile Clinic')
        self.assertEqual(header['address'], '')


class AuditLogTest(TestCase):

    def test_log_action(self):
        setting = SystemSetting.set_setting('clinic_name', 'Smile Clinic')
        entry = AuditLog.log_action('update', setting, description='Renamed clinic')
        self.assertEqual(entry.model_name, 'systemsetting')
        self.assertEqual(entry.object_id, setting.pk)
        self.assertIsNone(entry.user)


class HealthCheckTest(TestCase):

    def test_health_check(self):
        response = Client().get(reverse('core:health_check'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'ok')

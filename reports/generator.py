# reports/generator.py
"""
Builds and persists report snapshots from historical appointments.

Two algorithms:

- Period revenue (daily / weekly / monthly): completed appointments in the
  period, grouped by treatment type label in encounter order, priced from
  the price catalog. Unpriced treatment types still appear, contributing 0.
- Payroll deduction amortization: completed appointments with a payroll
  deduction dated on or before the reference date, amortized in equal
  monthly instalments. Only deductions with months still remaining are
  listed; the report total is the sum of their monthly rates, i.e. the
  amount due this period.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import DEFAULT_DB_ALIAS, transaction

from appointments.models import Appointment
from core.errors import ClinicError, ErrorKind
from core.models import AuditLog
from core.utils import local_today, month_bounds, parse_date, week_bounds, whole_months_between
from treatments.catalog import PriceCatalog
from .models import Report
from .payloads import (
    PayrollDeductionPayload, PayrollEntry, PeriodRevenuePayload, TreatmentSummary,
)

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')


def to_cents(value):
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def period_bounds(report_type, reference_date):
    """Inclusive [start, end] dates covered by a period report"""
    if report_type == Report.TYPE_DAILY:
        return reference_date, reference_date
    if report_type == Report.TYPE_WEEKLY:
        return week_bounds(reference_date)
    if report_type == Report.TYPE_MONTHLY:
        return month_bounds(reference_date)
    raise ClinicError(ErrorKind.INVALID_REPORT_TYPE)


class ReportGenerator:

    def __init__(self, catalog=None, clock=local_today, using=DEFAULT_DB_ALIAS):
        self.using = using
        self.catalog = catalog or PriceCatalog(using=using)
        self.clock = clock

    def _reports(self):
        return Report.objects.using(self.using)

    def _completed(self):
        return Appointment.objects.using(self.using).completed()

    @staticmethod
    def check_type(report_type):
        if report_type not in dict(Report.TYPE_CHOICES):
            raise ClinicError(
                ErrorKind.INVALID_REPORT_TYPE,
                message=f'Invalid report type "{report_type}"',
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self, report_type=None):
        queryset = self._reports()
        if report_type:
            self.check_type(report_type)
            queryset = queryset.filter(report_type=report_type)
        return list(queryset.order_by('-created_at', '-pk'))

    def get(self, report_id):
        try:
            return self._reports().get(pk=report_id)
        except Report.DoesNotExist:
            raise ClinicError(ErrorKind.NOT_FOUND, code='REPORT_NOT_FOUND', message='Report not found')

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(self, report_type, reference_date=None, company_name=None, user=None):
        self.check_type(report_type)
        reference_date = parse_date(reference_date) or self.clock()

        with transaction.atomic(using=self.using):
            if report_type in Report.PERIOD_TYPES:
                report = self._period_report(report_type, reference_date)
            else:
                report = self._payroll_report(reference_date, company_name or None)

            AuditLog.log_action(
                action='create',
                model_instance=report,
                description=f"Generated {report.get_report_type_display().lower()} report",
                user=user,
                using=self.using,
            )

        logger.info(
            f"Generated {report_type} report {report.pk} for {reference_date}: total {report.total_amount}"
        )
        return report

    def remove(self, report_id):
        report = self.get(report_id)
        report.delete()
        logger.info(f"Deleted report {report_id}")

    # ------------------------------------------------------------------
    # Period revenue
    # ------------------------------------------------------------------

    def build_period_payload(self, start_date, end_date):
        appointments = (
            self._completed()
            .in_range(start_date, end_date)
            .select_related('treatment_type')
            .order_by('date', 'time', 'pk')
        )
        prices = self.catalog.find_all()

        groups = {}
        for appointment in appointments:
            label = appointment.treatment_type.label
            summary = groups.get(label)
            if summary is None:
                price = prices.get(appointment.treatment_type_id)
                summary = groups[label] = TreatmentSummary(
                    treatment_type=label,
                    price=to_cents(price) if price is not None else None,
                    price_exists=price is not None,
                )
            summary.count += 1

        for summary in groups.values():
            if summary.price_exists:
                summary.total = to_cents(summary.price * summary.count)
            else:
                summary.total = ZERO

        return PeriodRevenuePayload(summaries=list(groups.values()))

    def _period_report(self, report_type, reference_date):
        start_date, end_date = period_bounds(report_type, reference_date)
        payload = self.build_period_payload(start_date, end_date)
        total_amount = sum((summary.total for summary in payload.summaries), ZERO)

        report = Report(
            report_type=report_type,
            date=reference_date,
            start_date=start_date,
            end_date=end_date,
            total_amount=total_amount,
            data=payload.to_json(),
        )
        report.save(using=self.using)
        return report

    # ------------------------------------------------------------------
    # Payroll amortization
    # ------------------------------------------------------------------

    def build_payroll_payload(self, reference_date, company_name=None):
        candidates = (
            self._completed()
            .filter(
                payroll_deduction_amount__gt=0,
                patient__isnull=False,
                date__lte=reference_date,
            )
            .select_related('patient', 'treatment_type')
            .order_by('date', 'time', 'pk')
        )

        entries = []
        for appointment in candidates:
            months = appointment.payroll_deduction_months
            if not months or months < 1:
                continue

            patient = appointment.patient
            if company_name and patient.company_name != company_name:
                continue

            total_amount = appointment.payroll_deduction_amount
            monthly_rate = total_amount / months
            months_passed = whole_months_between(appointment.date, reference_date)
            remaining_months = months - months_passed

            # Fully amortized deductions are no longer active
            if remaining_months <= 0:
                continue

            entries.append(PayrollEntry(
                patient_id=patient.pk,
                patient_name=patient.full_name,
                company_name=patient.company_name,
                examination_date=appointment.date,
                treatment_type=appointment.treatment_type.label,
                total_amount=to_cents(total_amount),
                monthly_rate=to_cents(monthly_rate),
                months_passed=months_passed,
                paid_amount=to_cents(min(monthly_rate * months_passed, total_amount)),
                remaining_months=remaining_months,
                total_months=months,
            ))

        return PayrollDeductionPayload(entries=entries)

    def _payroll_report(self, reference_date, company_name):
        payload = self.build_payroll_payload(reference_date, company_name)
        # Rounded once over the exact rates, not over the rounded listed ones
        total_amount = to_cents(sum(
            (entry.total_amount / entry.total_months for entry in payload.entries), ZERO
        ))

        report = Report(
            report_type=Report.TYPE_PAYROLL_DEDUCTION,
            date=reference_date,
            start_date=reference_date,
            end_date=reference_date,
            total_amount=total_amount,
            data=payload.to_json(),
            company_name=company_name,
        )
        report.save(using=self.using)
        return report

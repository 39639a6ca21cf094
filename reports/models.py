# reports/models.py
from django.core.exceptions import ValidationError
from django.db import models

from .payloads import load_payload


class Report(models.Model):
    """
    Immutable financial snapshot.

    Rows are written once by reports.generator.ReportGenerator and only ever
    deleted as a whole; the JSON ``data`` column holds the payload variant
    matching ``report_type`` (see reports.payloads).
    """
    TYPE_DAILY = 'daily'
    TYPE_WEEKLY = 'weekly'
    TYPE_MONTHLY = 'monthly'
    TYPE_PAYROLL_DEDUCTION = 'payrollDeduction'

    TYPE_CHOICES = [
        (TYPE_DAILY, 'Daily'),
        (TYPE_WEEKLY, 'Weekly'),
        (TYPE_MONTHLY, 'Monthly'),
        (TYPE_PAYROLL_DEDUCTION, 'Payroll Deduction'),
    ]

    PERIOD_TYPES = [TYPE_DAILY, TYPE_WEEKLY, TYPE_MONTHLY]

    report_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    date = models.DateField(help_text="Reference date the report was generated for")
    start_date = models.DateField()
    end_date = models.DateField()
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    data = models.JSONField(default=list, blank=True)
    company_name = models.CharField(
        max_length=200,
        blank=True,
        null=True,
        help_text="Company filter (payroll deduction reports only)"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-pk']
        indexes = [
            models.Index(fields=['report_type', 'created_at'], name='report_type_created_idx'),
        ]

    def __str__(self):
        return f"{self.get_report_type_display()} report {self.start_date} - {self.end_date}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError('Reports are immutable snapshots and cannot be modified.')
        super().save(*args, **kwargs)

    @property
    def is_payroll(self):
        return self.report_type == self.TYPE_PAYROLL_DEDUCTION

    @property
    def payload(self):
        """The structured payload decoded from the JSON column"""
        return load_payload(self.report_type, self.data)

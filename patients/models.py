# patients/models.py
from django.core.exceptions import ValidationError
from django.db import models


class Patient(models.Model):
    """Patient identity plus billing profile"""
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(unique=True)
    contact_number = models.CharField(max_length=20, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    address = models.TextField(blank=True)

    # Billing profile
    has_payroll_deduction = models.BooleanField(
        default=False,
        help_text="Treatment costs are deducted from the patient's payroll in monthly instalments"
    )
    company_name = models.CharField(
        max_length=200,
        blank=True,
        null=True,
        help_text="Employer handling payroll deductions (required when payroll deduction is enabled)"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='patient_name_idx'),
            models.Index(fields=['company_name'], name='patient_company_idx'),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def clean(self):
        """Model-level validation"""
        if self.has_payroll_deduction and not (self.company_name or '').strip():
            raise ValidationError({
                'company_name': 'Company name is required for patients with payroll deduction.'
            })

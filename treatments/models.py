# treatments/models.py
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models.functions import Lower


class TreatmentType(models.Model):
    """A kind of treatment, e.g. Cleaning or Root Canal"""
    label = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['label']
        constraints = [
            models.UniqueConstraint(Lower('label'), name='treatment_type_label_ci_unique'),
        ]

    def __str__(self):
        return self.label

    def clean(self):
        """Validate label is unique (case-insensitive)"""
        if self.label:
            existing = TreatmentType.objects.filter(label__iexact=self.label)
            if self.pk:
                existing = existing.exclude(pk=self.pk)

            if existing.exists():
                raise ValidationError({
                    'label': f'A treatment type with the label "{self.label}" already exists.'
                })

    def is_in_use(self):
        """Referenced by any appointment or clinical record entry"""
        return self.appointments.exists() or self.clinical_entries.exists()


class PriceListItem(models.Model):
    """Current price of a treatment type; at most one per type"""
    treatment_type = models.OneToOneField(
        TreatmentType,
        on_delete=models.CASCADE,
        related_name='price_item'
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Price charged per completed appointment"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['treatment_type__label']
        verbose_name = 'Price List Item'
        verbose_name_plural = 'Price List'
        constraints = [
            models.CheckConstraint(condition=models.Q(price__gt=0), name='price_list_item_price_positive'),
        ]

    def __str__(self):
        return f"{self.treatment_type.label} - {self.price_display}"

    @property
    def price_display(self):
        return f"₱{self.price:,.2f}"

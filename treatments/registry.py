# treatments/registry.py
import logging

from django.db import DEFAULT_DB_ALIAS, transaction

from appointments.models import Appointment
from clinical.models import ClinicalRecordEntry
from core.errors import ClinicError, ErrorKind
from .models import TreatmentType, PriceListItem

logger = logging.getLogger(__name__)


class TreatmentTypeRegistry:
    """Treatment type CRUD with case-insensitive label uniqueness"""

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def _types(self):
        return TreatmentType.objects.using(self.using)

    def list(self):
        return list(self._types().order_by('label'))

    def get(self, treatment_type_id):
        try:
            return self._types().get(pk=treatment_type_id)
        except TreatmentType.DoesNotExist:
            raise ClinicError(ErrorKind.NOT_FOUND, code='TREATMENT_TYPE_NOT_FOUND')

    def _check_label(self, label, exclude_id=None):
        existing = self._types().filter(label__iexact=label)
        if exclude_id is not None:
            existing = existing.exclude(pk=exclude_id)
        if existing.exists():
            raise ClinicError(
                ErrorKind.CONFLICT,
                code='TREATMENT_TYPE_ALREADY_EXISTS',
                message=f'Treatment type "{label}" already exists',
            )

    def create(self, label):
        label = ' '.join(label.split())
        self._check_label(label)
        return self._types().create(label=label)

    def update(self, treatment_type_id, label):
        treatment_type = self.get(treatment_type_id)
        label = ' '.join(label.split())
        self._check_label(label, exclude_id=treatment_type.pk)
        treatment_type.label = label
        treatment_type.save(using=self.using, update_fields=['label', 'updated_at'])
        return treatment_type

    def remove(self, treatment_type_id):
        """Delete a treatment type no appointment or clinical entry refers to"""
        with transaction.atomic(using=self.using):
            treatment_type = self.get(treatment_type_id)

            if Appointment.objects.using(self.using).filter(treatment_type_id=treatment_type.pk).exists():
                raise ClinicError(
                    ErrorKind.REFERENTIAL_CONFLICT,
                    code='TREATMENT_TYPE_IN_USE_APPOINTMENTS',
                    message='Cannot delete treatment type used in appointments',
                )

            if ClinicalRecordEntry.objects.using(self.using).filter(treatment_type_id=treatment_type.pk).exists():
                raise ClinicError(
                    ErrorKind.REFERENTIAL_CONFLICT,
                    code='TREATMENT_TYPE_IN_USE_MEDICAL_RECORDS',
                    message='Cannot delete treatment type used in medical records',
                )

            treatment_type.delete()

        logger.info(f"Deleted treatment type {treatment_type_id}")


class PriceListRegistry:
    """Price list CRUD; one price per treatment type"""

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def _items(self):
        return PriceListItem.objects.using(self.using)

    def list(self):
        return list(self._items().select_related('treatment_type'))

    def get(self, item_id):
        try:
            return self._items().select_related('treatment_type').get(pk=item_id)
        except PriceListItem.DoesNotExist:
            raise ClinicError(ErrorKind.NOT_FOUND, code='PRICE_LIST_ITEM_NOT_FOUND')

    def create(self, treatment_type_id, price):
        if not TreatmentType.objects.using(self.using).filter(pk=treatment_type_id).exists():
            raise ClinicError(ErrorKind.NOT_FOUND, code='TREATMENT_TYPE_NOT_FOUND')

        if self._items().filter(treatment_type_id=treatment_type_id).exists():
            raise ClinicError(
                ErrorKind.CONFLICT,
                code='PRICE_ALREADY_EXISTS',
                message='Price for this treatment type already exists',
            )

        item = PriceListItem(treatment_type_id=treatment_type_id, price=price)
        item.full_clean(validate_unique=False)
        item.save(using=self.using)
        return item

    def update(self, item_id, price):
        item = self.get(item_id)
        item.price = price
        item.full_clean(validate_unique=False)
        item.save(using=self.using, update_fields=['price', 'updated_at'])
        return item

    def remove(self, item_id):
        item = self.get(item_id)
        item.delete()

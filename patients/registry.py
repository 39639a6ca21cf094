# patients/registry.py
import logging

from django.db import DEFAULT_DB_ALIAS, transaction

from clinical.linker import ClinicalRecordLinker
from core.errors import ClinicError, ErrorKind
from .models import Patient

logger = logging.getLogger(__name__)

PATIENT_FIELDS = (
    'first_name', 'last_name', 'email', 'contact_number', 'date_of_birth',
    'address', 'has_payroll_deduction', 'company_name',
)


class PatientRegistry:
    """
    Patient create/update/delete.

    Creating a patient also creates its clinical record in the same
    transaction; deleting one cascades to the record and its entries.
    """

    def __init__(self, linker=None, using=DEFAULT_DB_ALIAS):
        self.using = using
        self.linker = linker or ClinicalRecordLinker(using=using)

    def _patients(self):
        return Patient.objects.using(self.using)

    def get(self, patient_id):
        try:
            return self._patients().get(pk=patient_id)
        except Patient.DoesNotExist:
            raise ClinicError(ErrorKind.NOT_FOUND, code='PATIENT_NOT_FOUND')

    def _check_email(self, email, exclude_id=None):
        existing = self._patients().filter(email__iexact=email)
        if exclude_id is not None:
            existing = existing.exclude(pk=exclude_id)
        if existing.exists():
            raise ClinicError(
                ErrorKind.CONFLICT,
                code='EMAIL_ALREADY_EXISTS',
                message=f'A patient with the email "{email}" already exists',
            )

    def create(self, data):
        fields = {key: data[key] for key in PATIENT_FIELDS if key in data}
        self._check_email(fields.get('email', ''))

        with transaction.atomic(using=self.using):
            patient = Patient(**fields)
            patient.full_clean(validate_unique=False)
            patient.save(using=self.using)
            self.linker.ensure_record(patient.pk)

        logger.info(f"Registered patient {patient.pk} with clinical record")
        return patient

    def update(self, patient_id, data):
        patient = self.get(patient_id)
        if 'email' in data:
            self._check_email(data['email'], exclude_id=patient.pk)

        for key in PATIENT_FIELDS:
            if key in data:
                setattr(patient, key, data[key])
        patient.full_clean(validate_unique=False)
        patient.save(using=self.using)
        return patient

    def remove(self, patient_id):
        patient = self.get(patient_id)
        patient.delete()
        logger.info(f"Deleted patient {patient_id}")

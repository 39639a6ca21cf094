# clinical/linker.py
"""
Get-or-create of a patient's clinical record and idempotent creation of
record entries from completed appointments.

Both creations run in a savepoint guarded by a unique constraint. When two
transactions race, the loser's insert fails with IntegrityError, only the
savepoint is rolled back, and the row the winner created is read instead.
Callers are expected to wrap these calls in their own transaction.
"""
import logging

from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction

from core.errors import ClinicError, ErrorKind
from .models import ClinicalRecord, ClinicalRecordEntry

logger = logging.getLogger(__name__)

ENTRY_FIELDS = ('treatment_type_id', 'date', 'report')


class ClinicalRecordLinker:

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def _records(self):
        return ClinicalRecord.objects.using(self.using)

    def _entries(self):
        return ClinicalRecordEntry.objects.using(self.using)

    def _find_record(self, patient_id):
        return self._records().filter(patient_id=patient_id).first()

    def _find_entry_for_appointment(self, appointment_id):
        return self._entries().filter(appointment_id=appointment_id).first()

    def ensure_record(self, patient_id):
        """Return the patient's clinical record, creating it if absent"""
        record = self._find_record(patient_id)
        if record is not None:
            return record

        try:
            with transaction.atomic(using=self.using):
                record = self._records().create(patient_id=patient_id)
        except IntegrityError:
            logger.info(f"Clinical record for patient {patient_id} created concurrently, re-reading")
            return self._records().get(patient_id=patient_id)

        logger.info(f"Created clinical record {record.pk} for patient {patient_id}")
        return record

    def ensure_entry_for_appointment(self, appointment_id, record_id, treatment_type_id, date, report_text):
        """
        Create the entry for a completed appointment unless one already exists.

        Returns the entry referencing the appointment, whether it was created
        by this call or earlier.
        """
        entry = self._find_entry_for_appointment(appointment_id)
        if entry is not None:
            return entry

        try:
            with transaction.atomic(using=self.using):
                entry = self._entries().create(
                    record_id=record_id,
                    appointment_id=appointment_id,
                    treatment_type_id=treatment_type_id,
                    date=date,
                    report=report_text or '',
                )
        except IntegrityError:
            logger.info(f"Entry for appointment {appointment_id} created concurrently, re-reading")
            return self._entries().get(appointment_id=appointment_id)

        logger.info(f"Created clinical entry {entry.pk} for appointment {appointment_id}")
        return entry

    def record_for_patient(self, patient_id):
        """The patient's record with entries prefetched, newest first"""
        record = self.ensure_record(patient_id)
        return (
            self._records()
            .prefetch_related('entries__treatment_type')
            .get(pk=record.pk)
        )

    def create_entry(self, record_id, treatment_type_id, date, report='', appointment_id=None):
        """Manual clinical note, optionally tied to an appointment"""
        if appointment_id is not None:
            return self.ensure_entry_for_appointment(
                appointment_id, record_id, treatment_type_id, date, report
            )
        entry = self._entries().create(
            record_id=record_id,
            treatment_type_id=treatment_type_id,
            date=date,
            report=report or '',
        )
        logger.info(f"Created clinical entry {entry.pk} in record {record_id}")
        return entry

    def update_entry(self, entry_id, **fields):
        try:
            entry = self._entries().get(pk=entry_id)
        except ClinicalRecordEntry.DoesNotExist:
            raise ClinicError(ErrorKind.NOT_FOUND, code='MEDICAL_RECORD_ENTRY_NOT_FOUND')

        changed = []
        for key in ENTRY_FIELDS:
            if key in fields:
                setattr(entry, key, fields[key])
                changed.append(key)

        if changed:
            entry.save(using=self.using, update_fields=changed + ['updated_at'])
        return entry

# appointments/lifecycle.py
"""
Appointment create/update/delete and the status state machine.

    scheduled -> completed   (terminal, status locked)
    scheduled -> cancelled   (terminal)

Completing an appointment validates the patient's payroll deduction terms
(when the patient is billed through payroll) and spawns the linked clinical
record entry. Every write of a completion happens inside one
transaction.atomic() block, so a failure at any step leaves nothing behind.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import DEFAULT_DB_ALIAS, transaction

from clinical.linker import ClinicalRecordLinker
from core.errors import ClinicError, ErrorKind
from core.models import AuditLog
from patients.models import Patient
from .models import Appointment, validate_slot_time
from .payroll import PayrollDeductionValidator

logger = logging.getLogger(__name__)

APPOINTMENT_FIELDS = (
    'date', 'time', 'treatment_type_id', 'patient_id', 'status', 'notes',
    'payroll_deduction_months', 'payroll_deduction_amount',
)

COMPLETED = Appointment.STATUS_COMPLETED
CANCELLED = Appointment.STATUS_CANCELLED


def appointment_fields(data):
    """
    Pick appointment columns out of a create payload or patch.

    Related objects may be passed as instances (``patient``) or ids
    (``patient_id``); only keys present in ``data`` are returned.
    """
    fields = {}
    for relation in ('treatment_type', 'patient'):
        if relation in data:
            value = data[relation]
            fields[f'{relation}_id'] = getattr(value, 'pk', value)
    for key in APPOINTMENT_FIELDS:
        if key in data:
            fields[key] = data[key]
    return fields


class AppointmentLifecycleManager:

    def __init__(self, linker=None, validator=None, using=DEFAULT_DB_ALIAS):
        self.using = using
        self.linker = linker or ClinicalRecordLinker(using=using)
        self.validator = validator or PayrollDeductionValidator()

    def _appointments(self):
        return Appointment.objects.using(self.using)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self, start_date=None, end_date=None):
        queryset = self._appointments().select_related('patient', 'treatment_type')
        if start_date and end_date:
            queryset = queryset.in_range(start_date, end_date)
        return list(queryset.order_by('date', 'time', 'pk'))

    def get(self, appointment_id):
        try:
            return self._appointments().select_related('patient', 'treatment_type').get(pk=appointment_id)
        except Appointment.DoesNotExist:
            raise ClinicError(ErrorKind.NOT_FOUND, code='APPOINTMENT_NOT_FOUND', message='Appointment not found')

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create(self, data, user=None):
        fields = appointment_fields(data)
        status = fields.setdefault('status', Appointment.STATUS_SCHEDULED)
        self._check_status_value(status)
        self._check_time(fields.get('time'))

        if status == COMPLETED and not fields.get('patient_id'):
            raise ClinicError(ErrorKind.PATIENT_REQUIRED_FOR_COMPLETION)

        if status != COMPLETED:
            appointment = self._appointments().create(**fields)
            logger.info(f"Created appointment {appointment.pk} ({status})")
            return appointment

        with transaction.atomic(using=self.using):
            patient = self._load_patient(fields['patient_id'])

            if patient.has_payroll_deduction:
                self.validator.validate(
                    fields.get('payroll_deduction_months'),
                    fields.get('payroll_deduction_amount'),
                )

            appointment = self._appointments().create(**fields)

            record = self.linker.ensure_record(patient.pk)
            self.linker.ensure_entry_for_appointment(
                appointment.pk,
                record.pk,
                appointment.treatment_type_id,
                appointment.date,
                appointment.notes or '',
            )

            AuditLog.log_action(
                action='create',
                model_instance=appointment,
                changes={'status': {'old': None, 'new': COMPLETED}},
                description=f"Created completed appointment for {patient.full_name}",
                user=user,
                using=self.using,
            )

        logger.info(f"Created completed appointment {appointment.pk} for patient {patient.pk}")
        return appointment

    def update(self, appointment_id, patch, user=None):
        changes = appointment_fields(patch)
        new_status = changes.get('status')
        if new_status is not None:
            self._check_status_value(new_status)
        self._check_time(changes.get('time'))

        with transaction.atomic(using=self.using):
            try:
                appointment = self._appointments().select_for_update().get(pk=appointment_id)
            except Appointment.DoesNotExist:
                raise ClinicError(ErrorKind.NOT_FOUND, code='APPOINTMENT_NOT_FOUND', message='Appointment not found')

            old_status = appointment.status
            self._check_transition(old_status, new_status)

            patient_id = changes['patient_id'] if 'patient_id' in changes else appointment.patient_id
            effective_status = new_status or old_status
            if effective_status == COMPLETED and not patient_id:
                raise ClinicError(ErrorKind.PATIENT_REQUIRED_FOR_COMPLETION)

            if new_status == COMPLETED and old_status != COMPLETED:
                self._complete(appointment, changes, patient_id)

            for key, value in changes.items():
                setattr(appointment, key, value)
            appointment.save(using=self.using)

            if new_status and new_status != old_status:
                AuditLog.log_action(
                    action='status_change',
                    model_instance=appointment,
                    changes={'status': {'old': old_status, 'new': new_status}},
                    description=f"Appointment marked as {appointment.get_status_display().lower()}",
                    user=user,
                    using=self.using,
                )

        if new_status and new_status != old_status:
            logger.info(f"Appointment {appointment.pk} moved from {old_status} to {new_status}")
        return appointment

    def remove(self, appointment_id):
        """
        Delete the scheduling row. A clinical entry spawned by it stays in
        the patient's record with its appointment reference cleared.
        """
        deleted, _ = self._appointments().filter(pk=appointment_id).delete()
        if not deleted:
            raise ClinicError(ErrorKind.NOT_FOUND, code='APPOINTMENT_NOT_FOUND', message='Appointment not found')
        logger.info(f"Deleted appointment {appointment_id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _complete(self, appointment, changes, patient_id):
        """Side effects of the transition into completed; caller holds the transaction"""
        patient = self._load_patient(patient_id)

        if patient.has_payroll_deduction:
            self.validator.validate(
                self._effective(changes, appointment, 'payroll_deduction_months'),
                self._effective(changes, appointment, 'payroll_deduction_amount'),
            )

        record = self.linker.ensure_record(patient.pk)
        self.linker.ensure_entry_for_appointment(
            appointment.pk,
            record.pk,
            self._effective(changes, appointment, 'treatment_type_id'),
            self._effective(changes, appointment, 'date'),
            changes.get('notes') or appointment.notes or '',
        )

    @staticmethod
    def _effective(changes, appointment, key):
        value = changes.get(key)
        return value if value is not None else getattr(appointment, key)

    def _load_patient(self, patient_id):
        try:
            return Patient.objects.using(self.using).get(pk=patient_id)
        except Patient.DoesNotExist:
            raise ClinicError(ErrorKind.PATIENT_NOT_FOUND)

    @staticmethod
    def _check_status_value(status):
        if status not in dict(Appointment.STATUS_CHOICES):
            raise ValidationError({'status': f'"{status}" is not a valid appointment status.'})

    @staticmethod
    def _check_time(value):
        try:
            validate_slot_time(value)
        except ValidationError as e:
            raise ValidationError({'time': e.messages})

    @staticmethod
    def _check_transition(current, new_status):
        if new_status is None or new_status == current:
            return
        if current == COMPLETED:
            raise ClinicError(ErrorKind.LOCKED_STATUS, code='CANNOT_CHANGE_COMPLETED_STATUS')
        if current == CANCELLED:
            raise ClinicError(
                ErrorKind.LOCKED_STATUS,
                code='CANNOT_CHANGE_CANCELLED_STATUS',
                message='Cannot change status of a cancelled appointment',
            )

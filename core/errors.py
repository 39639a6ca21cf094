# core/errors.py
"""
Business-rule errors shared by every app.

Each error carries a kind from a closed enumeration plus a stable error code,
so callers branch on ``exc.kind`` or ``exc.code`` and never on message text.
Storage failures are not wrapped here; they propagate as ordinary
``DatabaseError`` subclasses.
"""
import enum
import logging

from django.http import JsonResponse

logger = logging.getLogger(__name__)


class ErrorKind(enum.Enum):
    NOT_FOUND = 'not_found'
    CONFLICT = 'conflict'
    LOCKED_STATUS = 'locked_status'
    PATIENT_REQUIRED_FOR_COMPLETION = 'patient_required_for_completion'
    PATIENT_NOT_FOUND = 'patient_not_found'
    PAYROLL_MONTHS_REQUIRED = 'payroll_months_required'
    PAYROLL_AMOUNT_REQUIRED = 'payroll_amount_required'
    INVALID_REPORT_TYPE = 'invalid_report_type'
    REFERENTIAL_CONFLICT = 'referential_conflict'

    @property
    def status_code(self):
        """HTTP status the boundary layer answers with for this kind"""
        if self in (ErrorKind.NOT_FOUND, ErrorKind.PATIENT_NOT_FOUND):
            return 404
        if self in (ErrorKind.CONFLICT, ErrorKind.REFERENTIAL_CONFLICT):
            return 409
        return 400


DEFAULT_MESSAGES = {
    ErrorKind.NOT_FOUND: 'Requested record was not found',
    ErrorKind.CONFLICT: 'Record conflicts with an existing one',
    ErrorKind.LOCKED_STATUS: 'Cannot change status of a completed appointment',
    ErrorKind.PATIENT_REQUIRED_FOR_COMPLETION: 'Patient is required to mark appointment as completed',
    ErrorKind.PATIENT_NOT_FOUND: 'Patient not found',
    ErrorKind.PAYROLL_MONTHS_REQUIRED: 'Payroll deduction months required for this patient',
    ErrorKind.PAYROLL_AMOUNT_REQUIRED: (
        'Payroll deduction amount is required and must be a positive number for this patient'
    ),
    ErrorKind.INVALID_REPORT_TYPE: 'Invalid report type',
    ErrorKind.REFERENTIAL_CONFLICT: 'Record is still referenced and cannot be deleted',
}


class ClinicError(Exception):
    """A recoverable business-rule violation"""

    def __init__(self, kind, code=None, message=None):
        self.kind = kind
        self.code = code or kind.name
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    def __repr__(self):
        return f"ClinicError(kind={self.kind.name}, code={self.code!r})"

    @property
    def status_code(self):
        return self.kind.status_code

    def as_dict(self):
        return {
            'error': self.code,
            'kind': self.kind.value,
            'message': self.message,
        }


def error_response(exc, request=None):
    """Render a ClinicError as a JSON response for the boundary views"""
    if request is not None:
        logger.warning(
            f"{exc.status_code} - {exc.code} - {exc.message} - {request.method} {request.path}"
        )
    else:
        logger.warning(f"{exc.status_code} - {exc.code} - {exc.message}")
    return JsonResponse(exc.as_dict(), status=exc.status_code)

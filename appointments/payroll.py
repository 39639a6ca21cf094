# appointments/payroll.py
from decimal import Decimal, InvalidOperation

from core.errors import ClinicError, ErrorKind


class PayrollDeductionValidator:
    """
    Checks deduction parameters for patients billed through payroll.
    Pure: no queries, no writes.
    """

    def validate(self, months, amount):
        if months is None or months < 1:
            raise ClinicError(ErrorKind.PAYROLL_MONTHS_REQUIRED, code='PAYROLL_DEDUCTION_MONTHS_REQUIRED')

        if not self._is_positive_amount(amount):
            raise ClinicError(ErrorKind.PAYROLL_AMOUNT_REQUIRED, code='PAYROLL_DEDUCTION_AMOUNT_REQUIRED')

    @staticmethod
    def _is_positive_amount(amount):
        if amount is None or isinstance(amount, bool):
            return False
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            return False
        return value.is_finite() and value > 0

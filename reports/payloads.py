# reports/payloads.py
"""
Structured report payloads, one variant per report type.

Period reports (daily/weekly/monthly) store a list of per-treatment revenue
summaries; payroll deduction reports store a list of amortization entries.
Both are converted to plain JSON explicitly at the model boundary, with
money kept as decimal strings.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional


def _money(value):
    return None if value is None else str(value)


def _decimal(value):
    return None if value is None else Decimal(str(value))


@dataclass
class TreatmentSummary:
    treatment_type: str
    count: int = 0
    price: Optional[Decimal] = None
    total: Decimal = Decimal('0.00')
    price_exists: bool = False

    def to_json(self):
        return {
            'treatmentType': self.treatment_type,
            'count': self.count,
            'price': _money(self.price),
            'total': _money(self.total),
            'priceExists': self.price_exists,
        }

    @classmethod
    def from_json(cls, data):
        return cls(
            treatment_type=data['treatmentType'],
            count=data['count'],
            price=_decimal(data.get('price')),
            total=_decimal(data['total']),
            price_exists=data['priceExists'],
        )


@dataclass
class PayrollEntry:
    patient_id: int
    patient_name: str
    company_name: Optional[str]
    examination_date: date
    treatment_type: str
    total_amount: Decimal
    monthly_rate: Decimal
    months_passed: int
    paid_amount: Decimal
    remaining_months: int
    total_months: int

    def to_json(self):
        return {
            'patientId': self.patient_id,
            'patientName': self.patient_name,
            'companyName': self.company_name,
            'examinationDate': self.examination_date.isoformat(),
            'treatmentType': self.treatment_type,
            'totalAmount': _money(self.total_amount),
            'monthlyRate': _money(self.monthly_rate),
            'monthsPassed': self.months_passed,
            'paidAmount': _money(self.paid_amount),
            'remainingMonths': self.remaining_months,
            'totalMonths': self.total_months,
        }

    @classmethod
    def from_json(cls, data):
        return cls(
            patient_id=data['patientId'],
            patient_name=data['patientName'],
            company_name=data.get('companyName'),
            examination_date=date.fromisoformat(data['examinationDate']),
            treatment_type=data['treatmentType'],
            total_amount=_decimal(data['totalAmount']),
            monthly_rate=_decimal(data['monthlyRate']),
            months_passed=data['monthsPassed'],
            paid_amount=_decimal(data['paidAmount']),
            remaining_months=data['remainingMonths'],
            total_months=data['totalMonths'],
        )


@dataclass
class PeriodRevenuePayload:
    """
    Per-treatment revenue summaries in encounter order.

    In the JSON column and API responses ``price`` and ``total`` are decimal
    strings such as "20.00" (``price`` is null when unpriced), not numbers.
    """
    summaries: List[TreatmentSummary] = field(default_factory=list)

    def to_json(self):
        return [summary.to_json() for summary in self.summaries]

    @classmethod
    def from_json(cls, data):
        return cls(summaries=[TreatmentSummary.from_json(row) for row in data or []])


@dataclass
class PayrollDeductionPayload:
    """Active payroll deductions; amounts are decimal strings in JSON"""
    entries: List[PayrollEntry] = field(default_factory=list)

    def to_json(self):
        return [entry.to_json() for entry in self.entries]

    @classmethod
    def from_json(cls, data):
        return cls(entries=[PayrollEntry.from_json(row) for row in data or []])


PAYLOAD_TYPES = {
    'daily': PeriodRevenuePayload,
    'weekly': PeriodRevenuePayload,
    'monthly': PeriodRevenuePayload,
    'payrollDeduction': PayrollDeductionPayload,
}


def load_payload(report_type, data):
    """Decode the stored JSON column into the variant for report_type"""
    return PAYLOAD_TYPES[report_type].from_json(data)

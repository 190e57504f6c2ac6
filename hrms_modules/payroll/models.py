"""
Payroll Domain Models (``hrms_modules.payroll.models``).

Responsibility
--------------
Frozen dataclass value objects representing the nouns of payroll:
compensation inputs, pay breakdowns, employees, attendance summaries,
payslips, loans, salary advances, TDS projections and compliance reports.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
``helpers``, ``PayrollService`` and the payslip views.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).  A
  correction produces a new object, never a mutated one.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``PayBreakdown`` totals equal the sums of their components exactly.

Failure modes
-------------
* Negative amounts or malformed pay periods on construction raise
  ``ValidationError``.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Self
from uuid import UUID

from hrms_kernel.exceptions import ValidationError
from hrms_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.models")

ZERO = Decimal("0")

_PAY_PERIOD_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def parse_pay_period(pay_period: str) -> tuple[int, int]:
    """Split a ``YYYY-MM`` label into ``(year, month)``."""
    match = _PAY_PERIOD_RE.match(pay_period) if isinstance(pay_period, str) else None
    if match is None:
        raise ValidationError("pay_period", pay_period, "expected YYYY-MM")
    return int(match.group(1)), int(match.group(2))


def _require_non_negative(name: str, value: Any) -> None:
    if value < 0:
        raise ValidationError(name, value, "cannot be negative")


class PayslipStatus(Enum):
    """Payslip lifecycle states."""
    GENERATED = "generated"
    SENT = "sent"
    PAID = "paid"
    SUPERSEDED = "superseded"


PAYSLIP_TRANSITIONS: dict[PayslipStatus, frozenset[PayslipStatus]] = {
    PayslipStatus.GENERATED: frozenset(
        {PayslipStatus.SENT, PayslipStatus.PAID, PayslipStatus.SUPERSEDED}
    ),
    PayslipStatus.SENT: frozenset({PayslipStatus.PAID, PayslipStatus.SUPERSEDED}),
    PayslipStatus.PAID: frozenset(),
    PayslipStatus.SUPERSEDED: frozenset(),
}


class LoanStatus(Enum):
    """Employee loan states."""
    ACTIVE = "active"
    CLOSED = "closed"


class AdvanceStatus(Enum):
    """Salary advance states."""
    PENDING = "pending"
    APPROVED = "approved"
    CLOSED = "closed"


class ComplianceReportType(Enum):
    """Statutory compliance report kinds."""
    PF = "pf"
    ESI = "esi"
    PROFESSIONAL_TAX = "professional_tax"
    TDS = "tds"


# ---------------------------------------------------------------------------
# Calculator input / output
# ---------------------------------------------------------------------------

_INPUT_ALIASES = {
    "basicSalary": "basic_salary",
    "baseSalary": "basic_salary",
    "workingDays": "working_days",
    "presentDays": "present_days",
    "leaveDays": "leave_days",
    "overtimeHours": "overtime_hours",
    "loanDeduction": "loan_deduction",
    "advanceDeduction": "advance_deduction",
}

_INPUT_DECIMAL_FIELDS = (
    "basic_salary",
    "overtime_hours",
    "bonus",
    "loan_deduction",
    "advance_deduction",
)

_INPUT_INT_FIELDS = ("working_days", "present_days", "leave_days")


def _parse_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(name, value, "not a number")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(name, value, "not a number") from exc
    if not result.is_finite():
        raise ValidationError(name, value, "must be finite")
    return result


def _parse_int(name: str, value: Any) -> int:
    number = _parse_decimal(name, value)
    if number != number.to_integral_value():
        raise ValidationError(name, value, "must be a whole number")
    return int(number)


@dataclass(frozen=True)
class CompensationInput:
    """An employee's compensation and attendance for one pay period."""
    basic_salary: Decimal
    working_days: int = 0
    present_days: int = 0
    leave_days: int = 0
    overtime_hours: Decimal = ZERO
    bonus: Decimal = ZERO
    loan_deduction: Decimal = ZERO
    advance_deduction: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Parse an untyped request body into a validated input.

        Accepts camelCase or snake_case keys and numbers or numeric strings.
        Unrelated keys (employee IDs, labels) are ignored.  Missing optional
        values default to zero; ``basic_salary`` is required.
        """
        from hrms_modules.payroll.helpers import validate_compensation_input

        normalized = {_INPUT_ALIASES.get(key, key): value for key, value in data.items()}
        if normalized.get("basic_salary") is None:
            raise ValidationError("basic_salary", None, "is required")

        kwargs: dict[str, Any] = {}
        for name in _INPUT_DECIMAL_FIELDS:
            value = normalized.get(name)
            if value is not None and value != "":
                kwargs[name] = _parse_decimal(name, value)
        for name in _INPUT_INT_FIELDS:
            value = normalized.get(name)
            if value is not None and value != "":
                kwargs[name] = _parse_int(name, value)

        parsed = cls(**kwargs)
        validate_compensation_input(parsed)
        return parsed


@dataclass(frozen=True)
class PayBreakdown:
    """
    Result of the gross-to-net calculation for one employee and period.

    Every component is a whole currency unit; totals are sums of the
    rounded components.
    """
    # Earnings
    basic_salary: Decimal
    hra: Decimal
    conveyance_allowance: Decimal
    medical_allowance: Decimal
    special_allowance: Decimal
    overtime_pay: Decimal
    bonus: Decimal
    gross_pay: Decimal
    # Deductions
    pf_deduction: Decimal
    esi_deduction: Decimal
    professional_tax: Decimal
    tds_deduction: Decimal
    loan_deduction: Decimal
    advance_deduction: Decimal
    total_deductions: Decimal
    net_pay: Decimal

    EARNING_FIELDS = (
        "basic_salary",
        "hra",
        "conveyance_allowance",
        "medical_allowance",
        "special_allowance",
        "overtime_pay",
        "bonus",
    )
    DEDUCTION_FIELDS = (
        "pf_deduction",
        "esi_deduction",
        "professional_tax",
        "tds_deduction",
        "loan_deduction",
        "advance_deduction",
    )

    def __post_init__(self):
        if self.gross_pay != sum((getattr(self, f) for f in self.EARNING_FIELDS), ZERO):
            raise ValueError("gross_pay must equal the sum of earnings")
        if self.total_deductions != sum((getattr(self, f) for f in self.DEDUCTION_FIELDS), ZERO):
            raise ValueError("total_deductions must equal the sum of deductions")
        if self.net_pay != self.gross_pay - self.total_deductions:
            raise ValueError("net_pay must equal gross_pay - total_deductions")

    def earnings(self) -> tuple[tuple[str, Decimal], ...]:
        return tuple((name, getattr(self, name)) for name in self.EARNING_FIELDS)

    def deductions(self) -> tuple[tuple[str, Decimal], ...]:
        return tuple((name, getattr(self, name)) for name in self.DEDUCTION_FIELDS)

    def to_dict(self) -> dict[str, str]:
        names = self.EARNING_FIELDS + ("gross_pay",) + self.DEDUCTION_FIELDS + (
            "total_deductions",
            "net_pay",
        )
        return {name: str(getattr(self, name)) for name in names}


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Employee:
    """The payroll-relevant slice of an employee record."""
    id: UUID
    employee_code: str
    first_name: str
    last_name: str
    base_salary: Decimal  # monthly basic
    department: str | None = None
    position: str | None = None
    email: str | None = None
    is_active: bool = True

    def __post_init__(self):
        if self.base_salary < 0:
            logger.warning(
                "employee_negative_base_salary",
                extra={
                    "employee_id": str(self.id),
                    "employee_code": self.employee_code,
                    "base_salary": str(self.base_salary),
                },
            )
            raise ValidationError("base_salary", self.base_salary, "cannot be negative")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class AttendanceSummary:
    """Attendance counts for one employee and pay period."""
    id: UUID
    employee_id: UUID
    pay_period: str  # YYYY-MM
    working_days: int
    present_days: int
    leave_days: int = 0
    overtime_hours: Decimal = ZERO

    def __post_init__(self):
        parse_pay_period(self.pay_period)
        _require_non_negative("working_days", self.working_days)
        _require_non_negative("present_days", self.present_days)
        _require_non_negative("leave_days", self.leave_days)
        _require_non_negative("overtime_hours", self.overtime_hours)


@dataclass(frozen=True)
class Payslip:
    """A generated payslip: one pay breakdown plus its period context."""
    id: UUID
    employee_id: UUID
    pay_period: str
    breakdown: PayBreakdown
    working_days: int
    present_days: int
    leave_days: int = 0
    overtime_hours: Decimal = ZERO
    status: PayslipStatus = PayslipStatus.GENERATED
    generated_at: datetime | None = None
    superseded_by: UUID | None = None

    def __post_init__(self):
        parse_pay_period(self.pay_period)

    @property
    def is_live(self) -> bool:
        return self.status != PayslipStatus.SUPERSEDED


@dataclass(frozen=True)
class EmployeeLoan:
    """An employee loan recovered through monthly EMIs."""
    id: UUID
    employee_id: UUID
    loan_type: str
    principal: Decimal
    interest_rate: Decimal  # annual percent, e.g. 8.5
    tenure_months: int
    emi_amount: Decimal
    remaining_amount: Decimal
    status: LoanStatus = LoanStatus.ACTIVE
    purpose: str | None = None

    def __post_init__(self):
        _require_non_negative("principal", self.principal)
        _require_non_negative("interest_rate", self.interest_rate)
        _require_non_negative("emi_amount", self.emi_amount)
        _require_non_negative("remaining_amount", self.remaining_amount)
        if self.tenure_months <= 0:
            raise ValidationError("tenure_months", self.tenure_months, "must be positive")


@dataclass(frozen=True)
class SalaryAdvance:
    """A salary advance recovered in equal monthly installments once approved."""
    id: UUID
    employee_id: UUID
    amount: Decimal
    reason: str
    repayment_months: int
    monthly_deduction: Decimal
    remaining_amount: Decimal
    status: AdvanceStatus = AdvanceStatus.PENDING

    def __post_init__(self):
        _require_non_negative("amount", self.amount)
        _require_non_negative("monthly_deduction", self.monthly_deduction)
        _require_non_negative("remaining_amount", self.remaining_amount)
        if self.repayment_months <= 0:
            raise ValidationError("repayment_months", self.repayment_months, "must be positive")


# ---------------------------------------------------------------------------
# Derived reports
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TdsProjection:
    """Annual slab-based income tax projection."""
    annual_salary: Decimal
    total_exemptions: Decimal
    taxable_income: Decimal
    slab_tax: Decimal
    cess: Decimal
    total_tax: Decimal
    monthly_tds: Decimal
    effective_rate: Decimal  # percent of annual salary, 2 places


@dataclass(frozen=True)
class ComplianceRow:
    """One employee's line in a statutory compliance report."""
    employee_id: UUID
    employee_code: str
    employee_name: str
    department: str | None
    gross_pay: Decimal
    employee_contribution: Decimal
    employer_contribution: Decimal = ZERO
    eligible: bool = True


@dataclass(frozen=True)
class ComplianceReport:
    """PF / ESI / professional tax / TDS summary for one pay period."""
    report_type: ComplianceReportType
    pay_period: str
    rows: tuple[ComplianceRow, ...] = field(default_factory=tuple)
    total_employee_contribution: Decimal = ZERO
    total_employer_contribution: Decimal = ZERO

    @property
    def employee_count(self) -> int:
        return len(self.rows)

    @property
    def eligible_count(self) -> int:
        return sum(1 for row in self.rows if row.eligible)

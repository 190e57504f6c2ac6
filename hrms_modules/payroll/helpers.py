"""
Payroll Helpers (``hrms_modules.payroll.helpers``).

Responsibility
--------------
Pure calculation functions for Indian monthly payroll: the canonical
gross-to-net pay breakdown (HRA, fixed allowances, overtime, PF, ESI,
professional tax, TDS), the annual slab-based TDS projection, loan EMI and
advance installments, and statutory compliance summaries.

Architecture position
---------------------
**Modules layer** -- pure helper functions.  No I/O, no session, no clock,
no database access.  Called by ``PayrollService``, the CLI, or tests.

Invariants enforced
-------------------
* All numeric inputs and outputs use ``Decimal`` -- NEVER ``float`` in
  arithmetic (floats are accepted at the edge and converted via ``str``).
* Every earnings and deduction component is rounded to a whole currency
  unit with ROUND_HALF_UP *before* summing; totals are sums of rounded
  components, so displayed line items always add up to displayed totals.
* ``net_pay == gross_pay - total_deductions`` exactly.
* Same input and settings always produce an equal ``PayBreakdown``.

Failure modes
-------------
* Negative or non-finite input, any amount, hour or day count above
  ``MAX_INPUT`` or ``present_days > working_days`` -> ``ValidationError``;
  no partial result is returned.
* Zero basic salary -> every basic-derived earning and the fixed
  allowances are zero (valid, not an error).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any
from uuid import UUID

from hrms_kernel.exceptions import EmployeeNotFoundError, ValidationError
from hrms_modules.payroll.config import SalarySettings
from hrms_modules.payroll.models import (
    ComplianceReport,
    ComplianceReportType,
    ComplianceRow,
    CompensationInput,
    Employee,
    PayBreakdown,
    Payslip,
    TdsProjection,
    parse_pay_period,
)

ZERO = Decimal("0")
ONE = Decimal("1")
CENT = Decimal("0.01")
MONTHS_PER_YEAR = Decimal("12")

# Upper bound for every numeric input.  Products of two bounded inputs
# (overtime hours x basic) stay within the 28-digit decimal context and
# within the Numeric(38, 9) payslip columns.
MAX_INPUT = Decimal("1000000000000")

# Bounds for the EMI power term.
MAX_INTEREST_RATE_PERCENT = Decimal("100")
MAX_TENURE_MONTHS = 600


@lru_cache(maxsize=1)
def default_settings() -> SalarySettings:
    """Shared canonical settings (immutable, safe to reuse)."""
    return SalarySettings()


def round_currency(amount: Decimal) -> Decimal:
    """Round to a whole currency unit, half away from zero."""
    return amount.quantize(ONE, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

def _as_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(name, value, "not a number")
    result = value if isinstance(value, Decimal) else Decimal(str(value))
    if not result.is_finite():
        raise ValidationError(name, value, "must be finite")
    if result < 0:
        raise ValidationError(name, value, "cannot be negative")
    if result > MAX_INPUT:
        raise ValidationError(name, value, f"exceeds maximum {MAX_INPUT}")
    return result


def _as_count(name: str, value: Any) -> int:
    result = _as_decimal(name, value)
    if result != result.to_integral_value():
        raise ValidationError(name, value, "must be a whole number")
    return int(result)


def _normalize(inp: CompensationInput) -> dict[str, Any]:
    values: dict[str, Any] = {
        "basic_salary": _as_decimal("basic_salary", inp.basic_salary),
        "working_days": _as_count("working_days", inp.working_days),
        "present_days": _as_count("present_days", inp.present_days),
        "leave_days": _as_count("leave_days", inp.leave_days),
        "overtime_hours": _as_decimal("overtime_hours", inp.overtime_hours),
        "bonus": _as_decimal("bonus", inp.bonus),
        "loan_deduction": _as_decimal("loan_deduction", inp.loan_deduction),
        "advance_deduction": _as_decimal("advance_deduction", inp.advance_deduction),
    }
    if values["present_days"] > values["working_days"]:
        raise ValidationError(
            "present_days",
            inp.present_days,
            f"exceeds working_days ({values['working_days']})",
        )
    return values


def validate_compensation_input(inp: CompensationInput) -> None:
    """
    Reject inputs the calculator cannot accept.

    Raises:
        ValidationError: negative or non-finite amounts, non-integral day
            counts, or ``present_days > working_days``.
    """
    _normalize(inp)


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

def calculate_overtime_pay(
    basic_salary: Decimal,
    overtime_hours: Decimal,
    settings: SalarySettings | None = None,
) -> Decimal:
    """Overtime at ``basic / standard_monthly_hours`` per hour times the premium."""
    settings = settings or default_settings()
    hourly = basic_salary / settings.standard_monthly_hours
    return round_currency(overtime_hours * hourly * settings.overtime_multiplier)


def calculate_pf(basic_salary: Decimal, settings: SalarySettings | None = None) -> Decimal:
    """Employee PF: ``pf_rate`` of basic, capped at ``pf_cap``."""
    settings = settings or default_settings()
    return round_currency(min(basic_salary * settings.pf_rate, settings.pf_cap))


def calculate_employer_pf(basic_salary: Decimal, settings: SalarySettings | None = None) -> Decimal:
    """Employer PF: ``pf_employer_rate`` of basic, same cap as the employee share."""
    settings = settings or default_settings()
    return round_currency(min(basic_salary * settings.pf_employer_rate, settings.pf_cap))


def is_esi_eligible(gross_pay: Decimal, settings: SalarySettings | None = None) -> bool:
    settings = settings or default_settings()
    return ZERO < gross_pay <= settings.esi_gross_threshold


def calculate_esi(gross_pay: Decimal, settings: SalarySettings | None = None) -> Decimal:
    """Employee ESI: ``esi_rate`` of gross while gross is within the threshold, else 0."""
    settings = settings or default_settings()
    if not is_esi_eligible(gross_pay, settings):
        return ZERO
    return round_currency(gross_pay * settings.esi_rate)


def calculate_employer_esi(gross_pay: Decimal, settings: SalarySettings | None = None) -> Decimal:
    settings = settings or default_settings()
    if not is_esi_eligible(gross_pay, settings):
        return ZERO
    return round_currency(gross_pay * settings.esi_employer_rate)


def calculate_professional_tax(
    gross_pay: Decimal,
    settings: SalarySettings | None = None,
) -> Decimal:
    """
    Step function of gross pay over ``professional_tax_bands``.

    Each band covers gross pay up to and including its ``upper_limit``.
    Gross pay above a bounded last band pays the last band's amount.
    """
    settings = settings or default_settings()
    bands = settings.professional_tax_bands
    for band in bands:
        if band.upper_limit is None or gross_pay <= band.upper_limit:
            return round_currency(band.amount)
    return round_currency(bands[-1].amount)


def calculate_monthly_tds(gross_pay: Decimal, settings: SalarySettings | None = None) -> Decimal:
    """
    Flat-rate TDS on annualized gross above the exemption, spread over 12 months.

    ``max(0, (gross * 12 - exemption) * rate / 12)``
    """
    settings = settings or default_settings()
    annual_excess = gross_pay * MONTHS_PER_YEAR - settings.tds_annual_exemption
    return round_currency(max(ZERO, annual_excess * settings.tds_rate / MONTHS_PER_YEAR))


def attendance_factor(working_days: int, present_days: int, leave_days: int) -> Decimal:
    """Share of the month that is paid: ``(present + leave) / working``, capped at 1."""
    if working_days <= 0:
        return ONE
    paid_days = min(present_days + leave_days, working_days)
    return Decimal(paid_days) / Decimal(working_days)


# ---------------------------------------------------------------------------
# Gross-to-net
# ---------------------------------------------------------------------------

def compute_pay_breakdown(
    inp: CompensationInput,
    settings: SalarySettings | None = None,
) -> PayBreakdown:
    """
    Compute the monthly pay breakdown for one employee and pay period.

    Preconditions:
        - ``inp`` holds finite, non-negative values with
          ``present_days <= working_days``.
    Postconditions:
        - Every component is a whole-unit ``Decimal``.
        - ``gross_pay`` is the sum of the rounded earnings,
          ``total_deductions`` the sum of the rounded deductions, and
          ``net_pay == gross_pay - total_deductions``.
        - Fixed allowances are paid only when the (prorated) basic is
          positive, so a zero basic with no bonus/overtime nets to zero.
    Raises:
        ValidationError: see ``validate_compensation_input``.
    """
    settings = settings or default_settings()
    values = _normalize(inp)
    basic: Decimal = values["basic_salary"]

    base = basic
    if settings.prorate_by_attendance:
        base = basic * attendance_factor(
            values["working_days"], values["present_days"], values["leave_days"]
        )

    salaried = base > 0
    basic_component = round_currency(base)
    hra = round_currency(base * settings.hra_rate)
    conveyance = round_currency(settings.conveyance_allowance) if salaried else ZERO
    medical = round_currency(settings.medical_allowance) if salaried else ZERO
    special = round_currency(base * settings.special_allowance_rate)
    overtime = calculate_overtime_pay(basic, values["overtime_hours"], settings)
    bonus = round_currency(values["bonus"])

    gross = basic_component + hra + conveyance + medical + special + overtime + bonus

    pf = calculate_pf(base, settings)
    esi = calculate_esi(gross, settings)
    professional_tax = calculate_professional_tax(gross, settings)
    tds = calculate_monthly_tds(gross, settings)
    loan = round_currency(values["loan_deduction"])
    advance = round_currency(values["advance_deduction"])

    total_deductions = pf + esi + professional_tax + tds + loan + advance

    return PayBreakdown(
        basic_salary=basic_component,
        hra=hra,
        conveyance_allowance=conveyance,
        medical_allowance=medical,
        special_allowance=special,
        overtime_pay=overtime,
        bonus=bonus,
        gross_pay=gross,
        pf_deduction=pf,
        esi_deduction=esi,
        professional_tax=professional_tax,
        tds_deduction=tds,
        loan_deduction=loan,
        advance_deduction=advance,
        total_deductions=total_deductions,
        net_pay=gross - total_deductions,
    )


# ---------------------------------------------------------------------------
# Annual TDS projection
# ---------------------------------------------------------------------------

def project_annual_tds(
    annual_salary: Decimal,
    exemptions: Mapping[str, Decimal] | None = None,
    settings: SalarySettings | None = None,
) -> TdsProjection:
    """
    Project annual income tax over ``tds_slabs`` plus cess.

    ``exemptions`` are named annual deductions (e.g. ``section_80c``,
    ``section_80d``, ``professional_tax``) subtracted before the slabs apply.

    Postconditions:
        - ``total_tax == slab_tax + cess``; ``monthly_tds`` is
          ``total_tax / 12`` rounded to a whole unit.
        - ``effective_rate`` is a percentage with two decimal places.
    """
    settings = settings or default_settings()
    annual = _as_decimal("annual_salary", annual_salary)
    total_exemptions = sum(
        (_as_decimal(f"exemptions.{name}", amount) for name, amount in (exemptions or {}).items()),
        ZERO,
    )
    taxable = max(ZERO, annual - total_exemptions)

    slab_tax = ZERO
    for slab in settings.tds_slabs:
        if taxable <= slab.lower:
            break
        top = taxable if slab.upper is None else min(taxable, slab.upper)
        slab_tax += (top - slab.lower) * slab.rate

    slab_tax = round_currency(slab_tax)
    cess = round_currency(slab_tax * settings.tds_cess_rate)
    total_tax = slab_tax + cess
    effective_rate = (
        (total_tax / annual * 100).quantize(CENT, rounding=ROUND_HALF_UP)
        if annual > 0
        else ZERO
    )

    return TdsProjection(
        annual_salary=annual,
        total_exemptions=total_exemptions,
        taxable_income=taxable,
        slab_tax=slab_tax,
        cess=cess,
        total_tax=total_tax,
        monthly_tds=round_currency(total_tax / MONTHS_PER_YEAR),
        effective_rate=effective_rate,
    )


# ---------------------------------------------------------------------------
# Loans and advances
# ---------------------------------------------------------------------------

def calculate_emi(
    principal: Decimal,
    annual_rate_percent: Decimal,
    tenure_months: int,
) -> Decimal:
    """
    Reducing-balance equated monthly installment.

    ``P * r * (1 + r)^n / ((1 + r)^n - 1)`` with ``r`` the monthly rate;
    an interest-free loan is ``P / n``.
    Tenure is capped at ``MAX_TENURE_MONTHS`` and the rate at
    ``MAX_INTEREST_RATE_PERCENT``.
    """
    principal = _as_decimal("principal", principal)
    rate = _as_decimal("annual_rate_percent", annual_rate_percent)
    months = _as_count("tenure_months", tenure_months)
    if months == 0:
        raise ValidationError("tenure_months", tenure_months, "must be positive")
    if months > MAX_TENURE_MONTHS:
        raise ValidationError("tenure_months", tenure_months, f"exceeds {MAX_TENURE_MONTHS} months")
    if rate > MAX_INTEREST_RATE_PERCENT:
        raise ValidationError("annual_rate_percent", annual_rate_percent, "exceeds 100 percent")

    monthly_rate = rate / Decimal("1200")
    if monthly_rate == 0:
        return round_currency(principal / months)
    growth = (ONE + monthly_rate) ** months
    return round_currency(principal * monthly_rate * growth / (growth - ONE))


def calculate_advance_installment(amount: Decimal, repayment_months: int) -> Decimal:
    """Equal monthly recovery of a salary advance."""
    amount = _as_decimal("amount", amount)
    months = _as_count("repayment_months", repayment_months)
    if months == 0:
        raise ValidationError("repayment_months", repayment_months, "must be positive")
    return round_currency(amount / months)


# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------

def _compliance_amounts(
    report_type: ComplianceReportType,
    payslip: Payslip,
    settings: SalarySettings,
) -> tuple[Decimal, Decimal, bool]:
    breakdown = payslip.breakdown
    if report_type is ComplianceReportType.PF:
        employer = calculate_employer_pf(breakdown.basic_salary, settings)
        return breakdown.pf_deduction, employer, breakdown.pf_deduction > 0
    if report_type is ComplianceReportType.ESI:
        eligible = is_esi_eligible(breakdown.gross_pay, settings)
        employer = calculate_employer_esi(breakdown.gross_pay, settings)
        return breakdown.esi_deduction, employer, eligible
    if report_type is ComplianceReportType.PROFESSIONAL_TAX:
        return breakdown.professional_tax, ZERO, breakdown.professional_tax > 0
    return breakdown.tds_deduction, ZERO, breakdown.tds_deduction > 0


def build_compliance_report(
    report_type: ComplianceReportType | str,
    pay_period: str,
    payslips: Iterable[Payslip],
    employees: Mapping[UUID, Employee],
    settings: SalarySettings | None = None,
) -> ComplianceReport:
    """
    Summarize one statutory deduction across the live payslips of a period.

    Superseded payslips and payslips from other periods are skipped.  Rows
    are ordered by employee code.

    Raises:
        ValidationError: unknown report type or malformed pay period.
        EmployeeNotFoundError: a payslip references an employee missing
            from ``employees``.
    """
    settings = settings or default_settings()
    try:
        kind = ComplianceReportType(report_type)
    except ValueError as exc:
        raise ValidationError("report_type", report_type, "unknown report type") from exc
    parse_pay_period(pay_period)

    rows: list[ComplianceRow] = []
    for payslip in payslips:
        if payslip.pay_period != pay_period or not payslip.is_live:
            continue
        employee = employees.get(payslip.employee_id)
        if employee is None:
            raise EmployeeNotFoundError(payslip.employee_id)
        employee_share, employer_share, eligible = _compliance_amounts(kind, payslip, settings)
        rows.append(
            ComplianceRow(
                employee_id=employee.id,
                employee_code=employee.employee_code,
                employee_name=employee.full_name,
                department=employee.department,
                gross_pay=payslip.breakdown.gross_pay,
                employee_contribution=employee_share,
                employer_contribution=employer_share,
                eligible=eligible,
            )
        )

    rows.sort(key=lambda row: row.employee_code)
    return ComplianceReport(
        report_type=kind,
        pay_period=pay_period,
        rows=tuple(rows),
        total_employee_contribution=sum((r.employee_contribution for r in rows), ZERO),
        total_employer_contribution=sum((r.employer_contribution for r in rows), ZERO),
    )

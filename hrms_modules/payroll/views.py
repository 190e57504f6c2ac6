"""
Payslip and compliance presentation (``hrms_modules.payroll.views``).

Builds display-ready view models from payslips and renders them as plain
text; exports compliance reports to CSV and XLSX.  Indian digit grouping
and amount-in-words live here and nowhere in the calculation path.
"""

from __future__ import annotations

import calendar
import csv
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import IO
from uuid import UUID

from openpyxl import Workbook
from openpyxl.styles import Font

from hrms_kernel.exceptions import ValidationError
from hrms_kernel.logging_config import get_logger
from hrms_modules.payroll.models import (
    ComplianceReport,
    ComplianceReportType,
    Employee,
    Payslip,
    parse_pay_period,
)

logger = get_logger("modules.payroll.views")

RUPEE = "₹"
WIDTH = 72

EARNING_LABELS = {
    "basic_salary": "Basic Salary",
    "hra": "House Rent Allowance",
    "conveyance_allowance": "Conveyance Allowance",
    "medical_allowance": "Medical Allowance",
    "special_allowance": "Special Allowance",
    "overtime_pay": "Overtime Pay",
    "bonus": "Bonus",
}

DEDUCTION_LABELS = {
    "pf_deduction": "Provident Fund",
    "esi_deduction": "ESI",
    "professional_tax": "Professional Tax",
    "tds_deduction": "TDS",
    "loan_deduction": "Loan Recovery",
    "advance_deduction": "Advance Recovery",
}

# Shown only when non-zero.
_OPTIONAL_LINES = frozenset({"overtime_pay", "bonus", "loan_deduction", "advance_deduction"})

REPORT_TITLES = {
    ComplianceReportType.PF: "Provident Fund",
    ComplianceReportType.ESI: "Employee State Insurance",
    ComplianceReportType.PROFESSIONAL_TAX: "Professional Tax",
    ComplianceReportType.TDS: "Tax Deducted at Source",
}


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def format_inr(amount: Decimal, symbol: bool = True) -> str:
    """Whole-rupee amount with Indian grouping: ``1234567`` -> ``12,34,567``."""
    whole = int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    sign = "-" if whole < 0 else ""
    digits = str(abs(whole))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}{RUPEE if symbol else ''}{digits}"


def period_label(pay_period: str) -> str:
    """``2025-01`` -> ``January 2025``."""
    year, month = parse_pay_period(pay_period)
    return f"{calendar.month_name[month]} {year}"


_ONES = (
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
)
_TENS = ("", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety")


def _below_thousand(n: int) -> list[str]:
    words: list[str] = []
    if n >= 100:
        words += [_ONES[n // 100], "Hundred"]
        n %= 100
    if n >= 20:
        words.append(_TENS[n // 10])
        n %= 10
    if n:
        words.append(_ONES[n])
    return words


def amount_in_words(amount: Decimal) -> str:
    """Indian-system words: ``153250`` -> ``One Lakh Fifty Three Thousand Two Hundred Fifty Rupees Only``."""
    whole = int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if whole == 0:
        return "Zero Rupees Only"
    words: list[str] = ["Minus"] if whole < 0 else []
    n = abs(whole)
    for divisor, name in ((10_000_000, "Crore"), (100_000, "Lakh"), (1_000, "Thousand")):
        if n >= divisor:
            count = n // divisor
            # Crores may exceed 99, so they recurse through the same scale.
            words += (amount_in_words(Decimal(count)).removesuffix(" Rupees Only").split()
                      if divisor == 10_000_000 else _below_thousand(count))
            words.append(name)
            n %= divisor
    words += _below_thousand(n)
    return " ".join(words) + " Rupees Only"


# ---------------------------------------------------------------------------
# Payslip view model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PayslipView:
    """Display-ready payslip; every amount already formatted."""
    payslip_id: UUID
    employee_code: str
    employee_name: str
    department: str | None
    position: str | None
    pay_period: str
    period_label: str
    status: str
    working_days: int
    present_days: int
    leave_days: int
    attendance_percent: Decimal | None
    earnings: tuple[tuple[str, str], ...]
    deductions: tuple[tuple[str, str], ...]
    gross_pay: str
    total_deductions: str
    net_pay: str
    net_pay_words: str


def attendance_percent(present_days: int, working_days: int) -> Decimal | None:
    if working_days <= 0:
        return None
    ratio = Decimal(present_days) * 100 / Decimal(working_days)
    return ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def build_payslip_view(payslip: Payslip, employee: Employee) -> PayslipView:
    if payslip.employee_id != employee.id:
        raise ValidationError("employee", employee.id, "does not match payslip employee")
    breakdown = payslip.breakdown

    def lines(labels: dict[str, str]) -> tuple[tuple[str, str], ...]:
        return tuple(
            (label, format_inr(getattr(breakdown, name)))
            for name, label in labels.items()
            if name not in _OPTIONAL_LINES or getattr(breakdown, name) != 0
        )

    return PayslipView(
        payslip_id=payslip.id,
        employee_code=employee.employee_code,
        employee_name=employee.full_name,
        department=employee.department,
        position=employee.position,
        pay_period=payslip.pay_period,
        period_label=period_label(payslip.pay_period),
        status=payslip.status.value,
        working_days=payslip.working_days,
        present_days=payslip.present_days,
        leave_days=payslip.leave_days,
        attendance_percent=attendance_percent(payslip.present_days, payslip.working_days),
        earnings=lines(EARNING_LABELS),
        deductions=lines(DEDUCTION_LABELS),
        gross_pay=format_inr(breakdown.gross_pay),
        total_deductions=format_inr(breakdown.total_deductions),
        net_pay=format_inr(breakdown.net_pay),
        net_pay_words=amount_in_words(breakdown.net_pay),
    )


def render_payslip_text(view: PayslipView) -> str:
    """Plain-text payslip, earnings and deductions side by side."""
    out: list[str] = []
    out.append("=" * WIDTH)
    out.append(f"PAYSLIP FOR {view.period_label.upper()}".center(WIDTH))
    out.append("=" * WIDTH)
    out.append(f"  Employee:   {view.employee_name} ({view.employee_code})")
    if view.department or view.position:
        out.append(f"  Department: {view.department or '-'}   Position: {view.position or '-'}")
    attendance = "N/A" if view.attendance_percent is None else f"{view.attendance_percent}%"
    out.append(
        f"  Working days: {view.working_days}   Present: {view.present_days}   "
        f"Leave: {view.leave_days}   Attendance: {attendance}"
    )
    out.append("-" * WIDTH)
    out.append(f"  {'Earnings':<21} {'Amount':>12}  {'Deductions':<21} {'Amount':>10}")
    out.append(f"  {'-' * 21} {'-' * 12}  {'-' * 21} {'-' * 10}")
    rows = max(len(view.earnings), len(view.deductions))
    for i in range(rows):
        e_label, e_amt = view.earnings[i] if i < len(view.earnings) else ("", "")
        d_label, d_amt = view.deductions[i] if i < len(view.deductions) else ("", "")
        out.append(f"  {e_label:<21} {e_amt:>12}  {d_label:<21} {d_amt:>10}")
    out.append(f"  {'-' * 21} {'-' * 12}  {'-' * 21} {'-' * 10}")
    out.append(
        f"  {'Gross Pay':<21} {view.gross_pay:>12}  {'Total Deductions':<21} {view.total_deductions:>10}"
    )
    out.append("=" * WIDTH)
    out.append(f"  NET PAY: {view.net_pay}")
    out.append(f"  {view.net_pay_words}")
    out.append("=" * WIDTH)
    return "\n".join(out) + "\n"


# ---------------------------------------------------------------------------
# Compliance export
# ---------------------------------------------------------------------------

COMPLIANCE_HEADERS = (
    "Employee Code",
    "Employee Name",
    "Department",
    "Gross Pay",
    "Employee Contribution",
    "Employer Contribution",
    "Eligible",
)


def _compliance_rows(report: ComplianceReport) -> list[list]:
    rows: list[list] = [
        [
            row.employee_code,
            row.employee_name,
            row.department or "",
            row.gross_pay,
            row.employee_contribution,
            row.employer_contribution,
            "Yes" if row.eligible else "No",
        ]
        for row in report.rows
    ]
    rows.append([
        "TOTAL", "", "", "",
        report.total_employee_contribution,
        report.total_employer_contribution,
        "",
    ])
    return rows


def write_compliance_csv(report: ComplianceReport, stream: IO[str]) -> int:
    """Write the report as CSV with a trailing TOTAL row; returns data rows written."""
    writer = csv.writer(stream)
    writer.writerow(COMPLIANCE_HEADERS)
    for row in _compliance_rows(report):
        writer.writerow([str(value) for value in row])
    logger.info("compliance_csv_written", extra={
        "report_type": report.report_type.value,
        "pay_period": report.pay_period,
        "row_count": report.employee_count,
    })
    return report.employee_count


def write_compliance_xlsx(report: ComplianceReport, path: str | Path) -> Path:
    """Write the report to a single-sheet workbook at ``path``."""
    path = Path(path)
    wb = Workbook()
    ws = wb.active
    ws.title = f"{report.report_type.value} {report.pay_period}"
    ws.append([f"{REPORT_TITLES[report.report_type]} - {period_label(report.pay_period)}"])
    ws["A1"].font = Font(bold=True)
    ws.append(list(COMPLIANCE_HEADERS))
    for cell in ws[2]:
        cell.font = Font(bold=True)
    for row in _compliance_rows(report):
        ws.append(row)
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)
    wb.save(path)
    logger.info("compliance_xlsx_written", extra={
        "report_type": report.report_type.value,
        "pay_period": report.pay_period,
        "row_count": report.employee_count,
        "path": str(path),
    })
    return path

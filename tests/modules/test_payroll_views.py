"""
Tests for payslip presentation and compliance export.

Validates Indian digit grouping, amount-in-words, the payslip view model
and text rendering, and CSV / XLSX compliance output.
"""

import csv
import io
from datetime import datetime, UTC
from decimal import Decimal
from uuid import uuid4

import pytest
from openpyxl import load_workbook

from hrms_kernel.exceptions import ValidationError
from hrms_modules.payroll.helpers import compute_pay_breakdown
from hrms_modules.payroll.models import (
    CompensationInput,
    ComplianceReport,
    ComplianceReportType,
    ComplianceRow,
    Payslip,
)
from hrms_modules.payroll.views import (
    COMPLIANCE_HEADERS,
    amount_in_words,
    attendance_percent,
    build_payslip_view,
    format_inr,
    period_label,
    render_payslip_text,
    write_compliance_csv,
    write_compliance_xlsx,
)
from tests.modules.conftest import TEST_EMPLOYEE_ID, make_employee


def _payslip(**inputs):
    return Payslip(
        id=uuid4(),
        employee_id=TEST_EMPLOYEE_ID,
        pay_period="2025-01",
        breakdown=compute_pay_breakdown(
            CompensationInput(basic_salary=Decimal("50000"), **inputs)
        ),
        working_days=22,
        present_days=21,
        leave_days=1,
        generated_at=datetime(2025, 1, 31, 18, 0, tzinfo=UTC),
    )


def _pf_report():
    return ComplianceReport(
        report_type=ComplianceReportType.PF,
        pay_period="2025-01",
        rows=(
            ComplianceRow(TEST_EMPLOYEE_ID, "EMP001", "Asha Rao", "Engineering",
                          Decimal("78250"), Decimal("1800"), Decimal("1800")),
            ComplianceRow(uuid4(), "EMP002", "Ravi Iyer", None,
                          Decimal("18250"), Decimal("1200"), Decimal("1200")),
        ),
        total_employee_contribution=Decimal("3000"),
        total_employer_contribution=Decimal("3000"),
    )


# =============================================================================
# Formatting
# =============================================================================


class TestFormatting:

    @pytest.mark.parametrize("amount, expected", [
        ("0", "₹0"),
        ("999", "₹999"),
        ("1000", "₹1,000"),
        ("123456", "₹1,23,456"),
        ("1234567", "₹12,34,567"),
        ("123456789", "₹12,34,56,789"),
        ("-1500", "-₹1,500"),
    ])
    def test_format_inr(self, amount, expected):
        assert format_inr(Decimal(amount)) == expected

    def test_format_inr_without_symbol(self):
        assert format_inr(Decimal("70925"), symbol=False) == "70,925"

    @pytest.mark.parametrize("amount, expected", [
        ("0", "Zero Rupees Only"),
        ("15", "Fifteen Rupees Only"),
        ("70925", "Seventy Thousand Nine Hundred Twenty Five Rupees Only"),
        ("153250", "One Lakh Fifty Three Thousand Two Hundred Fifty Rupees Only"),
        ("123456789",
         "Twelve Crore Thirty Four Lakh Fifty Six Thousand Seven Hundred Eighty Nine Rupees Only"),
    ])
    def test_amount_in_words(self, amount, expected):
        assert amount_in_words(Decimal(amount)) == expected

    def test_period_label(self):
        assert period_label("2025-01") == "January 2025"
        assert period_label("2024-12") == "December 2024"
        with pytest.raises(ValidationError):
            period_label("2025-00")

    def test_attendance_percent(self):
        assert attendance_percent(21, 22) == Decimal("95.5")
        assert attendance_percent(22, 22) == Decimal("100.0")
        assert attendance_percent(0, 0) is None


# =============================================================================
# Payslip view
# =============================================================================


class TestPayslipView:

    def test_view_fields(self):
        view = build_payslip_view(_payslip(), make_employee())
        assert view.employee_name == "Asha Rao"
        assert view.period_label == "January 2025"
        assert view.attendance_percent == Decimal("95.5")
        assert view.net_pay == "₹70,925"
        assert view.gross_pay == "₹78,250"
        assert view.net_pay_words == "Seventy Thousand Nine Hundred Twenty Five Rupees Only"

    def test_zero_optional_lines_hidden(self):
        view = build_payslip_view(_payslip(), make_employee())
        labels = [label for label, _ in view.earnings + view.deductions]
        assert "Overtime Pay" not in labels
        assert "Bonus" not in labels
        assert "Loan Recovery" not in labels
        # Statutory lines are always shown
        assert "ESI" in labels

    def test_non_zero_optional_lines_shown(self):
        view = build_payslip_view(_payslip(bonus=Decimal("5000")), make_employee())
        assert ("Bonus", "₹5,000") in view.earnings

    def test_employee_mismatch(self):
        with pytest.raises(ValidationError):
            build_payslip_view(_payslip(), make_employee(employee_id=uuid4()))

    def test_render_text(self):
        text = render_payslip_text(build_payslip_view(_payslip(), make_employee()))
        assert "PAYSLIP FOR JANUARY 2025" in text
        assert "Asha Rao (EMP001)" in text
        assert "House Rent Allowance" in text
        assert "₹20,000" in text
        assert "  NET PAY: ₹70,925" in text
        assert "Attendance: 95.5%" in text


# =============================================================================
# Compliance export
# =============================================================================


class TestComplianceExport:

    def test_csv(self):
        buf = io.StringIO()
        written = write_compliance_csv(_pf_report(), buf)
        assert written == 2
        rows = list(csv.reader(io.StringIO(buf.getvalue())))
        assert rows[0] == list(COMPLIANCE_HEADERS)
        assert rows[1][:5] == ["EMP001", "Asha Rao", "Engineering", "78250", "1800"]
        assert rows[2][2] == ""
        assert rows[-1][0] == "TOTAL"
        assert rows[-1][4] == "3000"

    def test_xlsx(self, tmp_path):
        path = write_compliance_xlsx(_pf_report(), tmp_path / "pf.xlsx")
        assert path.exists()
        ws = load_workbook(path).active
        assert ws.title == "pf 2025-01"
        assert ws["A1"].value == "Provident Fund - January 2025"
        assert ws["A1"].font.bold
        assert [c.value for c in ws[2]] == list(COMPLIANCE_HEADERS)
        assert ws["A3"].value == "EMP001"
        assert float(ws["E3"].value) == 1800
        assert ws["A5"].value == "TOTAL"
        assert float(ws["E5"].value) == 3000
        assert ws["A5"].font.bold

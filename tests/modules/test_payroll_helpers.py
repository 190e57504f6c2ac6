"""
Tests for the payroll calculation helpers.

Covers:
- compute_pay_breakdown: canonical gross-to-net with whole-unit rounding
- calculate_pf / calculate_esi / calculate_professional_tax / calculate_monthly_tds
- calculate_overtime_pay and attendance proration
- project_annual_tds: slab tax plus cess
- calculate_emi / calculate_advance_installment
- build_compliance_report: PF, ESI, professional tax, TDS
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

import pytest

from hrms_kernel.exceptions import EmployeeNotFoundError, ValidationError
from hrms_modules.payroll.config import ProfessionalTaxBand, SalarySettings
from hrms_modules.payroll.helpers import (
    MAX_INPUT,
    MAX_INTEREST_RATE_PERCENT,
    MAX_TENURE_MONTHS,
    attendance_factor,
    build_compliance_report,
    calculate_advance_installment,
    calculate_emi,
    calculate_esi,
    calculate_monthly_tds,
    calculate_overtime_pay,
    calculate_pf,
    calculate_professional_tax,
    compute_pay_breakdown,
    project_annual_tds,
    round_currency,
    validate_compensation_input,
)
from hrms_modules.payroll.models import (
    ComplianceReportType,
    CompensationInput,
    Payslip,
    PayslipStatus,
)
from tests.modules.conftest import make_employee


def _inp(basic: str, **kwargs) -> CompensationInput:
    return CompensationInput(basic_salary=Decimal(basic), **kwargs)


# =============================================================================
# Rounding
# =============================================================================


class TestRoundCurrency:

    def test_half_rounds_up(self):
        assert round_currency(Decimal("4000.5")) == Decimal("4001")
        assert round_currency(Decimal("319.375")) == Decimal("319")
        assert round_currency(Decimal("170.625")) == Decimal("171")

    def test_whole_values_unchanged(self):
        assert round_currency(Decimal("1800")) == Decimal("1800")

    def test_result_has_no_fraction_digits(self):
        assert round_currency(Decimal("12.34")).as_tuple().exponent == 0


# =============================================================================
# Canonical breakdown
# =============================================================================


class TestComputePayBreakdown:

    def test_basic_50000(self):
        b = compute_pay_breakdown(_inp("50000"))
        assert b.basic_salary == Decimal("50000")
        assert b.hra == Decimal("20000")
        assert b.conveyance_allowance == Decimal("2000")
        assert b.medical_allowance == Decimal("1250")
        assert b.special_allowance == Decimal("5000")
        assert b.overtime_pay == Decimal("0")
        assert b.gross_pay == Decimal("78250")
        assert b.pf_deduction == Decimal("1800")  # capped
        assert b.esi_deduction == Decimal("0")
        assert b.professional_tax == Decimal("200")
        assert b.tds_deduction == Decimal("5325")
        assert b.total_deductions == Decimal("7325")
        assert b.net_pay == Decimal("70925")

    def test_basic_10000_esi_applies(self):
        b = compute_pay_breakdown(_inp("10000"))
        assert b.gross_pay == Decimal("18250")
        assert b.pf_deduction == Decimal("1200")
        assert b.esi_deduction == Decimal("319")  # 319.375
        assert b.professional_tax == Decimal("150")
        assert b.tds_deduction == Decimal("0")
        assert b.net_pay == Decimal("16581")

    def test_basic_5000_lowest_tax_band(self):
        b = compute_pay_breakdown(_inp("5000"))
        assert b.gross_pay == Decimal("10750")
        assert b.pf_deduction == Decimal("600")
        assert b.esi_deduction == Decimal("188")  # 188.125
        assert b.professional_tax == Decimal("0")
        assert b.tds_deduction == Decimal("0")
        assert b.net_pay == Decimal("9962")

    def test_gross_exactly_at_esi_threshold_is_eligible(self):
        b = compute_pay_breakdown(_inp("14500"))
        assert b.gross_pay == Decimal("25000")
        assert b.esi_deduction == Decimal("438")  # 437.5 rounds up
        assert b.professional_tax == Decimal("150")
        assert b.tds_deduction == Decimal("0")

    def test_gross_just_above_esi_threshold(self):
        b = compute_pay_breakdown(_inp("15000"))
        assert b.gross_pay == Decimal("25750")
        assert b.esi_deduction == Decimal("0")
        assert b.professional_tax == Decimal("200")
        assert b.tds_deduction == Decimal("75")

    def test_components_rounded_before_summing(self):
        b = compute_pay_breakdown(_inp("10001.25"))
        assert b.basic_salary == Decimal("10001")
        assert b.hra == Decimal("4001")  # 4000.5
        assert b.special_allowance == Decimal("1000")  # 1000.125
        assert b.gross_pay == sum((amount for _, amount in b.earnings()), Decimal("0"))

    def test_zero_basic_nets_to_zero(self):
        b = compute_pay_breakdown(_inp("0"))
        assert all(amount == 0 for _, amount in b.earnings())
        assert b.gross_pay == Decimal("0")
        assert b.net_pay == Decimal("0")

    def test_zero_basic_with_bonus(self):
        b = compute_pay_breakdown(_inp("0", bonus=Decimal("5000")))
        assert b.hra == Decimal("0")
        assert b.conveyance_allowance == Decimal("0")
        assert b.gross_pay == Decimal("5000")
        assert b.esi_deduction == Decimal("88")
        assert b.net_pay == Decimal("4912")

    def test_loan_and_advance_pass_through(self):
        b = compute_pay_breakdown(
            _inp("50000", loan_deduction=Decimal("4500"), advance_deduction=Decimal("1000.4"))
        )
        assert b.loan_deduction == Decimal("4500")
        assert b.advance_deduction == Decimal("1000")
        assert b.total_deductions == Decimal("12825")
        assert b.net_pay == Decimal("65425")

    def test_attendance_does_not_change_pay_by_default(self):
        full = compute_pay_breakdown(_inp("30000", working_days=22, present_days=22))
        partial = compute_pay_breakdown(_inp("30000", working_days=22, present_days=10))
        assert full == partial

    def test_deterministic(self):
        inp = _inp("43210.55", working_days=22, present_days=20, overtime_hours=Decimal("7.5"))
        assert compute_pay_breakdown(inp) == compute_pay_breakdown(inp)

    def test_custom_settings_change_allowances(self):
        settings = SalarySettings(medical_allowance=Decimal("1500"), special_allowance_rate=Decimal("0.15"))
        b = compute_pay_breakdown(_inp("20000"), settings)
        assert b.medical_allowance == Decimal("1500")
        assert b.special_allowance == Decimal("3000")


class TestValidation:

    def test_negative_basic_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            compute_pay_breakdown(_inp("-1"))
        assert exc_info.value.field == "basic_salary"

    def test_negative_working_days_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            compute_pay_breakdown(_inp("1000", working_days=-1))
        assert exc_info.value.field == "working_days"

    def test_present_exceeding_working_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_compensation_input(_inp("1000", working_days=20, present_days=21))
        assert exc_info.value.field == "present_days"

    def test_present_plus_leave_may_exceed_working(self):
        validate_compensation_input(_inp("1000", working_days=20, present_days=15, leave_days=8))

    @pytest.mark.parametrize("field", ["overtime_hours", "bonus", "loan_deduction", "advance_deduction"])
    def test_other_negative_amounts_rejected(self, field):
        with pytest.raises(ValidationError):
            compute_pay_breakdown(_inp("1000", **{field: Decimal("-5")}))

    def test_non_finite_rejected(self):
        with pytest.raises(ValidationError):
            compute_pay_breakdown(CompensationInput(basic_salary=Decimal("Infinity")))
        with pytest.raises(ValidationError):
            compute_pay_breakdown(CompensationInput(basic_salary=Decimal("NaN")))

    def test_float_input_converted_exactly(self):
        b = compute_pay_breakdown(CompensationInput(basic_salary=10000.0))
        assert b.basic_salary == Decimal("10000")

    @pytest.mark.parametrize("basic", [Decimal("1E+28"), 1e300, Decimal("1000000000001")])
    def test_amount_above_maximum_rejected(self, basic):
        with pytest.raises(ValidationError) as exc_info:
            compute_pay_breakdown(CompensationInput(basic_salary=basic))
        assert exc_info.value.field == "basic_salary"

    def test_oversized_request_body_rejected(self):
        with pytest.raises(ValidationError):
            CompensationInput.from_dict({"basicSalary": "1e300"})

    def test_maximum_inputs_compute(self):
        b = compute_pay_breakdown(CompensationInput(
            basic_salary=MAX_INPUT,
            overtime_hours=MAX_INPUT,
            bonus=MAX_INPUT,
            loan_deduction=MAX_INPUT,
            advance_deduction=MAX_INPUT,
        ))
        # 10^12 x (10^12 / 160) x 1.5
        assert b.overtime_pay == Decimal("9375000000000000000000")
        assert b.pf_deduction == Decimal("1800")
        assert b.net_pay == b.gross_pay - b.total_deductions


# =============================================================================
# Individual components
# =============================================================================


class TestComponents:

    def test_pf_below_cap(self, settings):
        assert calculate_pf(Decimal("10000"), settings) == Decimal("1200")

    def test_pf_capped(self, settings):
        assert calculate_pf(Decimal("1000000"), settings) == Decimal("1800")

    def test_esi_zero_above_threshold(self, settings):
        assert calculate_esi(Decimal("25001"), settings) == Decimal("0")

    def test_esi_zero_for_zero_gross(self, settings):
        assert calculate_esi(Decimal("0"), settings) == Decimal("0")

    @pytest.mark.parametrize(
        "gross,expected",
        [
            ("0", "0"),
            ("15000", "0"),
            ("15001", "150"),
            ("25000", "150"),
            ("25001", "200"),
            ("500000", "200"),
        ],
    )
    def test_professional_tax_bands(self, settings, gross, expected):
        assert calculate_professional_tax(Decimal(gross), settings) == Decimal(expected)

    def test_professional_tax_above_bounded_last_band(self):
        settings = SalarySettings(
            professional_tax_bands=(
                ProfessionalTaxBand(Decimal("10000"), Decimal("0")),
                ProfessionalTaxBand(Decimal("20000"), Decimal("100")),
            )
        )
        assert calculate_professional_tax(Decimal("30000"), settings) == Decimal("100")

    def test_monthly_tds_zero_at_exemption(self, settings):
        assert calculate_monthly_tds(Decimal("25000"), settings) == Decimal("0")

    def test_monthly_tds_above_exemption(self, settings):
        assert calculate_monthly_tds(Decimal("78250"), settings) == Decimal("5325")

    def test_overtime_pay(self, settings):
        # 16000 / 160 = 100 per hour, x 1.5 premium, x 10 hours
        assert calculate_overtime_pay(Decimal("16000"), Decimal("10"), settings) == Decimal("1500")

    def test_overtime_included_in_gross(self):
        b = compute_pay_breakdown(_inp("16000", overtime_hours=Decimal("10")))
        assert b.overtime_pay == Decimal("1500")
        assert b.gross_pay == Decimal("16000") * Decimal("1.5") + Decimal("3250") + Decimal("1500")


class TestProration:

    @pytest.fixture
    def prorating(self):
        return SalarySettings(prorate_by_attendance=True)

    def test_attendance_factor(self):
        assert attendance_factor(20, 15, 0) == Decimal("0.75")
        assert attendance_factor(20, 15, 10) == Decimal("1")
        assert attendance_factor(0, 0, 0) == Decimal("1")

    def test_prorated_basic_and_derived_components(self, prorating):
        b = compute_pay_breakdown(_inp("30000", working_days=20, present_days=15), prorating)
        assert b.basic_salary == Decimal("22500")
        assert b.hra == Decimal("9000")
        assert b.special_allowance == Decimal("2250")
        assert b.conveyance_allowance == Decimal("2000")
        assert b.gross_pay == Decimal("37000")

    def test_leave_days_are_paid(self, prorating):
        b = compute_pay_breakdown(
            _inp("30000", working_days=20, present_days=15, leave_days=5), prorating
        )
        assert b.basic_salary == Decimal("30000")

    def test_no_paid_days_no_pay(self, prorating):
        b = compute_pay_breakdown(_inp("30000", working_days=20, present_days=0), prorating)
        assert b.gross_pay == Decimal("0")
        assert b.net_pay == Decimal("0")

    def test_zero_working_days_skips_proration(self, prorating):
        b = compute_pay_breakdown(_inp("30000"), prorating)
        assert b.basic_salary == Decimal("30000")


# =============================================================================
# Annual TDS projection
# =============================================================================


class TestProjectAnnualTds:

    def test_twelve_lakh_without_exemptions(self, settings):
        p = project_annual_tds(Decimal("1200000"), None, settings)
        assert p.taxable_income == Decimal("1200000")
        assert p.slab_tax == Decimal("80000")
        assert p.cess == Decimal("3200")
        assert p.total_tax == Decimal("83200")
        assert p.monthly_tds == Decimal("6933")
        assert p.effective_rate == Decimal("6.93")

    def test_exemptions_reduce_taxable_income(self, settings):
        p = project_annual_tds(
            Decimal("1200000"),
            {"section_80c": Decimal("150000")},
            settings,
        )
        assert p.total_exemptions == Decimal("150000")
        assert p.taxable_income == Decimal("1050000")
        assert p.slab_tax == Decimal("57500")
        assert p.total_tax == Decimal("59800")

    def test_income_within_exempt_slab(self, settings):
        p = project_annual_tds(Decimal("250000"), None, settings)
        assert p.total_tax == Decimal("0")
        assert p.monthly_tds == Decimal("0")

    def test_exemptions_larger_than_income(self, settings):
        p = project_annual_tds(Decimal("100000"), {"other": Decimal("500000")}, settings)
        assert p.taxable_income == Decimal("0")

    def test_top_slab(self, settings):
        p = project_annual_tds(Decimal("2000000"), None, settings)
        # 20000 + 30000 + 30000 + 60000 + 150000
        assert p.slab_tax == Decimal("290000")

    def test_zero_salary(self, settings):
        p = project_annual_tds(Decimal("0"), None, settings)
        assert p.effective_rate == Decimal("0")

    def test_negative_exemption_rejected(self, settings):
        with pytest.raises(ValidationError):
            project_annual_tds(Decimal("100000"), {"bad": Decimal("-1")}, settings)


# =============================================================================
# Loans and advances
# =============================================================================


class TestLoanMath:

    def test_emi_reducing_balance(self):
        # 1 lakh at 12% over 12 months: 8884.88
        assert calculate_emi(Decimal("100000"), Decimal("12"), 12) == Decimal("8885")

    def test_emi_interest_free(self):
        assert calculate_emi(Decimal("120000"), Decimal("0"), 12) == Decimal("10000")

    def test_emi_zero_tenure_rejected(self):
        with pytest.raises(ValidationError):
            calculate_emi(Decimal("1000"), Decimal("10"), 0)

    def test_emi_negative_principal_rejected(self):
        with pytest.raises(ValidationError):
            calculate_emi(Decimal("-1000"), Decimal("10"), 12)

    def test_emi_bounds(self):
        assert calculate_emi(MAX_INPUT, MAX_INTEREST_RATE_PERCENT, MAX_TENURE_MONTHS) > 0
        with pytest.raises(ValidationError):
            calculate_emi(Decimal("1000"), Decimal("10"), MAX_TENURE_MONTHS + 1)
        with pytest.raises(ValidationError):
            calculate_emi(Decimal("1000"), Decimal("100.5"), 12)

    def test_advance_installment(self):
        assert calculate_advance_installment(Decimal("10000"), 3) == Decimal("3333")

    def test_advance_zero_months_rejected(self):
        with pytest.raises(ValidationError):
            calculate_advance_installment(Decimal("10000"), 0)


# =============================================================================
# Compliance reports
# =============================================================================


def _payslip(employee, pay_period="2025-01", status=PayslipStatus.GENERATED):
    breakdown = compute_pay_breakdown(CompensationInput(basic_salary=employee.base_salary))
    return Payslip(
        id=uuid4(),
        employee_id=employee.id,
        pay_period=pay_period,
        breakdown=breakdown,
        working_days=22,
        present_days=22,
        status=status,
    )


class TestComplianceReport:

    @pytest.fixture
    def staff(self):
        senior = make_employee(code="EMP002", base_salary="50000", employee_id=uuid4())
        junior = make_employee(code="EMP001", base_salary="10000", employee_id=uuid4())
        return {e.id: e for e in (senior, junior)}

    def test_pf_report(self, staff, settings):
        payslips = [_payslip(e) for e in staff.values()]
        report = build_compliance_report("pf", "2025-01", payslips, staff, settings)
        assert report.report_type is ComplianceReportType.PF
        assert [r.employee_code for r in report.rows] == ["EMP001", "EMP002"]
        assert [r.employee_contribution for r in report.rows] == [Decimal("1200"), Decimal("1800")]
        assert [r.employer_contribution for r in report.rows] == [Decimal("1200"), Decimal("1800")]
        assert report.total_employee_contribution == Decimal("3000")
        assert report.total_employer_contribution == Decimal("3000")

    def test_esi_report_eligibility(self, staff, settings):
        payslips = [_payslip(e) for e in staff.values()]
        report = build_compliance_report(ComplianceReportType.ESI, "2025-01", payslips, staff, settings)
        junior, senior = report.rows
        assert junior.eligible and not senior.eligible
        assert junior.employee_contribution == Decimal("319")
        assert junior.employer_contribution == Decimal("593")  # 18250 x 3.25% = 593.125
        assert senior.employer_contribution == Decimal("0")
        assert report.eligible_count == 1

    def test_professional_tax_report(self, staff, settings):
        payslips = [_payslip(e) for e in staff.values()]
        report = build_compliance_report("professional_tax", "2025-01", payslips, staff, settings)
        assert report.total_employee_contribution == Decimal("350")
        assert report.total_employer_contribution == Decimal("0")

    def test_tds_report(self, staff, settings):
        payslips = [_payslip(e) for e in staff.values()]
        report = build_compliance_report("tds", "2025-01", payslips, staff, settings)
        assert report.total_employee_contribution == Decimal("5325")
        assert report.eligible_count == 1

    def test_superseded_and_other_periods_skipped(self, staff, settings):
        employee = next(iter(staff.values()))
        payslips = [
            _payslip(employee),
            _payslip(employee, status=PayslipStatus.SUPERSEDED),
            _payslip(employee, pay_period="2025-02"),
        ]
        report = build_compliance_report("pf", "2025-01", payslips, staff, settings)
        assert report.employee_count == 1

    def test_unknown_report_type(self, staff, settings):
        with pytest.raises(ValidationError):
            build_compliance_report("gratuity", "2025-01", [], staff, settings)

    def test_missing_employee(self, staff, settings):
        stranger = make_employee(employee_id=uuid4())
        with pytest.raises(EmployeeNotFoundError):
            build_compliance_report("pf", "2025-01", [_payslip(stranger)], staff, settings)

    def test_empty_period(self, staff, settings):
        report = build_compliance_report("esi", "2025-03", [], staff, settings)
        assert report.rows == ()
        assert report.total_employee_contribution == Decimal("0")

    def test_breakdown_is_reused_not_recomputed(self, staff, settings):
        employee = next(iter(staff.values()))
        slip = _payslip(employee)
        richer = replace(slip.breakdown, pf_deduction=slip.breakdown.pf_deduction - 1,
                         total_deductions=slip.breakdown.total_deductions - 1,
                         net_pay=slip.breakdown.net_pay + 1)
        report = build_compliance_report(
            "pf", "2025-01", [replace(slip, breakdown=richer)], staff, settings,
        )
        assert report.rows[0].employee_contribution == slip.breakdown.pf_deduction - 1

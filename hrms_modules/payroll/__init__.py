"""
Payroll Module (``hrms_modules.payroll``).

Responsibility
--------------
Indian monthly payroll: the canonical gross-to-net calculator (HRA, fixed
allowances, overtime, PF, ESI, professional tax, TDS), payslip generation
and lifecycle, loan and salary-advance recovery, annual TDS projection and
PF/ESI/professional-tax/TDS compliance reports.

Architecture position
---------------------
**Modules layer** -- a settings schema, frozen DTOs, pure helpers, storage
ports, ORM companions, a service facade and presentation views.  Every
formula constant comes from ``SalarySettings``.

Invariants enforced
-------------------
* Components are rounded to whole units before summing.
* ``net_pay == gross_pay - total_deductions`` exactly.
* At most one live payslip per employee and pay period.

Failure modes
-------------
* ``ValidationError`` -- bad calculator input, raised before any result.
* ``NotFoundError`` / ``ConflictError`` subclasses from the service.
"""

from hrms_modules.payroll.config import ProfessionalTaxBand, SalarySettings, TaxSlab
from hrms_modules.payroll.helpers import compute_pay_breakdown, round_currency
from hrms_modules.payroll.models import (
    AdvanceStatus,
    AttendanceSummary,
    CompensationInput,
    ComplianceReport,
    ComplianceReportType,
    ComplianceRow,
    Employee,
    EmployeeLoan,
    LoanStatus,
    PayBreakdown,
    Payslip,
    PayslipStatus,
    SalaryAdvance,
    TdsProjection,
)

__all__ = [
    "AdvanceStatus",
    "AttendanceSummary",
    "CompensationInput",
    "ComplianceReport",
    "ComplianceReportType",
    "ComplianceRow",
    "Employee",
    "EmployeeLoan",
    "LoanStatus",
    "PayBreakdown",
    "Payslip",
    "PayslipStatus",
    "ProfessionalTaxBand",
    "SalaryAdvance",
    "SalarySettings",
    "TaxSlab",
    "TdsProjection",
    "compute_pay_breakdown",
    "round_currency",
]

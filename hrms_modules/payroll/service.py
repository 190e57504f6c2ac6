"""
Payroll Module Service (``hrms_modules.payroll.service``).

Responsibility
--------------
Orchestrates payroll operations -- pay calculation, payslip generation and
lifecycle, loan and salary-advance recovery, annual TDS projection and
statutory compliance reports -- by delegating pure computation to
``helpers.py`` and persistence to the ``PayrollRepositories`` ports.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``PayrollService`` is the sole public
entry point for stateful payroll operations.  It never touches a session
directly; with ``sql_repositories`` the caller's ``session_scope`` owns
the transaction, so a payslip and the loan/advance balance changes it
causes commit or roll back together.

Invariants enforced
-------------------
* At most one live (non-superseded) payslip per employee and pay period.
* A regenerated payslip carries over the loan and advance recoveries of
  the payslip it supersedes; balances are reduced once per period.
* Payslip status changes follow ``PAYSLIP_TRANSITIONS``.
* Clock is injectable for deterministic ``generated_at`` stamps.

Failure modes
-------------
* Unknown employee -> ``EmployeeNotFoundError``.
* No attendance for the period -> ``AttendanceNotFoundError``.
* Live payslip exists and ``supersede`` is False -> ``DuplicatePayslipError``.
* Disallowed status change -> ``InvalidStatusTransitionError``.
* Bad input -> ``ValidationError`` before anything is written.

Audit relevance
---------------
Structured log events at operation start and completion for every public
method, carrying employee IDs, pay periods and amounts.  Payslips are
never rewritten in place once superseded.

Usage::

    with session_scope() as session:
        service = PayrollService(sql_repositories(session, actor_id), clock=clock)
        payslip = service.generate_payslip(employee_id, "2025-01")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from decimal import Decimal
from uuid import UUID, uuid4

from hrms_kernel.domain.clock import Clock, SystemClock
from hrms_kernel.exceptions import (
    AttendanceNotFoundError,
    DuplicatePayslipError,
    EmployeeNotFoundError,
    EntityNotFoundError,
    InvalidStatusTransitionError,
    PayslipNotFoundError,
    ValidationError,
)
from hrms_kernel.logging_config import LogContext, get_logger
from hrms_modules.payroll.config import SalarySettings
from hrms_modules.payroll.helpers import (
    build_compliance_report,
    calculate_advance_installment,
    calculate_emi,
    compute_pay_breakdown,
    project_annual_tds,
)
from hrms_modules.payroll.models import (
    PAYSLIP_TRANSITIONS,
    ZERO,
    AdvanceStatus,
    AttendanceSummary,
    ComplianceReport,
    ComplianceReportType,
    CompensationInput,
    Employee,
    EmployeeLoan,
    LoanStatus,
    PayBreakdown,
    Payslip,
    PayslipStatus,
    SalaryAdvance,
    TdsProjection,
    parse_pay_period,
)
from hrms_modules.payroll.repository import PayrollRepositories

logger = get_logger("modules.payroll.service")


class PayrollService:
    """
    Orchestrates payroll operations through helpers and repositories.

    Contract
    --------
    * ``calculate`` is a pure passthrough with the service settings.
    * Every other public method reads and writes only through the injected
      repositories and returns frozen DTOs.

    Non-goals
    ---------
    * Does NOT commit; transaction boundaries belong to the caller.
    * Does NOT render payslips (see ``views``).
    """

    def __init__(
        self,
        repositories: PayrollRepositories,
        settings: SalarySettings | None = None,
        clock: Clock | None = None,
    ):
        self._repos = repositories
        self._settings = settings or SalarySettings()
        self._clock = clock or SystemClock()

    @property
    def settings(self) -> SalarySettings:
        return self._settings

    # =========================================================================
    # Calculation
    # =========================================================================

    def calculate(self, inp: CompensationInput) -> PayBreakdown:
        """Compute a pay breakdown without persisting anything."""
        breakdown = compute_pay_breakdown(inp, self._settings)
        logger.info("pay_breakdown_computed", extra={
            "basic_salary": str(inp.basic_salary),
            "gross_pay": str(breakdown.gross_pay),
            "total_deductions": str(breakdown.total_deductions),
            "net_pay": str(breakdown.net_pay),
        })
        if breakdown.net_pay < 0:
            logger.warning("pay_breakdown_negative_net_pay", extra={
                "net_pay": str(breakdown.net_pay),
            })
        return breakdown

    # =========================================================================
    # Employees and attendance
    # =========================================================================

    def register_employee(self, employee: Employee) -> Employee:
        created = self._repos.employees.create(employee)
        logger.info("employee_registered", extra={
            "employee_id": str(employee.id),
            "employee_code": employee.employee_code,
        })
        return created

    def get_employee(self, employee_id: UUID) -> Employee:
        employee = self._repos.employees.get(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return employee

    def record_attendance(self, summary: AttendanceSummary) -> AttendanceSummary:
        """Store attendance for a period, replacing any earlier summary."""
        self.get_employee(summary.employee_id)
        if summary.present_days > summary.working_days:
            raise ValidationError(
                "present_days", summary.present_days,
                f"exceeds working_days ({summary.working_days})",
            )
        existing = self._repos.attendance.list(
            employee_id=summary.employee_id, pay_period=summary.pay_period,
        )
        if existing:
            stored = self._repos.attendance.update(replace(summary, id=existing[0].id))
        else:
            stored = self._repos.attendance.create(summary)
        logger.info("attendance_recorded", extra={
            "employee_id": str(summary.employee_id),
            "pay_period": summary.pay_period,
            "working_days": summary.working_days,
            "present_days": summary.present_days,
            "leave_days": summary.leave_days,
            "replaced": bool(existing),
        })
        return stored

    def _attendance_for(self, employee_id: UUID, pay_period: str) -> AttendanceSummary:
        rows = self._repos.attendance.list(employee_id=employee_id, pay_period=pay_period)
        if not rows:
            raise AttendanceNotFoundError(employee_id, pay_period)
        return rows[0]

    # =========================================================================
    # Payslips
    # =========================================================================

    def generate_payslip(
        self,
        employee_id: UUID,
        pay_period: str,
        *,
        bonus: Decimal = ZERO,
        supersede: bool = False,
    ) -> Payslip:
        """
        Generate and persist the payslip for one employee and period.

        Loan EMIs and approved advance installments are recovered (each
        capped at its remaining balance) and the balances reduced.  With
        ``supersede=True`` an existing live payslip is marked SUPERSEDED
        and its recoveries are reused rather than applied again.
        """
        parse_pay_period(pay_period)
        with LogContext.bind(employee_id=str(employee_id), pay_period=pay_period):
            logger.info("payslip_generation_started", extra={"supersede": supersede})

            employee = self.get_employee(employee_id)
            attendance = self._attendance_for(employee_id, pay_period)

            live = [
                p for p in self._repos.payslips.list(employee_id=employee_id, pay_period=pay_period)
                if p.is_live
            ]
            previous = live[0] if live else None
            if previous is not None:
                if not supersede:
                    logger.warning("payslip_duplicate_rejected", extra={
                        "existing_payslip_id": str(previous.id),
                    })
                    raise DuplicatePayslipError(employee_id, pay_period, previous.id)
                self._check_transition(previous, PayslipStatus.SUPERSEDED)

            if previous is not None:
                loan_recovery = previous.breakdown.loan_deduction
                advance_recovery = previous.breakdown.advance_deduction
                loan_updates: list[EmployeeLoan] = []
                advance_updates: list[SalaryAdvance] = []
            else:
                loan_recovery, loan_updates = self._recover_loans(employee_id)
                advance_recovery, advance_updates = self._recover_advances(employee_id)

            inp = CompensationInput(
                basic_salary=employee.base_salary,
                working_days=attendance.working_days,
                present_days=attendance.present_days,
                leave_days=attendance.leave_days,
                overtime_hours=attendance.overtime_hours,
                bonus=bonus,
                loan_deduction=loan_recovery,
                advance_deduction=advance_recovery,
            )
            breakdown = self.calculate(inp)

            payslip = Payslip(
                id=uuid4(),
                employee_id=employee_id,
                pay_period=pay_period,
                breakdown=breakdown,
                working_days=attendance.working_days,
                present_days=attendance.present_days,
                leave_days=attendance.leave_days,
                overtime_hours=attendance.overtime_hours,
                generated_at=self._clock.now_utc(),
            )
            self._repos.payslips.create(payslip)

            if previous is not None:
                self._repos.payslips.update(replace(
                    previous, status=PayslipStatus.SUPERSEDED, superseded_by=payslip.id,
                ))
                logger.info("payslip_superseded", extra={
                    "payslip_id": str(previous.id),
                    "superseded_by": str(payslip.id),
                })

            for loan in loan_updates:
                self._repos.loans.update(loan)
            for advance in advance_updates:
                self._repos.advances.update(advance)

            logger.info("payslip_generated", extra={
                "payslip_id": str(payslip.id),
                "gross_pay": str(breakdown.gross_pay),
                "total_deductions": str(breakdown.total_deductions),
                "net_pay": str(breakdown.net_pay),
                "loan_recovery": str(loan_recovery),
                "advance_recovery": str(advance_recovery),
            })
            return payslip

    def _recover_loans(self, employee_id: UUID) -> tuple[Decimal, list[EmployeeLoan]]:
        total = ZERO
        updated: list[EmployeeLoan] = []
        for loan in self._repos.loans.list(employee_id=employee_id, status=LoanStatus.ACTIVE):
            amount = min(loan.emi_amount, loan.remaining_amount)
            if amount <= 0:
                continue
            remaining = loan.remaining_amount - amount
            total += amount
            updated.append(replace(
                loan,
                remaining_amount=remaining,
                status=LoanStatus.CLOSED if remaining == 0 else loan.status,
            ))
        return total, updated

    def _recover_advances(self, employee_id: UUID) -> tuple[Decimal, list[SalaryAdvance]]:
        total = ZERO
        updated: list[SalaryAdvance] = []
        for advance in self._repos.advances.list(
            employee_id=employee_id, status=AdvanceStatus.APPROVED,
        ):
            amount = min(advance.monthly_deduction, advance.remaining_amount)
            if amount <= 0:
                continue
            remaining = advance.remaining_amount - amount
            total += amount
            updated.append(replace(
                advance,
                remaining_amount=remaining,
                status=AdvanceStatus.CLOSED if remaining == 0 else advance.status,
            ))
        return total, updated

    def get_payslip(self, payslip_id: UUID) -> Payslip:
        payslip = self._repos.payslips.get(payslip_id)
        if payslip is None:
            raise PayslipNotFoundError(payslip_id)
        return payslip

    def list_payslips(
        self,
        employee_id: UUID | None = None,
        pay_period: str | None = None,
        include_superseded: bool = False,
    ) -> list[Payslip]:
        """Payslips ordered by pay period, then generation time."""
        filters: dict = {}
        if employee_id is not None:
            filters["employee_id"] = employee_id
        if pay_period is not None:
            parse_pay_period(pay_period)
            filters["pay_period"] = pay_period
        payslips = [
            p for p in self._repos.payslips.list(**filters)
            if include_superseded or p.is_live
        ]
        return sorted(payslips, key=lambda p: (p.pay_period, p.generated_at is None, p.generated_at or 0))

    def _check_transition(self, payslip: Payslip, target: PayslipStatus) -> None:
        if target not in PAYSLIP_TRANSITIONS[payslip.status]:
            logger.warning("payslip_transition_rejected", extra={
                "payslip_id": str(payslip.id),
                "from_status": payslip.status.value,
                "to_status": target.value,
            })
            raise InvalidStatusTransitionError(payslip.id, payslip.status.value, target.value)

    def transition_payslip(self, payslip_id: UUID, status: PayslipStatus | str) -> Payslip:
        """Move a payslip along its lifecycle (generated -> sent -> paid)."""
        try:
            target = PayslipStatus(status)
        except ValueError as exc:
            raise ValidationError("status", status, "unknown payslip status") from exc

        payslip = self.get_payslip(payslip_id)
        self._check_transition(payslip, target)
        updated = self._repos.payslips.update(replace(payslip, status=target))
        logger.info("payslip_status_changed", extra={
            "payslip_id": str(payslip_id),
            "from_status": payslip.status.value,
            "to_status": target.value,
        })
        return updated

    # =========================================================================
    # Loans and advances
    # =========================================================================

    def create_loan(
        self,
        employee_id: UUID,
        loan_type: str,
        principal: Decimal,
        interest_rate: Decimal,
        tenure_months: int,
        purpose: str | None = None,
    ) -> EmployeeLoan:
        """
        Record a loan recovered through EMIs.

        The outstanding balance starts at the total repayable
        (``emi * tenure_months``) so the loan closes after the last EMI.
        """
        self.get_employee(employee_id)
        if principal <= 0:
            raise ValidationError("principal", principal, "must be positive")
        emi = calculate_emi(principal, interest_rate, tenure_months)
        loan = EmployeeLoan(
            id=uuid4(),
            employee_id=employee_id,
            loan_type=loan_type,
            principal=principal,
            interest_rate=interest_rate,
            tenure_months=tenure_months,
            emi_amount=emi,
            remaining_amount=emi * tenure_months,
            purpose=purpose,
        )
        self._repos.loans.create(loan)
        logger.info("loan_created", extra={
            "loan_id": str(loan.id),
            "employee_id": str(employee_id),
            "loan_type": loan_type,
            "principal": str(principal),
            "emi_amount": str(emi),
            "tenure_months": tenure_months,
        })
        return loan

    def list_loans(self, employee_id: UUID) -> list[EmployeeLoan]:
        return self._repos.loans.list(employee_id=employee_id)

    def create_advance(
        self,
        employee_id: UUID,
        amount: Decimal,
        reason: str,
        repayment_months: int,
    ) -> SalaryAdvance:
        """Request a salary advance; it is recovered only once approved."""
        self.get_employee(employee_id)
        if amount <= 0:
            raise ValidationError("amount", amount, "must be positive")
        advance = SalaryAdvance(
            id=uuid4(),
            employee_id=employee_id,
            amount=amount,
            reason=reason,
            repayment_months=repayment_months,
            monthly_deduction=calculate_advance_installment(amount, repayment_months),
            remaining_amount=amount,
        )
        self._repos.advances.create(advance)
        logger.info("advance_requested", extra={
            "advance_id": str(advance.id),
            "employee_id": str(employee_id),
            "amount": str(amount),
            "monthly_deduction": str(advance.monthly_deduction),
        })
        return advance

    def approve_advance(self, advance_id: UUID) -> SalaryAdvance:
        advance = self._repos.advances.get(advance_id)
        if advance is None:
            raise EntityNotFoundError("SalaryAdvance", advance_id)
        if advance.status is not AdvanceStatus.PENDING:
            raise ValidationError("status", advance.status.value, "only pending advances can be approved")
        approved = self._repos.advances.update(replace(advance, status=AdvanceStatus.APPROVED))
        logger.info("advance_approved", extra={
            "advance_id": str(advance_id),
            "employee_id": str(advance.employee_id),
        })
        return approved

    def list_advances(self, employee_id: UUID) -> list[SalaryAdvance]:
        return self._repos.advances.list(employee_id=employee_id)

    # =========================================================================
    # Tax projection and compliance
    # =========================================================================

    def project_annual_tds(
        self,
        employee_id: UUID,
        exemptions: Mapping[str, Decimal] | None = None,
    ) -> TdsProjection:
        """Annual slab tax on 12 months of the employee's standard gross pay."""
        employee = self.get_employee(employee_id)
        monthly = compute_pay_breakdown(
            CompensationInput(basic_salary=employee.base_salary), self._settings,
        )
        projection = project_annual_tds(
            monthly.gross_pay * 12, exemptions, self._settings,
        )
        logger.info("tds_projected", extra={
            "employee_id": str(employee_id),
            "annual_salary": str(projection.annual_salary),
            "taxable_income": str(projection.taxable_income),
            "total_tax": str(projection.total_tax),
            "monthly_tds": str(projection.monthly_tds),
        })
        return projection

    def compliance_report(
        self,
        report_type: ComplianceReportType | str,
        pay_period: str,
    ) -> ComplianceReport:
        payslips = self._repos.payslips.list(pay_period=pay_period)
        employees: dict[UUID, Employee] = {}
        for payslip in payslips:
            if payslip.employee_id not in employees:
                employee = self._repos.employees.get(payslip.employee_id)
                if employee is not None:
                    employees[employee.id] = employee
        report = build_compliance_report(
            report_type, pay_period, payslips, employees, self._settings,
        )
        logger.info("compliance_report_built", extra={
            "report_type": report.report_type.value,
            "pay_period": pay_period,
            "employee_count": report.employee_count,
            "eligible_count": report.eligible_count,
            "total_employee_contribution": str(report.total_employee_contribution),
            "total_employer_contribution": str(report.total_employer_contribution),
        })
        return report

"""
Payroll ORM Persistence Models (``hrms_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM models that persist the frozen dataclass DTOs defined in
    ``hrms_modules.payroll.models``.  Each ORM class mirrors a DTO and
    provides ``to_dto()`` / ``from_dto()`` round-trip conversion.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from ``TrackedBase`` (kernel DB base) which provides:
    id (UUID PK, auto-generated), created_at, updated_at,
    created_by_id (NOT NULL UUID), updated_by_id (nullable UUID).

Invariants enforced:
    - All monetary fields use Decimal (maps to Numeric(38,9)) -- NEVER float.
    - Enum fields stored as String(50) containing the enum .value string.
    - A payslip stores its full breakdown as flat columns so every printed
      line item is queryable.
    - One attendance summary per (employee, pay period).

Audit relevance:
    Payslips are never deleted or rewritten in place; a regeneration marks
    the previous row SUPERSEDED and points ``superseded_by`` at the new one.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hrms_kernel.db.base import TrackedBase

# ---------------------------------------------------------------------------
# EmployeeModel
# ---------------------------------------------------------------------------

class EmployeeModel(TrackedBase):
    """
    ORM model for ``Employee``.

    Guarantees:
        - ``employee_code`` is unique (uq_hrms_employee_code).
        - ``base_salary`` is always Decimal (Numeric(38,9)).
    """

    __tablename__ = "hrms_employees"

    employee_code: Mapped[str] = mapped_column(String(50), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(nullable=False)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_code", name="uq_hrms_employee_code"),
        Index("idx_hrms_employee_active", "is_active"),
        Index("idx_hrms_employee_department", "department"),
    )

    def to_dto(self):
        from hrms_modules.payroll.models import Employee
        return Employee(
            id=self.id,
            employee_code=self.employee_code,
            first_name=self.first_name,
            last_name=self.last_name,
            base_salary=self.base_salary,
            department=self.department,
            position=self.position,
            email=self.email,
            is_active=self.is_active,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "EmployeeModel":
        return cls(
            id=dto.id,
            employee_code=dto.employee_code,
            first_name=dto.first_name,
            last_name=dto.last_name,
            base_salary=dto.base_salary,
            department=dto.department,
            position=dto.position,
            email=dto.email,
            is_active=dto.is_active,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<EmployeeModel {self.employee_code}: {self.first_name} {self.last_name}>"


# ---------------------------------------------------------------------------
# AttendanceSummaryModel
# ---------------------------------------------------------------------------

class AttendanceSummaryModel(TrackedBase):
    """ORM model for ``AttendanceSummary`` -- monthly attendance counts."""

    __tablename__ = "hrms_attendance_summaries"

    employee_id: Mapped[UUID] = mapped_column(ForeignKey("hrms_employees.id"), nullable=False)
    pay_period: Mapped[str] = mapped_column(String(7), nullable=False)
    working_days: Mapped[int] = mapped_column(nullable=False)
    present_days: Mapped[int] = mapped_column(nullable=False)
    leave_days: Mapped[int] = mapped_column(default=0, nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "pay_period", name="uq_hrms_attendance_employee_period"),
    )

    def to_dto(self):
        from hrms_modules.payroll.models import AttendanceSummary
        return AttendanceSummary(
            id=self.id,
            employee_id=self.employee_id,
            pay_period=self.pay_period,
            working_days=self.working_days,
            present_days=self.present_days,
            leave_days=self.leave_days,
            overtime_hours=self.overtime_hours,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "AttendanceSummaryModel":
        return cls(
            id=dto.id,
            employee_id=dto.employee_id,
            pay_period=dto.pay_period,
            working_days=dto.working_days,
            present_days=dto.present_days,
            leave_days=dto.leave_days,
            overtime_hours=dto.overtime_hours,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<AttendanceSummaryModel {self.employee_id} {self.pay_period}>"


# ---------------------------------------------------------------------------
# PayslipModel
# ---------------------------------------------------------------------------

class PayslipModel(TrackedBase):
    """
    ORM model for ``Payslip``.

    Contract:
        At most one non-superseded payslip exists per (employee, pay period).
        The rule is enforced by ``PayrollService`` rather than a unique
        constraint, since superseded rows share the same key.
    """

    __tablename__ = "hrms_payslips"

    employee_id: Mapped[UUID] = mapped_column(ForeignKey("hrms_employees.id"), nullable=False)
    pay_period: Mapped[str] = mapped_column(String(7), nullable=False)
    working_days: Mapped[int] = mapped_column(nullable=False)
    present_days: Mapped[int] = mapped_column(nullable=False)
    leave_days: Mapped[int] = mapped_column(default=0, nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    # Earnings
    basic_salary: Mapped[Decimal] = mapped_column(nullable=False)
    hra: Mapped[Decimal] = mapped_column(nullable=False)
    conveyance_allowance: Mapped[Decimal] = mapped_column(nullable=False)
    medical_allowance: Mapped[Decimal] = mapped_column(nullable=False)
    special_allowance: Mapped[Decimal] = mapped_column(nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(nullable=False)
    bonus: Mapped[Decimal] = mapped_column(nullable=False)
    gross_pay: Mapped[Decimal] = mapped_column(nullable=False)

    # Deductions
    pf_deduction: Mapped[Decimal] = mapped_column(nullable=False)
    esi_deduction: Mapped[Decimal] = mapped_column(nullable=False)
    professional_tax: Mapped[Decimal] = mapped_column(nullable=False)
    tds_deduction: Mapped[Decimal] = mapped_column(nullable=False)
    loan_deduction: Mapped[Decimal] = mapped_column(nullable=False)
    advance_deduction: Mapped[Decimal] = mapped_column(nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(nullable=False)

    status: Mapped[str] = mapped_column(String(50), default="generated", nullable=False)
    generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    superseded_by: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index("idx_hrms_payslip_employee_period", "employee_id", "pay_period"),
        Index("idx_hrms_payslip_period", "pay_period"),
        Index("idx_hrms_payslip_status", "status"),
    )

    def to_dto(self):
        from hrms_modules.payroll.models import PayBreakdown, Payslip, PayslipStatus
        breakdown = PayBreakdown(
            **{
                name: getattr(self, name)
                for name in PayBreakdown.EARNING_FIELDS + PayBreakdown.DEDUCTION_FIELDS
            },
            gross_pay=self.gross_pay,
            total_deductions=self.total_deductions,
            net_pay=self.net_pay,
        )
        return Payslip(
            id=self.id,
            employee_id=self.employee_id,
            pay_period=self.pay_period,
            breakdown=breakdown,
            working_days=self.working_days,
            present_days=self.present_days,
            leave_days=self.leave_days,
            overtime_hours=self.overtime_hours,
            status=PayslipStatus(self.status),
            generated_at=self.generated_at,
            superseded_by=self.superseded_by,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "PayslipModel":
        breakdown = dto.breakdown
        return cls(
            id=dto.id,
            employee_id=dto.employee_id,
            pay_period=dto.pay_period,
            working_days=dto.working_days,
            present_days=dto.present_days,
            leave_days=dto.leave_days,
            overtime_hours=dto.overtime_hours,
            basic_salary=breakdown.basic_salary,
            hra=breakdown.hra,
            conveyance_allowance=breakdown.conveyance_allowance,
            medical_allowance=breakdown.medical_allowance,
            special_allowance=breakdown.special_allowance,
            overtime_pay=breakdown.overtime_pay,
            bonus=breakdown.bonus,
            gross_pay=breakdown.gross_pay,
            pf_deduction=breakdown.pf_deduction,
            esi_deduction=breakdown.esi_deduction,
            professional_tax=breakdown.professional_tax,
            tds_deduction=breakdown.tds_deduction,
            loan_deduction=breakdown.loan_deduction,
            advance_deduction=breakdown.advance_deduction,
            total_deductions=breakdown.total_deductions,
            net_pay=breakdown.net_pay,
            status=dto.status.value if hasattr(dto.status, "value") else dto.status,
            generated_at=dto.generated_at,
            superseded_by=dto.superseded_by,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<PayslipModel {self.employee_id} {self.pay_period} net={self.net_pay} ({self.status})>"


# ---------------------------------------------------------------------------
# EmployeeLoanModel
# ---------------------------------------------------------------------------

class EmployeeLoanModel(TrackedBase):
    """ORM model for ``EmployeeLoan``."""

    __tablename__ = "hrms_employee_loans"

    employee_id: Mapped[UUID] = mapped_column(ForeignKey("hrms_employees.id"), nullable=False)
    loan_type: Mapped[str] = mapped_column(String(50), nullable=False)
    principal: Mapped[Decimal] = mapped_column(nullable=False)
    interest_rate: Mapped[Decimal] = mapped_column(nullable=False)
    tenure_months: Mapped[int] = mapped_column(nullable=False)
    emi_amount: Mapped[Decimal] = mapped_column(nullable=False)
    remaining_amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="active", nullable=False)
    purpose: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        Index("idx_hrms_loan_employee_status", "employee_id", "status"),
    )

    def to_dto(self):
        from hrms_modules.payroll.models import EmployeeLoan, LoanStatus
        return EmployeeLoan(
            id=self.id,
            employee_id=self.employee_id,
            loan_type=self.loan_type,
            principal=self.principal,
            interest_rate=self.interest_rate,
            tenure_months=self.tenure_months,
            emi_amount=self.emi_amount,
            remaining_amount=self.remaining_amount,
            status=LoanStatus(self.status),
            purpose=self.purpose,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "EmployeeLoanModel":
        return cls(
            id=dto.id,
            employee_id=dto.employee_id,
            loan_type=dto.loan_type,
            principal=dto.principal,
            interest_rate=dto.interest_rate,
            tenure_months=dto.tenure_months,
            emi_amount=dto.emi_amount,
            remaining_amount=dto.remaining_amount,
            status=dto.status.value if hasattr(dto.status, "value") else dto.status,
            purpose=dto.purpose,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<EmployeeLoanModel {self.loan_type} remaining={self.remaining_amount} ({self.status})>"


# ---------------------------------------------------------------------------
# SalaryAdvanceModel
# ---------------------------------------------------------------------------

class SalaryAdvanceModel(TrackedBase):
    """ORM model for ``SalaryAdvance``."""

    __tablename__ = "hrms_salary_advances"

    employee_id: Mapped[UUID] = mapped_column(ForeignKey("hrms_employees.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    repayment_months: Mapped[int] = mapped_column(nullable=False)
    monthly_deduction: Mapped[Decimal] = mapped_column(nullable=False)
    remaining_amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="pending", nullable=False)

    __table_args__ = (
        Index("idx_hrms_advance_employee_status", "employee_id", "status"),
    )

    def to_dto(self):
        from hrms_modules.payroll.models import AdvanceStatus, SalaryAdvance
        return SalaryAdvance(
            id=self.id,
            employee_id=self.employee_id,
            amount=self.amount,
            reason=self.reason,
            repayment_months=self.repayment_months,
            monthly_deduction=self.monthly_deduction,
            remaining_amount=self.remaining_amount,
            status=AdvanceStatus(self.status),
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "SalaryAdvanceModel":
        return cls(
            id=dto.id,
            employee_id=dto.employee_id,
            amount=dto.amount,
            reason=dto.reason,
            repayment_months=dto.repayment_months,
            monthly_deduction=dto.monthly_deduction,
            remaining_amount=dto.remaining_amount,
            status=dto.status.value if hasattr(dto.status, "value") else dto.status,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<SalaryAdvanceModel amount={self.amount} remaining={self.remaining_amount} ({self.status})>"

"""
Tests for payroll repositories.

The same contract runs against the in-memory store and the SQLAlchemy
adapter (in-memory SQLite); ORM round-trips are checked on the latter.
"""

from dataclasses import replace
from datetime import datetime, UTC
from decimal import Decimal
from uuid import uuid4

import pytest

from hrms_kernel.exceptions import DuplicateEntityError, EntityNotFoundError
from hrms_modules.payroll.helpers import compute_pay_breakdown
from hrms_modules.payroll.models import (
    CompensationInput,
    EmployeeLoan,
    LoanStatus,
    Payslip,
    PayslipStatus,
)
from hrms_modules.payroll.orm import EmployeeModel, PayslipModel
from hrms_modules.payroll.repository import (
    InMemoryRepository,
    in_memory_repositories,
    sql_repositories,
)
from tests.modules.conftest import make_attendance, make_employee


@pytest.fixture(params=["memory", "sql"])
def repos(request):
    if request.param == "memory":
        return in_memory_repositories()
    session = request.getfixturevalue("session")
    actor_id = request.getfixturevalue("test_actor_id")
    return sql_repositories(session, actor_id)


def _payslip(employee_id, pay_period="2025-01"):
    return Payslip(
        id=uuid4(),
        employee_id=employee_id,
        pay_period=pay_period,
        breakdown=compute_pay_breakdown(CompensationInput(basic_salary=Decimal("50000"))),
        working_days=22,
        present_days=21,
        leave_days=1,
        generated_at=datetime(2025, 1, 31, 18, 0, tzinfo=UTC),
    )


# =============================================================================
# Contract (both adapters)
# =============================================================================


class TestRepositoryContract:

    def test_create_and_get(self, repos):
        employee = make_employee()
        repos.employees.create(employee)
        assert repos.employees.get(employee.id) == employee

    def test_get_missing(self, repos):
        assert repos.employees.get(uuid4()) is None

    def test_create_duplicate(self, repos):
        employee = make_employee()
        repos.employees.create(employee)
        with pytest.raises(DuplicateEntityError) as exc_info:
            repos.employees.create(employee)
        assert exc_info.value.entity_type == "Employee"

    def test_update_replaces(self, repos):
        employee = repos.employees.create(make_employee())
        raised = replace(employee, base_salary=Decimal("60000"))
        repos.employees.update(raised)
        assert repos.employees.get(employee.id).base_salary == Decimal("60000")

    def test_update_missing(self, repos):
        with pytest.raises(EntityNotFoundError):
            repos.employees.update(make_employee(employee_id=uuid4()))

    def test_delete(self, repos):
        employee = repos.employees.create(make_employee())
        assert repos.employees.delete(employee.id) is True
        assert repos.employees.get(employee.id) is None
        assert repos.employees.delete(employee.id) is False

    def test_list_filters(self, repos):
        employee = repos.employees.create(make_employee())
        repos.attendance.create(make_attendance(pay_period="2025-01", attendance_id=uuid4()))
        repos.attendance.create(make_attendance(pay_period="2025-02", attendance_id=uuid4()))
        february = repos.attendance.list(employee_id=employee.id, pay_period="2025-02")
        assert [a.pay_period for a in february] == ["2025-02"]
        assert len(repos.attendance.list()) == 2

    def test_list_filters_on_enum(self, repos):
        employee = repos.employees.create(make_employee())
        loan = EmployeeLoan(
            id=uuid4(),
            employee_id=employee.id,
            loan_type="personal",
            principal=Decimal("12000"),
            interest_rate=Decimal("0"),
            tenure_months=2,
            emi_amount=Decimal("6000"),
            remaining_amount=Decimal("12000"),
        )
        repos.loans.create(loan)
        repos.loans.create(replace(loan, id=uuid4(), status=LoanStatus.CLOSED))
        active = repos.loans.list(employee_id=employee.id, status=LoanStatus.ACTIVE)
        assert [row.id for row in active] == [loan.id]

    def test_payslip_round_trip(self, repos):
        employee = repos.employees.create(make_employee())
        payslip = repos.payslips.create(_payslip(employee.id))
        stored = repos.payslips.get(payslip.id)
        assert stored.breakdown == payslip.breakdown
        assert stored.status is PayslipStatus.GENERATED
        assert stored.superseded_by is None


def test_in_memory_instances_are_independent():
    first = InMemoryRepository("Employee")
    second = InMemoryRepository("Employee")
    first.create(make_employee())
    assert len(first) == 1
    assert len(second) == 0


# =============================================================================
# SQLAlchemy specifics
# =============================================================================


class TestSqlAlchemyRepository:

    def test_audit_columns(self, session, test_actor_id):
        repos = sql_repositories(session, test_actor_id)
        employee = repos.employees.create(make_employee())
        row = session.get(EmployeeModel, employee.id)
        assert row.created_by_id == test_actor_id
        assert row.updated_by_id is None

        editor = uuid4()
        sql_repositories(session, editor).employees.update(replace(employee, department="Finance"))
        row = session.get(EmployeeModel, employee.id)
        assert row.created_by_id == test_actor_id
        assert row.updated_by_id == editor
        assert row.department == "Finance"

    def test_payslip_stored_as_columns(self, session, test_actor_id):
        repos = sql_repositories(session, test_actor_id)
        employee = repos.employees.create(make_employee())
        payslip = repos.payslips.create(_payslip(employee.id))
        row = session.get(PayslipModel, payslip.id)
        assert row.hra == Decimal("20000")
        assert row.net_pay == Decimal("70925")
        assert row.status == "generated"

    def test_supersede_link_persisted(self, session, test_actor_id):
        repos = sql_repositories(session, test_actor_id)
        employee = repos.employees.create(make_employee())
        old = repos.payslips.create(_payslip(employee.id))
        new = repos.payslips.create(_payslip(employee.id))
        repos.payslips.update(replace(old, status=PayslipStatus.SUPERSEDED, superseded_by=new.id))
        stored = repos.payslips.get(old.id)
        assert stored.status is PayslipStatus.SUPERSEDED
        assert stored.superseded_by == new.id

    def test_flush_only(self, session, test_actor_id):
        repos = sql_repositories(session, test_actor_id)
        employee = repos.employees.create(make_employee())
        session.rollback()
        assert repos.employees.get(employee.id) is None

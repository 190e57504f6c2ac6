"""
Shared fixtures for payroll module tests.

All IDs are deterministic so tests can import and use them directly.

DESIGN RULE: Every fixture is opt-in.  No autouse.  Each test explicitly
declares which records it depends on in its function signature.
"""

from decimal import Decimal
from uuid import UUID

import pytest

from hrms_modules.payroll.config import SalarySettings
from hrms_modules.payroll.models import AttendanceSummary, Employee
from hrms_modules.payroll.repository import in_memory_repositories, sql_repositories
from hrms_modules.payroll.service import PayrollService

# ---------------------------------------------------------------------------
# Deterministic IDs
# ---------------------------------------------------------------------------

TEST_EMPLOYEE_ID = UUID("00000000-0000-4000-a000-0000000000c0")
TEST_SECOND_EMPLOYEE_ID = UUID("00000000-0000-4000-a000-0000000000c1")
TEST_ATTENDANCE_ID = UUID("00000000-0000-4000-a000-0000000000d0")


def make_employee(
    employee_id: UUID = TEST_EMPLOYEE_ID,
    code: str = "EMP001",
    base_salary: str = "50000",
    **overrides,
) -> Employee:
    fields = dict(
        id=employee_id,
        employee_code=code,
        first_name="Asha",
        last_name="Rao",
        base_salary=Decimal(base_salary),
        department="Engineering",
        position="Software Engineer",
        email="asha.rao@example.com",
    )
    fields.update(overrides)
    return Employee(**fields)


def make_attendance(
    employee_id: UUID = TEST_EMPLOYEE_ID,
    pay_period: str = "2025-01",
    attendance_id: UUID = TEST_ATTENDANCE_ID,
    working_days: int = 22,
    present_days: int = 21,
    leave_days: int = 1,
    overtime_hours: str = "0",
) -> AttendanceSummary:
    return AttendanceSummary(
        id=attendance_id,
        employee_id=employee_id,
        pay_period=pay_period,
        working_days=working_days,
        present_days=present_days,
        leave_days=leave_days,
        overtime_hours=Decimal(overtime_hours),
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings():
    return SalarySettings()


@pytest.fixture
def repositories():
    return in_memory_repositories()


@pytest.fixture
def payroll_service(repositories, deterministic_clock):
    return PayrollService(repositories, clock=deterministic_clock)


@pytest.fixture
def employee(payroll_service):
    return payroll_service.register_employee(make_employee())


@pytest.fixture
def january_attendance(payroll_service, employee):
    return payroll_service.record_attendance(make_attendance())


@pytest.fixture
def sql_payroll_service(session, test_actor_id, deterministic_clock):
    return PayrollService(sql_repositories(session, test_actor_id), clock=deterministic_clock)

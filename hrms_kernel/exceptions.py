"""
Typed Exception Hierarchy for the HRMS payroll system.

Every error has a typed class (catch by type, not by message), a ``code``
class attribute (machine-readable, API-safe) and structured attributes
instead of a message string to parse.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    HrmsError (base)
    |
    +-- ValidationError
    |
    +-- NotFoundError
    |   +-- EntityNotFoundError
    |   +-- EmployeeNotFoundError
    |   +-- AttendanceNotFoundError
    |   +-- PayslipNotFoundError
    |
    +-- ConflictError
        +-- DuplicateEntityError
        +-- DuplicatePayslipError
        +-- InvalidStatusTransitionError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                         | When Raised
------------|------------------------------|---------------------------------------
Validation  | VALIDATION_ERROR             | Negative/non-finite input, present days
            |                              | above working days, unparseable value
------------|------------------------------|---------------------------------------
Not found   | ENTITY_NOT_FOUND             | Repository get/update/delete miss
            | EMPLOYEE_NOT_FOUND           | Payslip requested for unknown employee
            | ATTENDANCE_NOT_FOUND         | No attendance summary for the period
            | PAYSLIP_NOT_FOUND            | Payslip ID doesn't exist
------------|------------------------------|---------------------------------------
Conflict    | DUPLICATE_ENTITY             | Repository create with an existing ID
            | DUPLICATE_PAYSLIP            | Live payslip exists for employee/period
            | INVALID_STATUS_TRANSITION    | Payslip status change not allowed

A ``ValidationError`` is a caller bug: retrying with the same input fails
the same way.  Settings objects raise plain ``ValueError`` for out-of-range
configuration, matching the config loader's contract.
"""

from typing import Any


class HrmsError(Exception):
    """
    Base exception for all HRMS errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "HRMS_ERROR"


class ValidationError(HrmsError):
    """Input rejected at the calculator or parsing boundary."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


# Lookup failures


class NotFoundError(HrmsError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class EntityNotFoundError(NotFoundError):
    """Repository has no entity with the given ID."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(f"{entity_type} not found: {entity_id}")


class EmployeeNotFoundError(NotFoundError):
    """Employee with given ID was not found."""

    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: Any):
        self.employee_id = str(employee_id)
        super().__init__(f"Employee not found: {employee_id}")


class AttendanceNotFoundError(NotFoundError):
    """No attendance summary recorded for the employee and pay period."""

    code: str = "ATTENDANCE_NOT_FOUND"

    def __init__(self, employee_id: Any, pay_period: str):
        self.employee_id = str(employee_id)
        self.pay_period = pay_period
        super().__init__(
            f"No attendance for employee {employee_id} in period {pay_period}"
        )


class PayslipNotFoundError(NotFoundError):
    """Payslip with given ID was not found."""

    code: str = "PAYSLIP_NOT_FOUND"

    def __init__(self, payslip_id: Any):
        self.payslip_id = str(payslip_id)
        super().__init__(f"Payslip not found: {payslip_id}")


# Conflicts


class ConflictError(HrmsError):
    """Base exception for operations that conflict with stored state."""

    code: str = "CONFLICT"


class DuplicateEntityError(ConflictError):
    """Repository already holds an entity with the given ID."""

    code: str = "DUPLICATE_ENTITY"

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(f"{entity_type} already exists: {entity_id}")


class DuplicatePayslipError(ConflictError):
    """
    A live payslip already exists for the employee and pay period.

    Corrections go through ``supersede=True``, which keeps the old record.
    """

    code: str = "DUPLICATE_PAYSLIP"

    def __init__(self, employee_id: Any, pay_period: str, existing_payslip_id: Any):
        self.employee_id = str(employee_id)
        self.pay_period = pay_period
        self.existing_payslip_id = str(existing_payslip_id)
        super().__init__(
            f"Payslip {existing_payslip_id} already exists for employee "
            f"{employee_id} in period {pay_period}"
        )


class InvalidStatusTransitionError(ConflictError):
    """Payslip status change is not allowed from the current status."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, payslip_id: Any, from_status: str, to_status: str):
        self.payslip_id = str(payslip_id)
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Payslip {payslip_id} cannot move from {from_status} to {to_status}"
        )

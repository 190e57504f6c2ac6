"""
Payroll Repositories (``hrms_modules.payroll.repository``).

Responsibility
--------------
Storage ports for the payroll DTOs.  ``PayrollService`` talks only to the
``Repository`` protocol, so the same service runs against an in-memory
store (tests, CLI, one-off calculations) or a SQLAlchemy session.

Architecture position
---------------------
**Modules layer** -- persistence adapters.  The SQLAlchemy adapter maps
DTOs through the ``to_dto()`` / ``from_dto()`` pairs in ``orm.py``.

Invariants enforced
-------------------
* Repositories accept and return frozen DTOs, never ORM instances.
* The SQLAlchemy adapter only flushes; the caller's ``session_scope``
  owns commit and rollback.
* ``create`` of an existing id raises ``DuplicateEntityError``; ``update``
  of a missing id raises ``EntityNotFoundError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from hrms_kernel.exceptions import DuplicateEntityError, EntityNotFoundError
from hrms_kernel.logging_config import get_logger
from hrms_modules.payroll.models import (
    AttendanceSummary,
    Employee,
    EmployeeLoan,
    Payslip,
    SalaryAdvance,
)
from hrms_modules.payroll.orm import (
    AttendanceSummaryModel,
    EmployeeLoanModel,
    EmployeeModel,
    PayslipModel,
    SalaryAdvanceModel,
)

logger = get_logger("modules.payroll.repository")

T = TypeVar("T")

# Columns owned by TrackedBase that an update must not overwrite.
_AUDIT_COLUMNS = frozenset({"id", "created_at", "updated_at", "created_by_id", "updated_by_id"})


class Repository(Protocol[T]):
    """Storage port for one DTO type keyed by ``id``."""

    def create(self, entity: T) -> T: ...

    def get(self, entity_id: UUID) -> T | None: ...

    def update(self, entity: T) -> T: ...

    def list(self, **filters: Any) -> list[T]: ...

    def delete(self, entity_id: UUID) -> bool: ...


class InMemoryRepository(Generic[T]):
    """Dict-backed repository; preserves insertion order."""

    def __init__(self, entity_type: str):
        self._entity_type = entity_type
        self._items: dict[UUID, T] = {}

    def create(self, entity: T) -> T:
        entity_id = entity.id  # type: ignore[attr-defined]
        if entity_id in self._items:
            raise DuplicateEntityError(self._entity_type, entity_id)
        self._items[entity_id] = entity
        return entity

    def get(self, entity_id: UUID) -> T | None:
        return self._items.get(entity_id)

    def update(self, entity: T) -> T:
        entity_id = entity.id  # type: ignore[attr-defined]
        if entity_id not in self._items:
            raise EntityNotFoundError(self._entity_type, entity_id)
        self._items[entity_id] = entity
        return entity

    def list(self, **filters: Any) -> list[T]:
        return [
            item
            for item in self._items.values()
            if all(getattr(item, key) == value for key, value in filters.items())
        ]

    def delete(self, entity_id: UUID) -> bool:
        return self._items.pop(entity_id, None) is not None

    def __len__(self) -> int:
        return len(self._items)


class SqlAlchemyRepository(Generic[T]):
    """
    Session-backed repository over one ORM model.

    ``actor_id`` is recorded as ``created_by_id`` on insert and
    ``updated_by_id`` on update.
    """

    def __init__(self, session: Session, model: type, entity_type: str, actor_id: UUID):
        self._session = session
        self._model = model
        self._entity_type = entity_type
        self._actor_id = actor_id

    def create(self, entity: T) -> T:
        entity_id = entity.id  # type: ignore[attr-defined]
        if self._session.get(self._model, entity_id) is not None:
            raise DuplicateEntityError(self._entity_type, entity_id)
        self._session.add(self._model.from_dto(entity, created_by_id=self._actor_id))
        self._session.flush()
        logger.debug(
            "repository_entity_created",
            extra={"entity_type": self._entity_type, "entity_id": str(entity_id)},
        )
        return entity

    def get(self, entity_id: UUID) -> T | None:
        row = self._session.get(self._model, entity_id)
        return None if row is None else row.to_dto()

    def update(self, entity: T) -> T:
        entity_id = entity.id  # type: ignore[attr-defined]
        row = self._session.get(self._model, entity_id)
        if row is None:
            raise EntityNotFoundError(self._entity_type, entity_id)
        fresh = self._model.from_dto(entity, created_by_id=row.created_by_id)
        for column in self._model.__table__.columns:
            if column.key not in _AUDIT_COLUMNS:
                setattr(row, column.key, getattr(fresh, column.key))
        row.updated_by_id = self._actor_id
        self._session.flush()
        logger.debug(
            "repository_entity_updated",
            extra={"entity_type": self._entity_type, "entity_id": str(entity_id)},
        )
        return entity

    def list(self, **filters: Any) -> list[T]:
        criteria = {
            key: value.value if isinstance(value, Enum) else value
            for key, value in filters.items()
        }
        rows = self._session.scalars(select(self._model).filter_by(**criteria)).all()
        return [row.to_dto() for row in rows]

    def delete(self, entity_id: UUID) -> bool:
        row = self._session.get(self._model, entity_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        logger.debug(
            "repository_entity_deleted",
            extra={"entity_type": self._entity_type, "entity_id": str(entity_id)},
        )
        return True


@dataclass(frozen=True)
class PayrollRepositories:
    """The storage ports ``PayrollService`` depends on."""
    employees: Repository[Employee]
    attendance: Repository[AttendanceSummary]
    payslips: Repository[Payslip]
    loans: Repository[EmployeeLoan]
    advances: Repository[SalaryAdvance]


def in_memory_repositories() -> PayrollRepositories:
    return PayrollRepositories(
        employees=InMemoryRepository("Employee"),
        attendance=InMemoryRepository("AttendanceSummary"),
        payslips=InMemoryRepository("Payslip"),
        loans=InMemoryRepository("EmployeeLoan"),
        advances=InMemoryRepository("SalaryAdvance"),
    )


def sql_repositories(session: Session, actor_id: UUID) -> PayrollRepositories:
    """Repositories sharing one session; commit through ``session_scope``."""
    return PayrollRepositories(
        employees=SqlAlchemyRepository(session, EmployeeModel, "Employee", actor_id),
        attendance=SqlAlchemyRepository(session, AttendanceSummaryModel, "AttendanceSummary", actor_id),
        payslips=SqlAlchemyRepository(session, PayslipModel, "Payslip", actor_id),
        loans=SqlAlchemyRepository(session, EmployeeLoanModel, "EmployeeLoan", actor_id),
        advances=SqlAlchemyRepository(session, SalaryAdvanceModel, "SalaryAdvance", actor_id),
    )

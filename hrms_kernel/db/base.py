"""
Module: hrms_kernel.db.base
Responsibility: Declarative base for the payroll ORM models in
    ``hrms_modules.payroll.orm``: UUID primary keys shared with the frozen
    DTOs, exact money columns and the audit columns every payroll row carries.
Architecture position: Kernel > DB.  MUST NOT import from hrms_modules or
    hrms_config; the module registry imports the models, not the reverse.

Invariants enforced:
    - Primary keys are the DTO ids (``Employee.id``, ``Payslip.id`` ...);
      uuid4 is only the fallback for rows created without one.
    - Money is ``Numeric(38, 9)``.  Calculator inputs are capped at 10^12, so
      every stored breakdown component fits without loss.  No float columns.
    - Datetimes are stored timezone-aware (``Payslip.generated_at`` is UTC
      from the injected clock).
    - ``TrackedBase`` records who created and last changed a row; the SQL
      repository fills the actor ids and never overwrites the creation pair.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID kept as its 36-character text form; works on SQLite and PostgreSQL."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        # Accept a UUID or its text form; always store the canonical text.
        return None if value is None else str(PyUUID(str(value)))

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Declarative base: UUID ``id`` plus the payroll column type map."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base adding audit columns to employee, attendance, payslip,
    loan and advance rows.

    Guarantees:
        - ``created_at`` / ``updated_at`` come from the database clock.
        - ``created_by_id`` is required; ``updated_by_id`` stays NULL until
          the first update.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[PyUUID] = mapped_column(UUIDString(), nullable=False)
    updated_by_id: Mapped[PyUUID | None] = mapped_column(UUIDString(), nullable=True)

"""
Module ORM Registry (``hrms_modules._orm_registry``).

Ensure every module-level SQLAlchemy ORM model is imported so that
``Base.metadata`` contains its table definitions before
``hrms_kernel.db.create_tables()`` runs.

Scripts, entrypoints, and ``tests/conftest.py`` all go through
``create_tables()``, which calls ``import_all_orm_models()`` first.
"""


def import_all_orm_models() -> None:
    """Import every ``hrms_modules.*.orm`` module.  Idempotent."""
    import hrms_modules.payroll.orm  # noqa: F401

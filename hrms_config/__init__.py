"""
hrms_config -- single public entrypoint for payroll settings.

Responsibility:
    Provides the runtime way to obtain ``SalarySettings`` through
    ``get_active_settings()``.  YAML parsing lives in ``loader``.

Resolution order:
    1. An explicit ``path`` argument.
    2. The ``HRMS_SALARY_SETTINGS`` environment variable.
    3. The bundled ``sets/default.yaml``.

Audit relevance:
    Every successful call emits a ``salary_settings_loaded`` log entry with
    the source file and settings checksum, tying each computed payslip back
    to the exact policy values that produced it.
"""

from __future__ import annotations

import os
from pathlib import Path

from hrms_config.loader import compute_checksum, load_salary_settings
from hrms_kernel.logging_config import get_logger
from hrms_modules.payroll.config import SalarySettings

logger = get_logger("config")

SETTINGS_ENV_VAR = "HRMS_SALARY_SETTINGS"

# Default settings sets directory
_DEFAULT_SETTINGS_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_settings(path: str | Path | None = None) -> SalarySettings:
    """
    Resolve and load the active salary settings.

    Raises:
        FileNotFoundError: the resolved file does not exist.
        ValueError: the file holds invalid settings.
    """
    if path is not None:
        source = Path(path)
    elif os.environ.get(SETTINGS_ENV_VAR):
        source = Path(os.environ[SETTINGS_ENV_VAR])
    else:
        source = _DEFAULT_SETTINGS_PATH

    settings = load_salary_settings(source)
    logger.info(
        "salary_settings_loaded",
        extra={
            "source": str(source),
            "checksum": compute_checksum(settings),
            "prorate_by_attendance": settings.prorate_by_attendance,
        },
    )
    return settings


__all__ = [
    "SETTINGS_ENV_VAR",
    "compute_checksum",
    "get_active_settings",
    "load_salary_settings",
]

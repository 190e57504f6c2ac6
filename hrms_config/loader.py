"""
Salary Settings Loader (``hrms_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the typed
``SalarySettings`` frozen dataclass.  Runtime callers go through
``hrms_config.get_active_settings()``; this module is the parsing layer
underneath it and the tooling tests use directly.

Invariants enforced
-------------------
* YAML is read with ``yaml.safe_load`` only.
* Parse errors raise ``ValueError`` with descriptive messages; unknown
  keys are rejected, never ignored.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  settings identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top level not a mapping, unknown keys or out-of-range values
  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from hrms_modules.payroll.config import SalarySettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level, got {type(data).__name__}")
    return data


def load_salary_settings(path: str | Path) -> SalarySettings:
    """Parse a YAML settings file; keys omitted from the file keep their defaults."""
    return SalarySettings.from_dict(load_yaml_file(Path(path)))


def compute_checksum(settings: SalarySettings) -> str:
    """SHA-256 of the canonical JSON form of ``settings.to_dict()``."""
    canonical = json.dumps(settings.to_dict(), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()

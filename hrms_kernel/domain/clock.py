"""
Clock -- injectable source of payslip timestamps.

Responsibility:
    The payroll calculator takes no time input.  The one timestamp the
    system records is ``Payslip.generated_at``, which ``PayrollService``
    stamps from an injected ``Clock`` rather than ``datetime.now()``.

Invariants enforced:
    - Every time handed out is timezone-aware UTC, so payslips generated on
      different hosts order correctly in ``list_payslips``.

Failure modes:
    - ``DeterministicClock`` given a naive datetime -> ``ValueError``.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

# Month-end payroll run used by tests and examples.
DEFAULT_RUN_TIME = datetime(2025, 1, 31, 18, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of the current UTC time."""

    @abstractmethod
    def now_utc(self) -> datetime:
        """Current time, timezone-aware UTC."""
        ...

    def now(self) -> datetime:
        # Payroll keeps no local-time stamps.
        return self.now_utc()


class SystemClock(Clock):
    """Wall-clock time; the default for ``PayrollService``."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Controlled clock for tests and reproducible payroll runs.

    Guarantees:
        - Returns the same instant until ``advance()``, ``tick()`` or
          ``set_time()`` moves it.
        - Starts at ``DEFAULT_RUN_TIME`` unless told otherwise.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = DEFAULT_RUN_TIME
        if fixed_time is not None:
            self.set_time(fixed_time)

    def now_utc(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        if time.tzinfo is None:
            raise ValueError("DeterministicClock requires a timezone-aware datetime")
        self._current = time.astimezone(timezone.utc)

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Advance one second, e.g. between two payslips of the same run."""
        self.advance(1)
        return self._current

"""
Pure domain layer.

No dependencies on the ORM, the database or I/O (``SystemClock`` is the one
sanctioned boundary for time).
"""

from hrms_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = ["Clock", "DeterministicClock", "SystemClock"]

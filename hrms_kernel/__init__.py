"""
HRMS Kernel

Shared infrastructure for the HRMS payroll modules:
- Structured JSON logging with request-scoped context
- Typed, code-carrying exception hierarchy
- Injectable clock
- SQLAlchemy declarative base and session management
"""

__version__ = "0.1.0"

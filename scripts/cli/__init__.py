"""
Payroll CLI -- command-line caller for the HRMS payroll calculator.

Compute a pay breakdown, project annual TDS, price a loan EMI or print
the active salary settings without a database.

Entry point: python -m scripts.cli.main
"""

from scripts.cli.main import main

__all__ = ["main"]

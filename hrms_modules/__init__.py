"""
HRMS Modules.

Business modules built on the HRMS kernel.  Each module contains:
- Domain models (the nouns)
- Configuration schemas (policy and settings)
- Pure calculation helpers
- Repository ports, ORM models and a service facade

Modules:
- Payroll: Gross-to-net pay, payslips, loans and advances, TDS, statutory compliance
"""

"""
Payroll CLI: compute, tds, emi and settings subcommands.

Usage:
    python -m scripts.cli.main compute --basic 50000 --working-days 22 --present-days 21
    python -m scripts.cli.main compute --basic 18000 --json
    python -m scripts.cli.main tds --annual 1200000 --exemption section_80c=150000
    python -m scripts.cli.main emi --principal 200000 --rate 10.5 --months 24
    python -m scripts.cli.main settings --settings my_settings.yaml

Exit codes: 0 success, 1 settings/file error, 2 invalid input.
"""

import argparse
import json
import logging
import sys

import yaml

from hrms_config import get_active_settings
from hrms_kernel.exceptions import ValidationError
from hrms_kernel.logging_config import configure_logging
from hrms_modules.payroll.helpers import calculate_emi, project_annual_tds
from hrms_modules.payroll.models import CompensationInput
from hrms_modules.payroll.service import PayrollService
from hrms_modules.payroll.repository import in_memory_repositories
from scripts.cli.util import (
    decimal_arg,
    enable_quiet_logging,
    exemption_arg,
    fmt_amount,
    print_breakdown,
    restore_logging,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hrms-payroll",
        description="HRMS payroll calculator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="Salary settings YAML (default: $HRMS_SALARY_SETTINGS or the bundled set)",
    )
    parser.add_argument("--verbose", action="store_true", help="Emit structured logs on stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    compute = sub.add_parser("compute", help="Compute a monthly pay breakdown")
    compute.add_argument("--basic", type=decimal_arg, required=True, help="Monthly basic salary")
    compute.add_argument("--working-days", type=int, default=0)
    compute.add_argument("--present-days", type=int, default=0)
    compute.add_argument("--leave-days", type=int, default=0)
    compute.add_argument("--overtime-hours", type=decimal_arg, default=None)
    compute.add_argument("--bonus", type=decimal_arg, default=None)
    compute.add_argument("--loan", type=decimal_arg, default=None, help="Loan EMI to recover")
    compute.add_argument("--advance", type=decimal_arg, default=None, help="Advance installment to recover")
    compute.add_argument("--json", action="store_true", help="Print the breakdown as JSON")

    tds = sub.add_parser("tds", help="Project annual income tax over the slab table")
    tds.add_argument("--annual", type=decimal_arg, required=True, help="Annual salary")
    tds.add_argument(
        "--exemption",
        type=exemption_arg,
        action="append",
        default=[],
        metavar="NAME=AMOUNT",
        help="Annual exemption (repeatable)",
    )

    emi = sub.add_parser("emi", help="Equated monthly installment for a loan")
    emi.add_argument("--principal", type=decimal_arg, required=True)
    emi.add_argument("--rate", type=decimal_arg, required=True, help="Annual interest rate in percent")
    emi.add_argument("--months", type=int, required=True)

    sub.add_parser("settings", help="Print the active salary settings as YAML")
    return parser


def _cmd_compute(args, settings) -> int:
    inp = CompensationInput.from_dict({
        "basic_salary": args.basic,
        "working_days": args.working_days,
        "present_days": args.present_days,
        "leave_days": args.leave_days,
        "overtime_hours": args.overtime_hours,
        "bonus": args.bonus,
        "loan_deduction": args.loan,
        "advance_deduction": args.advance,
    })
    breakdown = PayrollService(in_memory_repositories(), settings=settings).calculate(inp)
    if args.json:
        print(json.dumps(breakdown.to_dict(), indent=2))
    else:
        print_breakdown(breakdown)
    return 0


def _cmd_tds(args, settings) -> int:
    projection = project_annual_tds(args.annual, dict(args.exemption), settings)
    print()
    print(f"  {'Annual salary':<24} {fmt_amount(projection.annual_salary):>16}")
    print(f"  {'Exemptions':<24} {fmt_amount(projection.total_exemptions):>16}")
    print(f"  {'Taxable income':<24} {fmt_amount(projection.taxable_income):>16}")
    print(f"  {'Slab tax':<24} {fmt_amount(projection.slab_tax):>16}")
    print(f"  {'Cess':<24} {fmt_amount(projection.cess):>16}")
    print(f"  {'Total tax':<24} {fmt_amount(projection.total_tax):>16}")
    print(f"  {'Monthly TDS':<24} {fmt_amount(projection.monthly_tds):>16}")
    print(f"  {'Effective rate':<24} {str(projection.effective_rate) + '%':>16}")
    print()
    return 0


def _cmd_emi(args) -> int:
    emi = calculate_emi(args.principal, args.rate, args.months)
    total = emi * args.months
    print(f"  EMI: {fmt_amount(emi)}  x {args.months} months = {fmt_amount(total)}"
          f"  (interest {fmt_amount(total - args.principal)})")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)
    muted = [] if args.verbose else enable_quiet_logging()
    try:
        if args.command == "emi":
            return _cmd_emi(args)
        settings = get_active_settings(args.settings)
        if args.command == "settings":
            print(yaml.safe_dump(settings.to_dict(), sort_keys=False), end="")
            return 0
        if args.command == "compute":
            return _cmd_compute(args, settings)
        return _cmd_tds(args, settings)
    except ValidationError as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 2
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        restore_logging(muted)


if __name__ == "__main__":
    sys.exit(main())

"""CLI utilities: argument parsing, formatting, logging mute/restore."""

import argparse
import logging
from decimal import Decimal, InvalidOperation

from hrms_modules.payroll.models import PayBreakdown
from hrms_modules.payroll.views import DEDUCTION_LABELS, EARNING_LABELS, format_inr


def decimal_arg(value: str) -> Decimal:
    """argparse type for amounts; rejects text that is not a number."""
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from exc


def exemption_arg(value: str) -> tuple[str, Decimal]:
    """argparse type for ``NAME=AMOUNT`` exemption pairs."""
    name, sep, amount = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=AMOUNT, got {value!r}")
    return name, decimal_arg(amount)


def fmt_amount(v) -> str:
    """Format amount for display (e.g. ₹1,23,456)."""
    return format_inr(Decimal(str(v)))


def print_breakdown(breakdown: PayBreakdown) -> None:
    W = 48
    print()
    print("=" * W)
    print("  PAY BREAKDOWN".center(W))
    print("=" * W)
    print(f"  {'Earnings':<28} {'Amount':>16}")
    for name, amount in breakdown.earnings():
        print(f"  {EARNING_LABELS[name]:<28} {fmt_amount(amount):>16}")
    print(f"  {'Gross Pay':<28} {fmt_amount(breakdown.gross_pay):>16}")
    print("-" * W)
    print(f"  {'Deductions':<28} {'Amount':>16}")
    for name, amount in breakdown.deductions():
        print(f"  {DEDUCTION_LABELS[name]:<28} {fmt_amount(amount):>16}")
    print(f"  {'Total Deductions':<28} {fmt_amount(breakdown.total_deductions):>16}")
    print("=" * W)
    print(f"  {'NET PAY':<28} {fmt_amount(breakdown.net_pay):>16}")
    print()


def enable_quiet_logging():
    """Mute console handlers so CLI output stays clean. Returns list to pass to restore_logging."""
    hrms_logger = logging.getLogger("hrms")
    muted = []
    for h in hrms_logger.handlers:
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler):
            muted.append((h, h.level))
            h.setLevel(logging.CRITICAL + 1)
    return muted


def restore_logging(muted):
    """Restore muted handlers after a quiet-logging section."""
    for h, orig_level in muted:
        h.setLevel(orig_level)

"""
Salary Settings Schema.

Names every constant the payroll calculator uses (allowance rates, statutory
PF/ESI/professional-tax/TDS parameters, overtime premium) so policy lives in
configuration instead of literals scattered across callers.  Defaults are the
canonical Indian monthly-payroll set; override at instantiation or load a
YAML file through ``hrms_config``:

    settings = SalarySettings.from_dict({"medical_allowance": "1500"})
"""

from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from typing import Any, Self

from hrms_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.config")


def _to_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"{name} must be finite, got {value!r}")
    return result


def _to_optional_decimal(name: str, value: Any) -> Decimal | None:
    return None if value is None else _to_decimal(name, value)


@dataclass(frozen=True)
class ProfessionalTaxBand:
    """Monthly professional tax for gross pay up to ``upper_limit`` (inclusive)."""
    upper_limit: Decimal | None  # None = open-ended top band
    amount: Decimal

    def __post_init__(self):
        if self.upper_limit is not None and self.upper_limit < 0:
            raise ValueError("professional tax band upper_limit cannot be negative")
        if self.amount < 0:
            raise ValueError("professional tax band amount cannot be negative")


@dataclass(frozen=True)
class TaxSlab:
    """Annual income-tax slab: ``rate`` applies to income in (lower, upper]."""
    lower: Decimal
    upper: Decimal | None
    rate: Decimal

    def __post_init__(self):
        if self.lower < 0:
            raise ValueError("tax slab lower bound cannot be negative")
        if self.upper is not None and self.upper <= self.lower:
            raise ValueError("tax slab upper bound must exceed lower bound")
        if not Decimal("0") <= self.rate <= Decimal("1"):
            raise ValueError("tax slab rate must be between 0 and 1")


DEFAULT_PROFESSIONAL_TAX_BANDS = (
    ProfessionalTaxBand(Decimal("15000"), Decimal("0")),
    ProfessionalTaxBand(Decimal("25000"), Decimal("150")),
    ProfessionalTaxBand(None, Decimal("200")),
)

DEFAULT_TDS_SLABS = (
    TaxSlab(Decimal("0"), Decimal("300000"), Decimal("0")),
    TaxSlab(Decimal("300000"), Decimal("700000"), Decimal("0.05")),
    TaxSlab(Decimal("700000"), Decimal("1000000"), Decimal("0.10")),
    TaxSlab(Decimal("1000000"), Decimal("1200000"), Decimal("0.15")),
    TaxSlab(Decimal("1200000"), Decimal("1500000"), Decimal("0.20")),
    TaxSlab(Decimal("1500000"), None, Decimal("0.30")),
)

_RATE_FIELDS = (
    "hra_rate",
    "special_allowance_rate",
    "pf_rate",
    "pf_employer_rate",
    "esi_rate",
    "esi_employer_rate",
    "tds_rate",
    "tds_cess_rate",
)

_AMOUNT_FIELDS = (
    "conveyance_allowance",
    "medical_allowance",
    "pf_cap",
    "esi_gross_threshold",
    "tds_annual_exemption",
)


@dataclass(frozen=True)
class SalarySettings:
    """
    Configuration schema for the payroll calculator.

    All rates are fractions (0.12 = 12%).  All amounts are monthly whole
    currency units except ``tds_annual_exemption`` and the slab bounds, which
    are annual.
    """

    # Earnings
    hra_rate: Decimal = Decimal("0.40")
    conveyance_allowance: Decimal = Decimal("2000")
    medical_allowance: Decimal = Decimal("1250")
    special_allowance_rate: Decimal = Decimal("0.10")

    # Overtime
    standard_monthly_hours: Decimal = Decimal("160")
    overtime_multiplier: Decimal = Decimal("1.5")

    # Provident Fund
    pf_rate: Decimal = Decimal("0.12")
    pf_cap: Decimal = Decimal("1800")
    pf_employer_rate: Decimal = Decimal("0.12")

    # Employee State Insurance
    esi_rate: Decimal = Decimal("0.0175")
    esi_employer_rate: Decimal = Decimal("0.0325")
    esi_gross_threshold: Decimal = Decimal("25000")

    # Professional tax
    professional_tax_bands: tuple[ProfessionalTaxBand, ...] = field(
        default=DEFAULT_PROFESSIONAL_TAX_BANDS
    )

    # TDS: monthly linear approximation
    tds_annual_exemption: Decimal = Decimal("300000")
    tds_rate: Decimal = Decimal("0.10")

    # TDS: annual slab projection
    tds_slabs: tuple[TaxSlab, ...] = field(default=DEFAULT_TDS_SLABS)
    tds_cess_rate: Decimal = Decimal("0.04")

    # Loss-of-pay proration by paid days
    prorate_by_attendance: bool = False

    def __post_init__(self):
        for name in _RATE_FIELDS:
            value = getattr(self, name)
            if not Decimal("0") <= value <= Decimal("1"):
                raise ValueError(f"{name} must be between 0 and 1, got {value}")

        for name in _AMOUNT_FIELDS:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

        if self.standard_monthly_hours <= 0:
            raise ValueError("standard_monthly_hours must be positive")
        if self.overtime_multiplier < 1:
            raise ValueError("overtime_multiplier must be at least 1")

        # Bands: ascending, only the last may be open-ended
        if not self.professional_tax_bands:
            raise ValueError("professional_tax_bands cannot be empty")
        limits = [band.upper_limit for band in self.professional_tax_bands]
        if any(limit is None for limit in limits[:-1]):
            raise ValueError("only the last professional tax band may be open-ended")
        bounded = [limit for limit in limits if limit is not None]
        if bounded != sorted(bounded) or len(set(bounded)) != len(bounded):
            raise ValueError("professional_tax_bands must be sorted by upper_limit ascending")

        # Slabs: contiguous from zero, only the last may be open-ended
        if not self.tds_slabs:
            raise ValueError("tds_slabs cannot be empty")
        if self.tds_slabs[0].lower != 0:
            raise ValueError("tds_slabs must start at 0")
        for prev, nxt in zip(self.tds_slabs, self.tds_slabs[1:]):
            if prev.upper is None or prev.upper != nxt.lower:
                raise ValueError("tds_slabs must be contiguous and ascending")

        logger.debug(
            "salary_settings_initialized",
            extra={
                "hra_rate": str(self.hra_rate),
                "special_allowance_rate": str(self.special_allowance_rate),
                "pf_cap": str(self.pf_cap),
                "esi_gross_threshold": str(self.esi_gross_threshold),
                "professional_tax_band_count": len(self.professional_tax_bands),
                "tds_slab_count": len(self.tds_slabs),
                "prorate_by_attendance": self.prorate_by_attendance,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create settings with the canonical defaults."""
        logger.info("salary_settings_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create settings from a dictionary (e.g., loaded from YAML or a database)."""
        logger.info(
            "salary_settings_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown salary settings: {sorted(unknown)}")

        kwargs: dict[str, Any] = {}
        for name, value in data.items():
            if name == "professional_tax_bands":
                kwargs[name] = tuple(
                    band if isinstance(band, ProfessionalTaxBand) else ProfessionalTaxBand(
                        upper_limit=_to_optional_decimal("upper_limit", band.get("upper_limit")),
                        amount=_to_decimal("amount", band["amount"]),
                    )
                    for band in value
                )
            elif name == "tds_slabs":
                kwargs[name] = tuple(
                    slab if isinstance(slab, TaxSlab) else TaxSlab(
                        lower=_to_decimal("lower", slab["lower"]),
                        upper=_to_optional_decimal("upper", slab.get("upper")),
                        rate=_to_decimal("rate", slab["rate"]),
                    )
                    for slab in value
                )
            elif name == "prorate_by_attendance":
                if not isinstance(value, bool):
                    raise ValueError(f"prorate_by_attendance must be a boolean, got {value!r}")
                kwargs[name] = value
            else:
                kwargs[name] = _to_decimal(name, value)
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Plain, YAML/JSON-safe representation; ``from_dict(to_dict())`` is lossless."""
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "professional_tax_bands":
                data[f.name] = [
                    {
                        "upper_limit": None if band.upper_limit is None else str(band.upper_limit),
                        "amount": str(band.amount),
                    }
                    for band in value
                ]
            elif f.name == "tds_slabs":
                data[f.name] = [
                    {
                        "lower": str(slab.lower),
                        "upper": None if slab.upper is None else str(slab.upper),
                        "rate": str(slab.rate),
                    }
                    for slab in value
                ]
            elif isinstance(value, Decimal):
                data[f.name] = str(value)
            else:
                data[f.name] = value
        return data

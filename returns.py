"""
Return layer calculator.

Given asset classes (gross return, expenses) and the global parameters
(inflation, tax rate, borrowing cost, percent debt financed), computes the
cascade of derived returns for each asset:

  gross leveraged -> net leveraged -> after-tax -> after-tax real
  unleveraged net -> risk premium over the risk-free asset

Two formula variants are supported and kept separate:
  COMPOUNDING) leverage scaled by d/(1-d), Fisher-style inflation deflation,
               risk premium as a ratio of growth factors
  LINEAR)      leverage scaled by d, inflation subtracted, risk premium as a
               difference against the after-tax risk-free rate

Inputs and outputs are decimal percentages (8.0 means 8%). Everything here
is pure: updates return new objects and nothing is mutated in place.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import config as cfg
from logging_utils import get_logger

log = get_logger(__name__)


# ─── Errors ──────────────────────────────────────────────────────────

class InputError(ValueError):
    """An input value was rejected at the boundary."""


class CalculationError(ArithmeticError):
    """A formula hit a zero denominator or overflowed."""


# ─── Data Classes ────────────────────────────────────────────────────

class FormulaVariant(str, Enum):
    COMPOUNDING = "compounding"
    LINEAR = "linear"

    @classmethod
    def parse(cls, value: Any) -> "FormulaVariant":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            opts = ", ".join(v.value for v in cls)
            raise InputError(f"Unknown formula variant {value!r} (choose from {opts})") from None


def _check_finite(label: str, value: float) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise InputError(f"{label} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InputError(f"{label} must be finite, got {value!r}")


@dataclass(frozen=True)
class AssetClass:
    """One row of input."""

    name: str
    gross_return: float     # % per year
    expenses: float         # % per year, expense drag

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InputError("Asset name must be a non-empty string")
        _check_finite(f"{self.name} gross return", self.gross_return)
        _check_finite(f"{self.name} expenses", self.expenses)
        if self.expenses < 0:
            raise InputError(f"{self.name} expenses must be >= 0")


@dataclass(frozen=True)
class GlobalParameters:
    """Parameters shared by every asset class."""

    inflation: float = cfg.DEFAULT_INFLATION
    tax_rate: float = cfg.DEFAULT_TAX_RATE
    borrowing_cost: float = cfg.DEFAULT_BORROWING_COST
    percent_debt: float = cfg.DEFAULT_PERCENT_DEBT

    def __post_init__(self) -> None:
        for f in fields(self):
            _check_finite(f.name.replace("_", " ").capitalize(), getattr(self, f.name))
        if not 0 <= self.percent_debt < cfg.MAX_PERCENT_DEBT:
            raise InputError(
                f"Percent debt must be at least 0 and below {cfg.MAX_PERCENT_DEBT:g}"
            )


@dataclass(frozen=True)
class DerivedReturn:
    """Derived metrics for one asset, in percentage points."""

    leveraged_gross: float
    leveraged_net: float
    after_tax: float
    after_tax_real: float
    unleveraged_net: float
    risk_premium: float
    expenses_impact: float
    # LINEAR only
    tax_impact: Optional[float] = None
    inflation_impact: Optional[float] = None


@dataclass(frozen=True)
class Breakdown:
    """Results for a full asset list, in input order."""

    variant: FormulaVariant
    params: GlobalParameters
    risk_free: str
    results: Tuple[Tuple[AssetClass, Optional[DerivedReturn]], ...] = field(repr=False)
    errors: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "results", tuple(self.results))
        object.__setattr__(self, "errors", MappingProxyType(dict(self.errors)))

    def get(self, name: str) -> Optional[DerivedReturn]:
        for asset, derived in self.results:
            if asset.name == name:
                return derived
        raise KeyError(name)


def default_assets() -> Tuple[AssetClass, ...]:
    return tuple(AssetClass(n, g, e) for n, g, e in cfg.DEFAULT_ASSETS)


# ─── Input boundary ──────────────────────────────────────────────────

def parse_percent(raw: Any, label: str = "Value") -> float:
    """Parse a form/CLI value like ``"8"`` or ``"8.5%"`` into a float."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        val = float(raw)
    else:
        s = str(raw if raw is not None else "").strip().replace("%", "").strip()
        if not s:
            raise InputError(f"{label} is required")
        try:
            val = float(s)
        except ValueError:
            raise InputError(f"{label} must be a number, got {raw!r}") from None
    if not math.isfinite(val):
        raise InputError(f"{label} must be finite, got {raw!r}")
    return val


_ASSET_FIELDS = {
    "gross_return": "gross_return",
    "grossReturn": "gross_return",
    "expenses": "expenses",
}

_PARAM_FIELDS = {
    "inflation": "inflation",
    "tax_rate": "tax_rate",
    "taxRate": "tax_rate",
    "borrowing_cost": "borrowing_cost",
    "borrowingCost": "borrowing_cost",
    "percent_debt": "percent_debt",
    "percentDebt": "percent_debt",
}


def validate_assets(assets: Sequence[AssetClass], risk_free: str) -> None:
    names = [a.name for a in assets]
    dupes = sorted({n for n in names if names.count(n) > 1})
    if dupes:
        raise InputError(f"Asset names must be unique: {', '.join(dupes)}")
    if risk_free not in names:
        raise InputError(f"Risk-free asset {risk_free!r} is not in the asset list")


def update_asset(
    assets: Sequence[AssetClass],
    name: str,
    field_name: str,
    value: Any,
) -> Tuple[AssetClass, ...]:
    """Return a new asset tuple with one field of one asset replaced."""
    attr = _ASSET_FIELDS.get(field_name)
    if attr is None:
        raise InputError(f"Unknown asset field {field_name!r}")
    if name not in {a.name for a in assets}:
        raise InputError(f"Unknown asset {name!r}")
    val = parse_percent(value, f"{name} {attr.replace('_', ' ')}")
    return tuple(
        replace(a, **{attr: val}) if a.name == name else a
        for a in assets
    )


def update_parameters(params: GlobalParameters, field_name: str, value: Any) -> GlobalParameters:
    """Return new parameters with a single field replaced."""
    attr = _PARAM_FIELDS.get(field_name)
    if attr is None:
        raise InputError(f"Unknown parameter {field_name!r}")
    val = parse_percent(value, attr.replace("_", " ").capitalize())
    return replace(params, **{attr: val})


# ─── Formulas ────────────────────────────────────────────────────────

def _divide(num: float, den: float, what: str) -> float:
    if den == 0:
        raise CalculationError(f"{what} is zero")
    return num / den


def _compounding(g, e, d, bc, t, inf, rf) -> Dict[str, Optional[float]]:
    lev = _divide(d, 1 - d, "1 - percent debt")
    leveraged_gross = g + lev * (g - bc)
    leveraged_net = (g - e) + lev * ((g - e) - bc)
    after_tax = leveraged_net * (1 - t)
    after_tax_real = _divide(1 + after_tax, 1 + inf, "1 + inflation") - 1
    unleveraged_net = (g - e) * (1 - t)
    risk_premium = _divide(1 + unleveraged_net, 1 + rf, "1 + risk-free rate") - 1
    return {
        "leveraged_gross": leveraged_gross,
        "leveraged_net": leveraged_net,
        "after_tax": after_tax,
        "after_tax_real": after_tax_real,
        "unleveraged_net": unleveraged_net,
        "risk_premium": risk_premium,
        "expenses_impact": e,
        "tax_impact": None,
        "inflation_impact": None,
    }


def _linear(g, e, d, bc, t, inf, rf) -> Dict[str, Optional[float]]:
    leveraged_gross = g + d * (g - bc)
    leveraged_net = leveraged_gross - e
    after_tax = leveraged_net * (1 - t)
    unleveraged_net = (g - e) * (1 - t)
    return {
        "leveraged_gross": leveraged_gross,
        "leveraged_net": leveraged_net,
        "after_tax": after_tax,
        "after_tax_real": after_tax - inf,
        "unleveraged_net": unleveraged_net,
        "risk_premium": unleveraged_net - rf * (1 - t),
        "expenses_impact": e,
        "tax_impact": leveraged_net - after_tax,
        "inflation_impact": inf,
    }


_FORMULAS = {
    FormulaVariant.COMPOUNDING: _compounding,
    FormulaVariant.LINEAR: _linear,
}


def calculate_returns(
    asset: AssetClass,
    params: GlobalParameters,
    risk_free_rate: float,
    variant: FormulaVariant = FormulaVariant(cfg.DEFAULT_VARIANT),
) -> DerivedReturn:
    """Derived returns for one asset.

    ``risk_free_rate`` is the gross return (%) of the risk-free asset.
    Raises CalculationError on a zero denominator or a result that
    overflows to inf/nan.
    """
    variant = FormulaVariant.parse(variant)
    raw = _FORMULAS[variant](
        asset.gross_return / 100,
        asset.expenses / 100,
        params.percent_debt / 100,
        params.borrowing_cost / 100,
        params.tax_rate / 100,
        params.inflation / 100,
        risk_free_rate / 100,
    )
    scaled = {k: (v * 100 if v is not None else None) for k, v in raw.items()}
    for key, val in scaled.items():
        if val is not None and not math.isfinite(val):
            raise CalculationError(f"{key} is not finite")
    return DerivedReturn(**scaled)


def compute_breakdown(
    assets: Sequence[AssetClass],
    params: GlobalParameters,
    risk_free: str = cfg.DEFAULT_RISK_FREE,
    variant: FormulaVariant = FormulaVariant(cfg.DEFAULT_VARIANT),
) -> Breakdown:
    """Run the calculator for every asset.

    A CalculationError in one row is recorded in ``errors`` and leaves that
    row's result as None; the other rows are still computed.
    """
    variant = FormulaVariant.parse(variant)
    validate_assets(assets, risk_free)
    rf_asset = next(a for a in assets if a.name == risk_free)

    results: List[Tuple[AssetClass, Optional[DerivedReturn]]] = []
    errors: Dict[str, str] = {}
    for asset in assets:
        try:
            derived = calculate_returns(asset, params, rf_asset.gross_return, variant)
        except CalculationError as exc:
            log.warning(
                "row calculation failed",
                extra={"context": {"asset": asset.name, "variant": variant.value, "error": str(exc)}},
            )
            errors[asset.name] = str(exc)
            derived = None
        results.append((asset, derived))

    return Breakdown(
        variant=variant,
        params=params,
        risk_free=risk_free,
        results=tuple(results),
        errors=errors,
    )


# ─── Chart series ────────────────────────────────────────────────────

# (DerivedReturn attribute, label, bar colour)
SERIES: List[Tuple[str, str, str]] = [
    ("leveraged_gross", "Pre-Tax Nominal Gross Leveraged Return", "#C7D2FE"),
    ("leveraged_net", "Pre-Tax Nominal Net Leveraged Return", "#A5B4FC"),
    ("after_tax", "After-Tax Nominal Net Leveraged Return", "#93C5FD"),
    ("after_tax_real", "After-Tax Real Net Leveraged Return", "#60A5FA"),
    ("unleveraged_net", "After-Tax Real Net Unleveraged Return", "#3B82F6"),
    ("risk_premium", "After-Tax Net Risk Premium (Unleveraged)", "#2563EB"),
    ("expenses_impact", "Expenses", "#1D4ED8"),
    ("tax_impact", "Taxes", "#1E40AF"),
    ("inflation_impact", "Inflation", "#1E3A8A"),
]

_LINEAR_ONLY = {"tax_impact", "inflation_impact"}


def series_for(variant: FormulaVariant) -> List[Tuple[str, str, str]]:
    variant = FormulaVariant.parse(variant)
    if variant is FormulaVariant.LINEAR:
        return list(SERIES)
    return [s for s in SERIES if s[0] not in _LINEAR_ONLY]


def chart_rows(breakdown: Breakdown) -> List[Dict[str, Any]]:
    """One mapping per asset: ``name`` plus series label -> value."""
    series = series_for(breakdown.variant)
    rows: List[Dict[str, Any]] = []
    for asset, derived in breakdown.results:
        row: Dict[str, Any] = {"name": asset.name}
        if derived is None:
            row["error"] = breakdown.errors.get(asset.name, "calculation failed")
        else:
            for key, label, _ in series:
                row[label] = getattr(derived, key)
        rows.append(row)
    return rows

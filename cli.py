"""
CLI interface and shared display-data computation for the
Return Layer Breakdown calculator.
"""

from __future__ import annotations

import sys
from typing import Any, Dict, List, Optional, Sequence

import config as cfg
from returns import (
    AssetClass,
    Breakdown,
    FormulaVariant,
    GlobalParameters,
    InputError,
    chart_rows,
    compute_breakdown,
    default_assets,
    parse_percent,
    series_for,
)
import report


# ═══════════════════════════════════════════════════════════════════
# Formatting helpers
# ═══════════════════════════════════════════════════════════════════

def fmt_pct(val: Optional[float], decimals: int = cfg.TABLE_DECIMALS) -> str:
    if val is None:
        return "-"
    return f"{val:.{decimals}f}%"


# ═══════════════════════════════════════════════════════════════════
# Input collection (CLI)
# ═══════════════════════════════════════════════════════════════════

def _prompt_float(
    label: str,
    default: float,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    while True:
        raw = input(f"  {label} [{default}]: ").strip()
        if not raw:
            return float(default)
        try:
            val = parse_percent(raw, label)
        except InputError:
            print("    Invalid number, try again.")
            continue
        if min_val is not None and val < min_val:
            print(f"    Must be at least {min_val}")
            continue
        if max_val is not None and val > max_val:
            print(f"    Must be at most {max_val}")
            continue
        return val


def _prompt_choice(label: str, options: list[str], default: str) -> str:
    opts = "/".join(options)
    while True:
        raw = input(f"  {label} ({opts}) [{default}]: ").strip().lower()
        if not raw:
            return default
        if raw in options:
            return raw
        print(f"    Choose from: {opts}")


def _prompt_param(label: str, key: str, default: float) -> float:
    lo, hi = cfg.PROMPT_RANGES[key]
    return _prompt_float(label, default, lo, hi)


def collect_inputs() -> tuple[tuple[AssetClass, ...], GlobalParameters, FormulaVariant]:
    """Prompt the user for the global parameters and every asset class."""
    print("\n  Enter your assumptions (press Enter for defaults):\n")

    params = GlobalParameters(
        inflation=_prompt_param("Inflation %", "inflation", cfg.DEFAULT_INFLATION),
        tax_rate=_prompt_param("Tax rate %", "tax_rate", cfg.DEFAULT_TAX_RATE),
        borrowing_cost=_prompt_param("Borrowing cost %", "borrowing_cost", cfg.DEFAULT_BORROWING_COST),
        percent_debt=_prompt_param("Percent debt financed %", "percent_debt", cfg.DEFAULT_PERCENT_DEBT),
    )
    variant = _prompt_choice(
        "Formula variant",
        [v.value for v in FormulaVariant],
        cfg.DEFAULT_VARIANT,
    )

    assets = []
    for asset in default_assets():
        print(f"\n  {asset.name}")
        assets.append(AssetClass(
            name=asset.name,
            gross_return=_prompt_param("  Gross return %", "gross_return", asset.gross_return),
            expenses=_prompt_param("  Expenses %", "expenses", asset.expenses),
        ))

    return tuple(assets), params, FormulaVariant(variant)


# ═══════════════════════════════════════════════════════════════════
# Shared display-data computation (used by CLI and web app)
# ═══════════════════════════════════════════════════════════════════

def compute_display_data(
    assets: Sequence[AssetClass],
    params: GlobalParameters,
    variant: FormulaVariant,
    risk_free: str = cfg.DEFAULT_RISK_FREE,
) -> Dict[str, Any]:
    """Run the calculator and collect everything the output sections need."""
    bd: Breakdown = compute_breakdown(assets, params, risk_free, variant)
    series = series_for(bd.variant)

    table = []
    for asset, derived in bd.results:
        if derived is None:
            cells = ["error"] * len(series)
        else:
            cells = [fmt_pct(getattr(derived, key)) for key, _, _ in series]
        table.append({"name": asset.name, "cells": cells})

    return {
        "breakdown": bd,
        "variant": bd.variant.value,
        "params": params,
        "risk_free": risk_free,
        "series": series,
        "rows": chart_rows(bd),
        "table": table,
        "errors": dict(bd.errors),
    }


# ═══════════════════════════════════════════════════════════════════
# Box-drawing CLI output
# ═══════════════════════════════════════════════════════════════════

W = 78  # box width (characters)
H_BAR = "═"


def _box_top(title: str) -> str:
    inner = W - 2
    return (
        f"╔{H_BAR * inner}╗\n"
        f"║  {title:<{inner - 2}}║\n"
        f"╠{H_BAR * inner}╣"
    )


def _box_line(text: str = "") -> str:
    inner = W - 4
    if len(text) > inner:
        text = text[:inner]
    return f"║  {text:<{inner}}║"


def _box_row(label: str, value: str, lw: int = 46) -> str:
    return _box_line(f"{label:<{lw}}{value}")


def _box_bottom() -> str:
    return f"╚{H_BAR * (W - 2)}╝"


def _print_section(title: str, rows: List[str]) -> None:
    print(_box_top(title))
    for r in rows:
        print(r)
    print(_box_bottom())
    print()


def _print_assumptions(d: Dict[str, Any]) -> None:
    p: GlobalParameters = d["params"]
    rows = [
        _box_row("Inflation", fmt_pct(p.inflation)),
        _box_row("Tax rate", fmt_pct(p.tax_rate)),
        _box_row("Borrowing cost", fmt_pct(p.borrowing_cost)),
        _box_row("Percent debt financed", fmt_pct(p.percent_debt)),
        _box_row("Risk-free reference", d["risk_free"]),
        _box_row("Formula variant", d["variant"]),
    ]
    _print_section("ASSUMPTIONS", rows)


def _print_asset(name: str, d: Dict[str, Any]) -> None:
    entry = next(t for t in d["table"] if t["name"] == name)
    rows = []
    if name in d["errors"]:
        rows.append(_box_line(f"Could not compute: {d['errors'][name]}"))
    else:
        for (_, label, _), cell in zip(d["series"], entry["cells"]):
            rows.append(_box_row(label, cell))
    _print_section(name.upper(), rows)


# ═══════════════════════════════════════════════════════════════════
# Main CLI entry point
# ═══════════════════════════════════════════════════════════════════

def run_cli() -> None:
    """Run the full CLI workflow."""
    # Ensure box-drawing characters render on Windows
    try:
        sys.stdout.reconfigure(encoding="utf-8")
    except (AttributeError, OSError):
        pass
    print()
    print("=" * W)
    print("  Return Layer Breakdown")
    print("=" * W)

    assets, params, variant = collect_inputs()
    d = compute_display_data(assets, params, variant)

    print()
    _print_assumptions(d)
    for asset in assets:
        _print_asset(asset.name, d)

    print("  Generating PDF report...")
    pdf_path = report.generate_pdf(d, cfg.REPORT_PATH)
    print(f"  Saved to {pdf_path}\n")


if __name__ == "__main__":
    run_cli()

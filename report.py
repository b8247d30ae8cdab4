"""
PDF report generation and reusable chart rendering for the
Return Layer Breakdown calculator.

Provides:
  - Grouped bar chart of every return layer per asset (breakdown_chart)
  - Base64-encoded chart image for web embedding (get_web_chart)
  - Two-page PDF report: chart and table (generate_pdf, pdf_bytes)
"""

from __future__ import annotations

import base64
import io
from typing import Any, Dict

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.ticker import FuncFormatter
import numpy as np

import config as cfg

# ═══════════════════════════════════════════════════════════════════
# Style constants
# ═══════════════════════════════════════════════════════════════════

BG = "#0a101f"
CARD = "#131b2e"
TEXT = "#f1f5f9"
SLATE = "#94a3b8"
BORDER = "#1e293b"
RED = "#f87171"

A4W, A4H = 11.69, 8.27   # landscape


def _pct_fmt(x, _):
    return f"{x:.0f}%"


PCT_FMT = FuncFormatter(_pct_fmt)


def _style(fig, *axes):
    """Apply dark theme to figure and all axes."""
    fig.patch.set_facecolor(BG)
    for ax in axes:
        ax.set_facecolor(CARD)
        ax.tick_params(colors=TEXT, labelsize=8)
        ax.xaxis.label.set_color(TEXT)
        ax.yaxis.label.set_color(TEXT)
        ax.title.set_color(TEXT)
        for spine in ax.spines.values():
            spine.set_color(BORDER)
        ax.grid(True, axis="y", alpha=0.15, color=SLATE)


# ═══════════════════════════════════════════════════════════════════
# Breakdown chart
# ═══════════════════════════════════════════════════════════════════

def breakdown_chart(d: Dict[str, Any], figsize=(cfg.CHART_W, cfg.CHART_H)) -> plt.Figure:
    """Grouped bars: one group per asset, one bar per return layer."""
    rows = d["rows"]
    series = d["series"]

    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)

    x = np.arange(len(rows))
    w = 0.8 / max(len(series), 1)
    for i, (_, label, color) in enumerate(series):
        vals = [row.get(label, np.nan) for row in rows]
        bars = ax.bar(x - 0.4 + w * (i + 0.5), vals, w, color=color,
                      label=label, edgecolor=BORDER, linewidth=0.5)
        ax.bar_label(
            bars,
            labels=["" if np.isnan(v) else f"{v:.{cfg.LABEL_DECIMALS}f}%" for v in vals],
            fontsize=6, color=TEXT, padding=2,
        )

    for i, row in enumerate(rows):
        if "error" in row:
            ax.annotate("not computed", xy=(x[i], 0), ha="center", va="bottom",
                        fontsize=8, color=RED, xytext=(0, 6), textcoords="offset points")

    ax.axhline(0, color=SLATE, linewidth=0.8)
    ax.set_xticks(x)
    ax.set_xticklabels([row["name"] for row in rows], fontsize=9)
    ax.yaxis.set_major_formatter(PCT_FMT)
    ax.set_ylabel("%")
    ax.set_title("Return Layer Breakdown", fontsize=13, pad=12)
    ax.legend(loc="upper center", bbox_to_anchor=(0.5, -0.08), ncol=3,
              fontsize=7, facecolor=CARD, edgecolor=BORDER, labelcolor=TEXT)
    return fig


def _table_page(d: Dict[str, Any], figsize=(A4W, A4H)) -> plt.Figure:
    fig, ax = plt.subplots(figsize=figsize)
    _style(fig, ax)
    ax.axis("off")

    col_labels = ["Asset"] + [label for _, label, _ in d["series"]]
    cell_text = [[t["name"]] + t["cells"] for t in d["table"]]
    tbl = ax.table(cellText=cell_text, colLabels=col_labels, loc="center", cellLoc="center")
    tbl.auto_set_font_size(False)
    tbl.set_fontsize(7)
    tbl.scale(1, 2.2)
    for (r, _), cell in tbl.get_celld().items():
        cell.set_edgecolor(BORDER)
        cell.set_facecolor(BG if r == 0 else CARD)
        cell.get_text().set_color(TEXT)
        cell.get_text().set_wrap(True)

    p = d["params"]
    subtitle = (
        f"Inflation {p.inflation:g}%  |  Tax {p.tax_rate:g}%  |  "
        f"Borrowing {p.borrowing_cost:g}%  |  Debt {p.percent_debt:g}%  |  "
        f"Risk-free: {d['risk_free']}  |  Variant: {d['variant']}"
    )
    fig.suptitle("Return Calculations", fontsize=13, color=TEXT, fontweight="bold")
    fig.text(0.5, 0.9, subtitle, ha="center", fontsize=8, color=SLATE)
    return fig


# ═══════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════

def figure_to_base64(fig: plt.Figure) -> str:
    """Convert a matplotlib figure to a base64-encoded PNG string."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", facecolor=fig.get_facecolor(),
                dpi=150, bbox_inches="tight")
    buf.seek(0)
    b64 = base64.b64encode(buf.read()).decode()
    buf.close()
    return b64


def get_web_chart(d: Dict[str, Any]) -> str:
    """Return the breakdown chart as a base64 PNG for web embedding."""
    fig = breakdown_chart(d)
    try:
        return figure_to_base64(fig)
    finally:
        plt.close(fig)


def _write_pdf(d: Dict[str, Any], target) -> None:
    pages = [
        breakdown_chart(d, figsize=(A4W, A4H)),
        _table_page(d),
    ]
    with PdfPages(target) as pdf:
        for fig in pages:
            pdf.savefig(fig, facecolor=fig.get_facecolor())
    for fig in pages:
        plt.close(fig)


def generate_pdf(d: Dict[str, Any], path: str = cfg.REPORT_PATH) -> str:
    """Generate the PDF report. Returns the file path."""
    _write_pdf(d, path)
    return str(path)


def pdf_bytes(d: Dict[str, Any]) -> bytes:
    """Render the PDF report in memory."""
    buf = io.BytesIO()
    _write_pdf(d, buf)
    return buf.getvalue()

"""
Default inputs and display constants for the Return Layer Breakdown calculator.

All rates are decimal percentages (8.0 means 8%). The sample asset classes
are the ones the widget opens with; Treasury Bills serve as the risk-free
reference for the risk premium.
"""

import os

# ── Global economic parameters ───────────────────────────────────────
DEFAULT_INFLATION = 2.1
DEFAULT_TAX_RATE = 20.0
DEFAULT_BORROWING_COST = 4.0
DEFAULT_PERCENT_DEBT = 20.0

# ── Sample asset classes: (name, gross return, expenses) ─────────────
DEFAULT_ASSETS = [
    ("Equities", 8.0, 0.5),
    ("Corporate Bonds", 6.5, 0.3),
    ("Treasury Bills", 2.5, 0.0),
]
DEFAULT_RISK_FREE = "Treasury Bills"

# "compounding" (d/(1-d) leverage, Fisher deflation) or
# "linear" (d leverage, inflation subtracted)
DEFAULT_VARIANT = "compounding"

# Percent debt financed must stay below this (1 - d is a divisor)
MAX_PERCENT_DEBT = 100.0

# ── CLI prompt ranges (min, max) ─────────────────────────────────────
PROMPT_RANGES = {
    "gross_return": (-100.0, 100.0),
    "expenses": (0.0, 100.0),
    "inflation": (-50.0, 100.0),
    "tax_rate": (0.0, 100.0),
    "borrowing_cost": (-50.0, 100.0),
    "percent_debt": (0.0, 99.9),
}

# ── Web app ──────────────────────────────────────────────────────────
WEB_HOST = "127.0.0.1"
WEB_PORT = 5000
REPORT_PATH = "return_layers_report.pdf"

# ── Chart ────────────────────────────────────────────────────────────
CHART_W, CHART_H = 11, 5.5
LABEL_DECIMALS = 1      # bar value labels
TABLE_DECIMALS = 2      # tooltip / table cells

# ── Logging ──────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("RETURN_LAYERS_LOG_LEVEL", "INFO").upper()

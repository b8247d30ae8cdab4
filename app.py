"""
Flask web application for the Return Layer Breakdown calculator.

Single-file app using render_template_string.  Run via ``python main.py``
which starts the dev server on localhost:5000.  Every form edit posts the
form back, recomputes all asset classes and re-renders the chart.
"""

from __future__ import annotations

import io
from typing import Any, Dict, Mapping, Tuple

from flask import Flask, render_template_string, request, send_file

import config as cfg
from cli import compute_display_data, fmt_pct
from logging_utils import get_logger
from returns import (
    AssetClass,
    FormulaVariant,
    GlobalParameters,
    InputError,
    default_assets,
    update_asset,
    update_parameters,
)
import report

log = get_logger(__name__)

app = Flask(__name__)

PARAM_FIELDS = [
    ("inflation", "Inflation (%)"),
    ("tax_rate", "Tax Rate (%)"),
    ("borrowing_cost", "Borrowing Cost (%)"),
    ("percent_debt", "Percent Debt (%)"),
]
ASSET_FIELDS = ["gross_return", "expenses"]

# ═══════════════════════════════════════════════════════════════════
# Form parsing
# ═══════════════════════════════════════════════════════════════════

def parse_form(
    form: Mapping[str, str],
) -> Tuple[Tuple[AssetClass, ...], GlobalParameters, FormulaVariant, bool, Dict[str, str]]:
    """Parse the HTML form field by field.

    A rejected field keeps its default value and is reported in the
    returned error map (form field name -> message).
    """
    errors: Dict[str, str] = {}

    assets = default_assets()
    for i, asset in enumerate(default_assets()):
        for fld in ASSET_FIELDS:
            key = f"asset-{i}-{fld}"
            if key not in form:
                continue
            try:
                assets = update_asset(assets, asset.name, fld, form[key])
            except InputError as exc:
                errors[key] = str(exc)

    params = GlobalParameters()
    for fld, _ in PARAM_FIELDS:
        if fld not in form:
            continue
        try:
            params = update_parameters(params, fld, form[fld])
        except InputError as exc:
            errors[fld] = str(exc)

    try:
        variant = FormulaVariant.parse(form.get("variant", cfg.DEFAULT_VARIANT))
    except InputError as exc:
        errors["variant"] = str(exc)
        variant = FormulaVariant(cfg.DEFAULT_VARIANT)

    show_table = form.get("show_table") in ("on", "yes", "1", "true")

    if errors:
        log.warning("rejected form fields", extra={"context": {"fields": sorted(errors)}})
    return assets, params, variant, show_table, errors


# ═══════════════════════════════════════════════════════════════════
# HTML Template
# ═══════════════════════════════════════════════════════════════════

HTML_TEMPLATE = r"""
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Return Layer Breakdown</title>
<style>
  *{margin:0;padding:0;box-sizing:border-box}
  :root{
    --bg-deep:#050816;
    --bg-surface:rgba(15,23,42,0.55);
    --bg-input:rgba(8,11,22,0.85);
    --border-subtle:rgba(99,102,241,0.1);
    --text-primary:#f1f5f9;
    --text-secondary:#94a3b8;
    --text-muted:#64748b;
    --blue:#60a5fa;
    --blue-deep:#2563eb;
    --red:#f87171;
    --radius-lg:16px;
    --radius-md:10px;
  }
  body{
    background:var(--bg-deep);color:var(--text-primary);
    font-family:system-ui,-apple-system,sans-serif;line-height:1.6;
  }
  .container{max-width:1140px;margin:0 auto;padding:2rem 1.5rem}
  .hero{text-align:center;padding:1rem 0 2rem}
  .hero h1{font-size:clamp(1.4rem,4vw,2.2rem);font-weight:800;letter-spacing:-.03em}
  .hero-sub{color:var(--text-secondary);font-size:.92rem}
  .card{
    background:var(--bg-surface);border:1px solid var(--border-subtle);
    border-radius:var(--radius-lg);padding:1.6rem;margin-bottom:1.4rem;
  }
  h2{font-size:1.05rem;font-weight:700;margin-bottom:1rem}
  .form-grid{display:grid;grid-template-columns:repeat(auto-fill,minmax(200px,1fr));gap:1rem 1.5rem}
  .form-group{display:flex;flex-direction:column}
  .form-group label{font-size:.78rem;color:var(--text-secondary);margin-bottom:.3rem}
  input,select{
    background:var(--bg-input);border:1px solid rgba(71,85,105,.35);
    border-radius:var(--radius-md);color:var(--text-primary);
    padding:.5rem .75rem;font-size:.88rem;font-family:inherit;width:100%;
  }
  input.invalid{border-color:var(--red)}
  table{width:100%;border-collapse:collapse;font-size:.84rem}
  th{
    text-align:left;padding:.6rem .8rem;color:var(--text-secondary);
    font-size:.74rem;text-transform:uppercase;letter-spacing:.04em;
    border-bottom:1px solid rgba(51,65,85,.25);
  }
  td{padding:.5rem .8rem;border-bottom:1px solid rgba(51,65,85,.15);font-variant-numeric:tabular-nums}
  .errors{
    background:rgba(248,113,113,.06);border:1px solid rgba(248,113,113,.25);
    border-radius:var(--radius-md);padding:.75rem 1rem;margin-bottom:1.4rem;
    font-size:.84rem;color:#fca5a5;
  }
  .toggles{display:flex;gap:1.5rem;align-items:center;margin-top:1rem;font-size:.85rem;color:var(--text-secondary)}
  .toggles input[type=checkbox]{width:auto}
  .btn{
    padding:.6rem 1.6rem;border:none;border-radius:var(--radius-md);
    background:var(--blue-deep);color:#fff;font-weight:600;cursor:pointer;
    text-decoration:none;display:inline-block;
  }
  .chart-img{width:100%;border-radius:var(--radius-md)}
  .dl-section{text-align:center;padding:1rem 0}
  .footer{text-align:center;padding:1rem 0 2rem;color:var(--text-muted);font-size:.78rem}
</style>
</head>
<body>
<div class="container">

<header class="hero">
  <h1>Return Layer Breakdown</h1>
  <p class="hero-sub">How leverage, expenses, taxes and inflation shape the return you keep</p>
</header>

{% if errors %}
<div class="errors">
  {% for key, msg in errors.items() %}<div>{{ msg }}</div>{% endfor %}
</div>
{% endif %}

<form method="POST" id="calc-form">
<div class="card">
  <h2>Asset Class Inputs</h2>
  <table>
    <thead><tr><th>Asset</th><th>Gross Return (%)</th><th>Expenses (%)</th></tr></thead>
    <tbody>
    {% for asset in assets %}
      {% set i = loop.index0 %}
      <tr>
        <td>{{ asset.name }}{% if asset.name == risk_free %} <span style="color:var(--text-muted)">(risk-free)</span>{% endif %}</td>
        {% for fld in asset_fields %}
        {% set key = 'asset-' ~ i ~ '-' ~ fld %}
        <td><input type="number" step="any" name="{{ key }}"
                   value="{{ form.get(key, asset[fld]) }}"
                   class="{{ 'invalid' if key in errors else '' }}"></td>
        {% endfor %}
      </tr>
    {% endfor %}
    </tbody>
  </table>
</div>

<div class="card">
  <h2>Economic Parameters</h2>
  <div class="form-grid">
    {% for fld, label in param_fields %}
    <div class="form-group">
      <label>{{ label }}</label>
      <input type="number" step="any" name="{{ fld }}"
             value="{{ form.get(fld, params[fld]) }}"
             class="{{ 'invalid' if fld in errors else '' }}">
    </div>
    {% endfor %}
    <div class="form-group">
      <label>Formula</label>
      <select name="variant">
        {% for v in variants %}
        <option value="{{ v.value }}" {% if v.value == variant %}selected{% endif %}>
          {{ 'Compounding (d/(1-d), deflated)' if v.value == 'compounding' else 'Linear (d, inflation subtracted)' }}
        </option>
        {% endfor %}
      </select>
    </div>
  </div>
  <div class="toggles">
    <label><input type="checkbox" name="show_table" {% if show_table %}checked{% endif %}> Show calculations table</label>
    <button class="btn" type="submit">Recalculate</button>
  </div>
</div>
</form>

<div class="card">
  <h2>Return Breakdown Chart</h2>
  <img class="chart-img" alt="Return breakdown chart" src="data:image/png;base64,{{ chart }}">
</div>

{% if show_table %}
<div class="card">
  <h2>Return Calculations</h2>
  <div style="overflow-x:auto">
  <table>
    <thead><tr><th>Asset</th>{% for s in d.series %}<th>{{ s[1] }}</th>{% endfor %}</tr></thead>
    <tbody>
    {% for row in d.table %}
      <tr><td>{{ row.name }}</td>{% for c in row.cells %}<td>{{ c }}</td>{% endfor %}</tr>
    {% endfor %}
    </tbody>
  </table>
  </div>
</div>
{% endif %}

<div class="dl-section">
  <button class="btn" type="submit" form="calc-form" formaction="/download-pdf">Download PDF report</button>
</div>

<p class="footer">For educational/illustrative purposes only. Not financial advice.</p>
</div>

<script>
/* Recompute on every edit */
(function(){
  var f=document.getElementById('calc-form');
  if(!f) return;
  f.querySelectorAll('input,select').forEach(function(el){
    el.addEventListener('change',function(){f.submit()});
  });
})();
</script>
</body>
</html>
"""


# ═══════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════

def _render(form: Dict[str, Any], assets, params, variant, show_table, errors):
    d = compute_display_data(assets, params, variant)
    for name, msg in d["errors"].items():
        errors[f"row:{name}"] = f"{name}: {msg}"

    log.info(
        "recomputed breakdown",
        extra={"context": {
            "variant": d["variant"],
            "assets": len(assets),
            "errors": len(errors),
        }},
    )

    chart = report.get_web_chart(d)

    return render_template_string(
        HTML_TEMPLATE,
        form=form,
        assets=[
            {"name": a.name, "gross_return": a.gross_return, "expenses": a.expenses}
            for a in assets
        ],
        asset_fields=ASSET_FIELDS,
        params={
            "inflation": params.inflation,
            "tax_rate": params.tax_rate,
            "borrowing_cost": params.borrowing_cost,
            "percent_debt": params.percent_debt,
        },
        param_fields=PARAM_FIELDS,
        variants=list(FormulaVariant),
        variant=d["variant"],
        risk_free=d["risk_free"],
        show_table=show_table,
        errors=errors,
        chart=chart,
        d=d,
        fmt_pct=fmt_pct,
    )


@app.route("/", methods=["GET", "POST"])
def index():
    if request.method == "GET":
        return _render(
            {},
            default_assets(),
            GlobalParameters(),
            FormulaVariant(cfg.DEFAULT_VARIANT),
            False,
            {},
        )

    # POST: recompute from the edited form
    form = request.form.to_dict()
    assets, params, variant, show_table, errors = parse_form(form)
    # Rejected fields are redrawn with the value actually used
    shown = {k: v for k, v in form.items() if k not in errors}
    return _render(shown, assets, params, variant, show_table, errors)


@app.route("/download-pdf", methods=["GET", "POST"])
def download_pdf():
    # Built per request from the submitted inputs; GET uses the defaults
    assets, params, variant, _, errors = parse_form(request.values.to_dict())
    d = compute_display_data(assets, params, variant)
    log.info(
        "built pdf report",
        extra={"context": {"variant": d["variant"], "rejected": sorted(errors)}},
    )
    return send_file(io.BytesIO(report.pdf_bytes(d)), mimetype="application/pdf",
                     as_attachment=True, download_name="return_layers_report.pdf")


# ═══════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════

def run_web(debug: bool = True) -> None:
    """Start the Flask development server and open browser."""
    import webbrowser
    import threading

    url = f"http://{cfg.WEB_HOST}:{cfg.WEB_PORT}"
    print(f"Starting web app at {url}")
    threading.Timer(1.0, lambda: webbrowser.open(url)).start()
    app.run(host=cfg.WEB_HOST, port=cfg.WEB_PORT, debug=debug)


if __name__ == "__main__":
    run_web()

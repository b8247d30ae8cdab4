import app as app_module
from app import parse_form
from returns import FormulaVariant


def test_index_renders_defaults(client):
    r = client.get("/")
    assert r.status_code == 200
    html = r.get_data(as_text=True)
    assert "Return Layer Breakdown" in html
    assert "data:image/png;base64," in html
    assert "Treasury Bills" in html
    assert "Return Calculations" not in html


def test_post_linear_with_table(client):
    r = client.post("/", data={
        "asset-0-gross_return": "8",
        "asset-0-expenses": "0.5",
        "inflation": "2.1",
        "tax_rate": "20",
        "borrowing_cost": "4",
        "percent_debt": "20",
        "variant": "linear",
        "show_table": "on",
    })
    assert r.status_code == 200
    html = r.get_data(as_text=True)
    assert "Return Calculations" in html
    assert "8.80%" in html
    assert "4.54%" in html
    assert "Taxes" in html


def test_post_rejected_field_keeps_default(client):
    r = client.post("/", data={"percent_debt": "100", "show_table": "on"})
    assert r.status_code == 200
    html = r.get_data(as_text=True)
    assert "Percent debt must be at least 0 and below 100" in html
    # default 20% debt still applied: compounding leveraged gross of equities
    assert "9.00%" in html


def test_download_pdf_defaults(client):
    r = client.get("/download-pdf")
    assert r.status_code == 200
    assert r.mimetype == "application/pdf"
    assert r.data.startswith(b"%PDF")


def test_download_pdf_is_built_from_submitted_inputs(client, monkeypatch):
    seen = []
    real = app_module.report.pdf_bytes

    def capture(d):
        seen.append(d)
        return real(d)

    monkeypatch.setattr(app_module.report, "pdf_bytes", capture)
    r = client.post("/download-pdf", data={"percent_debt": "0", "variant": "linear"})

    assert r.status_code == 200
    assert r.data.startswith(b"%PDF")
    d = seen[0]
    assert d["variant"] == "linear"
    assert d["params"].percent_debt == 0
    assert d["table"][0]["cells"][0] == "8.00%"


def test_rendering_the_page_writes_no_report_file(client, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    client.get("/")
    client.post("/", data={"variant": "linear"})
    assert list(tmp_path.iterdir()) == []


def test_overflowing_row_is_reported_on_the_page(client):
    r = client.post("/", data={"asset-0-gross_return": "1e308", "percent_debt": "99"})
    assert r.status_code == 200
    html = r.get_data(as_text=True)
    assert "Equities: leveraged_gross is not finite" in html
    assert "inf%" not in html


def test_parse_form_isolates_bad_fields():
    assets, params, variant, show_table, errors = parse_form({
        "asset-0-expenses": "-1",
        "asset-1-gross_return": "7%",
        "percent_debt": "abc",
        "inflation": "3",
        "variant": "bogus",
    })

    assert set(errors) == {"asset-0-expenses", "percent_debt", "variant"}
    assert assets[0].expenses == 0.5
    assert assets[1].gross_return == 7.0
    assert params.inflation == 3.0
    assert params.percent_debt == 20.0
    assert variant is FormulaVariant.COMPOUNDING
    assert show_table is False

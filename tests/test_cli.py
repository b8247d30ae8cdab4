import pytest

import cli
from returns import FormulaVariant, GlobalParameters


def _feed(monkeypatch, answers):
    it = iter(answers)
    monkeypatch.setattr("builtins.input", lambda _prompt="": next(it))


def test_fmt_pct():
    assert cli.fmt_pct(4.536) == "4.54%"
    assert cli.fmt_pct(4.56, 1) == "4.6%"
    assert cli.fmt_pct(None) == "-"


def test_prompt_float_retries_until_valid(monkeypatch, capsys):
    _feed(monkeypatch, ["abc", "150", "-3", "5%"])
    assert cli._prompt_float("Tax rate %", 20, 0, 100) == 5.0

    out = capsys.readouterr().out
    assert "Invalid number" in out
    assert "Must be at most 100" in out
    assert "Must be at least 0" in out


def test_prompt_float_default(monkeypatch):
    _feed(monkeypatch, [""])
    assert cli._prompt_float("Inflation %", 2.1) == 2.1


def test_prompt_choice(monkeypatch, capsys):
    _feed(monkeypatch, ["geometric", "LINEAR"])
    assert cli._prompt_choice("Formula variant", ["compounding", "linear"], "compounding") == "linear"
    assert "Choose from" in capsys.readouterr().out


def test_collect_inputs_defaults(monkeypatch):
    # 4 parameters + variant + 3 assets x 2 fields
    _feed(monkeypatch, [""] * 11)
    assets, params, variant = cli.collect_inputs()

    assert [a.name for a in assets] == ["Equities", "Corporate Bonds", "Treasury Bills"]
    assert params == GlobalParameters()
    assert variant is FormulaVariant.COMPOUNDING


def test_compute_display_data_table(assets, params):
    d = cli.compute_display_data(assets, params, FormulaVariant.LINEAR)

    assert d["variant"] == "linear"
    assert d["errors"] == {}
    assert d["table"][0]["name"] == "Equities"
    assert d["table"][0]["cells"][:4] == ["8.80%", "8.30%", "6.64%", "4.54%"]
    assert len(d["table"][0]["cells"]) == len(d["series"])
    assert d["rows"][0]["name"] == "Equities"


def test_compute_display_data_failed_rows(assets):
    d = cli.compute_display_data(assets, GlobalParameters(inflation=-100), FormulaVariant.COMPOUNDING)
    assert set(d["errors"]) == {"Equities", "Corporate Bonds", "Treasury Bills"}
    assert d["table"][0]["cells"][0] == "error"


def test_run_cli(monkeypatch, capsys, tmp_path):
    _feed(monkeypatch, [""] * 4 + ["linear"] + [""] * 6)
    monkeypatch.setattr(cli.cfg, "REPORT_PATH", str(tmp_path / "cli.pdf"))

    cli.run_cli()

    out = capsys.readouterr().out
    assert "ASSUMPTIONS" in out
    assert "EQUITIES" in out
    assert "8.80%" in out
    assert (tmp_path / "cli.pdf").exists()

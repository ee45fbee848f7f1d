from __future__ import annotations

from pathlib import Path

from propledger.extensions import property_repository
from propledger.models import Property
from propledger.services.underwriting import apply_inputs, default_underwriting


def test_import_command_prints_summary(app, tmp_path: Path):
    csv_path = tmp_path / "bank.csv"
    csv_path.write_text("date,amount,vendor\n2024-01-01,-5,Ace\nnope,1,x\n", encoding="utf-8")
    runner = app.test_cli_runner()

    first = runner.invoke(args=["propledger-import", str(csv_path), "--source", "bank"])
    second = runner.invoke(args=["propledger-import", str(csv_path), "--source", "bank"])

    assert first.exit_code == 0, first.output
    assert "Rows detected: 2" in first.output
    assert "Imported: 1 • Skipped duplicates: 0 • Errors: 0" in first.output
    assert "Skipped (invalid date): 1" in first.output
    assert "Imported: 0 • Skipped duplicates: 1" in second.output


def test_import_command_tolerates_latin1_export(app, tmp_path: Path):
    csv_path = tmp_path / "latin1.csv"
    csv_path.write_bytes("date,amount,vendor\n2024-01-01,-5,Caf\xe9 Ren\xe9\n".encode("latin-1"))

    result = app.test_cli_runner().invoke(args=["propledger-import", str(csv_path)])

    assert result.exit_code == 0, result.output
    assert "Imported: 1" in result.output


def test_import_command_reports_empty_file(app, tmp_path: Path):
    csv_path = tmp_path / "empty.csv"
    csv_path.write_text("date,amount\n", encoding="utf-8")

    result = app.test_cli_runner().invoke(args=["propledger-import", str(csv_path)])

    assert result.exit_code != 0
    assert "No rows found to import." in result.output


def test_underwrite_command(app):
    with app.app_context():
        prop = property_repository().create(
            Property(address="8 Calc Ct", status="Owned", square_footage=1000),
            apply_inputs(default_underwriting(), {"market_price_per_sf": 150, "rent_est": 2000}),
        )

    result = app.test_cli_runner().invoke(args=["propledger-underwrite", str(prop.id)])

    assert result.exit_code == 0, result.output
    assert "8 Calc Ct [Owned]" in result.output
    assert "arv_market_based: 150,000.00" in result.output
    assert "min_refi_ltv_break_even:" in result.output


def test_underwrite_command_missing_property(app):
    result = app.test_cli_runner().invoke(args=["propledger-underwrite", "404"])

    assert result.exit_code != 0
    assert "Property 404 was not found." in result.output

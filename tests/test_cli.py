"""Tests for the command line entry points.

Covers the workflow from a raw export file through the CLI commands to the
JSON report and customer CSV.
"""

import json

import pandas as pd
import pytest

from sales_segmentation.cli import analyze_sales_cli, generate_sample_data_cli


@pytest.fixture
def sales_rows_json(tmp_path):
    """Create a sample sales export as a JSON array."""
    rows = [
        # Customer C1: repeat buyer
        {"Client": "C1", "Order Date": "2023-12-01 10:00:00", "Price": 50, "Qty": 1, "Country": "France"},
        {"Client": "C1", "Order Date": "2023-12-20 14:30:00", "Price": 100, "Qty": 1, "Country": "France"},
        {"Client": "C1", "Order Date": "01.11.2023", "Price": 150, "Qty": 1, "Country": "France"},
        # Customer C2: one-off big spender
        {"Client": "C2", "Order Date": "2023-06-01 09:00:00", "Price": 2500, "Qty": 1, "Country": "Spain"},
        # Unattributable row
        {"Client": None, "Order Date": "2023-06-01 09:00:00", "Price": 5, "Qty": 1, "Country": "Spain"},
    ]
    path = tmp_path / "sales.json"
    path.write_text(json.dumps(rows), encoding="utf-8")
    return path


class TestAnalyzeSalesCli:
    """Test analyze_sales_cli."""

    def test_writes_json_report(self, sales_rows_json, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        exit_code = analyze_sales_cli(
            [str(sales_rows_json), "--now", "2023-12-31", "--output", "out/report.json"]
        )

        assert exit_code == 0
        report = json.loads((tmp_path / "out" / "report.json").read_text(encoding="utf-8"))
        assert report["now"] == "2023-12-31T00:00:00"
        assert report["transaction_count"] == 4
        assert report["dropped_rows"] == 1
        assert report["customer_count"] == 2
        c1 = report["profiles"][0]
        assert c1["customer_id"] == "C1"
        assert c1["frequency"] == 3
        assert c1["monetary"] == 300.0
        assert report["profiles"][1]["cluster"] == "VIP"
        assert len(report["segments"]) == 8
        assert len(report["rfm_grid"]) == 25
        assert len(report["clusters"]) == 5
        assert len(report["temporal"]["hourly"]) == 24
        assert len(report["holidays"]) == 8
        assert "transactions" not in report

    def test_stdout_and_customer_csv(self, sales_rows_json, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)

        exit_code = analyze_sales_cli(
            [
                str(sales_rows_json),
                "--now",
                "2023-12-31",
                "--customers-csv",
                "customers.csv",
                "--include-transactions",
            ]
        )

        assert exit_code == 0
        report = json.loads(capsys.readouterr().out)
        assert len(report["transactions"]) == 4
        customers = pd.read_csv(tmp_path / "customers.csv", dtype={"rfm_score": str})
        assert list(customers["customer_id"]) == ["C1", "C2"]

    def test_csv_input_with_explicit_mapping(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        pd.DataFrame(
            {
                "buyer": ["A", "A", "B"],
                "when": ["2023-03-01", "2023-03-05", "2023-02-01"],
                "line": [30.0, 10.0, 8.0],
                "units": [3, 1, 2],
            }
        ).to_csv(tmp_path / "sales.csv", index=False)
        (tmp_path / "mapping.json").write_text(
            json.dumps(
                {"CustomerID": "buyer", "InvoiceDate": "when", "Amount": "line", "Quantity": "units"}
            ),
            encoding="utf-8",
        )

        exit_code = analyze_sales_cli(
            [
                "sales.csv",
                "--mapping",
                "mapping.json",
                "--now",
                "2023-03-31",
                "--amount-convention",
                "line_total",
                "--output",
                "report.json",
            ]
        )

        assert exit_code == 0
        report = json.loads((tmp_path / "report.json").read_text(encoding="utf-8"))
        monetary = {p["customer_id"]: p["monetary"] for p in report["profiles"]}
        assert monetary == {"A": 40.0, "B": 8.0}

    def test_missing_required_fields_fails(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text(json.dumps([{"foo": 1, "bar": 2}]), encoding="utf-8")
        assert analyze_sales_cli([str(path)]) == 1

    def test_empty_input_fails(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text("[]", encoding="utf-8")
        assert analyze_sales_cli([str(path)]) == 1

    def test_no_surviving_transactions_fails(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text(
            json.dumps([{"CustomerID": "", "InvoiceDate": "2023-01-01", "Amount": 1}]),
            encoding="utf-8",
        )
        assert analyze_sales_cli([str(path), "--now", "2023-12-31"]) == 1

    def test_non_list_json_raises(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text(json.dumps({"rows": []}), encoding="utf-8")
        with pytest.raises(ValueError, match="Expected a list of row objects"):
            analyze_sales_cli([str(path)])

    def test_output_outside_cwd_is_rejected(self, sales_rows_json, tmp_path, monkeypatch):
        workdir = tmp_path / "work"
        workdir.mkdir()
        monkeypatch.chdir(workdir)
        with pytest.raises(ValueError, match="must reside within the current working directory"):
            analyze_sales_cli(
                [str(sales_rows_json), "--now", "2023-12-31", "--output", "../escape.json"]
            )

    def test_unparseable_now_raises(self, sales_rows_json):
        with pytest.raises(ValueError, match="Could not parse reference time"):
            analyze_sales_cli([str(sales_rows_json), "--now", "whenever"])


class TestGenerateSampleDataCli:
    """Test generate_sample_data_cli."""

    def test_generated_rows_feed_the_analysis(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert (
            generate_sample_data_cli(
                ["--rows", "120", "--seed", "9", "--now", "2024-01-31", "--output", "sample.json"]
            )
            == 0
        )
        rows = json.loads((tmp_path / "sample.json").read_text(encoding="utf-8"))
        assert len(rows) == 120

        assert (
            analyze_sales_cli(["sample.json", "--now", "2024-01-31", "--output", "report.json"])
            == 0
        )
        report = json.loads((tmp_path / "report.json").read_text(encoding="utf-8"))
        assert report["transaction_count"] == 120

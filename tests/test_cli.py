from __future__ import annotations

import pandas as pd
import pytest

from conftest import make_rows
from pos_analytics.main import NO_RULES_MESSAGE, main


@pytest.fixture
def store_csv(tmp_path):
    path = tmp_path / "transactions.csv"
    pd.DataFrame(make_rows()).to_csv(path, index=False)
    return path


def _argv(input_path, out_dir, *extra):
    return [
        "--input", str(input_path),
        "--output-dir", str(out_dir),
        "--clusters", "2",
        "--seed", "7",
        "--verbose", "false",
        *extra,
    ]


def test_cli_writes_tables_and_prints_rules(store_csv, tmp_path, capsys):
    out_dir = tmp_path / "out"
    code = main(_argv(store_csv, out_dir, "--min-support", "0.1", "--min-confidence", "0.3"))

    assert code == 0
    for name in ("clustered_records", "reduced_points", "rules_by_confidence", "rules_by_support"):
        assert (out_dir / f"{name}.csv").exists()

    printed = capsys.readouterr().out
    assert "K-Means clusters (k=2)" in printed
    assert "Rules by Confidence:" in printed
    assert "Rules by Support:" in printed
    assert "=>" in printed


def test_cli_reports_when_no_rules(store_csv, tmp_path, capsys):
    code = main(_argv(store_csv, tmp_path / "out", "--min-support", "1.0"))
    assert code == 0
    assert NO_RULES_MESSAGE in capsys.readouterr().out


def test_cli_empty_dataset_exit_code(tmp_path, capsys):
    path = tmp_path / "empty.csv"
    pd.DataFrame(
        [{"paymentType": None, "age": 30, "city": "Cairo", "items": "milk", "total": 10.0}]
    ).to_csv(path, index=False)

    assert main(_argv(path, tmp_path / "out")) == 1
    assert "Empty dataset" in capsys.readouterr().err


def test_cli_missing_input_exit_code(tmp_path):
    assert main(_argv(tmp_path / "nope.csv", tmp_path / "out")) == 2


def test_cli_rejects_bad_threshold(store_csv, tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(_argv(store_csv, tmp_path / "out", "--min-support", "0"))
    assert exc.value.code == 2


def test_cli_log_file(store_csv, tmp_path):
    out_dir = tmp_path / "out"
    assert main(_argv(store_csv, out_dir, "--min-support", "0.1", "--log-file", "true")) == 0
    assert (out_dir / "pos_analytics.log").exists()

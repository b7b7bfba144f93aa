"""
CLI Smoke Tests: sample -> predict -> compare on synthetic data
"""

import json

import pandas as pd
import pytest
from typer.testing import CliRunner

from src.forecasting.cli import app

runner = CliRunner()


@pytest.fixture
def sample_csv(tmp_path):
    path = tmp_path / "sample.csv"
    result = runner.invoke(app, ["sample", str(path), "--days", "60", "--seed", "1"])
    assert result.exit_code == 0, result.output
    return path


@pytest.mark.smoke
class TestCli:
    def test_models_lists_catalog(self):
        result = runner.invoke(app, ["models"])
        assert result.exit_code == 0
        assert "linear" in result.output

    def test_sample_writes_csv(self, sample_csv):
        frame = pd.read_csv(sample_csv)
        assert len(frame) == 60
        assert {"date", "open", "high", "low", "close", "volume"} <= set(frame.columns)

    def test_predict(self, sample_csv, tmp_path):
        out = tmp_path / "predictions.csv"
        result = runner.invoke(app, [
            "predict", str(sample_csv), "--model", "lstm", "--horizon", "5",
            "--output", str(out),
        ])

        assert result.exit_code == 0, result.output
        assert len(pd.read_csv(out)) == 5

    def test_compare_writes_artifacts(self, sample_csv, tmp_path):
        out_dir = tmp_path / "artifacts"
        result = runner.invoke(app, [
            "compare", str(sample_csv), "--horizon", "5", "--backtest-window", "7",
            "--seed", "0", "--output-dir", str(out_dir),
        ])

        assert result.exit_code == 0, result.output
        leaderboard = pd.read_csv(out_dir / "leaderboard.csv")
        assert len(leaderboard) == 16
        payload = json.loads((out_dir / "comparison.json").read_text())
        assert len(payload["ranking"]) == 16


@pytest.mark.fail_loud
class TestCliErrors:
    def test_missing_file_exits_1(self, tmp_path):
        result = runner.invoke(app, ["predict", str(tmp_path / "nope.csv")])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_unknown_model_exits_1(self, sample_csv):
        result = runner.invoke(app, ["predict", str(sample_csv), "--model", "nope"])
        assert result.exit_code == 1

    def test_missing_target_exits_1(self, sample_csv):
        result = runner.invoke(app, ["compare", str(sample_csv), "--target", "adj_close"])
        assert result.exit_code == 1

    def test_horizon_out_of_range_exits_1(self, sample_csv):
        result = runner.invoke(app, ["predict", str(sample_csv), "--horizon", "90"])
        assert result.exit_code == 1

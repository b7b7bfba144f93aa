# file: src/forecasting/cli.py
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from src.datasets import (DatasetError, atomic_write_csv, atomic_write_json,
                          generate_sample_frame, load_dataset,
                          predictions_to_frame)
from src.forecasting.comparison import (OrchestrationError, compare_models,
                                        run_prediction)
from src.forecasting.config import ForecastConfig
from src.forecasting.registry import UnknownModelError, default_registry

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


def _strip_ipykernel_args(argv: list[str]) -> list[str]:
    """Jupyter/ipykernel injects `-f <connection_file>` into sys.argv."""
    out = [argv[0]]
    i = 1
    while i < len(argv):
        a = argv[i]
        if a in ("-f", "--f"):
            i += 2
            continue
        if a.startswith("--f="):
            i += 1
            continue
        out.append(a)
        i += 1
    return out


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(1)


def _fmt(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)


@app.command()
def models():
    """List the available forecasting models."""
    table = Table(title="Forecasting Models")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Category")
    table.add_column("Description")

    for d in default_registry().descriptors():
        table.add_row(d.id, d.display_name, d.category.value, d.description)

    console.print(table)


@app.command()
def predict(
    path: Path = typer.Argument(..., help="CSV or JSON dataset"),
    target: str = "close",
    model: str = "linear",
    horizon: int = 7,
    window: int = 30,
    start_index: Optional[int] = None,
    seed: Optional[int] = None,
    output: Optional[Path] = None,
):
    """Forecast HORIZON days with a single model."""
    try:
        cfg = ForecastConfig.from_env(
            target_field=target, horizon=horizon, window_size=window,
            start_index=start_index, seed=seed,
        )
        dataset = load_dataset(path, date_field=cfg.date_field)
        run = run_prediction(
            dataset.rows,
            cfg.target_field,
            model,
            cfg.horizon,
            window_size=cfg.window_size,
            start_index=cfg.start_index,
            registry=default_registry(seed=cfg.seed),
        )
    except (DatasetError, OrchestrationError, UnknownModelError, ValueError) as e:
        _fail(str(e))
        return

    table = Table(title=f"{model} predictions ({cfg.target_field})")
    table.add_column("Date", style="cyan")
    table.add_column("Prediction", style="green", justify="right")
    for row in run.predictions:
        table.add_row(row.date, _fmt(row[cfg.target_field]))
    console.print(table)

    if output is not None:
        atomic_write_csv(predictions_to_frame(run.predictions), output)
        console.print(f"Saved predictions to {output}")


@app.command()
def compare(
    path: Path = typer.Argument(..., help="CSV or JSON dataset"),
    target: str = "close",
    horizon: int = 7,
    window: int = 30,
    backtest_window: int = 7,
    start_index: Optional[int] = None,
    seed: Optional[int] = None,
    workers: int = 1,
    output_dir: Optional[Path] = None,
):
    """Run, backtest and rank every model."""
    try:
        cfg = ForecastConfig.from_env(
            target_field=target, horizon=horizon, window_size=window,
            backtest_window=backtest_window, start_index=start_index,
            seed=seed, max_workers=workers,
            output_dir=str(output_dir) if output_dir else None,
        )
        dataset = load_dataset(path, date_field=cfg.date_field)
        result = compare_models(
            dataset.rows,
            cfg.target_field,
            cfg.horizon,
            window_size=cfg.window_size,
            start_index=cfg.start_index,
            backtest_window=cfg.backtest_window,
            registry=default_registry(seed=cfg.seed),
            max_workers=cfg.max_workers,
        )
    except (DatasetError, OrchestrationError, ValueError) as e:
        _fail(str(e))
        return

    leaderboard = result.leaderboard()
    table = Table(title=f"Model Comparison ({cfg.target_field}, backtest={cfg.backtest_window})")
    for col, style in (("rank", "cyan"), ("name", "green"), ("category", None),
                       ("score", "bold"), ("mape", None), ("r2", None),
                       ("directional_accuracy", None), ("rmse", None)):
        table.add_column(col, style=style, justify="left" if col in ("name", "category") else "right")
    for rec in leaderboard.to_dict(orient="records"):
        table.add_row(*(_fmt(rec[c]) for c in
                        ("rank", "name", "category", "score", "mape", "r2",
                         "directional_accuracy", "rmse")))
    console.print(table)

    if output_dir is not None:
        atomic_write_csv(leaderboard, cfg.leaderboard_path())
        atomic_write_json(result.to_dict(), cfg.comparison_path())
        console.print(f"Saved leaderboard and comparison to {cfg.output_path()}")


@app.command()
def sample(
    output: Path = typer.Argument(..., help="CSV file to write"),
    days: int = 100,
    seed: Optional[int] = None,
):
    """Write a synthetic OHLCV dataset."""
    frame = generate_sample_frame(n_days=days, seed=seed)
    atomic_write_csv(frame, output)
    console.print(f"Wrote {len(frame)} rows to {output}")


if __name__ == "__main__":
    sys.argv = _strip_ipykernel_args(sys.argv)
    app(standalone_mode=False)

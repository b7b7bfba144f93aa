# file: src/forecasting/comparison.py
"""
Prediction and Model Comparison Orchestration

Runs one model or the whole registry over a working window of a dataset,
backtests each model on the most recent rows, scores and ranks them, and
shapes the results for tables and charts.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .backtesting import BacktestResult, generate_backtest_results
from .objects import (ModelDescriptor, PredictionRow, TimeSeriesRow,
                      combine_history)
from .registry import ModelRegistry, default_registry
from .scoring import ScoreBreakdown, score_components

logger = logging.getLogger(__name__)

RowLike = Union[TimeSeriesRow, Mapping[str, Any]]


class OrchestrationError(ValueError):
    """Raised when a prediction run cannot start (no data, missing columns)"""


# ---------------------------------------------------------------------------
# Input preparation
# ---------------------------------------------------------------------------

def _to_row(record: RowLike, target_field: str, date_field: str) -> TimeSeriesRow:
    if isinstance(record, TimeSeriesRow):
        return record

    if date_field not in record or record[date_field] in (None, ""):
        raise OrchestrationError(f"Missing date column: {date_field}")

    values = {}
    for key, value in record.items():
        if key in (date_field, "isPrediction") or isinstance(value, bool):
            continue
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        try:
            values[key] = float(value)
        except (TypeError, ValueError):
            if key == target_field:
                raise OrchestrationError(
                    f"Target column {target_field} is not numeric on "
                    f"{record[date_field]}: {value!r}"
                )
    return TimeSeriesRow(date=str(record[date_field])[:10], values=values)


def _has_value(row: TimeSeriesRow, field_name: str) -> bool:
    return field_name in row and math.isfinite(row[field_name])


def prepare_history(
    rows: Optional[Sequence[RowLike]],
    target_field: str,
    date_field: str = "date",
    start_index: Optional[int] = None,
) -> List[TimeSeriesRow]:
    """
    Validate a dataset and cut it at the prediction start point.

    Args:
        rows: Dataset rows ordered by ascending date
        target_field: Numeric column to forecast
        date_field: Date column (mapping rows only; TimeSeriesRow has `date`)
        start_index: Exclusive end of usable history; None uses every row

    Rows without a finite target value (blank cells) are dropped with a
    warning; the column counts as missing only if no row carries it.

    Raises:
        OrchestrationError: no data, or target/date column missing
    """
    if not rows:
        raise OrchestrationError("No dataset loaded")
    if not target_field:
        raise OrchestrationError("No target column selected")
    if not date_field:
        raise OrchestrationError("No date column selected")

    if start_index is not None:
        if not 1 <= start_index <= len(rows):
            raise OrchestrationError(
                f"start_index must be in 1..{len(rows)}, got {start_index}"
            )
        rows = rows[:start_index]

    converted = [_to_row(r, target_field, date_field) for r in rows]
    history = [row for row in converted if _has_value(row, target_field)]

    if not history:
        raise OrchestrationError(f"Missing target column: {target_field}")

    skipped = [row.date for row in converted if not _has_value(row, target_field)]
    if skipped:
        logger.warning(
            f"Dropping {len(skipped)} rows with no {target_field} value "
            f"(first on {skipped[0]})"
        )
    return history


def prepare_series(
    rows: Optional[Sequence[RowLike]],
    target_field: str,
    date_field: str = "date",
    window_size: int = 30,
    start_index: Optional[int] = None,
) -> List[TimeSeriesRow]:
    """Working window: the last `window_size` rows before the start point"""
    history = prepare_history(rows, target_field, date_field, start_index)
    return history[-window_size:]


# ---------------------------------------------------------------------------
# Single-model run
# ---------------------------------------------------------------------------

@dataclass
class PredictionRun:
    """Forecast from one model plus the window it was fitted on"""
    model_id: str
    target_field: str
    history: List[TimeSeriesRow]
    predictions: List[PredictionRow]

    def combined(self) -> List[TimeSeriesRow]:
        """History followed by predictions, for charting"""
        return combine_history(self.history, self.predictions)

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame([row.to_dict() for row in self.combined()])
        if "isPrediction" not in frame.columns:
            frame["isPrediction"] = False
        frame["isPrediction"] = frame["isPrediction"].fillna(False).astype(bool)
        return frame


def run_prediction(
    rows: Optional[Sequence[RowLike]],
    target_field: str,
    model_id: str,
    horizon: int,
    date_field: str = "date",
    window_size: int = 30,
    start_index: Optional[int] = None,
    registry: Optional[ModelRegistry] = None,
) -> PredictionRun:
    """Forecast `horizon` days with one registry model"""
    registry = registry or default_registry()
    model_fn = registry.get(model_id)

    window = prepare_series(rows, target_field, date_field, window_size, start_index)
    predictions = model_fn(window, target_field, horizon)

    logger.info(
        f"Generated {len(predictions)} days of predictions using {model_id} "
        f"from {len(window)} rows"
    )
    return PredictionRun(
        model_id=model_id,
        target_field=target_field,
        history=window,
        predictions=predictions,
    )


# ---------------------------------------------------------------------------
# Compare-all run
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelEvaluation:
    """Backtest metrics and score for one model"""
    model_id: str
    result: BacktestResult
    breakdown: ScoreBreakdown

    @property
    def score(self) -> int:
        return self.breakdown.score


@dataclass
class ComparisonResult:
    """Forecasts and (optional) backtest scores for every compared model"""
    target_field: str
    horizon: int
    descriptors: Dict[str, ModelDescriptor]
    predictions: Dict[str, List[PredictionRow]]
    evaluations: Dict[str, ModelEvaluation] = field(default_factory=dict)
    backtest_window: Optional[int] = None

    def ranking(self) -> List[str]:
        """Model ids by score (desc); catalog order breaks ties"""
        order = list(self.predictions)
        if not self.evaluations:
            return order
        return sorted(
            order,
            key=lambda m: (
                -self.evaluations[m].score if m in self.evaluations else 1,
                order.index(m),
            ),
        )

    def best_model(self) -> Optional[str]:
        if not self.evaluations:
            return None
        return self.ranking()[0]

    def leaderboard(self) -> pd.DataFrame:
        """Ranked table of scores and metrics, one row per model"""
        columns = [
            "rank", "model_id", "name", "category", "score",
            "mae", "mse", "rmse", "mape", "r2", "directional_accuracy",
        ]
        records = []
        for rank, model_id in enumerate(self.ranking(), start=1):
            descriptor = self.descriptors[model_id]
            record = {
                "rank": rank,
                "model_id": model_id,
                "name": descriptor.display_name,
                "category": descriptor.category.value,
            }
            evaluation = self.evaluations.get(model_id)
            if evaluation is not None:
                result = evaluation.result
                record.update({
                    "score": evaluation.score,
                    "mae": result.mae,
                    "mse": result.mse,
                    "rmse": result.rmse,
                    "mape": result.mape,
                    "r2": result.r2,
                    "directional_accuracy": result.directional_accuracy,
                })
            records.append(record)
        return pd.DataFrame(records, columns=columns)

    def comparison_table(self) -> List[Dict[str, Any]]:
        """Per-day rows: {day, date, <model_id>: predicted value, ...}"""
        table = []
        first = next(iter(self.predictions.values()), [])
        for i in range(self.horizon):
            day: Dict[str, Any] = {
                "day": i + 1,
                "date": first[i].date if i < len(first) else f"Day {i + 1}",
            }
            for model_id, predictions in self.predictions.items():
                day[model_id] = (
                    predictions[i][self.target_field] if i < len(predictions) else None
                )
            table.append(day)
        return table

    def radar_data(self) -> List[Dict[str, Any]]:
        """One row per score component with a column per model (0-100 scale)"""
        components = [
            ("Accuracy", "mape_score"),
            ("Fit", "r2_score"),
            ("Direction", "direction_score"),
            ("Score", "score"),
        ]
        rows = []
        for label, attr in components:
            row: Dict[str, Any] = {"metric": label}
            for model_id, evaluation in self.evaluations.items():
                row[model_id] = round(float(getattr(evaluation.breakdown, attr)), 2)
            rows.append(row)
        return rows

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_field": self.target_field,
            "horizon": self.horizon,
            "backtest_window": self.backtest_window,
            "ranking": self.ranking(),
            "models": {m: d.to_dict() for m, d in self.descriptors.items()},
            "predictions": {
                m: [row.to_dict() for row in rows] for m, rows in self.predictions.items()
            },
            "evaluations": {
                m: {**e.result.to_dict(), **e.breakdown.to_dict()}
                for m, e in self.evaluations.items()
            },
        }


def _run_model(
    registry: ModelRegistry,
    model_id: str,
    window: List[TimeSeriesRow],
    backtest_series: Optional[List[TimeSeriesRow]],
    target_field: str,
    horizon: int,
    backtest_window: Optional[int],
) -> Tuple[List[PredictionRow], Optional[ModelEvaluation]]:
    predictions = registry.get(model_id)(window, target_field, horizon)

    if backtest_series is None or backtest_window is None:
        return predictions, None

    result = generate_backtest_results(
        backtest_series, target_field, registry.get(model_id), backtest_window
    )
    breakdown = score_components(result)
    logger.debug(f"{model_id}: score={breakdown.score}, mape={result.mape:.2f}")
    return predictions, ModelEvaluation(model_id, result, breakdown)


def compare_models(
    rows: Optional[Sequence[RowLike]],
    target_field: str,
    horizon: int,
    date_field: str = "date",
    window_size: int = 30,
    start_index: Optional[int] = None,
    backtest_window: Optional[int] = None,
    registry: Optional[ModelRegistry] = None,
    model_ids: Optional[Sequence[str]] = None,
    max_workers: int = 1,
) -> ComparisonResult:
    """
    Run every model (or `model_ids`) and optionally backtest and rank them

    Args:
        rows: Dataset rows ordered by ascending date
        target_field: Numeric column to forecast
        horizon: Days to forecast
        date_field: Date column for mapping rows
        window_size: Rows of history each model sees
        start_index: Exclusive end of usable history
        backtest_window: Held-out rows per model; None skips scoring.
            Each model is backtested on the last window_size + backtest_window
            rows, so its training slice matches the forecasting window.
        registry: Model registry (default: full catalog, unseeded)
        model_ids: Subset of registry ids to run
        max_workers: >1 runs models on a thread pool

    Returns:
        ComparisonResult keyed by model id in catalog order
    """
    registry = registry or default_registry()
    model_ids = list(model_ids) if model_ids is not None else registry.ids()
    for model_id in model_ids:
        registry.descriptor(model_id)

    history = prepare_history(rows, target_field, date_field, start_index)
    window = history[-window_size:]
    backtest_series = (
        history[-(window_size + backtest_window):] if backtest_window else None
    )

    logger.info(
        f"Comparing {len(model_ids)} models on {len(window)} rows, horizon={horizon}, "
        f"backtest_window={backtest_window}"
    )

    def task(model_id: str):
        return _run_model(
            registry, model_id, window, backtest_series,
            target_field, horizon, backtest_window,
        )

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(task, model_ids))
    else:
        outcomes = [task(model_id) for model_id in model_ids]

    predictions: Dict[str, List[PredictionRow]] = {}
    evaluations: Dict[str, ModelEvaluation] = {}
    for model_id, (model_predictions, evaluation) in zip(model_ids, outcomes):
        predictions[model_id] = model_predictions
        if evaluation is not None:
            evaluations[model_id] = evaluation

    comparison = ComparisonResult(
        target_field=target_field,
        horizon=horizon,
        descriptors={m: registry.descriptor(m) for m in model_ids},
        predictions=predictions,
        evaluations=evaluations,
        backtest_window=backtest_window,
    )

    if evaluations:
        best = comparison.best_model()
        logger.info(f"Best model: {best} (score={evaluations[best].score})")
    return comparison

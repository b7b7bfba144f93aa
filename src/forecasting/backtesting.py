# file: src/forecasting/backtesting.py
"""
Holdout Backtesting

Scores a model by hiding the most recent rows, forecasting them from the
rest, and comparing forecast to truth. Train rows always precede test rows,
so there is no information leakage.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from .evaluation import ForecastMetrics
from .objects import PredictionRow, Series

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BacktestResult:
    """Error metrics for one model on one holdout window"""
    mae: float
    mse: float
    rmse: float
    mape: float
    r2: float
    directional_accuracy: float
    predicted_values: List[float] = field(default_factory=list)
    actual_values: List[float] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "BacktestResult":
        """All-zero result for series too short to backtest"""
        return cls(mae=0.0, mse=0.0, rmse=0.0, mape=0.0, r2=0.0, directional_accuracy=0.0)

    @property
    def test_size(self) -> int:
        return len(self.actual_values)

    @property
    def is_empty(self) -> bool:
        return self.test_size == 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def split_train_test(series: Series, test_window_size: int) -> Tuple[Series, Series]:
    """Split into (train, test) with test = the last `test_window_size` rows"""
    cutoff = len(series) - test_window_size
    return series[:cutoff], series[cutoff:]


def generate_backtest_results(
    series: Series,
    target_field: str,
    model_fn: Callable[[Series, str, int], List[PredictionRow]],
    test_window_size: int,
) -> BacktestResult:
    """
    Backtest a model on the tail of a series

    Args:
        series: Rows ordered by ascending date
        target_field: Numeric field to forecast
        model_fn: Model with the common (series, field, horizon) signature
        test_window_size: Rows held out as ground truth

    Returns:
        BacktestResult; all-zero with empty arrays when the series has fewer
        than 2 * test_window_size rows
    """
    if test_window_size < 1 or len(series) < 2 * test_window_size:
        logger.warning(
            f"Series too short for backtest: {len(series)} < 2 * {test_window_size}"
        )
        return BacktestResult.empty()

    train, test = split_train_test(series, test_window_size)
    predictions = model_fn(train, target_field, test_window_size)

    actual_values = [float(row[target_field]) for row in test]
    predicted_values = [float(row[target_field]) for row in predictions]

    metrics = ForecastMetrics.compute_all(actual_values, predicted_values)
    logger.debug(
        f"Backtest on {len(train)} train / {len(test)} test rows: "
        f"rmse={metrics['rmse']:.4f}, mape={metrics['mape']:.2f}"
    )

    return BacktestResult(
        **metrics,
        predicted_values=predicted_values,
        actual_values=actual_values,
    )

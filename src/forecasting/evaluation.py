# file: src/forecasting/evaluation.py
"""
Forecast Evaluation Metrics

Point-forecast error metrics with explicit degenerate-input handling.
Every metric returns a finite float; mismatched or empty inputs score 0.0.
"""

import logging
from typing import Dict, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


def _aligned(
    actual: Sequence[float],
    predicted: Sequence[float],
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert to float arrays and mask non-finite pairs.

    Returns two empty arrays if lengths differ or either input is empty.
    """
    y_true = np.asarray(actual, dtype=float)
    y_pred = np.asarray(predicted, dtype=float)

    if y_true.size == 0 or y_pred.size == 0 or y_true.shape != y_pred.shape:
        return np.array([]), np.array([])

    valid_mask = np.isfinite(y_true) & np.isfinite(y_pred)
    return y_true[valid_mask], y_pred[valid_mask]


class ForecastMetrics:
    """Compute forecasting evaluation metrics"""

    @staticmethod
    def mae(actual: Sequence[float], predicted: Sequence[float]) -> float:
        """Mean Absolute Error"""
        y_true, y_pred = _aligned(actual, predicted)
        if y_true.size == 0:
            return 0.0
        return float(np.mean(np.abs(y_true - y_pred)))

    @staticmethod
    def mse(actual: Sequence[float], predicted: Sequence[float]) -> float:
        """Mean Squared Error"""
        y_true, y_pred = _aligned(actual, predicted)
        if y_true.size == 0:
            return 0.0
        return float(np.mean((y_true - y_pred) ** 2))

    @staticmethod
    def rmse(actual: Sequence[float], predicted: Sequence[float]) -> float:
        """Root Mean Squared Error"""
        return float(np.sqrt(ForecastMetrics.mse(actual, predicted)))

    @staticmethod
    def mape(actual: Sequence[float], predicted: Sequence[float]) -> float:
        """
        Mean Absolute Percentage Error (%)

        Indices where actual == 0 are skipped rather than scored as
        infinite error. A series that is zero everywhere scores 0.0, which
        flatters the model; callers comparing MAPE across datasets should
        keep that in mind.
        """
        y_true, y_pred = _aligned(actual, predicted)
        nonzero = y_true != 0
        if nonzero.sum() == 0:
            return 0.0

        ape = np.abs((y_true[nonzero] - y_pred[nonzero]) / y_true[nonzero])
        return float(100 * np.mean(ape))

    @staticmethod
    def r2(actual: Sequence[float], predicted: Sequence[float]) -> float:
        """
        Coefficient of determination

        Negative values are valid (worse than predicting the mean) and are
        not clamped. Returns 0.0 when actual has no variance.
        """
        y_true, y_pred = _aligned(actual, predicted)
        if y_true.size == 0:
            return 0.0

        ss_total = float(np.sum((y_true - np.mean(y_true)) ** 2))
        if ss_total == 0:
            return 0.0

        ss_residual = float(np.sum((y_true - y_pred) ** 2))
        return 1 - ss_residual / ss_total

    @staticmethod
    def directional_accuracy(actual: Sequence[float], predicted: Sequence[float]) -> float:
        """
        Directional Accuracy (%)

        Share of consecutive steps where actual and predicted move the same
        way. A flat step counts as non-negative, so flat matches flat or up.
        """
        y_true = np.asarray(actual, dtype=float)
        y_pred = np.asarray(predicted, dtype=float)

        if y_true.size <= 1 or y_true.shape != y_pred.shape:
            return 0.0

        true_steps = np.diff(y_true)
        pred_steps = np.diff(y_pred)

        valid_mask = np.isfinite(true_steps) & np.isfinite(pred_steps)
        if valid_mask.sum() == 0:
            return 0.0

        matches = (true_steps[valid_mask] >= 0) == (pred_steps[valid_mask] >= 0)
        return float(100 * matches.sum() / valid_mask.sum())

    @staticmethod
    def compute_all(actual: Sequence[float], predicted: Sequence[float]) -> Dict[str, float]:
        """
        Compute all metrics at once

        Args:
            actual: Held-out true values
            predicted: Forecasts aligned index-for-index with actual

        Returns:
            Dictionary of metrics
        """
        return {
            "mae": ForecastMetrics.mae(actual, predicted),
            "mse": ForecastMetrics.mse(actual, predicted),
            "rmse": ForecastMetrics.rmse(actual, predicted),
            "mape": ForecastMetrics.mape(actual, predicted),
            "r2": ForecastMetrics.r2(actual, predicted),
            "directional_accuracy": ForecastMetrics.directional_accuracy(actual, predicted),
        }


calculate_mae = ForecastMetrics.mae
calculate_mse = ForecastMetrics.mse
calculate_rmse = ForecastMetrics.rmse
calculate_mape = ForecastMetrics.mape
calculate_r2 = ForecastMetrics.r2
calculate_directional_accuracy = ForecastMetrics.directional_accuracy

# file: src/forecasting/models.py
"""
Forecasting Model Library

Sixteen forecasting heuristics sharing one signature:

    model(series, target_field, horizon) -> list[PredictionRow]

Traditional statistical:
1. Linear Regression        5. ARIMA-like
2. Moving Average           6. Auto ARIMA
3. Exponential Smoothing    7. Seasonal Naive
4. Double Exponential       8. Mean Reversion

Machine-learning style:
9. Random Forest   10. SVR   11. XGBoost   12. Prophet   13. BSTS   14. GAM

Deep-learning style:
15. LSTM   16. Transformer

The ML/DL entries are arithmetic heuristics named after the algorithm
family they imitate; none of them trains the textbook model.
XGBoost and BSTS draw uniform noise from an injectable numpy Generator.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .objects import (PredictionRow, Series, day_of_week, future_dates,
                      make_predictions, parse_date, target_values)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared numeric helpers
# ---------------------------------------------------------------------------

def _linear_fit(values: Sequence[float]) -> Tuple[float, float]:
    """OLS of values against index 0..n-1, returns (slope, intercept)"""
    n = len(values)
    if n == 0:
        return 0.0, 0.0

    x = np.arange(n, dtype=float)
    y = np.asarray(values, dtype=float)
    sum_x = float(np.sum(x))
    sum_y = float(np.sum(y))
    sum_xy = float(np.sum(x * y))
    sum_xx = float(np.sum(x * x))

    denominator = n * sum_xx - sum_x * sum_x
    slope = (n * sum_xy - sum_x * sum_y) / denominator if denominator != 0 else 0.0
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def _population_std(values: Sequence[float]) -> float:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.sqrt(np.mean((arr - np.mean(arr)) ** 2)))


def _correlation(a: Sequence[float], b: Sequence[float]) -> float:
    """Pearson correlation of two equal-length sequences, 0.0 when undefined"""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if a.size < 2 or a.size != b.size:
        return 0.0

    da = a - np.mean(a)
    db = b - np.mean(b)
    denominator = math.sqrt(float(np.sum(da * da)) * float(np.sum(db * db)))
    if denominator == 0:
        return 0.0
    return float(np.sum(da * db)) / denominator


def _lag_correlation(series: Sequence[float], lag: int) -> float:
    series = list(series)
    return _correlation(series[lag:], series[:len(series) - lag])


def _moving_average(values: Sequence[float], window: int) -> float:
    """
    Sum of the last `window` values divided by `window`.

    The divisor stays `window` when the series is shorter, which pulls
    short-history averages toward zero.
    """
    if window <= 0:
        return 0.0
    return float(np.sum(values[-window:])) / window


def _weighted_moving_average(values: Sequence[float], window: int) -> float:
    """Recency-weighted mean of the last `window` values, weights 1..k"""
    last_window = np.asarray(values[-window:], dtype=float)
    if last_window.size == 0:
        return 0.0
    weights = np.arange(1, last_window.size + 1, dtype=float)
    return float(np.sum(last_window * weights) / np.sum(weights))


def _weekday_means(series: Series, residuals: Sequence[float]) -> Tuple[List[float], List[int]]:
    """Per-weekday (Sunday=0) mean of residuals and observation counts"""
    sums = [0.0] * 7
    counts = [0] * 7
    for row, residual in zip(series, residuals):
        dow = day_of_week(row.date)
        sums[dow] += residual
        counts[dow] += 1
    means = [s / c if c > 0 else 0.0 for s, c in zip(sums, counts)]
    return means, counts


def _detrend(values: np.ndarray) -> np.ndarray:
    slope, intercept = _linear_fit(values)
    return values - (intercept + slope * np.arange(len(values), dtype=float))


def _empty_series(series: Series, model_name: str) -> bool:
    if len(series) == 0:
        logger.warning(f"{model_name}: empty series, no predictions generated")
        return True
    return False


# ---------------------------------------------------------------------------
# Traditional statistical models
# ---------------------------------------------------------------------------

def linear_regression_model(series: Series, target_field: str, horizon: int) -> List[PredictionRow]:
    """Extrapolate an OLS line fitted against row index"""
    if _empty_series(series, "linear_regression"):
        return []

    values = target_values(series, target_field)
    n = len(values)
    slope, intercept = _linear_fit(values)

    forecast = [slope * (n + i - 1) + intercept for i in range(1, horizon + 1)]
    return make_predictions(series, target_field, forecast)


def moving_average_model(
    series: Series,
    target_field: str,
    horizon: int,
    window_size: int = 5,
) -> List[PredictionRow]:
    """Repeat sum(last `window_size` values) / window_size"""
    if _empty_series(series, "moving_average"):
        return []

    values = target_values(series, target_field)
    average = _moving_average(values, window_size)
    return make_predictions(series, target_field, [average] * horizon)


def exponential_smoothing_model(
    series: Series,
    target_field: str,
    horizon: int,
    alpha: float = 0.3,
) -> List[PredictionRow]:
    """Single exponential smoothing seeded at the first value"""
    if _empty_series(series, "exponential_smoothing"):
        return []

    values = target_values(series, target_field)
    level = float(values[0])
    for value in values[1:]:
        level = alpha * float(value) + (1 - alpha) * level

    return make_predictions(series, target_field, [level] * horizon)


def double_exponential_smoothing_model(
    series: Series,
    target_field: str,
    horizon: int,
    alpha: float = 0.3,
    beta: float = 0.2,
) -> List[PredictionRow]:
    """Holt's linear method: smoothed level plus smoothed trend"""
    if _empty_series(series, "double_exponential"):
        return []

    values = target_values(series, target_field)
    level = float(values[0])
    trend = float(values[1] - values[0]) if len(values) > 1 else 0.0

    for value in values[1:]:
        last_level = level
        level = alpha * float(value) + (1 - alpha) * (level + trend)
        trend = beta * (level - last_level) + (1 - beta) * trend

    forecast = [level + i * trend for i in range(1, horizon + 1)]
    return make_predictions(series, target_field, forecast)


def arima_like_model(series: Series, target_field: str, horizon: int) -> List[PredictionRow]:
    """
    AR(3)-flavoured drift: average first difference over the last 4 points,
    added recursively to the last value.

    Falls back to exponential smoothing when fewer than 4 points exist.
    """
    if _empty_series(series, "arima_like"):
        return []

    p = 3
    order = p + 1
    values = target_values(series, target_field)

    if len(values) < order:
        logger.warning(
            f"arima_like: {len(values)} points < {order}, using exponential smoothing fallback"
        )
        return exponential_smoothing_model(series, target_field, horizon)

    last_values = values[-order:]
    avg_diff = float(np.mean(np.diff(last_values)))

    forecast = []
    last_value = float(last_values[-1])
    for _ in range(horizon):
        last_value = last_value + avg_diff
        forecast.append(last_value)

    return make_predictions(series, target_field, forecast)


def _needs_differencing(values: np.ndarray) -> bool:
    """Trend check: strong correlation with the time index"""
    return abs(_correlation(np.arange(len(values), dtype=float), values)) > 0.3


def _select_orders(values: np.ndarray, differenced: bool) -> Tuple[int, int]:
    """AR order from the strongest lagged autocorrelation, MA order one below"""
    working = np.diff(values) if differenced else values

    max_lag = min(5, len(working) // 3)
    correlations = [abs(_lag_correlation(working, lag)) for lag in range(1, max_lag + 1)]

    ar_order = int(np.argmax(correlations)) + 1 if correlations else 1
    ma_order = max(1, ar_order - 1)
    return ar_order, ma_order


def _estimate_ar_coefficients(series: np.ndarray, p: int) -> List[float]:
    return [_lag_correlation(series, lag) * 0.5 for lag in range(1, p + 1)]


def _ar_errors(series: np.ndarray, ar_coeffs: Sequence[float]) -> List[float]:
    p = len(ar_coeffs)
    errors = []
    for i in range(p, len(series)):
        ar_prediction = sum(ar_coeffs[j] * series[i - j - 1] for j in range(p))
        errors.append(float(series[i] - ar_prediction))
    return errors


def _estimate_ma_coefficients(series: np.ndarray, ar_coeffs: Sequence[float], q: int) -> List[float]:
    """MA coefficients as autocorrelations of the AR residuals"""
    errors = _ar_errors(series, ar_coeffs)
    coeffs = [0.0] * q
    for i in range(q):
        lag = i + 1
        if lag >= len(errors):
            break
        coeffs[i] = _lag_correlation(errors, lag)
    return coeffs


def auto_arima_model(series: Series, target_field: str, horizon: int) -> List[PredictionRow]:
    """
    Heuristic ARIMA(p, d, q) with automatic order selection.

    d is 1 when the series correlates with time (|r| > 0.3). p is the lag
    (1..5) with the strongest autocorrelation and q = max(1, p - 1).
    Coefficients come from lag correlations, not Yule-Walker or MLE. When
    differenced, the recursion runs on first differences and each step is
    integrated onto the previous level.
    """
    if _empty_series(series, "auto_arima"):
        return []

    values = target_values(series, target_field)
    d = 1 if _needs_differencing(values) else 0
    p, q = _select_orders(values, d > 0)
    logger.debug(f"auto_arima: selected order ({p}, {d}, {q})")

    working = np.diff(values) if d > 0 else values
    ar_coeffs = _estimate_ar_coefficients(working, p)
    ma_coeffs = _estimate_ma_coefficients(working, ar_coeffs, q)

    # Most recent q in-sample errors, newest first
    errors: List[float] = []
    for i in range(p, len(working)):
        ar_prediction = sum(ar_coeffs[j] * working[i - j - 1] for j in range(p))
        ma_prediction = sum(ma_coeffs[j] * errors[j] for j in range(min(q, len(errors))))
        errors.insert(0, float(working[i] - (ar_prediction + ma_prediction)))
        if len(errors) > q:
            errors.pop()

    history = [float(v) for v in working[-p:]]
    level = float(values[-1])
    forecast = []

    for _ in range(horizon):
        ar_prediction = sum(
            ar_coeffs[j] * history[-j - 1] for j in range(min(p, len(history)))
        )
        ma_prediction = sum(ma_coeffs[j] * errors[j] for j in range(min(q, len(errors))))
        step = ar_prediction + ma_prediction
        history.append(step)

        errors.insert(0, 0.0)
        if len(errors) > q:
            errors.pop()

        if d > 0:
            level = level + step
            forecast.append(level)
        else:
            forecast.append(step)

    return make_predictions(series, target_field, forecast)


def seasonal_naive_model(series: Series, target_field: str, horizon: int) -> List[PredictionRow]:
    """
    Repeat the last full week: offset i takes the value from the matching
    weekday of the final 7 observations.

    Falls back to the moving average when fewer than 7 points exist.
    """
    if _empty_series(series, "seasonal_naive"):
        return []

    season_length = 7
    values = target_values(series, target_field)
    n = len(values)

    if n < season_length:
        logger.warning(
            f"seasonal_naive: {n} points < {season_length}, using moving average fallback"
        )
        return moving_average_model(series, target_field, horizon)

    forecast = [
        values[n - season_length + ((i - 1) % season_length)]
        for i in range(1, horizon + 1)
    ]
    return make_predictions(series, target_field, forecast)


def mean_reversion_model(
    series: Series,
    target_field: str,
    horizon: int,
    reversion_speed: float = 0.1,
) -> List[PredictionRow]:
    """Move a fixed fraction of the way back toward the series mean each day"""
    if _empty_series(series, "mean_reversion"):
        return []

    values = target_values(series, target_field)
    mean = float(np.mean(values))

    forecast = []
    current = float(values[-1])
    for _ in range(horizon):
        current = current + reversion_speed * (mean - current)
        forecast.append(current)

    return make_predictions(series, target_field, forecast)


# ---------------------------------------------------------------------------
# Machine-learning style heuristics
# ---------------------------------------------------------------------------

def random_forest_model(series: Series, target_field: str, horizon: int) -> List[PredictionRow]:
    """Fixed-weight ensemble of moving averages (3, 7, 14 and weighted 5)"""
    if _empty_series(series, "random_forest"):
        return []

    values = target_values(series, target_field)
    short_term = _moving_average(values, 3)
    medium_term = _moving_average(values, 7)
    long_term = _moving_average(values, 14)
    weighted = _weighted_moving_average(values, 5)

    ensemble = short_term * 0.3 + medium_term * 0.3 + long_term * 0.2 + weighted * 0.2
    return make_predictions(series, target_field, [ensemble] * horizon)


def svr_model(series: Series, target_field: str, horizon: int) -> List[PredictionRow]:
    """Recent half-window trend, volatility-normalised and exponentially damped"""
    if _empty_series(series, "svr"):
        return []

    values = target_values(series, target_field)
    std_dev = _population_std(values)

    recent = values[-10:]
    first_half_avg = float(np.mean(recent[:5]))
    second_half_avg = float(np.mean(recent[-5:]))

    trend_strength = second_half_avg - first_half_avg
    normalized_trend = trend_strength / (std_dev or 1)

    last_value = float(values[-1])
    forecast = []
    for i in range(1, horizon + 1):
        damping = math.exp(-0.1 * i)
        predicted_change = normalized_trend * std_dev * damping
        forecast.append(last_value + predicted_change * i)

    return make_predictions(series, target_field, forecast)


def xgboost_model(
    series: Series,
    target_field: str,
    horizon: int,
    rng: Optional[np.random.Generator] = None,
) -> List[PredictionRow]:
    """
    Five drift learners (windows 3, 5, 7, 14, 21) weighted by exp(-0.1 * w).

    Each learner predicts the last in-sample point as the previous value
    plus the mean first difference over its window. Every forecast day
    perturbs the learner outputs by up to +/-1% per day ahead and moves only
    20% per day toward the blended target.
    """
    if _empty_series(series, "xgboost"):
        return []

    if rng is None:
        rng = np.random.default_rng()

    values = target_values(series, target_field)
    n = len(values)
    windows = (3, 5, 7, 14, 21)
    weights = [math.exp(-0.1 * w) for w in windows]

    idx = n - 1
    learner_outputs = []
    for window in windows:
        if idx < window:
            learner_outputs.append(float(values[0]))
            continue
        recent = values[idx - window:idx]
        avg_change = float(np.sum(np.diff(recent))) / (window - 1)
        learner_outputs.append(float(values[idx - 1]) + avg_change)

    weight_sum = sum(weights)
    last_value = float(values[-1])
    forecast = []

    for i in range(1, horizon + 1):
        blended = 0.0
        for output, weight in zip(learner_outputs, weights):
            noisy = output * (1 + (rng.random() * 0.02 - 0.01) * i)
            blended += noisy * weight

        predicted = last_value + (blended / weight_sum - last_value) * 0.2 * i
        last_value = predicted
        forecast.append(predicted)

    return make_predictions(series, target_field, forecast)


def prophet_model(series: Series, target_field: str, horizon: int) -> List[PredictionRow]:
    """
    Additive decomposition: OLS trend + weekly offsets + monthly drift.

    Weekly offsets are per-weekday means of the detrended series. The
    monthly term compares the detrended means of the two halves and is only
    used with at least 60 points when the shift exceeds 10% of the level.
    """
    if _empty_series(series, "prophet"):
        return []

    values = target_values(series, target_field)
    n = len(values)
    slope, intercept = _linear_fit(values)
    detrended = _detrend(values)

    weekly, _ = _weekday_means(series, detrended)

    monthly_factor = 0.0
    if n >= 60:
        half = n // 2
        effect = float(np.mean(detrended[half:]) - np.mean(detrended[:half]))
        if abs(effect) > 0.1 * abs(float(np.mean(values))):
            monthly_factor = effect / 10

    forecast = []
    for i, next_date in enumerate(future_dates(series[-1].date, horizon), start=1):
        trend = intercept + slope * (n + i - 1)
        weekly_seasonal = weekly[day_of_week(next_date)]
        monthly_seasonal = monthly_factor * (parse_date(next_date).day / 30)
        forecast.append(trend + weekly_seasonal + monthly_seasonal)

    return make_predictions(series, target_field, forecast)


def bsts_model(
    series: Series,
    target_field: str,
    horizon: int,
    rng: Optional[np.random.Generator] = None,
) -> List[PredictionRow]:
    """
    Structural decomposition (trend + weekly seasonal) with three uniform
    perturbations scaled by trend uncertainty, seasonal uncertainty and
    sqrt(day) * 1% of the last value.
    """
    if _empty_series(series, "bsts"):
        return []

    if rng is None:
        rng = np.random.default_rng()

    values = target_values(series, target_field)
    n = len(values)

    slope, intercept = _linear_fit(values)
    residuals = _detrend(values)
    residual_variance = float(np.sum(residuals ** 2)) / (n - 2) if n > 2 else 0.0
    trend_uncertainty = math.sqrt(residual_variance)

    weekly_seasonals, counts = _weekday_means(series, residuals)
    variance_sums = [0.0] * 7
    for row, residual in zip(series, residuals):
        dow = day_of_week(row.date)
        variance_sums[dow] += (residual - weekly_seasonals[dow]) ** 2
    weekly_variances = [
        s / (c - 1) if c > 1 else s for s, c in zip(variance_sums, counts)
    ]
    weekly_uncertainty = math.sqrt(sum(weekly_variances) / 7)

    last_value = float(values[-1])
    forecast = []
    for i, next_date in enumerate(future_dates(series[-1].date, horizon), start=1):
        horizon_uncertainty = math.sqrt(i) * 0.01

        trend_value = intercept + slope * (n + i)
        seasonal_value = weekly_seasonals[day_of_week(next_date)]

        trend_adjustment = (rng.random() - 0.5) * trend_uncertainty * i
        seasonal_adjustment = (rng.random() - 0.5) * weekly_uncertainty
        horizon_adjustment = (rng.random() - 0.5) * horizon_uncertainty * last_value

        forecast.append(
            trend_value + seasonal_value
            + trend_adjustment + seasonal_adjustment + horizon_adjustment
        )

    return make_predictions(series, target_field, forecast)


def _momentum(recent: Sequence[float]) -> float:
    """Last value relative to the mean of the preceding values"""
    if len(recent) < 3:
        return 0.0
    last = recent[-1]
    prev_avg = sum(recent[:-1]) / (len(recent) - 1)
    return (last - prev_avg) / abs(prev_avg or 1)


def gam_model(series: Series, target_field: str, horizon: int) -> List[PredictionRow]:
    """
    Additive model: linear trend + weekday effect + non-linear momentum +
    mean-reverting level term, rolling a 10-point momentum window forward.
    """
    if _empty_series(series, "gam"):
        return []

    values = target_values(series, target_field)
    n = len(values)

    slope, intercept = _linear_fit(values)
    dow_effects, _ = _weekday_means(series, _detrend(values))

    mean = float(np.mean(values))
    std_dev = _population_std(values)
    level = float(values[-1])
    z_score = (level - mean) / std_dev if std_dev > 0 else 0.0
    level_component = -0.05 * z_score * level

    window = [float(v) for v in values[-10:]]
    forecast = []

    for i, next_date in enumerate(future_dates(series[-1].date, horizon), start=1):
        trend_component = intercept + slope * (n + i)
        dow_component = dow_effects[day_of_week(next_date)]
        momentum = _momentum(window)
        momentum_component = momentum * (1 + 0.2 * abs(momentum))

        predicted = trend_component + dow_component + momentum_component + level_component
        forecast.append(predicted)

        window.append(predicted)
        window.pop(0)

    return make_predictions(series, target_field, forecast)


# ---------------------------------------------------------------------------
# Deep-learning style heuristics
# ---------------------------------------------------------------------------

def _lookback_pattern(values: np.ndarray, lookback: int) -> float:
    """Mean per-step change over every `lookback`-length span; 0 if n < 2*lookback"""
    if len(values) < lookback * 2:
        return 0.0
    changes = (values[lookback:] - values[:-lookback]) / lookback
    return float(np.mean(changes))


def lstm_model(series: Series, target_field: str, horizon: int) -> List[PredictionRow]:
    """
    Blend short (3), medium (7) and long (14) lookback drifts with weights
    decaying at 0.2, 0.1 and 0.05 per day, so later days lean long-term.
    """
    if _empty_series(series, "lstm"):
        return []

    values = target_values(series, target_field)
    short_pattern = _lookback_pattern(values, 3)
    medium_pattern = _lookback_pattern(values, 7)
    long_pattern = _lookback_pattern(values, 14)

    last_value = float(values[-1])
    forecast = []
    for i in range(1, horizon + 1):
        short_weight = math.exp(-0.2 * i)
        medium_weight = math.exp(-0.1 * i)
        long_weight = math.exp(-0.05 * i)
        weight_sum = short_weight + medium_weight + long_weight

        predicted_change = (
            short_pattern * short_weight
            + medium_pattern * medium_weight
            + long_pattern * long_weight
        ) / weight_sum

        last_value = last_value + predicted_change
        forecast.append(last_value)

    return make_predictions(series, target_field, forecast)


def _trend_slope(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    slope, _ = _linear_fit(values)
    return slope


def _coefficient_of_variation(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    mean = float(np.mean(values))
    if mean == 0:
        return 0.0
    return _population_std(values) / mean


def _cycle_factor(values: np.ndarray) -> float:
    """tanh-squashed lag-7 (or n//3) autocorrelation of first differences"""
    n = len(values)
    if n < 10:
        return 0.0

    lag = min(7, n // 3)
    correlation = 0.0
    for i in range(lag + 1, n):
        correlation += (values[i] - values[i - lag]) * (values[i - 1] - values[i - lag - 1])

    return math.tanh(correlation / n)


def transformer_model(series: Series, target_field: str, horizon: int) -> List[PredictionRow]:
    """
    Attention-style blend of 5/10/20-point trend slopes.

    Weights shift from the short trend toward the long trend as the day
    progresses through the horizon, scaled by a cycle factor and dampened by
    the coefficient of variation of the last 20 points.
    """
    if _empty_series(series, "transformer"):
        return []

    values = target_values(series, target_field)
    last_value = float(values[-1])

    # History is fixed across forecast days, so the signals are too
    recent_trend = _trend_slope(values[-5:])
    medium_trend = _trend_slope(values[-10:])
    long_trend = _trend_slope(values[-20:])
    volatility = _coefficient_of_variation(values[-20:])
    cycle_factor = _cycle_factor(values)

    forecast = []
    for i in range(1, horizon + 1):
        day_factor = min(i / horizon, 1)

        recent_weight = max(0.5 - day_factor * 0.4, 0.1)
        medium_weight = 0.3
        long_weight = 0.1 + day_factor * 0.2
        volatility_weight = 0.1
        cycle_weight = 0.1 + day_factor * 0.1

        predicted_change = (
            recent_trend * recent_weight
            + medium_trend * medium_weight
            + long_trend * long_weight
        ) * (1 + cycle_factor * cycle_weight)

        uncertainty = 1 - min(day_factor * volatility * volatility_weight, 0.5)
        forecast.append(last_value + predicted_change * i * uncertainty)

    return make_predictions(series, target_field, forecast)

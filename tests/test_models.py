"""
Forecasting Model Tests

Every model shares the (series, target_field, horizon) contract: exactly
`horizon` rows dated on consecutive calendar days after the last input row,
values rounded to 2 decimals, input left untouched.
"""

import numpy as np
import pandas as pd
import pytest

from src.forecasting import models
from src.forecasting.objects import PredictionRow, round2
from src.forecasting.registry import DEFAULT_CATALOG

ALL_MODELS = [(descriptor.id, fn) for descriptor, fn, _ in DEFAULT_CATALOG]
STOCHASTIC = {"xgboost", "bsts"}


def _values(predictions, field="close"):
    return [row[field] for row in predictions]


class _FixedDraw:
    """Generator stand-in whose every uniform draw is the same value"""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestModelContract:
    """Shape, dates and rounding for all 16 models"""

    @pytest.mark.parametrize("model_id,fn", ALL_MODELS)
    def test_horizon_rows_with_future_dates(self, model_id, fn, random_walk_series):
        predictions = fn(random_walk_series, "close", 7)

        assert len(predictions) == 7
        assert all(isinstance(row, PredictionRow) for row in predictions)
        assert all(row.is_prediction for row in predictions)
        assert [row.date for row in predictions] == [
            "2024-03-31", "2024-04-01", "2024-04-02", "2024-04-03",
            "2024-04-04", "2024-04-05", "2024-04-06",
        ]

    @pytest.mark.parametrize("model_id,fn", ALL_MODELS)
    def test_values_finite_and_rounded(self, model_id, fn, random_walk_series):
        for value in _values(fn(random_walk_series, "close", 10)):
            assert np.isfinite(value)
            assert value == round(value, 2)

    @pytest.mark.parametrize("model_id,fn", ALL_MODELS)
    def test_single_row_series(self, model_id, fn, make_series):
        predictions = fn(make_series([50.0]), "close", 3)
        assert len(predictions) == 3
        assert all(np.isfinite(v) for v in _values(predictions))

    @pytest.mark.parametrize("model_id,fn", ALL_MODELS)
    def test_empty_series_returns_empty(self, model_id, fn):
        assert fn([], "close", 5) == []

    @pytest.mark.parametrize("model_id,fn", ALL_MODELS)
    def test_input_not_mutated(self, model_id, fn, random_walk_series):
        before = [row.to_dict() for row in random_walk_series]
        fn(random_walk_series, "close", 5)
        assert [row.to_dict() for row in random_walk_series] == before

    @pytest.mark.parametrize(
        "model_id,fn", [(m, f) for m, f in ALL_MODELS if m not in STOCHASTIC]
    )
    def test_deterministic(self, model_id, fn, random_walk_series):
        assert fn(random_walk_series, "close", 7) == fn(random_walk_series, "close", 7)

    def test_prediction_row_only_carries_target(self, make_series):
        predictions = models.linear_regression_model(make_series([1, 2, 3]), "close", 1)
        assert predictions[0].to_dict() == {
            "date": "2024-01-04", "close": 4.0, "isPrediction": True,
        }


class TestTraditionalModels:
    def test_linear_regression_extends_line(self, make_series):
        series = make_series(np.arange(101.0, 111.0))
        assert _values(models.linear_regression_model(series, "close", 3)) == [111.0, 112.0, 113.0]

    def test_linear_regression_counts_from_zero_index(self, make_series):
        # slope 1, intercept 100, n = 10: first forecast sits at index n
        series = make_series(np.arange(100.0, 110.0))
        assert _values(models.linear_regression_model(series, "close", 3)) == [110.0, 111.0, 112.0]

    def test_moving_average_flat_series(self, make_series):
        series = make_series([10, 10, 10, 10, 10])
        assert _values(models.moving_average_model(series, "close", 2)) == [10.0, 10.0]

    def test_moving_average_uses_last_window(self, make_series):
        series = make_series([0, 0, 1, 2, 3, 4, 5])
        assert _values(models.moving_average_model(series, "close", 1)) == [3.0]

    def test_moving_average_short_series_divides_by_window(self, make_series):
        # 9 / 5, not 9 / 3
        series = make_series([3, 3, 3])
        assert _values(models.moving_average_model(series, "close", 1)) == [1.8]

    def test_exponential_smoothing(self, make_series):
        # level: 10 -> 0.3*20 + 0.7*10 = 13
        series = make_series([10, 20])
        assert _values(models.exponential_smoothing_model(series, "close", 2)) == [13.0, 13.0]

    def test_double_exponential_tracks_linear_trend(self, make_series):
        series = make_series(np.arange(10.0, 20.0))
        assert _values(models.double_exponential_smoothing_model(series, "close", 3)) == [
            20.0, 21.0, 22.0,
        ]

    def test_arima_like_drift(self, linear_series):
        assert _values(models.arima_like_model(linear_series, "close", 3)) == [
            130.0, 131.0, 132.0,
        ]

    def test_arima_like_short_series_falls_back(self, make_series):
        series = make_series([10, 20, 30])
        assert models.arima_like_model(series, "close", 3) == \
            models.exponential_smoothing_model(series, "close", 3)

    def test_auto_arima_differenced_flat_steps(self, linear_series):
        # Constant first differences carry no autocorrelation: level holds
        assert _values(models.auto_arima_model(linear_series, "close", 3)) == [
            129.0, 129.0, 129.0,
        ]

    def test_seasonal_naive_repeats_last_week(self, make_series):
        series = make_series(np.arange(1.0, 15.0))
        assert _values(models.seasonal_naive_model(series, "close", 8)) == [
            8.0, 9.0, 10.0, 11.0, 12.0, 13.0, 14.0, 8.0,
        ]

    def test_seasonal_naive_short_series_falls_back(self, make_series):
        series = make_series([1, 2, 3, 4])
        assert models.seasonal_naive_model(series, "close", 3) == \
            models.moving_average_model(series, "close", 3)

    def test_seasonal_naive_fallback_value(self, make_series):
        assert _values(models.seasonal_naive_model(make_series([3, 3, 3]), "close", 1)) == [1.8]

    def test_mean_reversion(self, make_series):
        # mean 12.5, last 20: 20 + 0.1 * (12.5 - 20)
        series = make_series([10, 10, 10, 20])
        assert _values(models.mean_reversion_model(series, "close", 1)) == [19.25]


class TestHeuristicModels:
    @pytest.mark.parametrize("fn", [
        models.linear_regression_model,
        models.moving_average_model,
        models.exponential_smoothing_model,
        models.double_exponential_smoothing_model,
        models.arima_like_model,
        models.seasonal_naive_model,
        models.mean_reversion_model,
        models.random_forest_model,
        models.svr_model,
        models.prophet_model,
        models.gam_model,
        models.lstm_model,
        models.transformer_model,
    ])
    def test_flat_series_stays_flat(self, fn, make_series):
        series = make_series([50.0] * 30)
        assert _values(fn(series, "close", 5)) == [50.0] * 5

    def test_lstm_follows_constant_drift(self, linear_series):
        assert _values(models.lstm_model(linear_series, "close", 3)) == [
            130.0, 131.0, 132.0,
        ]

    def test_svr_damps_trend(self, linear_series):
        values = _values(models.svr_model(linear_series, "close", 5))
        assert all(v > 129.0 for v in values)

    @pytest.mark.parametrize("fn", [models.xgboost_model, models.bsts_model])
    def test_seeded_noise_reproducible(self, fn, random_walk_series):
        first = fn(random_walk_series, "close", 7, rng=np.random.default_rng(42))
        second = fn(random_walk_series, "close", 7, rng=np.random.default_rng(42))
        assert first == second

    @pytest.mark.parametrize("fn", [models.xgboost_model, models.bsts_model])
    def test_noise_depends_on_seed(self, fn, random_walk_series):
        first = fn(random_walk_series, "close", 7, rng=np.random.default_rng(1))
        second = fn(random_walk_series, "close", 7, rng=np.random.default_rng(2))
        assert first != second

    def test_xgboost_noise_is_small(self, make_series):
        series = make_series([100.0] * 30)
        values = _values(models.xgboost_model(series, "close", 5, rng=np.random.default_rng(0)))
        assert all(abs(v - 100.0) < 10.0 for v in values)


class TestHeuristicValues:
    """Exact outputs on small hand-checked series"""

    def test_random_forest_short_windows_divide_by_window(self, make_series):
        # 9*0.3 + 7*0.3 + (55/14)*0.2 + (130/15)*0.2
        series = make_series(np.arange(1.0, 11.0))
        assert _values(models.random_forest_model(series, "close", 1)) == [7.32]

    def test_random_forest_full_windows(self, make_series):
        series = make_series(np.arange(1.0, 21.0))
        assert _values(models.random_forest_model(series, "close", 1)) == [17.23]

    def test_svr(self, make_series):
        # trend 8 - 3 = 5, damped by exp(-0.1 * i) and scaled by i
        series = make_series(np.arange(1.0, 11.0))
        assert _values(models.svr_model(series, "close", 2)) == [14.52, 18.19]

    def test_prophet_weekly_offsets(self, make_series):
        # 2024-01-04 and 2024-01-11 are Thursdays: flat line at 11, Thursday +6
        values = [10.0] * 14
        values[3] = values[10] = 17.0
        predictions = models.prophet_model(make_series(values), "close", 7)

        assert predictions[0].date == "2024-01-15"
        assert _values(predictions) == [10.0, 10.0, 10.0, 17.0, 10.0, 10.0, 10.0]

    def test_prophet_monthly_term(self, make_series):
        values = np.r_[np.full(30, 10.0), np.full(30, 20.0)]
        x = np.arange(60.0)
        slope, intercept = np.polyfit(x, values, 1)
        residuals = values - (intercept + slope * x)
        weekly = pd.Series(residuals).groupby(
            pd.date_range("2024-01-01", periods=60).dayofweek).mean()
        effect = residuals[30:].mean() - residuals[:30].mean()
        assert abs(effect) > 0.1 * values.mean()

        expected = [
            intercept + slope * (60 + k) + weekly[day.dayofweek] + effect / 10 * day.day / 30
            for k, day in enumerate(pd.date_range("2024-03-01", periods=3))
        ]
        predictions = models.prophet_model(make_series(values), "close", 3)

        assert predictions[0].date == "2024-03-01"
        assert _values(predictions) == pytest.approx(expected, abs=0.011)

    def test_gam(self, make_series):
        # trend 7 and 8, momentum 1.0 then rolled forward, level term -0.35
        series = make_series([1, 2, 3, 4, 5])
        assert _values(models.gam_model(series, "close", 2)) == [7.85, 9.2]

    def test_transformer(self, make_series):
        series = make_series(np.arange(1.0, 11.0))
        assert _values(models.transformer_model(series, "close", 2)) == [10.9, 11.59]

    def test_auto_arima_undifferenced(self, make_series):
        # No trend so d = 0; p = 1 (AR -0.5), q = 1 (MA -1)
        series = make_series([1, 3, 1, 3, 1, 3, 1, 3, 1, 3])
        assert _values(models.auto_arima_model(series, "close", 3)) == [-29.0, 14.5, -7.25]

    def test_xgboost_midpoint_draw_has_no_noise(self, make_series):
        series = make_series([100.0] * 30)
        assert _values(models.xgboost_model(series, "close", 2, rng=_FixedDraw(0.5))) == [
            100.0, 100.0,
        ]

    def test_xgboost_max_draw(self, make_series):
        # +1% per day ahead, 20% then 40% of the way to the noisy target
        series = make_series([100.0] * 30)
        assert _values(models.xgboost_model(series, "close", 2, rng=_FixedDraw(1.0))) == [
            100.2, 100.92,
        ]

    def test_xgboost_learners_fall_back_to_first_value(self, make_series):
        # windows 14 and 21 exceed the history and predict values[0]
        series = make_series(np.arange(1.0, 11.0))
        assert _values(models.xgboost_model(series, "close", 2, rng=_FixedDraw(0.5))) == [
            9.7, 9.22,
        ]

    def test_bsts_midpoint_draw_is_trend(self, make_series):
        series = make_series(np.arange(1.0, 11.0))
        assert _values(models.bsts_model(series, "close", 2, rng=_FixedDraw(0.5))) == [
            12.0, 13.0,
        ]

    def test_bsts_max_draw_horizon_term(self, make_series):
        # Exact line: only the sqrt(day) * 1% * last value term remains
        series = make_series(np.arange(1.0, 11.0))
        assert _values(models.bsts_model(series, "close", 2, rng=_FixedDraw(1.0))) == [
            12.05, 13.07,
        ]

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_xgboost_seeded_within_draw_bounds(self, seed, make_series):
        series = make_series([100.0] * 30)
        low = _values(models.xgboost_model(series, "close", 5, rng=_FixedDraw(0.0)))
        high = _values(models.xgboost_model(series, "close", 5, rng=_FixedDraw(1.0)))
        seeded = _values(models.xgboost_model(series, "close", 5, rng=np.random.default_rng(seed)))

        for lo, value, hi in zip(low, seeded, high):
            assert lo - 0.01 <= value <= hi + 0.01

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_bsts_seeded_within_draw_bounds(self, seed, random_walk_series):
        low = _values(models.bsts_model(random_walk_series, "close", 7, rng=_FixedDraw(0.0)))
        high = _values(models.bsts_model(random_walk_series, "close", 7, rng=_FixedDraw(1.0)))
        seeded = _values(models.bsts_model(
            random_walk_series, "close", 7, rng=np.random.default_rng(seed)))

        for lo, value, hi in zip(low, seeded, high):
            assert lo - 0.01 <= value <= hi + 0.01


class TestRounding:
    def test_half_rounds_away_from_zero(self):
        assert round2(0.125) == 0.13
        assert round2(-0.125) == -0.13
        assert round2(1.234) == 1.23

    def test_non_finite_passthrough(self):
        assert np.isnan(round2(float("nan")))

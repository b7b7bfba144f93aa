"""
Forecasting Engine

Implements the forecasting and model evaluation core:
- Model library (16 statistical and ML/DL-style heuristics)
- Model registry (single id -> function mapping)
- Evaluation metrics (MAE, MSE, RMSE, MAPE, R2, directional accuracy)
- Holdout backtesting and 0-100 model scoring
- Prediction and compare-all orchestration
"""

from .backtesting import (BacktestResult, generate_backtest_results,
                          split_train_test)
from .comparison import (ComparisonResult, ModelEvaluation,
                         OrchestrationError, PredictionRun, compare_models,
                         prepare_history, prepare_series, run_prediction)
from .config import ForecastConfig
from .evaluation import (ForecastMetrics, calculate_directional_accuracy,
                         calculate_mae, calculate_mape, calculate_mse,
                         calculate_r2, calculate_rmse)
from .models import (arima_like_model, auto_arima_model, bsts_model,
                     double_exponential_smoothing_model,
                     exponential_smoothing_model, gam_model,
                     linear_regression_model, lstm_model,
                     mean_reversion_model, moving_average_model,
                     prophet_model, random_forest_model,
                     seasonal_naive_model, svr_model, transformer_model,
                     xgboost_model)
from .objects import (ModelCategory, ModelDescriptor, PredictionRow, Series,
                      TimeSeriesRow)
from .registry import ModelRegistry, UnknownModelError, default_registry
from .scoring import ScoreBreakdown, calculate_model_score, score_components

__all__ = [
    # Objects
    "TimeSeriesRow",
    "PredictionRow",
    "Series",
    "ModelCategory",
    "ModelDescriptor",
    # Models
    "linear_regression_model",
    "moving_average_model",
    "exponential_smoothing_model",
    "double_exponential_smoothing_model",
    "arima_like_model",
    "auto_arima_model",
    "seasonal_naive_model",
    "mean_reversion_model",
    "random_forest_model",
    "svr_model",
    "xgboost_model",
    "prophet_model",
    "bsts_model",
    "gam_model",
    "lstm_model",
    "transformer_model",
    # Registry
    "ModelRegistry",
    "UnknownModelError",
    "default_registry",
    # Evaluation
    "ForecastMetrics",
    "calculate_mae",
    "calculate_mse",
    "calculate_rmse",
    "calculate_mape",
    "calculate_r2",
    "calculate_directional_accuracy",
    # Backtesting / scoring
    "BacktestResult",
    "generate_backtest_results",
    "split_train_test",
    "ScoreBreakdown",
    "calculate_model_score",
    "score_components",
    # Orchestration
    "OrchestrationError",
    "PredictionRun",
    "ModelEvaluation",
    "ComparisonResult",
    "prepare_history",
    "prepare_series",
    "run_prediction",
    "compare_models",
    # Config
    "ForecastConfig",
]

# file: src/forecasting/config.py
"""
Forecasting Run Configuration
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

MAX_HORIZON = 30
MAX_BACKTEST_WINDOW = 30


@dataclass(frozen=True)
class ForecastConfig:
    # Dataset fields
    target_field: str = "close"
    date_field: str = "date"

    # Forecasting / backtest
    horizon: int = 7
    window_size: int = 30
    backtest_window: int = 7
    start_index: Optional[int] = None

    # Randomness for the XGBoost / BSTS heuristics (None = unseeded)
    seed: Optional[int] = None

    # Execution
    max_workers: int = 1

    # IO
    output_dir: str = "artifacts"

    def __post_init__(self):
        if not 1 <= self.horizon <= MAX_HORIZON:
            raise ValueError(f"horizon must be in 1..{MAX_HORIZON}, got {self.horizon}")
        if not 1 <= self.backtest_window <= MAX_BACKTEST_WINDOW:
            raise ValueError(
                f"backtest_window must be in 1..{MAX_BACKTEST_WINDOW}, got {self.backtest_window}"
            )
        if self.window_size < 2:
            raise ValueError(f"window_size must be >= 2, got {self.window_size}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_env(cls, **overrides) -> "ForecastConfig":
        """
        Build a config from FORECAST_* environment variables (and .env).

        Keyword overrides win over the environment.
        """
        load_dotenv()

        def _int(name: str, default: Optional[int]) -> Optional[int]:
            raw = os.getenv(name)
            return int(raw) if raw not in (None, "") else default

        values = {
            "target_field": os.getenv("FORECAST_TARGET_FIELD", cls.target_field),
            "date_field": os.getenv("FORECAST_DATE_FIELD", cls.date_field),
            "horizon": _int("FORECAST_HORIZON", cls.horizon),
            "window_size": _int("FORECAST_WINDOW_SIZE", cls.window_size),
            "backtest_window": _int("FORECAST_BACKTEST_WINDOW", cls.backtest_window),
            "seed": _int("FORECAST_SEED", cls.seed),
            "max_workers": _int("FORECAST_MAX_WORKERS", cls.max_workers),
            "output_dir": os.getenv("FORECAST_OUTPUT_DIR", cls.output_dir),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def output_path(self) -> Path:
        return Path(self.output_dir)

    def leaderboard_path(self) -> Path:
        return self.output_path() / "leaderboard.csv"

    def comparison_path(self) -> Path:
        return self.output_path() / "comparison.json"

# file: src/datasets/sample.py
"""
Synthetic OHLCV price data for demos and tests.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

import numpy as np
import pandas as pd

from .loader import Dataset, frame_to_dataset


def generate_sample_frame(
    n_days: int = 100,
    seed: Optional[int] = None,
    end_date: Optional[date] = None,
    volatility: float = 2.0,
) -> pd.DataFrame:
    """
    Daily open/high/low/close/volume ending at `end_date` (default today).

    Each day draws an independent base price in [100, 150); open/close
    jitter around it and high/low bracket them.
    """
    rng = np.random.default_rng(seed)
    end_date = end_date or date.today()

    dates = [(end_date - timedelta(days=i)).isoformat() for i in range(n_days - 1, -1, -1)]
    base = 100 + rng.random(n_days) * 50
    open_ = base + (rng.random(n_days) - 0.5) * volatility
    close = open_ + (rng.random(n_days) - 0.5) * volatility * 2
    high = np.maximum(open_, close) + rng.random(n_days) * volatility
    low = np.minimum(open_, close) - rng.random(n_days) * volatility
    volume = np.floor(100_000 + rng.random(n_days) * 900_000)

    return pd.DataFrame({
        "date": dates,
        "open": open_,
        "high": high,
        "low": low,
        "close": close,
        "volume": volume,
    })


def generate_sample_data(
    n_days: int = 100,
    seed: Optional[int] = None,
    end_date: Optional[date] = None,
) -> Dataset:
    frame = generate_sample_frame(n_days=n_days, seed=seed, end_date=end_date)
    return frame_to_dataset(frame, name="sample_stock_data.csv")

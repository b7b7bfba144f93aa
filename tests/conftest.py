"""
Shared fixtures: synthetic daily price series.
"""

from datetime import date, timedelta

import numpy as np
import pytest

from src.forecasting.objects import TimeSeriesRow


def build_series(values, start="2024-01-01", field="close"):
    """One row per value on consecutive calendar days"""
    first = date.fromisoformat(start)
    return [
        TimeSeriesRow(date=(first + timedelta(days=i)).isoformat(), values={field: float(v)})
        for i, v in enumerate(values)
    ]


@pytest.fixture
def make_series():
    return build_series


@pytest.fixture
def random_walk_series():
    """90 days of a seeded random walk around 100"""
    rng = np.random.default_rng(7)
    values = 100 + np.cumsum(rng.normal(0, 1, 90))
    return build_series(values)


@pytest.fixture
def linear_series():
    """30 days rising exactly 1.0 per day from 100"""
    return build_series(np.arange(100.0, 130.0))

# file: src/forecasting/objects.py
"""
Row, series and model descriptor objects shared by the forecasting engine.

Rows are immutable. Models never mutate their input series and always
allocate fresh PredictionRow objects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class TimeSeriesRow:
    """One dated observation: an ISO date plus named numeric values"""
    date: str
    values: Mapping[str, float] = field(default_factory=dict)
    is_prediction: bool = False

    def __getitem__(self, name: str) -> float:
        return self.values[name]

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def get(self, name: str, default: Optional[float] = None) -> Optional[float]:
        return self.values.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        """Flat mapping suitable for tables and charts"""
        out: Dict[str, Any] = {"date": self.date}
        out.update(self.values)
        if self.is_prediction:
            out["isPrediction"] = True
        return out


@dataclass(frozen=True)
class PredictionRow(TimeSeriesRow):
    """Synthetic future row carrying only the forecast target"""
    is_prediction: bool = True


Series = Sequence[TimeSeriesRow]


class ModelCategory(str, Enum):
    TRADITIONAL = "traditional"
    ML = "ml"
    DL = "dl"


@dataclass(frozen=True)
class ModelDescriptor:
    """Classification metadata for a forecasting model (never affects arithmetic)"""
    id: str
    display_name: str
    description: str
    category: ModelCategory

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "name": self.display_name,
            "description": self.description,
            "category": self.category.value,
        }


def parse_date(value: str) -> date:
    """Parse the leading YYYY-MM-DD part of an ISO date string"""
    return date.fromisoformat(str(value)[:10])


def future_dates(last_date: str, horizon: int) -> List[str]:
    """Calendar dates 1..horizon days after last_date (no trading calendar)"""
    start = parse_date(last_date)
    return [(start + timedelta(days=i)).isoformat() for i in range(1, horizon + 1)]


def day_of_week(value: str) -> int:
    """Weekday index with Sunday=0 .. Saturday=6"""
    return (parse_date(value).weekday() + 1) % 7


def target_values(series: Series, target_field: str) -> np.ndarray:
    return np.array([float(row[target_field]) for row in series], dtype=float)


def round2(value: float) -> float:
    """
    Round to 2 decimals, ties away from zero.

    Non-finite values are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def make_predictions(
    series: Series,
    target_field: str,
    values: Iterable[float],
) -> List[PredictionRow]:
    """Attach future dates to forecast values, one row per value"""
    values = [float(v) for v in values]
    dates = future_dates(series[-1].date, len(values))
    return [
        PredictionRow(date=d, values={target_field: round2(v)})
        for d, v in zip(dates, values)
    ]


def combine_history(
    history: Series,
    predictions: Sequence[PredictionRow],
) -> List[TimeSeriesRow]:
    """History followed by predictions, for display"""
    return list(history) + list(predictions)

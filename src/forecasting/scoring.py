# file: src/forecasting/scoring.py
"""
Model ranking score: one 0-100 number per backtest.

Direction carries half the weight; for trading decisions getting the move
right matters more than the size of the miss.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Union

from .backtesting import BacktestResult

SCORE_WEIGHTS: Dict[str, float] = {
    "mape": 0.25,
    "r2": 0.25,
    "directional_accuracy": 0.5,
}


@dataclass(frozen=True)
class ScoreBreakdown:
    mape_score: float
    r2_score: float
    direction_score: float
    score: int

    def to_dict(self) -> Dict[str, float]:
        return {
            "mape_score": self.mape_score,
            "r2_score": self.r2_score,
            "direction_score": self.direction_score,
            "score": self.score,
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _metric(result: Union[BacktestResult, Mapping[str, Any]], name: str, *aliases: str) -> float:
    if isinstance(result, BacktestResult):
        return float(getattr(result, name))
    for key in (name, *aliases):
        if key in result:
            return float(result[key])
    raise KeyError(f"Missing metric: {name}")


def score_components(result: Union[BacktestResult, Mapping[str, Any]]) -> ScoreBreakdown:
    """Per-metric sub-scores and the weighted total"""
    mape = _metric(result, "mape")
    r2 = _metric(result, "r2")
    direction = _metric(result, "directional_accuracy", "directionalAccuracy")

    mape_score = max(0.0, 100 - mape)
    r2_score = max(0.0, r2 * 100)
    direction_score = direction

    weighted = (
        mape_score * SCORE_WEIGHTS["mape"]
        + r2_score * SCORE_WEIGHTS["r2"]
        + direction_score * SCORE_WEIGHTS["directional_accuracy"]
    )
    if not math.isfinite(weighted):
        weighted = 0.0
    score = min(100, max(0, _round_half_up(weighted)))

    return ScoreBreakdown(
        mape_score=mape_score,
        r2_score=r2_score,
        direction_score=direction_score,
        score=score,
    )


def calculate_model_score(result: Union[BacktestResult, Mapping[str, Any]]) -> int:
    """
    Weighted 0-100 score from MAPE, R2 and directional accuracy.

    mape_score = max(0, 100 - mape), r2_score = max(0, 100 * r2),
    weights 0.25 / 0.25 / 0.5, rounded half up.
    """
    return score_components(result).score

# file: src/forecasting/registry.py
"""
Model Registry

Single mapping from model id to model function. Every caller (single
prediction, compare-all, backtest-all) resolves models here. Adding a model
means one `register` call; orchestration code does not change.
"""

import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Iterator, List, Optional

import numpy as np

from . import models
from .objects import ModelCategory, ModelDescriptor, PredictionRow, Series

logger = logging.getLogger(__name__)

ModelFn = Callable[[Series, str, int], List[PredictionRow]]


class UnknownModelError(KeyError):
    """Raised when a model id is not in the registry"""


@dataclass(frozen=True)
class RegisteredModel:
    descriptor: ModelDescriptor
    fn: Callable[..., List[PredictionRow]]
    stochastic: bool = False


class ModelRegistry:
    """Catalog of forecasting models keyed by id, in registration order"""

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize an empty registry

        Args:
            seed: Seed for the generators handed to stochastic models. Each
                stochastic model gets its own stream, so results do not
                depend on which other models run or in what order.
        """
        self.seed = seed
        self._models: Dict[str, RegisteredModel] = {}

    def register(
        self,
        descriptor: ModelDescriptor,
        fn: Callable[..., List[PredictionRow]],
        stochastic: bool = False,
    ) -> None:
        """Add a model; stochastic models must accept an `rng` keyword"""
        if descriptor.id in self._models:
            raise ValueError(f"Model already registered: {descriptor.id}")
        self._models[descriptor.id] = RegisteredModel(descriptor, fn, stochastic)

    def _rng_for(self, model_id: str) -> np.random.Generator:
        if self.seed is None:
            return np.random.default_rng()
        position = list(self._models).index(model_id)
        child = np.random.SeedSequence(self.seed).spawn(position + 1)[position]
        return np.random.default_rng(child)

    def get(self, model_id: str) -> ModelFn:
        """
        Resolve a model id to a callable with the common signature.

        Stochastic models are bound to a freshly seeded generator on every
        call to `get`, so a fixed registry seed reproduces the same output.
        """
        if model_id not in self._models:
            raise UnknownModelError(
                f"Unknown model: {model_id}. Available: {', '.join(self._models)}"
            )

        entry = self._models[model_id]
        if entry.stochastic:
            return partial(entry.fn, rng=self._rng_for(model_id))
        return entry.fn

    def descriptor(self, model_id: str) -> ModelDescriptor:
        if model_id not in self._models:
            raise UnknownModelError(f"Unknown model: {model_id}")
        return self._models[model_id].descriptor

    def descriptors(self, category: Optional[ModelCategory] = None) -> List[ModelDescriptor]:
        return [
            entry.descriptor
            for entry in self._models.values()
            if category is None or entry.descriptor.category == category
        ]

    def is_stochastic(self, model_id: str) -> bool:
        return self._models[model_id].stochastic

    def ids(self) -> List[str]:
        return list(self._models)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)


_T = ModelCategory.TRADITIONAL
_ML = ModelCategory.ML
_DL = ModelCategory.DL

DEFAULT_CATALOG = [
    (ModelDescriptor("linear", "Linear Regression",
                     "Fits a straight line to historical data.", _T),
     models.linear_regression_model, False),
    (ModelDescriptor("movingAverage", "Moving Average",
                     "Uses the average of recent periods to predict future values.", _T),
     models.moving_average_model, False),
    (ModelDescriptor("exponential", "Exponential Smoothing",
                     "Weights recent observations more heavily than older ones.", _T),
     models.exponential_smoothing_model, False),
    (ModelDescriptor("doubleExponential", "Double Exponential",
                     "Handles data with trends using two smoothing equations.", _T),
     models.double_exponential_smoothing_model, False),
    (ModelDescriptor("arima", "ARIMA-like",
                     "Simplified version of Auto-Regressive Integrated Moving Average.", _T),
     models.arima_like_model, False),
    (ModelDescriptor("autoArima", "Auto ARIMA",
                     "Selects differencing and AR/MA orders from the data's autocorrelation.", _T),
     models.auto_arima_model, False),
    (ModelDescriptor("seasonal", "Seasonal Naive",
                     "Assumes future values follow seasonal patterns from the past.", _T),
     models.seasonal_naive_model, False),
    (ModelDescriptor("meanReversion", "Mean Reversion",
                     "Assumes prices tend to return to their historical average.", _T),
     models.mean_reversion_model, False),
    (ModelDescriptor("randomForest", "Random Forest",
                     "Ensemble of moving-average 'trees' combined with fixed weights.", _ML),
     models.random_forest_model, False),
    (ModelDescriptor("svr", "Support Vector Regression",
                     "Volatility-normalised trend with damping over the horizon.", _ML),
     models.svr_model, False),
    (ModelDescriptor("xgboost", "XGBoost",
                     "Boosted drift learners over several lookback windows.", _ML),
     models.xgboost_model, True),
    (ModelDescriptor("prophet", "Prophet",
                     "Trend plus weekly and monthly seasonal components.", _ML),
     models.prophet_model, False),
    (ModelDescriptor("bsts", "Bayesian Structural Time Series",
                     "Trend and seasonal components with sampled uncertainty.", _ML),
     models.bsts_model, True),
    (ModelDescriptor("gam", "Generalized Additive Model",
                     "Sum of trend, weekday, momentum and level effects.", _ML),
     models.gam_model, False),
    (ModelDescriptor("lstm", "LSTM Neural Network",
                     "Balances short and long lookback patterns with decaying weights.", _DL),
     models.lstm_model, False),
    (ModelDescriptor("transformer", "Transformer Network",
                     "Attention-style weighting of multi-scale trends and cycles.", _DL),
     models.transformer_model, False),
]


def default_registry(seed: Optional[int] = None) -> ModelRegistry:
    """Registry holding the full 16-model catalog"""
    registry = ModelRegistry(seed=seed)
    for descriptor, fn, stochastic in DEFAULT_CATALOG:
        registry.register(descriptor, fn, stochastic=stochastic)
    logger.debug(f"Built model registry with {len(registry)} models (seed={seed})")
    return registry

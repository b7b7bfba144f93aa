"""
FinForecast - Financial Time Series Forecasting

Modules:
- forecasting: Model library, registry, metrics, backtesting, scoring, orchestration, CLI
- datasets: CSV/JSON loading, sample data, artifact writers
"""

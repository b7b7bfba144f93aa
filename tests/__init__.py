"""
FinForecast Test Suite

- test_metrics.py: evaluation metrics and degenerate inputs
- test_models.py: the 16 forecasting models
- test_registry.py: model catalog and seeded generators
- test_backtesting.py: holdout backtests
- test_scoring.py: 0-100 model score
- test_comparison.py: predict / compare-all orchestration
- test_datasets.py: CSV/JSON loading and sample data
- test_cli_smoke.py: Typer CLI end to end
"""

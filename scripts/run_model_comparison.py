"""
Model Comparison Runner

End-to-end run of:
1. Dataset loading (or synthetic sample data)
2. Forecasting with all 16 models
3. Holdout backtest and scoring per model
4. Leaderboard, comparison table and radar data artifacts

Usage:
    python scripts/run_model_comparison.py \
        --input data/prices.csv \
        --target close \
        --output artifacts/comparison \
        --horizon 7 --backtest-window 7 --seed 42
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from src.datasets import (Dataset, DatasetError, atomic_write_csv,
                          atomic_write_json, generate_sample_data,
                          load_dataset)
from src.forecasting import (ComparisonResult, ForecastConfig,
                             OrchestrationError, compare_models,
                             default_registry)


class ComparisonRunner:
    """Orchestrates a compare-all run and writes its artifacts"""

    def __init__(self, config: ForecastConfig):
        self.config = config
        self.output_dir = config.output_path()

    def run(self, input_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Run the comparison pipeline

        Args:
            input_path: CSV/JSON dataset; None uses seeded sample data

        Returns:
            Dictionary with status, best model and artifact paths
        """
        logger.info("=" * 80)
        logger.info("Model Comparison Runner")
        logger.info("=" * 80)

        try:
            logger.info("[1/3] Loading data...")
            dataset = self._load_data(input_path)

            logger.info("[2/3] Forecasting and backtesting models...")
            result = compare_models(
                dataset.rows,
                self.config.target_field,
                self.config.horizon,
                window_size=self.config.window_size,
                start_index=self.config.start_index,
                backtest_window=self.config.backtest_window,
                registry=default_registry(seed=self.config.seed),
                max_workers=self.config.max_workers,
            )

            logger.info("[3/3] Saving outputs...")
            artifacts = self._save_results(result, dataset)
        except (DatasetError, OrchestrationError) as e:
            logger.error(f"Pipeline failed: {e}")
            return {"status": "FAILED", "error": str(e), "output_dir": str(self.output_dir)}

        best = result.best_model()
        evaluation = result.evaluations[best]
        logger.info(f"Best Model: {result.descriptors[best].display_name}")
        logger.info(f"  Score: {evaluation.score}")
        logger.info(f"  MAPE: {evaluation.result.mape:.2f}%")
        logger.info(f"  R2: {evaluation.result.r2:.3f}")
        logger.info(f"  Direction: {evaluation.result.directional_accuracy:.1f}%")

        return {
            "status": "SUCCESS",
            "output_dir": str(self.output_dir),
            "best_model": best,
            "models_compared": len(result.predictions),
            "artifacts": artifacts,
        }

    def _load_data(self, input_path: Optional[str]) -> Dataset:
        if input_path is None:
            logger.info("  No input given, generating sample data")
            return generate_sample_data(n_days=100, seed=self.config.seed)

        dataset = load_dataset(Path(input_path), date_field=self.config.date_field)
        logger.info(f"  Loaded {len(dataset)} rows from {dataset.name}")
        logger.info(f"  Date range: {dataset.rows[0].date} to {dataset.rows[-1].date}")
        return dataset

    def _save_results(self, result: ComparisonResult, dataset: Dataset) -> Dict[str, str]:
        leaderboard_path = self.config.leaderboard_path()
        atomic_write_csv(result.leaderboard(), leaderboard_path)
        logger.info(f"  Saved: {leaderboard_path.name}")

        comparison_path = self.config.comparison_path()
        payload = result.to_dict()
        payload["comparison_table"] = result.comparison_table()
        payload["radar"] = result.radar_data()
        payload["run"] = {
            "timestamp": datetime.now().isoformat(),
            "dataset": dataset.name,
            "rows": len(dataset),
            "window_size": self.config.window_size,
            "seed": self.config.seed,
        }
        atomic_write_json(payload, comparison_path)
        logger.info(f"  Saved: {comparison_path.name}")

        return {
            "leaderboard": str(leaderboard_path),
            "comparison": str(comparison_path),
        }


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Compare all forecasting models")
    parser.add_argument("--input", type=str, default=None, help="CSV or JSON dataset")
    parser.add_argument("--target", type=str, default=None, help="Column to forecast")
    parser.add_argument("--output", type=str, default=None, help="Output directory")
    parser.add_argument("--horizon", type=int, default=None, help="Days to forecast")
    parser.add_argument("--backtest-window", type=int, default=None, help="Held-out rows")
    parser.add_argument("--seed", type=int, default=None, help="Seed for stochastic models")

    args = parser.parse_args()

    config = ForecastConfig.from_env(
        target_field=args.target,
        output_dir=args.output,
        horizon=args.horizon,
        backtest_window=args.backtest_window,
        seed=args.seed,
    )
    result = ComparisonRunner(config).run(input_path=args.input)

    return 0 if result["status"] == "SUCCESS" else 1


if __name__ == "__main__":
    exit(main())

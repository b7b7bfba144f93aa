"""
Dataset Adapter

Turns price files into ordered TimeSeriesRow lists for the forecasting
engine:
- CSV/JSON loading with date, volume and percentage normalization
- Synthetic OHLCV sample data
- Atomic CSV/JSON writers for run artifacts
"""

from .io_utils import atomic_write_csv, atomic_write_json, ensure_dir
from .loader import (Dataset, DatasetError, frame_to_dataset, load_dataset,
                     predictions_to_frame, rows_from_frame)
from .sample import generate_sample_data, generate_sample_frame

__all__ = [
    "Dataset",
    "DatasetError",
    "load_dataset",
    "frame_to_dataset",
    "rows_from_frame",
    "predictions_to_frame",
    "generate_sample_data",
    "generate_sample_frame",
    "atomic_write_csv",
    "atomic_write_json",
    "ensure_dir",
]

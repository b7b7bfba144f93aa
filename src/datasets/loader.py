# file: src/datasets/loader.py
"""
Dataset loading: CSV/JSON price files -> ordered TimeSeriesRow lists.

Fail-loud at the boundary: unreadable files, a missing date column, or no
numeric columns raise DatasetError instead of reaching the models.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from src.forecasting.objects import PredictionRow, TimeSeriesRow

logger = logging.getLogger(__name__)

_VOLUME_SUFFIX = re.compile(r"^([\d.]+)([KMB])$", re.IGNORECASE)
_MULTIPLIERS = {"K": 1e3, "M": 1e6, "B": 1e9}
_DAY_FIRST = re.compile(r"^\d{1,2}[/.\-]\d{1,2}[/.\-]\d{4}$")


class DatasetError(ValueError):
    """Raised when a file cannot be turned into a forecasting dataset"""


@dataclass
class Dataset:
    """Ordered rows plus column metadata"""
    rows: List[TimeSeriesRow]
    numeric_columns: List[str]
    date_field: str = "date"
    name: str = ""
    missing_values: Dict[str, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.rows)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([row.to_dict() for row in self.rows])

    def summary(self) -> pd.DataFrame:
        """min / max / mean / median / std (population) per numeric column"""
        frame = self.to_frame()
        stats = {}
        for col in self.numeric_columns:
            values = frame[col].dropna().to_numpy(dtype=float) if col in frame else np.array([])
            if values.size == 0:
                continue
            stats[col] = {
                "min": float(values.min()),
                "max": float(values.max()),
                "mean": float(values.mean()),
                "median": float(np.median(values)),
                "std": float(values.std()),
            }
        return pd.DataFrame(stats).T


def canonical_column(name: str) -> str:
    """Map common export headers (Price, Vol., Change %) to canonical names"""
    lower = name.strip().lower()
    if "date" in lower:
        return "date"
    if lower in ("price", "close"):
        return "close"
    if lower in ("open", "high", "low"):
        return lower
    if lower in ("vol.", "volume"):
        return "volume"
    if "change" in lower or "%" in lower:
        return "change"
    return name.strip()


def normalize_volume(value) -> float:
    """'1,234' -> 1234.0, '1.5M' -> 1500000.0"""
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return np.nan
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).replace(",", "").strip()
    if not text:
        return np.nan
    match = _VOLUME_SUFFIX.match(text)
    if match:
        return float(match.group(1)) * _MULTIPLIERS[match.group(2).upper()]
    return pd.to_numeric(text, errors="coerce")


def clean_percentage(value) -> float:
    """'1.25%' -> 0.0125"""
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return np.nan
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).replace("%", "").replace(",", "").strip()
    number = pd.to_numeric(text, errors="coerce")
    return number / 100


def clean_numeric(values: pd.Series) -> pd.Series:
    """Strip currency symbols and separators, then coerce to float"""
    if pd.api.types.is_numeric_dtype(values):
        return values.astype(float)
    stripped = values.astype(str).str.replace(r"[^\d.\-]", "", regex=True)
    return pd.to_numeric(stripped.replace("", np.nan), errors="coerce")


def normalize_dates(values: pd.Series) -> pd.Series:
    """
    Parse mixed date formats to ISO YYYY-MM-DD strings (NaN if unparseable).

    d/m/Y, d-m-Y and d.m.Y are read day-first.
    """
    def _parse(value):
        if value is None or (isinstance(value, float) and np.isnan(value)):
            return None
        text = str(value).strip()
        if not text:
            return None
        ts = pd.to_datetime(text, errors="coerce", dayfirst=bool(_DAY_FIRST.match(text)))
        if pd.isna(ts):
            return None
        return ts.strftime("%Y-%m-%d")

    return values.map(_parse)


def _numeric_columns(frame: pd.DataFrame, exclude: Iterable[str]) -> List[str]:
    exclude = set(exclude)
    return [
        col for col in frame.columns
        if col not in exclude and frame[col].notna().any()
        and pd.api.types.is_numeric_dtype(frame[col])
    ]


def frame_to_dataset(
    frame: pd.DataFrame,
    date_field: str = "date",
    name: str = "",
) -> Dataset:
    """
    Normalize a raw frame into a Dataset

    Args:
        frame: Raw table as read from disk
        date_field: Date column after header canonicalization
        name: Dataset label (usually the file name)

    Returns:
        Dataset sorted ascending by date
    """
    if frame.empty:
        raise DatasetError("Dataset is empty")

    frame = frame.rename(columns={c: canonical_column(str(c)) for c in frame.columns})
    frame = frame.loc[:, ~frame.columns.duplicated()]

    if date_field not in frame.columns:
        raise DatasetError(f"Missing date column: {date_field}. Got {frame.columns.tolist()}")

    # Blank cells are missing values, not strings
    frame = frame.replace(r"^\s*$", np.nan, regex=True)
    frame[date_field] = normalize_dates(frame[date_field])

    n_bad_dates = int(frame[date_field].isna().sum())
    if n_bad_dates:
        logger.warning(f"Dropping {n_bad_dates} rows with unparseable dates")
        frame = frame[frame[date_field].notna()]

    for col in frame.columns:
        if col == date_field:
            continue
        if col == "volume":
            frame[col] = frame[col].map(normalize_volume).astype(float)
        elif col == "change":
            frame[col] = frame[col].map(clean_percentage).astype(float)
        else:
            cleaned = clean_numeric(frame[col])
            # Keep as numeric only if every present value parsed
            if cleaned.notna().sum() == frame[col].notna().sum() and cleaned.notna().any():
                frame[col] = cleaned

    numeric_columns = _numeric_columns(frame, exclude=[date_field])
    if not numeric_columns:
        raise DatasetError("Dataset has no numeric columns")

    frame = frame.sort_values(date_field, kind="stable").reset_index(drop=True)
    missing = {col: int(frame[col].isna().sum()) for col in numeric_columns}

    rows = rows_from_frame(frame, date_field=date_field, columns=numeric_columns)
    logger.info(
        f"Loaded {len(rows)} rows, numeric columns: {numeric_columns}"
        + (f" ({name})" if name else "")
    )
    return Dataset(
        rows=rows,
        numeric_columns=numeric_columns,
        date_field=date_field,
        name=name,
        missing_values=missing,
    )


def load_dataset(path: Path, date_field: str = "date") -> Dataset:
    """Read a .csv or .json file into a Dataset"""
    path = Path(path)
    if not path.exists():
        raise DatasetError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix not in (".csv", ".json"):
        raise DatasetError(f"Unsupported file type: {suffix} (expected .csv or .json)")

    try:
        if suffix == ".csv":
            frame = pd.read_csv(path, dtype=str, skipinitialspace=True)
        else:
            frame = pd.read_json(path, dtype=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise DatasetError(f"Could not parse {path.name}: {e}") from e

    return frame_to_dataset(frame, date_field=date_field, name=path.name)


def rows_from_frame(
    frame: pd.DataFrame,
    date_field: str = "date",
    columns: Optional[Sequence[str]] = None,
) -> List[TimeSeriesRow]:
    """One TimeSeriesRow per frame row; NaN values are left out of the row"""
    if columns is None:
        columns = _numeric_columns(frame, exclude=[date_field, "isPrediction"])

    rows = []
    for record in frame.to_dict(orient="records"):
        values = {
            col: float(record[col])
            for col in columns
            if record.get(col) is not None and np.isfinite(record[col])
        }
        rows.append(TimeSeriesRow(date=str(record[date_field])[:10], values=values))
    return rows


def predictions_to_frame(rows: Sequence[PredictionRow]) -> pd.DataFrame:
    """Prediction rows as a frame with date, target and isPrediction columns"""
    return pd.DataFrame([row.to_dict() for row in rows])

"""
I/O utilities for the beat/HRV pipeline.

Handles:
- Newline-delimited sample and index files (blank and ``#`` lines ignored)
- CSV waveform loading with NaN interpolation
- BIDS ``events.tsv`` onsets converted to sample indices
- Pipeline result JSON save/load
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import numpy as np
import pandas as pd

from .signal import Events, Waveform

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _data_lines(text: str):
    """Yield (line_number, stripped_line) for lines carrying data."""
    for line_no, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        yield line_no, stripped


def _read_text(path: PathLike) -> str:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    return path.read_text(encoding="utf-8")


def parse_float_series(text: str) -> np.ndarray:
    """
    Parse one float per line.

    Raises
    ------
    ValueError
        If a data line is not a number, or no numbers are present.
    """
    values: List[float] = []
    for line_no, token in _data_lines(text):
        try:
            values.append(float(token))
        except ValueError:
            raise ValueError(f"line {line_no} is not a number: {token}") from None

    if not values:
        raise ValueError("no numeric samples found")
    return np.asarray(values, dtype=np.float64)


def read_float_series(path: PathLike) -> np.ndarray:
    """Read a newline-delimited float series from disk."""
    return parse_float_series(_read_text(path))


def parse_event_indices(text: str) -> Events:
    """
    Parse one non-negative integer sample index per line.

    Raises
    ------
    ValueError
        If a data line is not a non-negative integer, or no indices are present.
    """
    indices: List[int] = []
    for line_no, token in _data_lines(text):
        if not token.isdigit():
            raise ValueError(f"line {line_no} is not an integer index: {token}")
        indices.append(int(token))

    if not indices:
        raise ValueError("no annotation indices found")
    return Events.from_indices(indices)


def read_event_indices(path: PathLike) -> Events:
    """Read event indices from a file."""
    return parse_event_indices(_read_text(path))


def load_waveform_csv(path: PathLike, column: str, fs: float) -> Waveform:
    """
    Load one CSV column as a waveform.

    Parameters
    ----------
    path : PathLike
        CSV file with a header row.
    column : str
        Column holding the samples.
    fs : float
        Sampling rate in Hz.

    Returns
    -------
    Waveform
        Samples with NaNs linearly interpolated (edges filled).

    Raises
    ------
    FileNotFoundError
        If the CSV file does not exist.
    ValueError
        If the column is missing or holds no numeric samples.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    df = pd.read_csv(path)
    if column not in df.columns:
        raise ValueError(f"Column '{column}' not found in {path}. Columns: {list(df.columns)}")

    series = pd.to_numeric(df[column], errors="coerce")
    if series.notna().sum() == 0:
        raise ValueError(f"Column '{column}' in {path} has no numeric samples")

    nan_count = int(series.isna().sum())
    if nan_count:
        logger.warning("%d NaN values in %s, interpolating", nan_count, path.name)
        series = series.interpolate(method="linear").bfill().ffill()

    return Waveform(fs=fs, samples=series.to_numpy(dtype=np.float64, copy=True))


def load_bids_events(path: PathLike) -> pd.DataFrame:
    """
    Load a BIDS ``events.tsv`` table.

    Headers are matched case-insensitively and returned lower-cased.
    ``onset`` is required; ``duration`` and ``trial_type`` are optional.
    Rows are sorted by onset.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Events file not found: {path}")

    df = pd.read_csv(path, sep="\t", na_values=["n/a"])
    df.columns = [str(col).strip().lower() for col in df.columns]
    if "onset" not in df.columns:
        raise ValueError(f"No 'onset' column in {path}. Columns: {list(df.columns)}")

    df["onset"] = pd.to_numeric(df["onset"], errors="coerce")
    if df["onset"].isna().any():
        bad_row = int(np.flatnonzero(df["onset"].isna().to_numpy())[0]) + 2
        raise ValueError(f"line {bad_row} of {path.name} has a non-numeric onset")
    if (df["onset"] < 0).any():
        raise ValueError(f"Negative onset in {path}")

    if "duration" in df.columns:
        df["duration"] = pd.to_numeric(df["duration"], errors="coerce")

    return df.sort_values("onset", kind="stable").reset_index(drop=True)


def load_bids_event_indices(path: PathLike, fs: float) -> Events:
    """BIDS event onsets (s) as sample indices ``round(onset * fs)``."""
    df = load_bids_events(path)
    # Onsets are non-negative, so floor(x + 0.5) rounds halves up
    indices = np.floor(df["onset"].to_numpy(dtype=np.float64) * float(fs) + 0.5).astype(np.int64)
    return Events(np.unique(indices))


def save_result_json(result: Any, output_path: PathLike) -> None:
    """
    Save a result (anything with ``to_dict`` or a plain dict) to JSON.

    Parameters
    ----------
    result : Any
        Pipeline result or JSON-ready mapping.
    output_path : PathLike
        Path for output JSON file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = result.to_dict() if hasattr(result, "to_dict") else result
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_events_json(json_path: PathLike) -> Events:
    """
    Load beat indices from a saved result JSON file.

    Accepts a pipeline result (``{"events": {"indices": [...]}}``), an
    events document (``{"indices": [...]}``) or a bare list of indices.

    Raises
    ------
    FileNotFoundError
        If JSON file does not exist.
    ValueError
        If no indices can be found in the document.
    """
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"Events file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, dict) and "events" in data:
        data = data["events"]
    if isinstance(data, dict):
        data = data.get("indices")
    if not isinstance(data, list):
        raise ValueError(f"No event indices in {json_path}")

    return Events.from_indices(data)


def result_summary_row(name: str, metrics: Dict[str, float]) -> Dict[str, Any]:
    """One row of a multi-recording summary table."""
    row: Dict[str, Any] = {"recording": name}
    row.update(metrics)
    return row

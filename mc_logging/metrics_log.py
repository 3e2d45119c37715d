"""Lightweight metrics logging using Polars."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Any, List, Optional

import polars as pl

LOG_DIR = Path("logs")


def _target_dtype(prev: Optional[pl.DataType], new: Optional[pl.DataType]) -> pl.DataType:
    if prev is None and new is None:
        return pl.Utf8
    if prev is None or new is None:
        return prev if new is None else new  # type: ignore[return-value]
    if prev == new:
        return prev
    # Prefer Utf8 if either side is text; numeric mixes widen to Float64
    if prev == pl.Utf8 or new == pl.Utf8:
        return pl.Utf8
    return pl.Float64


def _align(frame: pl.DataFrame, dtypes: Dict[str, pl.DataType]) -> pl.DataFrame:
    out = frame
    for col, dtype in dtypes.items():
        if col not in out.columns:
            out = out.with_columns(pl.lit(None, dtype=dtype).alias(col))
        elif out.schema[col] != dtype:
            out = out.with_columns(pl.col(col).cast(dtype))
    return out.select(list(dtypes.keys()))


def log_records(name: str, records: List[Dict[str, Any]], log_dir: Optional[Path] = None) -> Path:
    """Append records to ``<log_dir>/<name>.csv`` (default ``logs/``).

    Columns missing on either side are filled with nulls; type clashes widen.
    Returns the CSV path.
    """
    assert isinstance(name, str) and len(name) > 0, "Invalid log name"
    assert isinstance(records, list), "records must be a list"
    out_dir = LOG_DIR if log_dir is None else Path(log_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out = out_dir / f"{name}.csv"
    if not records:
        return out
    df = pl.DataFrame(records)
    if out.exists():
        prev = pl.read_csv(out)
        try:
            df = pl.concat([prev, df], how="vertical_relaxed")
        except Exception:
            cols = list(prev.columns) + [c for c in df.columns if c not in prev.columns]
            dtypes = {c: _target_dtype(prev.schema.get(c), df.schema.get(c)) for c in cols}
            df = pl.concat([_align(prev, dtypes), _align(df, dtypes)], how="vertical")
    df.write_csv(out)
    return out


def log_record(name: str, record: Dict[str, Any], log_dir: Optional[Path] = None) -> Path:
    """Append a single record to a CSV file."""
    return log_records(name, [record], log_dir=log_dir)

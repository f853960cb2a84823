"""
CSV backed data service.

Layout under the data directory:
    <data_dir>/<symbol>.csv
    <data_dir>/<symbol>_<interval>.csv         (interval specific, preferred)
    <data_dir>/<source_name>/<symbol>[_<interval>].csv

Each file has a timestamp (or date) column plus open, high, low, close and
an optional volume column.
"""

from datetime import datetime
from pathlib import Path

import pandas as pd

from stratsim_engine.domain import PricePoint, Timeframe, as_utc
from stratsim_engine.errors import ValidationError
from stratsim_engine.interfaces.data_provider import DataService
from stratsim_engine.logging import get_logger

logger = get_logger(__name__)

REQUIRED_COLUMNS = ("open", "high", "low", "close")
TIMESTAMP_COLUMNS = ("timestamp", "timestamp_utc", "date", "datetime")


class CsvDataService(DataService):
    """Reads OHLCV candles from CSV files with pandas."""

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)

    def resolve_path(
        self,
        symbol: str,
        source_name: str | None = None,
        interval: str | None = None,
    ) -> Path | None:
        """First existing CSV file for the request, or None."""
        base = self._data_dir / source_name if source_name else self._data_dir
        candidates = []
        if interval:
            candidates.append(base / f"{symbol}_{interval}.csv")
        candidates.append(base / f"{symbol}.csv")
        for path in candidates:
            if path.exists():
                return path
        return None

    def fetch(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        source_name: str | None = None,
        interval: str | None = None,
    ) -> list[PricePoint]:
        path = self.resolve_path(symbol, source_name, interval)
        if path is None:
            logger.warning("No CSV data for %s (source=%s, interval=%s)", symbol, source_name, interval)
            return []

        df = load_csv(path)
        start_ts = pd.Timestamp(as_utc(start))
        end_ts = pd.Timestamp(as_utc(end))
        df = df[(df["timestamp"] >= start_ts) & (df["timestamp"] <= end_ts)]

        logger.debug("Loaded %d rows for %s from %s", len(df), symbol, path)
        return [
            PricePoint(
                timestamp=row.timestamp.to_pydatetime(),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=float(row.volume),
            )
            for row in df.itertuples(index=False)
        ]

    def list_symbols(self, source_name: str | None = None) -> list[str]:
        """Symbols with a CSV file, interval suffixes folded into the base symbol."""
        base = self._data_dir / source_name if source_name else self._data_dir
        if not base.is_dir():
            return []

        intervals = tuple(f"_{t.value}" for t in Timeframe)
        symbols = set()
        for path in base.glob("*.csv"):
            stem = path.stem
            for suffix in intervals:
                if stem.endswith(suffix) and len(stem) > len(suffix):
                    stem = stem[: -len(suffix)]
                    break
            symbols.add(stem)
        return sorted(symbols)


def load_csv(path: Path) -> pd.DataFrame:
    """
    Load and normalize a candle file.

    Returns a DataFrame sorted by a UTC `timestamp` column with duplicate
    timestamps dropped (first occurrence kept).

    Raises:
        ValidationError: Missing columns or unparseable timestamps
    """
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]

    ts_col = next((c for c in TIMESTAMP_COLUMNS if c in df.columns), None)
    if ts_col is None:
        raise ValidationError(f"{path.name}: no timestamp column (expected one of {TIMESTAMP_COLUMNS})")
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValidationError(f"{path.name}: missing columns {missing}")

    try:
        timestamps = pd.to_datetime(df[ts_col], utc=True)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{path.name}: unparseable timestamps: {e}") from e

    out = pd.DataFrame({
        "timestamp": timestamps,
        "open": df["open"].astype(float),
        "high": df["high"].astype(float),
        "low": df["low"].astype(float),
        "close": df["close"].astype(float),
        "volume": df["volume"].fillna(0.0).astype(float) if "volume" in df.columns else 0.0,
    })
    out = out.dropna(subset=["timestamp", "close"])
    out = out.sort_values("timestamp", kind="mergesort")
    out = out.drop_duplicates(subset="timestamp", keep="first")
    return out.reset_index(drop=True)

"""
Candle data model and OHLC frame conversion.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from volforecast.utils import DataError

OHLC_COLUMNS = ['open', 'high', 'low', 'close']


@dataclass(frozen=True)
class Candle:
    """One OHLC bar. Prices must be finite and positive."""
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    timestamp: Optional[int] = None


CandleData = Union[Sequence[Candle], pd.DataFrame]


def candles_to_frame(candles: CandleData) -> pd.DataFrame:
    """
    Convert candles to a DataFrame with open/high/low/close/volume columns.

    Accepts a sequence of Candle (or any objects exposing the same
    attributes) or a DataFrame that already carries the OHLC columns.
    The input is never modified.

    Args:
        candles: Candle sequence or OHLC DataFrame

    Returns:
        New DataFrame with float OHLC columns and a RangeIndex
    """
    if isinstance(candles, pd.DataFrame):
        missing_cols = [col for col in OHLC_COLUMNS if col not in candles.columns]
        if missing_cols:
            raise DataError(f"Missing required columns: {missing_cols}")
        df = candles[OHLC_COLUMNS].astype(float).reset_index(drop=True)
        df['volume'] = (candles['volume'].to_numpy(dtype=float)
                        if 'volume' in candles.columns else 0.0)
        return df

    rows = [
        (c.open, c.high, c.low, c.close, getattr(c, 'volume', 0.0))
        for c in candles
    ]
    return pd.DataFrame(rows, columns=OHLC_COLUMNS + ['volume'], dtype=float)


def validate_ohlc_data(df: pd.DataFrame) -> pd.DataFrame:
    """
    Reject frames containing non-positive, NaN or infinite prices.

    Args:
        df: DataFrame with OHLC columns

    Returns:
        The same DataFrame

    Raises:
        DataError: Naming the first offending column and row
    """
    for col in OHLC_COLUMNS:
        values = df[col].to_numpy(dtype=float)
        bad = ~(np.isfinite(values) & (values > 0))
        if bad.any():
            idx = int(np.argmax(bad))
            raise DataError(f"Invalid {col} price at index {idx}: {values[idx]}")
    return df

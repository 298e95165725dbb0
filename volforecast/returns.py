"""
Return calculation module for volatility estimation.

This module provides functions to calculate log returns and range-based
metrics needed by the variance proxies and the conditional-variance models.
"""

from typing import Sequence

import numpy as np
import pandas as pd

from volforecast.candles import CandleData, candles_to_frame
from volforecast.utils import DataError


def _log_returns(prices: np.ndarray, label: str) -> np.ndarray:
    valid = np.isfinite(prices) & (prices > 0)
    if not valid.all():
        # Report the first return index touching a bad price
        bad = int(np.argmax(~valid))
        raise DataError(f"Invalid {label} at index {max(bad, 1)}")
    return np.log(prices[1:] / prices[:-1])


def calculate_returns(candles: CandleData) -> np.ndarray:
    """
    Calculate log close-to-close returns from candles.

    Formula:
        r_t = ln(C_t / C_{t-1})

    Args:
        candles: Candle sequence or OHLC DataFrame

    Returns:
        Array of len(candles) - 1 log returns

    Raises:
        DataError: If any close is non-positive, NaN or infinite
    """
    closes = candles_to_frame(candles)['close'].to_numpy(dtype=float)
    return _log_returns(closes, 'close price')


def calculate_returns_from_prices(prices: Sequence[float]) -> np.ndarray:
    """
    Calculate log returns from a bare price sequence.

    Args:
        prices: Price sequence

    Returns:
        Array of len(prices) - 1 log returns

    Raises:
        DataError: If any price is non-positive, NaN or infinite
    """
    values = np.asarray(prices, dtype=float)
    return _log_returns(values, 'price')


def sample_variance(returns: np.ndarray) -> float:
    """Sample variance under a zero-mean assumption: mean(r²)."""
    returns = np.asarray(returns, dtype=float)
    return float(np.mean(returns ** 2))


def sample_variance_with_mean(returns: np.ndarray) -> float:
    """Sample variance around the mean with n-1 denominator."""
    return float(np.var(np.asarray(returns, dtype=float), ddof=1))


def calculate_ranges(data: pd.DataFrame) -> pd.DataFrame:
    """
    Calculate range-based metrics for volatility estimators.

    Returns:
        DataFrame with columns:
        - high_low_ratio: ln(H/L) - Parkinson, Garman-Klass
        - close_open_ratio: ln(C/O) - Garman-Klass, Yang-Zhang open-to-close
        - high_close_ratio: ln(H/C) - Rogers-Satchell
        - high_open_ratio: ln(H/O) - Rogers-Satchell
        - low_close_ratio: ln(L/C) - Rogers-Satchell
        - low_open_ratio: ln(L/O) - Rogers-Satchell
        - overnight_ratio: ln(O_t/C_{t-1}) - Yang-Zhang overnight (NaN on row 0)
    """
    ranges = pd.DataFrame(index=data.index)

    ranges['high_low_ratio'] = np.log(data['high'] / data['low'])
    ranges['close_open_ratio'] = np.log(data['close'] / data['open'])
    ranges['high_close_ratio'] = np.log(data['high'] / data['close'])
    ranges['high_open_ratio'] = np.log(data['high'] / data['open'])
    ranges['low_close_ratio'] = np.log(data['low'] / data['close'])
    ranges['low_open_ratio'] = np.log(data['low'] / data['open'])

    # Overnight return = ln(O_t / C_{t-1})
    ranges['overnight_ratio'] = np.log(data['open'] / data['close'].shift(1))

    return ranges

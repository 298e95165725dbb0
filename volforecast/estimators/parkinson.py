"""
Parkinson Variance Estimator.

Uses the high/low range of each candle instead of just closing prices.
About 5x more efficient than squared close-to-close returns, which makes
the per-candle value a good innovation proxy for the GARCH-family
recursions.

Formula:
    RVᵢ = (ln(Hᵢ/Lᵢ))² / (4ln2)

Reference:
    Parkinson, M. (1980). "The Extreme Value Method for Estimating the Variance
    of the Rate of Return." Journal of Business, 53(1), 61-65.
"""

import numpy as np
import pandas as pd

from volforecast.candles import CandleData, candles_to_frame
from volforecast.estimators.base import BaseEstimator
from volforecast.returns import calculate_ranges, calculate_returns
from volforecast.utils import DataError


class ParkinsonEstimator(BaseEstimator):
    """
    Parkinson range estimator.

    `calculate_series` gives the per-candle proxy aligned with returns;
    `calculate` averages it into a whole-sample variance.
    """

    def __init__(self):
        self.constant = 1 / (4 * np.log(2))  # 1/(4ln2)

    def calculate_series(self, data: pd.DataFrame, returns: np.ndarray) -> np.ndarray:
        """
        Per-candle realized variance for candles 1..n-1.

        Args:
            data: Validated OHLC DataFrame with n rows
            returns: n-1 close-to-close log returns

        Returns:
            Array aligned 1:1 with returns
        """
        returns = np.asarray(returns, dtype=float)
        if len(returns) != len(data) - 1:
            raise DataError(
                f"Returns length {len(returns)} does not match {len(data)} candles"
            )

        high_low_ratio = calculate_ranges(data)['high_low_ratio'].to_numpy()[1:]
        rv = self.constant * high_low_ratio ** 2

        # Zero range (H = L): fall back to the squared return of that period
        zero_range = ~(rv > 0)
        rv[zero_range] = returns[zero_range] ** 2
        return rv

    def calculate(self, data: pd.DataFrame) -> float:
        if len(data) < 2:
            raise DataError("Parkinson estimator needs at least 2 candles")
        return float(np.mean(self.calculate_series(data, calculate_returns(data))))


def parkinson_per_candle(candles: CandleData, returns: np.ndarray) -> np.ndarray:
    """
    Parkinson RV per candle, aligned with `returns`.

    Raises:
        DataError: If the candles contain invalid prices
    """
    estimator = ParkinsonEstimator()
    data = candles_to_frame(candles)
    estimator.validate_inputs(data)
    return estimator.calculate_series(data, returns)

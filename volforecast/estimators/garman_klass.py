"""
Garman-Klass Variance Estimator.

Uses the open/high/low/close of every candle. Roughly 7x more efficient
than squared close-to-close returns for a driftless diffusion.

Formula:
    σ² = (1/n) * Σ [0.5 * (ln(Hᵢ/Lᵢ))² - (2ln2 - 1) * (ln(Cᵢ/Oᵢ))²]

Reference:
    Garman, M. B., & Klass, M. J. (1980). "On the Estimation of Security
    Price Volatilities from Historical Data." Journal of Business, 53(1), 67-78.
"""

import numpy as np
import pandas as pd

from volforecast.candles import CandleData
from volforecast.estimators.base import BaseEstimator
from volforecast.returns import calculate_ranges


class GarmanKlassEstimator(BaseEstimator):
    """Garman-Klass whole-sample variance estimator."""

    def __init__(self):
        self.close_open_weight = 2 * np.log(2) - 1  # 2ln2 - 1

    def calculate(self, data: pd.DataFrame) -> float:
        ranges = calculate_ranges(data)

        per_candle = (
            0.5 * ranges['high_low_ratio'] ** 2
            - self.close_open_weight * ranges['close_open_ratio'] ** 2
        )

        return float(per_candle.mean())


def garman_klass_variance(candles: CandleData) -> float:
    """
    Garman-Klass variance of a candle sequence.

    Raises:
        DataError: If the candles are empty or contain invalid prices
    """
    return GarmanKlassEstimator().compute(candles)

"""
Yang-Zhang Variance Estimator.

Most comprehensive range-based estimator. Accounts for:
- Overnight volatility (previous close to open gaps)
- Open-to-close volatility
- Intraday range (via Rogers-Satchell)

Formula:
    σ² = σ²_overnight + kσ²_open-close + (1-k)σ²_RS

Where:
    σ²_overnight: Variance of ln(Oᵢ/Cᵢ₋₁)
    σ²_open-close: Variance of ln(Cᵢ/Oᵢ)
    σ²_RS: Rogers-Satchell estimator
    k = 0.34/(1.34 + (n+1)/(n-1))

Reference:
    Yang, D., & Zhang, Q. (2000). "Drift-Independent Volatility Estimation
    Based on High, Low, Open, and Close Prices." Journal of Business,
    73(3), 477-491.
"""

import numpy as np
import pandas as pd

from volforecast.candles import CandleData
from volforecast.estimators.base import BaseEstimator
from volforecast.estimators.garman_klass import GarmanKlassEstimator
from volforecast.returns import calculate_ranges, calculate_returns, sample_variance


class YangZhangEstimator(BaseEstimator):
    """
    Yang-Zhang whole-sample variance estimator.

    Falls back to Garman-Klass with fewer than two candles or when the
    combined estimate is not positive, and to the sample variance of
    close-to-close returns when Garman-Klass is not positive either.
    """

    def calculate(self, data: pd.DataFrame) -> float:
        n = len(data)
        fallback = GarmanKlassEstimator()

        if n < 2:
            return fallback.calculate(data)

        k = 0.34 / (1.34 + (n + 1) / (n - 1))

        ranges = calculate_ranges(data)

        # Component 1: overnight gaps, defined from the second candle on
        overnight_var = ranges['overnight_ratio'].iloc[1:].var(ddof=1)
        if not np.isfinite(overnight_var):
            overnight_var = 0.0

        # Component 2: open-to-close
        open_close_var = ranges['close_open_ratio'].var(ddof=1)

        # Component 3: Rogers-Satchell
        rs = (
            ranges['high_close_ratio'] * ranges['high_open_ratio']
            + ranges['low_close_ratio'] * ranges['low_open_ratio']
        )
        rs_var = rs.mean()

        variance = float(overnight_var + k * open_close_var + (1 - k) * rs_var)
        if variance > 0:
            return variance

        gk = fallback.calculate(data)
        if gk > 0:
            return gk

        return sample_variance(calculate_returns(data))


def yang_zhang_variance(candles: CandleData) -> float:
    """
    Yang-Zhang variance of a candle sequence.

    Raises:
        DataError: If the candles are empty or contain invalid prices
    """
    return YangZhangEstimator().compute(candles)

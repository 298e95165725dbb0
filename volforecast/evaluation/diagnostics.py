"""
Residual diagnostics.

Ljung-Box whiteness test and the leverage (return-sign asymmetry) check.
"""

from dataclasses import dataclass

import numpy as np

from volforecast.utils import chi2_survival

LEVERAGE_THRESHOLD = 1.2


@dataclass(frozen=True)
class LjungBoxResult:
    statistic: float
    p_value: float
    lags: int


@dataclass(frozen=True)
class LeverageStats:
    negative_vol: float
    positive_vol: float
    ratio: float
    recommendation: str


def ljung_box(data, max_lag: int = 10) -> LjungBoxResult:
    """
    Ljung-Box test for autocorrelation.

    Q = n(n+2) * Σ_{k=1..m} ρ²_k / (n-k), compared with χ²(m).
    Applied to squared standardized residuals it checks whether a variance
    model has absorbed the volatility clustering.

    Args:
        data: Series to test
        max_lag: Number of autocorrelation lags m

    Returns:
        LjungBoxResult; constant data gives Q = 0 and p = 1
    """
    x = np.asarray(data, dtype=float)
    n = len(x)
    lags = min(max_lag, n - 1)
    if lags < 1:
        return LjungBoxResult(statistic=0.0, p_value=1.0, lags=max(lags, 0))

    centered = x - x.mean()
    denom = np.dot(centered, centered)
    if denom == 0 or not np.isfinite(denom):
        return LjungBoxResult(statistic=0.0, p_value=1.0, lags=lags)

    k = np.arange(1, lags + 1)
    rho = np.array([np.dot(centered[lag:], centered[:-lag]) for lag in k]) / denom
    q = float(n * (n + 2) * np.sum(rho ** 2 / (n - k)))

    return LjungBoxResult(statistic=q, p_value=chi2_survival(q, lags), lags=lags)


def check_leverage_effect(returns) -> LeverageStats:
    """
    Compare the RMS of negative and positive returns.

    Recommends 'egarch' when negative returns are more than 1.2x as volatile
    as positive ones, 'garch' otherwise (including a ratio of exactly 1.2).
    """
    returns = np.asarray(returns, dtype=float)
    negative = returns[returns < 0]
    positive = returns[returns > 0]

    if len(negative) == 0 or len(positive) == 0:
        return LeverageStats(negative_vol=0.0, positive_vol=0.0, ratio=1.0,
                             recommendation='garch')

    negative_vol = float(np.sqrt(np.mean(negative ** 2)))
    positive_vol = float(np.sqrt(np.mean(positive ** 2)))
    ratio = negative_vol / positive_vol

    return LeverageStats(
        negative_vol=negative_vol,
        positive_vol=positive_vol,
        ratio=ratio,
        recommendation='egarch' if ratio > LEVERAGE_THRESHOLD else 'garch',
    )

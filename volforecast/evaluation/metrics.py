"""
Evaluation metrics for variance models.

QLIKE loss, information criteria and the Student-t likelihood shared by
every calibrated model.
"""

from typing import Tuple

import numpy as np
from scipy.special import gammaln

# Coarse df grid for post-hoc profiling, refined around the best point
DF_GRID = np.array([2.5, 3.0, 3.5, 4.0, 5.0, 6.0, 7.0, 8.0, 10.0, 12.0,
                    15.0, 20.0, 25.0, 30.0, 40.0, 50.0, 70.0, 100.0])
FINE_GRID_POINTS = 41


def qlike(variance, rv) -> float:
    """
    QLIKE loss: mean of RV/σ² - ln(RV/σ²) - 1.

    Only points where both the forecast variance and the realized proxy
    are finite and positive take part. Lower is better; 0 is a perfect fit.

    Args:
        variance: Model variance series
        rv: Realized variance proxy aligned with `variance`

    Returns:
        Mean QLIKE, or inf when no point is valid
    """
    variance = np.asarray(variance, dtype=float)
    rv = np.asarray(rv, dtype=float)

    valid = np.isfinite(variance) & np.isfinite(rv) & (variance > 0) & (rv > 0)
    if not valid.any():
        return float('inf')

    ratio = rv[valid] / variance[valid]
    return float(np.mean(ratio - np.log(ratio) - 1.0))


def calculate_aic(log_likelihood: float, num_params: int) -> float:
    """AIC = 2k - 2·LL."""
    return 2 * num_params - 2 * log_likelihood


def calculate_bic(log_likelihood: float, num_params: int, num_obs: int) -> float:
    """BIC = k·ln(n) - 2·LL."""
    return num_params * np.log(num_obs) - 2 * log_likelihood


def student_t_log_likelihood(returns, variance, df: float) -> np.ndarray:
    """
    Per-point log density of returns under a unit-variance Student-t scaled
    by the conditional variance.

    Args:
        returns: Return series
        variance: Conditional variance series aligned with returns
        df: Degrees of freedom (> 2)

    Returns:
        Array of log-likelihood contributions
    """
    returns = np.asarray(returns, dtype=float)
    variance = np.asarray(variance, dtype=float)

    const = gammaln((df + 1) / 2) - gammaln(df / 2) - 0.5 * np.log(np.pi * (df - 2))
    return (const
            - 0.5 * np.log(variance)
            - (df + 1) / 2 * np.log1p(returns ** 2 / ((df - 2) * variance)))


def student_t_nll(returns, variance, df: float) -> float:
    """Student-t negative log-likelihood of returns given a variance series."""
    return float(-np.sum(student_t_log_likelihood(returns, variance, df)))


def profile_student_t_df(
    returns,
    variance,
    df_bounds: Tuple[float, float] = (2.01, 100.0)
) -> Tuple[float, float]:
    """
    Find the df minimising the Student-t NLL with the variance series held
    fixed.

    A coarse grid locates the basin, then a fine grid between the
    neighbouring coarse points refines it.

    Returns:
        (df, negative log-likelihood at df)
    """
    lower, upper = df_bounds
    coarse = DF_GRID[(DF_GRID > lower) & (DF_GRID <= upper)]
    coarse_nll = np.array([student_t_nll(returns, variance, df) for df in coarse])
    best = int(np.argmin(coarse_nll))

    lo = coarse[best - 1] if best > 0 else max(lower + 1e-6, coarse[best] - 0.5)
    hi = coarse[best + 1] if best < len(coarse) - 1 else upper
    fine = np.linspace(lo, hi, FINE_GRID_POINTS)
    fine_nll = np.array([student_t_nll(returns, variance, df) for df in fine])

    best_fine = int(np.argmin(fine_nll))
    if fine_nll[best_fine] < coarse_nll[best]:
        return float(fine[best_fine]), float(fine_nll[best_fine])
    return float(coarse[best]), float(coarse_nll[best])

"""
Distribution helpers used by calibration, diagnostics and price banding.
"""

import math

import numpy as np
from scipy.special import gammaln
from scipy.stats import norm

# E[|Z|] for Z ~ N(0, 1)
EXPECTED_ABS_NORMAL = math.sqrt(2.0 / math.pi)

# Acklam's rational approximation coefficients for the inverse normal CDF
_A = (-3.969683028665376e+01, 2.209460984245205e+02, -2.759285104469687e+02,
      1.383577518672690e+02, -3.066479806614716e+01, 2.506628277459239e+00)
_B = (-5.447609879822406e+01, 1.615858368580409e+02, -1.556989798598866e+02,
      6.680131188771972e+01, -1.328068155288572e+01)
_C = (-7.784894002430293e-03, -3.223964580411365e-01, -2.400758277161838e+00,
      -2.549732539343734e+00, 4.374664141464968e+00, 2.938163982698783e+00)
_D = (7.784695709041462e-03, 3.224671290700398e-01, 2.445134137142996e+00,
      3.754408661907416e+00)
_P_LOW = 0.02425


def inverse_normal_cdf(p: float) -> float:
    """
    Inverse standard normal CDF via Acklam's algorithm.

    Relative error is below 1.15e-9 over the open unit interval.
    """
    if not 0.0 < p < 1.0:
        raise ValueError(f"p must be in (0, 1), got {p}")

    if p < _P_LOW:
        q = math.sqrt(-2.0 * math.log(p))
        return ((((((_C[0] * q + _C[1]) * q + _C[2]) * q + _C[3]) * q + _C[4]) * q + _C[5])
                / ((((_D[0] * q + _D[1]) * q + _D[2]) * q + _D[3]) * q + 1.0))

    if p <= 1.0 - _P_LOW:
        q = p - 0.5
        r = q * q
        return ((((((_A[0] * r + _A[1]) * r + _A[2]) * r + _A[3]) * r + _A[4]) * r + _A[5]) * q
                / (((((_B[0] * r + _B[1]) * r + _B[2]) * r + _B[3]) * r + _B[4]) * r + 1.0))

    q = math.sqrt(-2.0 * math.log(1.0 - p))
    return -((((((_C[0] * q + _C[1]) * q + _C[2]) * q + _C[3]) * q + _C[4]) * q + _C[5])
             / ((((_D[0] * q + _D[1]) * q + _D[2]) * q + _D[3]) * q + 1.0))


def probit(confidence: float) -> float:
    """
    Convert a two-sided confidence level to a z-score.

    probit(0.6827) ≈ 1 (±1σ), probit(0.95) ≈ 1.96.

    Args:
        confidence: Two-sided coverage in (0, 1)

    Returns:
        z such that P(|Z| <= z) = confidence

    Raises:
        ValueError: If confidence is outside (0, 1)
    """
    if not (0.0 < confidence < 1.0) or math.isnan(confidence):
        raise ValueError("confidence must be in (0, 1)")
    return inverse_normal_cdf((1.0 + confidence) / 2.0)


def expected_abs_student_t(df: float) -> float:
    """
    E[|Z|] for a unit-variance Student-t variable with `df` degrees of freedom.

    Tends to sqrt(2/pi) as df grows.
    """
    if not np.isfinite(df) or df > 1e6:
        return EXPECTED_ABS_NORMAL
    log_ratio = gammaln((df + 1.0) / 2.0) - gammaln(df / 2.0)
    return 2.0 * math.sqrt(df - 2.0) * math.exp(log_ratio) / (math.sqrt(math.pi) * (df - 1.0))


def chi2_survival(x: float, df: int) -> float:
    """
    Chi-squared survival function P(X > x) via the Wilson-Hilferty cube-root
    normal approximation.
    """
    if x <= 0:
        return 1.0
    k = float(df)
    h = 2.0 / (9.0 * k)
    z = ((x / k) ** (1.0 / 3.0) - (1.0 - h)) / math.sqrt(h)
    return float(norm.sf(z))

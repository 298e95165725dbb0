"""
GARCH(1,1) model with Student-t innovations.

    σ²_t = ω + α·I_{t-1} + β·σ²_{t-1}

where I is the per-candle Parkinson RV when OHLC data is available and the
squared return otherwise.

Constraints (enforced as an objective penalty):
    ω > floor, α ≥ 0, β ≥ 0, α + β < 0.9999, df ∈ (2.01, 100]

Reference:
    Bollerslev, T. (1986). "Generalized Autoregressive Conditional
    Heteroskedasticity." Journal of Econometrics, 31(3), 307-327.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.signal import lfilter

from volforecast.evaluation.metrics import student_t_nll
from volforecast.models.base import (
    CalibrationResult,
    DataInput,
    ModelType,
    VarianceModel,
    VolatilityForecast,
    clamp_steps,
    resolve_data,
)
from volforecast.utils import FitConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GarchParams:
    omega: float
    alpha: float
    beta: float
    persistence: float
    unconditional_variance: float
    annualized_vol: float
    df: float


def linear_recursion(initial: float, drive: np.ndarray, beta: float) -> np.ndarray:
    """
    Solve v_0 = initial, v_t = drive_{t-1} + beta·v_{t-1} for t = 1..len(drive).

    Returns:
        Array of len(drive) + 1 values starting with `initial`
    """
    if len(drive) == 0:
        return np.array([initial])
    tail, _ = lfilter([1.0], [1.0, -beta], drive, zi=[beta * initial])
    return np.concatenate(([initial], tail))


class GarchModel(VarianceModel):
    """
    GARCH(1,1) calibrated by Student-t maximum likelihood.

    Example:
        >>> model = GarchModel.from_candles(candles, periods_per_year=8760)
        >>> result = model.fit()
        >>> model.forecast(result.params, steps=5).volatility
    """

    model_type = ModelType.GARCH
    name = 'GARCH'
    NUM_PARAMS = 4

    def _series(self, omega: float, alpha: float, beta: float) -> np.ndarray:
        innovation = self.data.innovation
        return linear_recursion(self.data.initial_variance,
                                omega + alpha * innovation[:-1], beta)

    def _objective(self, config: FitConfig):
        returns = self.returns
        penalty = config.penalty
        floor = config.variance_floor
        df_low, df_high = config.df_bounds

        def neg_log_likelihood(x: np.ndarray) -> float:
            omega, alpha, beta, df = x
            if omega <= floor or alpha < 0 or beta < 0:
                return penalty
            if alpha + beta >= config.stationarity_bound:
                return penalty
            if df <= df_low or df > df_high:
                return penalty

            variance = self._series(omega, alpha, beta)
            if not np.all(variance > floor) or not np.all(np.isfinite(variance)):
                return penalty

            nll = student_t_nll(returns, variance, df)
            return nll if np.isfinite(nll) else penalty

        return neg_log_likelihood

    def fit(self, max_iter: Optional[int] = None, tol: Optional[float] = None) -> CalibrationResult:
        """
        Calibrate ω, α, β and df by minimising the Student-t NLL.

        Args:
            max_iter: Override of FitConfig.max_iter
            tol: Override of FitConfig.tol

        Returns:
            CalibrationResult with GarchParams
        """
        config = self.config.with_overrides(max_iter, tol)
        init_var = self.data.initial_variance
        x0 = [init_var * 0.05, 0.1, 0.85, 5.0]

        result = self._optimize(self._objective(config), x0, config)
        omega, alpha, beta, df = (float(v) for v in result.x)

        persistence = alpha + beta
        unconditional_variance = omega / (1 - persistence)
        params = GarchParams(
            omega=omega,
            alpha=alpha,
            beta=beta,
            persistence=persistence,
            unconditional_variance=unconditional_variance,
            annualized_vol=self._annualized_vol(unconditional_variance),
            df=df,
        )

        logger.debug(f"GARCH fit: persistence={persistence:.4f}, df={df:.2f}, "
                     f"iterations={result.iterations}, converged={result.converged}")

        return CalibrationResult(
            params=params,
            diagnostics=self._diagnostics(-result.fx, self.NUM_PARAMS,
                                          result.iterations, result.converged),
        )

    def variance_series(self, params: GarchParams) -> np.ndarray:
        """
        Replay the recursion from the stored initial variance.

        Raises:
            CalibrationError: If any value is non-positive or non-finite
        """
        return self._checked_series(self._series(params.omega, params.alpha, params.beta))

    def forecast(self, params: GarchParams, steps: int = 1) -> VolatilityForecast:
        """
        One-step value from the last realized innovation, then
        v_{h+1} = ω + (α+β)·v_h. `steps` ≤ 0 gives a single step.
        """
        steps = clamp_steps(steps)
        last_variance = self.variance_series(params)[-1]
        last_innovation = self.data.innovation[-1]

        variance = np.empty(steps)
        variance[0] = params.omega + params.alpha * last_innovation + params.beta * last_variance
        for h in range(1, steps):
            variance[h] = params.omega + params.persistence * variance[h - 1]

        return VolatilityForecast.from_variance(variance, self.periods_per_year)


def calibrate_garch(data: DataInput, periods_per_year: float = 252,
                    config: Optional[FitConfig] = None,
                    max_iter: Optional[int] = None,
                    tol: Optional[float] = None) -> CalibrationResult:
    """Calibrate GARCH(1,1) from candles or a bare price sequence."""
    model = GarchModel(resolve_data(data), periods_per_year, config)
    return model.fit(max_iter=max_iter, tol=tol)

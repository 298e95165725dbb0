"""
GJR-GARCH(1,1) model with Student-t innovations.

    σ²_t = ω + α·I_{t-1} + γ·I_{t-1}·𝟙[r_{t-1} < 0] + β·σ²_{t-1}

Negative returns add γ on top of α, capturing the leverage effect inside
the linear GARCH frame. With P(r < 0) = 1/2 the forecast persistence is
α + γ/2 + β, which must stay below 0.9999.

Reference:
    Glosten, L. R., Jagannathan, R., & Runkle, D. E. (1993). "On the Relation
    between the Expected Value and the Volatility of the Nominal Excess Return
    on Stocks." Journal of Finance, 48(5), 1779-1801.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

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
from volforecast.models.garch import linear_recursion
from volforecast.utils import FitConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GjrGarchParams:
    omega: float
    alpha: float
    gamma: float
    beta: float
    persistence: float
    unconditional_variance: float
    annualized_vol: float
    leverage_effect: float
    df: float


class GjrGarchModel(VarianceModel):
    """GJR-GARCH(1,1) calibrated by Student-t maximum likelihood."""

    model_type = ModelType.GJR_GARCH
    name = 'GJR-GARCH'
    NUM_PARAMS = 5

    def _series(self, omega: float, alpha: float, gamma: float, beta: float) -> np.ndarray:
        innovation = self.data.innovation[:-1]
        negative = self.returns[:-1] < 0
        drive = omega + (alpha + gamma * negative) * innovation
        return linear_recursion(self.data.initial_variance, drive, beta)

    def _objective(self, config: FitConfig):
        returns = self.returns
        penalty = config.penalty
        floor = config.variance_floor
        df_low, df_high = config.df_bounds

        def neg_log_likelihood(x: np.ndarray) -> float:
            omega, alpha, gamma, beta, df = x
            if omega <= floor or alpha < 0 or gamma < 0 or beta < 0:
                return penalty
            if alpha + gamma / 2 + beta >= config.stationarity_bound:
                return penalty
            if df <= df_low or df > df_high:
                return penalty

            variance = self._series(omega, alpha, gamma, beta)
            if not np.all(variance > floor) or not np.all(np.isfinite(variance)):
                return penalty

            nll = student_t_nll(returns, variance, df)
            return nll if np.isfinite(nll) else penalty

        return neg_log_likelihood

    def fit(self, max_iter: Optional[int] = None, tol: Optional[float] = None) -> CalibrationResult:
        """Calibrate ω, α, γ, β and df by minimising the Student-t NLL."""
        config = self.config.with_overrides(max_iter, tol)
        x0 = [self.data.initial_variance * 0.05, 0.05, 0.1, 0.85, 5.0]

        result = self._optimize(self._objective(config), x0, config)
        omega, alpha, gamma, beta, df = (float(v) for v in result.x)

        persistence = alpha + gamma / 2 + beta
        unconditional_variance = omega / (1 - persistence)
        params = GjrGarchParams(
            omega=omega,
            alpha=alpha,
            gamma=gamma,
            beta=beta,
            persistence=persistence,
            unconditional_variance=unconditional_variance,
            annualized_vol=self._annualized_vol(unconditional_variance),
            leverage_effect=gamma,
            df=df,
        )

        logger.debug(f"GJR-GARCH fit: persistence={persistence:.4f}, gamma={gamma:.4f}, "
                     f"iterations={result.iterations}, converged={result.converged}")

        return CalibrationResult(
            params=params,
            diagnostics=self._diagnostics(-result.fx, self.NUM_PARAMS,
                                          result.iterations, result.converged),
        )

    def variance_series(self, params: GjrGarchParams) -> np.ndarray:
        """
        Replay the recursion from the stored initial variance.

        Raises:
            CalibrationError: If any value is non-positive or non-finite
        """
        series = self._series(params.omega, params.alpha, params.gamma, params.beta)
        return self._checked_series(series)

    def forecast(self, params: GjrGarchParams, steps: int = 1) -> VolatilityForecast:
        """
        One-step value uses the sign of the last return; later steps use
        v_{h+1} = ω + (α + γ/2 + β)·v_h.
        """
        steps = clamp_steps(steps)
        last_variance = self.variance_series(params)[-1]
        last_innovation = self.data.innovation[-1]
        asymmetry = params.gamma if self.returns[-1] < 0 else 0.0

        variance = np.empty(steps)
        variance[0] = (params.omega
                       + (params.alpha + asymmetry) * last_innovation
                       + params.beta * last_variance)
        for h in range(1, steps):
            variance[h] = params.omega + params.persistence * variance[h - 1]

        return VolatilityForecast.from_variance(variance, self.periods_per_year)


def calibrate_gjr_garch(data: DataInput, periods_per_year: float = 252,
                        config: Optional[FitConfig] = None,
                        max_iter: Optional[int] = None,
                        tol: Optional[float] = None) -> CalibrationResult:
    """Calibrate GJR-GARCH(1,1) from candles or a bare price sequence."""
    model = GjrGarchModel(resolve_data(data), periods_per_year, config)
    return model.fit(max_iter=max_iter, tol=tol)

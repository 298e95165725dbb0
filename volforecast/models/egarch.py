"""
EGARCH(1,1) model with Student-t innovations.

    ln σ²_t = ω + α·(m_{t-1} - E|z|) + γ·z_{t-1} + β·ln σ²_{t-1}

z = r/σ is the standardized residual; the shock magnitude m is |z| for bare
prices and √(RV/σ²) when a Parkinson RV proxy is available. E|z| is the
expectation under a unit-variance Student-t with the current df.

The log form keeps every variance positive without sign constraints, and
γ < 0 lets negative returns raise volatility more than positive ones
(leverage effect). Only |β| < 0.9999 is enforced.

Reference:
    Nelson, D. B. (1991). "Conditional Heteroskedasticity in Asset Returns:
    A New Approach." Econometrica, 59(2), 347-370.
"""

import logging
import math
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
from volforecast.utils import FitConfig, expected_abs_student_t

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EgarchParams:
    omega: float
    alpha: float
    gamma: float
    beta: float
    persistence: float
    unconditional_variance: float
    annualized_vol: float
    leverage_effect: float
    df: float


class EgarchModel(VarianceModel):
    """EGARCH(1,1) calibrated by Student-t maximum likelihood."""

    model_type = ModelType.EGARCH
    name = 'EGARCH'
    NUM_PARAMS = 5

    def _log_update(self, log_var: float, ret: float, innovation: float,
                    omega: float, alpha: float, gamma: float, beta: float,
                    expected_abs: float, clip: float) -> float:
        sigma = math.sqrt(math.exp(log_var))
        z = ret / sigma
        magnitude = math.sqrt(innovation) / sigma
        log_var = omega + alpha * (magnitude - expected_abs) + gamma * z + beta * log_var
        return min(max(log_var, -clip), clip)

    def _series(self, omega: float, alpha: float, gamma: float, beta: float,
                expected_abs: float, clip: float) -> np.ndarray:
        returns = self.returns.tolist()
        magnitude = np.sqrt(self.data.innovation).tolist()
        exp, sqrt = math.exp, math.sqrt

        variance = self.data.initial_variance
        log_var = math.log(variance)
        out = [variance]
        for i in range(1, len(returns)):
            sigma = sqrt(variance)
            log_var = (omega
                       + alpha * (magnitude[i - 1] / sigma - expected_abs)
                       + gamma * returns[i - 1] / sigma
                       + beta * log_var)
            log_var = min(max(log_var, -clip), clip)
            variance = exp(log_var)
            out.append(variance)
        return np.array(out)

    def _objective(self, config: FitConfig):
        returns = self.returns
        penalty = config.penalty
        floor = config.variance_floor
        df_low, df_high = config.df_bounds

        def neg_log_likelihood(x: np.ndarray) -> float:
            omega, alpha, gamma, beta, df = x
            if abs(beta) >= config.stationarity_bound:
                return penalty
            if df <= df_low or df > df_high:
                return penalty

            variance = self._series(omega, alpha, gamma, beta,
                                    expected_abs_student_t(df), config.log_variance_clip)
            if not np.all(variance > floor) or not np.all(np.isfinite(variance)):
                return penalty

            nll = student_t_nll(returns, variance, df)
            return nll if np.isfinite(nll) else penalty

        return neg_log_likelihood

    def fit(self, max_iter: Optional[int] = None, tol: Optional[float] = None) -> CalibrationResult:
        """
        Calibrate ω, α, γ, β and df by minimising the Student-t NLL.

        The starting ω puts the implied unconditional log-variance at the
        log of the initial variance.
        """
        config = self.config.with_overrides(max_iter, tol)
        beta0 = 0.95
        omega0 = math.log(self.data.initial_variance) * (1 - beta0)
        x0 = [omega0, 0.1, -0.05, beta0, 5.0]

        result = self._optimize(self._objective(config), x0, config)
        omega, alpha, gamma, beta, df = (float(v) for v in result.x)

        clip = config.log_variance_clip
        unconditional_log_var = min(max(omega / (1 - beta), -clip), clip)
        unconditional_variance = math.exp(unconditional_log_var)
        params = EgarchParams(
            omega=omega,
            alpha=alpha,
            gamma=gamma,
            beta=beta,
            persistence=beta,
            unconditional_variance=unconditional_variance,
            annualized_vol=self._annualized_vol(unconditional_variance),
            leverage_effect=gamma,
            df=df,
        )

        logger.debug(f"EGARCH fit: beta={beta:.4f}, gamma={gamma:.4f}, df={df:.2f}, "
                     f"iterations={result.iterations}, converged={result.converged}")

        return CalibrationResult(
            params=params,
            diagnostics=self._diagnostics(-result.fx, self.NUM_PARAMS,
                                          result.iterations, result.converged),
        )

    def variance_series(self, params: EgarchParams) -> np.ndarray:
        """
        Replay the log-variance recursion from the stored initial variance.

        Raises:
            CalibrationError: If any value is non-positive or non-finite
        """
        series = self._series(params.omega, params.alpha, params.gamma, params.beta,
                              expected_abs_student_t(params.df), self.config.log_variance_clip)
        return self._checked_series(series)

    def forecast(self, params: EgarchParams, steps: int = 1) -> VolatilityForecast:
        """
        One-step value from the last realized shock; later steps assume
        E[z] = 0 and E[m] = E|z| so ln v_{h+1} = ω + β·ln v_h.
        """
        steps = clamp_steps(steps)
        clip = self.config.log_variance_clip
        last_variance = self.variance_series(params)[-1]

        log_var = self._log_update(
            math.log(last_variance), float(self.returns[-1]), float(self.data.innovation[-1]),
            params.omega, params.alpha, params.gamma, params.beta,
            expected_abs_student_t(params.df), clip,
        )
        log_variance = [log_var]
        for _ in range(1, steps):
            log_var = min(max(params.omega + params.beta * log_var, -clip), clip)
            log_variance.append(log_var)

        return VolatilityForecast.from_variance(np.exp(log_variance), self.periods_per_year)


def calibrate_egarch(data: DataInput, periods_per_year: float = 252,
                     config: Optional[FitConfig] = None,
                     max_iter: Optional[int] = None,
                     tol: Optional[float] = None) -> CalibrationResult:
    """Calibrate EGARCH(1,1) from candles or a bare price sequence."""
    model = EgarchModel(resolve_data(data), periods_per_year, config)
    return model.fit(max_iter=max_iter, tol=tol)

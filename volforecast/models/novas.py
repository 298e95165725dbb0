"""
NoVaS: Normalizing and Variance-Stabilizing transformation.

Model-free volatility prediction in the ARCH frame over a fixed, possibly
non-contiguous lag set:

    σ²_t = a_0 + Σ_j a_j·X²_{t-lag_j}
    W_t  = r_t / σ_t

Stage 1 chooses the weights that make {W_t} look most Gaussian by
minimising D² = S² + (K - 3)² (skewness S, kurtosis K). Stage 2 refines the
weights jointly with a Student-t df by maximum likelihood so the model
reports a likelihood comparable with the GARCH family.

Constraints: a_j ≥ 0 (enforced through |·|), a_0 > 0, Σ_{j≥1} a_j < 0.9999.

Reference:
    Politis, D. N. (2003). "A Normalizing and Variance-Stabilizing
    Transformation for Financial Time Series." Recent Advances and Trends
    in Nonparametric Statistics, 335-347.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from scipy.stats import kurtosis, skew

from volforecast.evaluation.metrics import student_t_nll
from volforecast.models.base import (
    CalibrationResult,
    DataInput,
    ModelData,
    ModelType,
    Unavailable,
    VarianceModel,
    VolatilityForecast,
    clamp_steps,
    resolve_data,
)
from volforecast.utils import FitConfig, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LAGS = (1, 4, 7, 10)
# Geometric decay of the starting lag weights
DECAY = 0.7
# Smallest admissible intercept and transformed-series variance
EPSILON = 1e-15


@dataclass(frozen=True)
class NoVaSParams:
    weights: Tuple[float, ...]
    lags: Tuple[int, ...]
    persistence: float
    unconditional_variance: float
    annualized_vol: float
    d_squared: float
    df: float


class NoVaSModel(VarianceModel):
    """
    NoVaS with weights[0] as intercept and weights[j] paired with lags[j-1].

    Requires at least `max(lags) + 30` data points.
    """

    model_type = ModelType.NOVAS
    name = 'NoVaS'

    def __init__(
        self,
        data: ModelData,
        periods_per_year: float = 252,
        config: Optional[FitConfig] = None,
        lags: Sequence[int] = DEFAULT_LAGS,
    ):
        lags = tuple(int(lag) for lag in lags)
        if not lags or lags[0] < 1 or any(b <= a for a, b in zip(lags, lags[1:])):
            raise ValidationError(
                f"NoVaS lags must be strictly increasing positive integers, got {lags}"
            )
        self.lags = lags
        super().__init__(data, periods_per_year, config)

    def required_points(self) -> int:
        return self.lags[-1] + 30

    def warmup_points(self) -> int:
        return self.lags[-1]

    def _lagged_innovation(self) -> np.ndarray:
        """Matrix of X²_{t-lag_j} for t = max(lags)..n-1, one column per lag."""
        x2 = self.data.innovation
        n = len(x2)
        max_lag = self.lags[-1]
        return np.column_stack([x2[max_lag - lag:n - lag] for lag in self.lags])

    def _variance_from_weights(self, weights: np.ndarray) -> np.ndarray:
        max_lag = self.lags[-1]
        series = np.full(len(self.returns), self.data.sample_variance)
        tail = weights[0] + self._lagged_innovation() @ weights[1:]
        series[max_lag:] = np.maximum(tail, self.config.variance_floor)
        return series

    def _initial_weights(self) -> list:
        x0 = [self.data.sample_variance * 0.1]
        x0.extend(0.9 * (1 - DECAY) * DECAY ** j for j in range(len(self.lags)))
        return x0

    def _d_squared_objective(self, config: FitConfig):
        lagged = self._lagged_innovation()
        target = self.returns[self.lags[-1]:]
        penalty = config.penalty

        def d_squared(raw: np.ndarray) -> float:
            weights = np.abs(raw)
            if weights[0] < EPSILON:
                return penalty
            if weights[1:].sum() >= config.stationarity_bound:
                return penalty

            variance = weights[0] + lagged @ weights[1:]
            if np.any(variance <= EPSILON):
                return penalty

            transformed = target / np.sqrt(variance)
            if not np.all(np.isfinite(transformed)) or np.var(transformed) <= EPSILON:
                return penalty

            s = skew(transformed)
            k = kurtosis(transformed, fisher=False)
            if not (np.isfinite(s) and np.isfinite(k)):
                return penalty
            return float(s ** 2 + (k - 3) ** 2)

        return d_squared

    def _likelihood_objective(self, config: FitConfig):
        returns = self.returns
        penalty = config.penalty
        df_low, df_high = config.df_bounds

        def neg_log_likelihood(x: np.ndarray) -> float:
            weights = np.abs(x[:-1])
            df = x[-1]
            if weights[0] < EPSILON:
                return penalty
            if weights[1:].sum() >= config.stationarity_bound:
                return penalty
            if df <= df_low or df > df_high:
                return penalty

            nll = student_t_nll(returns, self._variance_from_weights(weights), df)
            return nll if np.isfinite(nll) else penalty

        return neg_log_likelihood

    def fit(self, max_iter: Optional[int] = None, tol: Optional[float] = None) -> CalibrationResult:
        """
        Two-stage calibration: D² minimisation, then Student-t MLE starting
        from the D² weights.

        `converged` reports the D² stage, which defines the model.
        """
        config = self.config.with_overrides(max_iter, tol)

        stage1 = self._optimize(self._d_squared_objective(config), self._initial_weights(), config)
        d2_weights = np.abs(stage1.x)

        stage2 = self._optimize(self._likelihood_objective(config),
                                list(d2_weights) + [5.0], config)
        weights = np.abs(stage2.x[:-1])
        df_low, df_high = config.df_bounds
        df = float(min(max(stage2.x[-1], df_low), df_high))

        persistence = float(weights[1:].sum())
        if -1 < persistence < 1:
            unconditional_variance = max(weights[0] / (1 - persistence), config.variance_floor)
        else:
            unconditional_variance = self.data.sample_variance

        params = NoVaSParams(
            weights=tuple(float(w) for w in weights),
            lags=self.lags,
            persistence=persistence,
            unconditional_variance=float(unconditional_variance),
            annualized_vol=self._annualized_vol(unconditional_variance),
            d_squared=float(stage1.fx),
            df=df,
        )

        logger.debug(f"NoVaS fit: D²={stage1.fx:.4f}, persistence={persistence:.4f}, "
                     f"iterations={stage1.iterations + stage2.iterations}")

        return CalibrationResult(
            params=params,
            diagnostics=self._diagnostics(-stage2.fx, len(weights) + 1,
                                          stage1.iterations + stage2.iterations,
                                          stage1.converged),
        )

    def fit_candidate(self) -> Union[CalibrationResult, Unavailable]:
        """Calibrate for model selection; never raises."""
        try:
            result = self.fit()
        except Exception as e:
            logger.warning(f"NoVaS unavailable: {e}")
            return Unavailable(self.model_type, f"fit failed: {e}")

        if result.params.persistence >= 1:
            logger.debug(f"NoVaS excluded: persistence {result.params.persistence:.4f} >= 1")
            return Unavailable(self.model_type, "non-stationary (persistence >= 1)")
        return result

    def variance_series(self, params: NoVaSParams) -> np.ndarray:
        """
        Sample variance for the first max(lags) points, then the weighted
        lag sum.

        Raises:
            CalibrationError: If any value is non-positive or non-finite
        """
        if tuple(params.lags) != self.lags:
            raise ValidationError(
                f"Parameter lags {params.lags} do not match model lags {self.lags}"
            )
        return self._checked_series(self._variance_from_weights(np.asarray(params.weights)))

    def forecast(self, params: NoVaSParams, steps: int = 1) -> VolatilityForecast:
        """
        One step from realized X²; later steps substitute forecast
        variances for unknown future X² (E[X²] = σ²).
        """
        steps = clamp_steps(steps)
        weights = params.weights
        history = list(self.data.innovation)

        variance = []
        for _ in range(steps):
            value = weights[0] + sum(w * history[-lag] for w, lag in zip(weights[1:], params.lags))
            value = max(value, self.config.variance_floor)
            variance.append(value)
            history.append(value)

        return VolatilityForecast.from_variance(variance, self.periods_per_year)


def calibrate_novas(data: DataInput, periods_per_year: float = 252,
                    config: Optional[FitConfig] = None,
                    lags: Sequence[int] = DEFAULT_LAGS,
                    max_iter: Optional[int] = None,
                    tol: Optional[float] = None) -> CalibrationResult:
    """Calibrate NoVaS from candles or a bare price sequence."""
    model = NoVaSModel(resolve_data(data), periods_per_year, config, lags=lags)
    return model.fit(max_iter=max_iter, tol=tol)

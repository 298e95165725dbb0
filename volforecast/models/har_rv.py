"""
HAR-RV: Heterogeneous Autoregressive model of Realized Variance.

    RV_{t+1} = β₀ + β_s·RV_short + β_m·RV_medium + β_l·RV_long + ε

where each component is the mean RV over the last s, m and l periods
(default 1, 5 and 22). RV is the per-candle Parkinson proxy for OHLC data
and the squared return otherwise.

Coefficients come from ordinary least squares (closed form, always
converges). A Student-t df is profiled afterwards with the regression
variance series held fixed, so the model reports a likelihood on the same
footing as the GARCH family.

Reference:
    Corsi, F. (2009). "A Simple Approximate Long-Memory Model of Realized
    Volatility." Journal of Financial Econometrics, 7(2), 174-196.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

from volforecast.evaluation.metrics import profile_student_t_df
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
from volforecast.utils import CalibrationError, FitConfig, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_LAGS = (1, 5, 22)


@dataclass(frozen=True)
class HarRvParams:
    beta0: float
    beta_short: float
    beta_medium: float
    beta_long: float
    persistence: float
    unconditional_variance: float
    annualized_vol: float
    r2: float
    df: float


class HarRvModel(VarianceModel):
    """
    HAR-RV calibrated by OLS (scikit-learn LinearRegression).

    Requires at least `long_lag + 30` data points.
    """

    model_type = ModelType.HAR_RV
    name = 'HAR-RV'
    NUM_PARAMS = 5  # beta0, beta_short, beta_medium, beta_long, df

    def __init__(
        self,
        data: ModelData,
        periods_per_year: float = 252,
        config: Optional[FitConfig] = None,
        short_lag: int = DEFAULT_LAGS[0],
        medium_lag: int = DEFAULT_LAGS[1],
        long_lag: int = DEFAULT_LAGS[2],
    ):
        if not (0 < short_lag < medium_lag < long_lag):
            raise ValidationError(
                f"HAR-RV lags must be strictly increasing positive integers, "
                f"got ({short_lag}, {medium_lag}, {long_lag})"
            )
        self.lags = (int(short_lag), int(medium_lag), int(long_lag))
        super().__init__(data, periods_per_year, config)

    def required_points(self) -> int:
        return self.lags[2] + 30

    def warmup_points(self) -> int:
        return self.lags[2]

    def _features(self, rv: np.ndarray) -> pd.DataFrame:
        """Rolling RV means ending at each t (NaN until a window is full)."""
        series = pd.Series(rv)
        return pd.DataFrame({
            'rv_short': series.rolling(window=self.lags[0]).mean(),
            'rv_medium': series.rolling(window=self.lags[1]).mean(),
            'rv_long': series.rolling(window=self.lags[2]).mean(),
        })

    def _variance_from_coefficients(self, beta0: float, coefs: np.ndarray) -> np.ndarray:
        """
        Sample variance for the first long_lag points, then the HAR
        prediction for point i built from RV up to i-1.
        """
        features = self._features(self.data.innovation).to_numpy()
        n = len(features)
        long_lag = self.lags[2]

        series = np.full(n, self.data.sample_variance)
        predicted = beta0 + features[long_lag - 1:n - 1] @ coefs
        series[long_lag:] = np.maximum(predicted, self.config.variance_floor)
        return series

    def fit(self, max_iter: Optional[int] = None, tol: Optional[float] = None) -> CalibrationResult:
        """
        Calibrate by OLS and profile the Student-t df.

        `max_iter` and `tol` are accepted for interface parity; the
        regression is closed form.

        Raises:
            CalibrationError: If the regression design is rank deficient
        """
        rv = self.data.innovation
        features = self._features(rv)

        # Target: next period's RV
        target = pd.Series(rv).shift(-1)
        valid_mask = ~(features.isna().any(axis=1) | target.isna())
        X = features[valid_mask].to_numpy()
        y = target[valid_mask].to_numpy()

        design = np.column_stack([np.ones(len(X)), X])
        if np.linalg.matrix_rank(design) < design.shape[1]:
            raise CalibrationError("Singular design matrix in HAR-RV regression")

        model = LinearRegression()
        model.fit(X, y)
        r2 = float(model.score(X, y))

        beta0 = float(model.intercept_)
        beta_short, beta_medium, beta_long = (float(c) for c in model.coef_)

        variance = self._checked_series(self._variance_from_coefficients(beta0, model.coef_))
        df, nll = profile_student_t_df(self.returns, variance, self.config.df_bounds)

        persistence = beta_short + beta_medium + beta_long
        if -1 < persistence < 1:
            unconditional_variance = max(beta0 / (1 - persistence), self.config.variance_floor)
        else:
            unconditional_variance = self.data.sample_variance

        params = HarRvParams(
            beta0=beta0,
            beta_short=beta_short,
            beta_medium=beta_medium,
            beta_long=beta_long,
            persistence=persistence,
            unconditional_variance=unconditional_variance,
            annualized_vol=self._annualized_vol(unconditional_variance),
            r2=r2,
            df=df,
        )

        logger.debug(f"HAR-RV fit: r2={r2:.4f}, persistence={persistence:.4f}, df={df:.2f}")

        return CalibrationResult(
            params=params,
            diagnostics=self._diagnostics(-nll, self.NUM_PARAMS, iterations=1, converged=True),
        )

    def fit_candidate(self) -> Union[CalibrationResult, Unavailable]:
        """
        Calibrate for model selection.

        Returns Unavailable instead of raising when the fit is
        non-stationary, has negative R² or fails internally.
        """
        try:
            result = self.fit()
        except Exception as e:
            logger.warning(f"HAR-RV unavailable: {e}")
            return Unavailable(self.model_type, f"fit failed: {e}")

        if result.params.persistence >= 1:
            logger.debug(f"HAR-RV excluded: persistence {result.params.persistence:.4f} >= 1")
            return Unavailable(self.model_type, "non-stationary (persistence >= 1)")
        if result.params.r2 < 0:
            logger.debug(f"HAR-RV excluded: R² {result.params.r2:.4f} < 0")
            return Unavailable(self.model_type, "negative R²")
        return result

    def variance_series(self, params: HarRvParams) -> np.ndarray:
        """
        Rebuild the conditional variance series from the coefficients.

        Raises:
            CalibrationError: If any value is non-positive or non-finite
        """
        coefs = np.array([params.beta_short, params.beta_medium, params.beta_long])
        return self._checked_series(self._variance_from_coefficients(params.beta0, coefs))

    def forecast(self, params: HarRvParams, steps: int = 1) -> VolatilityForecast:
        """
        Iterated forecast: every predicted value is appended to the RV
        history and feeds the rolling components of the next step.
        """
        steps = clamp_steps(steps)
        short_lag, medium_lag, long_lag = self.lags
        history = list(self.data.innovation[-long_lag:])

        variance = []
        for _ in range(steps):
            predicted = (params.beta0
                         + params.beta_short * np.mean(history[-short_lag:])
                         + params.beta_medium * np.mean(history[-medium_lag:])
                         + params.beta_long * np.mean(history[-long_lag:]))
            value = max(predicted, self.config.variance_floor)
            variance.append(value)
            history.append(value)

        return VolatilityForecast.from_variance(variance, self.periods_per_year)


def calibrate_har_rv(data: DataInput, periods_per_year: float = 252,
                     config: Optional[FitConfig] = None,
                     lags=DEFAULT_LAGS) -> CalibrationResult:
    """Calibrate HAR-RV from candles or a bare price sequence."""
    model = HarRvModel(resolve_data(data), periods_per_year, config, *lags)
    return model.fit()

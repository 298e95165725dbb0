"""
Shared data model and scaffold for the conditional-variance models.

A model wraps one immutable ModelData snapshot, resolved once from either
OHLC candles or a bare price sequence. Calibration returns a fresh
CalibrationResult on every call and never touches the snapshot.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Union

import numpy as np

from volforecast.candles import CandleData, candles_to_frame, validate_ohlc_data
from volforecast.estimators import ParkinsonEstimator, get_estimator
from volforecast.evaluation.metrics import calculate_aic, calculate_bic
from volforecast.optimizer import OptimizerResult, minimize
from volforecast.returns import calculate_returns, calculate_returns_from_prices, sample_variance
from volforecast.utils import CalibrationError, DataError, FitConfig

logger = logging.getLogger(__name__)


class ModelType(str, Enum):
    """Closed set of competing variance models, in selection order."""
    GARCH = 'garch'
    EGARCH = 'egarch'
    GJR_GARCH = 'gjr-garch'
    HAR_RV = 'har-rv'
    NOVAS = 'novas'


@dataclass(frozen=True, eq=False)
class ModelData:
    """
    Immutable input snapshot for a variance model.

    Attributes:
        returns: Log close-to-close returns
        rv: Per-candle Parkinson RV aligned with returns, None for bare prices
        initial_variance: Seed of the GARCH-family recursions
        n_points: Number of candles or prices supplied
        has_ohlc: Whether the snapshot came from candles
    """
    returns: np.ndarray
    rv: Optional[np.ndarray]
    initial_variance: float
    n_points: int
    has_ohlc: bool

    def __post_init__(self):
        self.returns.setflags(write=False)
        if self.rv is not None:
            self.rv.setflags(write=False)

    @classmethod
    def from_candles(cls, candles: CandleData,
                     initial_variance: str = 'yang_zhang') -> 'ModelData':
        """
        Build a snapshot from OHLC candles.

        Args:
            candles: Candle sequence or OHLC DataFrame
            initial_variance: Registered estimator used to seed recursions

        Raises:
            DataError: If prices are invalid or fewer than 2 candles are given
        """
        frame = candles_to_frame(candles)
        if len(frame) < 2:
            raise DataError(f"Need at least 2 candles, got {len(frame)}")
        validate_ohlc_data(frame)

        returns = calculate_returns(frame)
        rv = ParkinsonEstimator().calculate_series(frame, returns)
        init_var = get_estimator(initial_variance).calculate(frame)
        logger.debug(f"Initial variance ({initial_variance}, {len(frame)} candles): {init_var:.3e}")

        return cls._checked(returns, rv, init_var, len(frame), True)

    @classmethod
    def from_prices(cls, prices: Sequence[float]) -> 'ModelData':
        """
        Build a snapshot from a bare price sequence.

        Squared returns stand in for the RV proxy and the sample variance
        seeds the recursions.
        """
        prices = np.asarray(prices, dtype=float)
        if len(prices) < 2:
            raise DataError(f"Need at least 2 prices, got {len(prices)}")

        returns = calculate_returns_from_prices(prices)
        return cls._checked(returns, None, sample_variance(returns), len(prices), False)

    @classmethod
    def _checked(cls, returns, rv, init_var, n_points, has_ohlc) -> 'ModelData':
        if not (np.isfinite(init_var) and init_var > 0):
            raise DataError("Initial variance is not positive: price series has no variation")
        return cls(
            returns=np.array(returns, dtype=float),
            rv=None if rv is None else np.array(rv, dtype=float),
            initial_variance=float(init_var),
            n_points=n_points,
            has_ohlc=has_ohlc,
        )

    @property
    def innovation(self) -> np.ndarray:
        """RV proxy when available, else squared returns."""
        return self.rv if self.rv is not None else self.returns ** 2

    @property
    def sample_variance(self) -> float:
        return sample_variance(self.returns)


@dataclass(frozen=True)
class Diagnostics:
    log_likelihood: float
    aic: float
    bic: float
    iterations: int
    converged: bool
    num_params: int


@dataclass(frozen=True)
class CalibrationResult:
    """Parameters and fit diagnostics from one `fit` call."""
    params: Any
    diagnostics: Diagnostics


@dataclass(frozen=True)
class Unavailable:
    """A candidate model that cannot compete on this data."""
    model_type: ModelType
    reason: str


@dataclass(frozen=True)
class VolatilityForecast:
    """Per-step forecast of variance, volatility and annualized volatility (%)."""
    variance: np.ndarray
    volatility: np.ndarray
    annualized: np.ndarray

    @classmethod
    def from_variance(cls, variance, periods_per_year: float) -> 'VolatilityForecast':
        variance = np.asarray(variance, dtype=float)
        return cls(
            variance=variance,
            volatility=np.sqrt(variance),
            annualized=np.sqrt(variance * periods_per_year) * 100,
        )


DataInput = Union[CandleData, Sequence[float]]


class VarianceModel(ABC):
    """
    Scaffold shared by the five variance models.

    Subclasses set `model_type` and `name`, override `required_points` when
    the minimum sample depends on their lags, and implement `fit`,
    `variance_series` and `forecast`.
    """

    model_type: ModelType
    min_points: int = 50
    name: str = ''

    def __init__(
        self,
        data: ModelData,
        periods_per_year: float = 252,
        config: Optional[FitConfig] = None
    ):
        self.data = data
        self.periods_per_year = periods_per_year
        self.config = config or FitConfig()
        self._check_length(self.required_points())

    def required_points(self) -> int:
        return self.min_points

    def warmup_points(self) -> int:
        """Leading points of `variance_series` that hold a seed, not a prediction."""
        return 1

    @classmethod
    def from_candles(cls, candles: CandleData, periods_per_year: float = 252,
                     config: Optional[FitConfig] = None, **kwargs) -> 'VarianceModel':
        return cls(ModelData.from_candles(candles), periods_per_year, config, **kwargs)

    @classmethod
    def from_prices(cls, prices: Sequence[float], periods_per_year: float = 252,
                    config: Optional[FitConfig] = None, **kwargs) -> 'VarianceModel':
        return cls(ModelData.from_prices(prices), periods_per_year, config, **kwargs)

    def _check_length(self, min_required: int) -> None:
        if self.data.n_points < min_required:
            raise DataError(
                f"Need at least {min_required} data points for {self.name} estimation, "
                f"got {self.data.n_points}"
            )

    @property
    def returns(self) -> np.ndarray:
        return self.data.returns

    @abstractmethod
    def fit(self, max_iter: Optional[int] = None, tol: Optional[float] = None) -> CalibrationResult:
        """Calibrate parameters; a pure function of the snapshot and options."""

    @abstractmethod
    def variance_series(self, params) -> np.ndarray:
        """Conditional variance aligned with the returns."""

    @abstractmethod
    def forecast(self, params, steps: int = 1) -> VolatilityForecast:
        """Variance forecast for `steps` periods ahead (at least one)."""

    def fit_candidate(self) -> Union[CalibrationResult, Unavailable]:
        """Calibrate for model selection."""
        return self.fit()

    def _optimize(self, objective, x0, config: FitConfig) -> OptimizerResult:
        return minimize(objective, x0, max_iter=config.max_iter, tol=config.tol,
                        restarts=config.restarts)

    def _diagnostics(self, log_likelihood: float, num_params: int,
                     iterations: int, converged: bool) -> Diagnostics:
        n = len(self.returns)
        return Diagnostics(
            log_likelihood=log_likelihood,
            aic=calculate_aic(log_likelihood, num_params),
            bic=calculate_bic(log_likelihood, num_params, n),
            iterations=iterations,
            converged=converged,
            num_params=num_params,
        )

    def _annualized_vol(self, unconditional_variance: float) -> float:
        return float(np.sqrt(abs(unconditional_variance) * self.periods_per_year) * 100)

    def _checked_series(self, series: np.ndarray) -> np.ndarray:
        bad = ~(np.isfinite(series) & (series > 0))
        if bad.any():
            idx = int(np.argmax(bad))
            raise CalibrationError(
                f"{self.name} variance series is not positive at index {idx}: {series[idx]}"
            )
        return series


def clamp_steps(steps: int) -> int:
    return max(int(steps), 1)


def resolve_data(data: DataInput) -> ModelData:
    """
    Resolve candles or prices into a ModelData snapshot, once.

    A DataFrame or a sequence whose items carry a `close` attribute is
    treated as candles; anything else as bare prices.
    """
    if isinstance(data, ModelData):
        return data
    if hasattr(data, 'columns'):
        return ModelData.from_candles(data)
    values = list(data)
    if values and hasattr(values[0], 'close'):
        return ModelData.from_candles(values)
    return ModelData.from_prices(values)

"""
Price-band prediction, walk-forward backtesting and multi-timeframe
comparison.

Each call fits the full candidate set on the supplied candles, keeps the
QLIKE winner and converts its volatility forecast into a log-normal band
around the current price.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import pandas as pd
from tqdm import tqdm

from volforecast.candles import CandleData, candles_to_frame, validate_ohlc_data
from volforecast.evaluation.diagnostics import ljung_box
from volforecast.models import ModelData, ModelType
from volforecast.prediction.intervals import CandleInterval
from volforecast.prediction.selection import CandidateFit, select_model
from volforecast.utils import (
    DataError,
    PredictionConfig,
    Settings,
    ValidationError,
    probit,
    validate_numeric_range,
)

logger = logging.getLogger(__name__)

IntervalLike = Union[CandleInterval, str]

# Hourly-normalized sigma ratio outside [1/2, 2] flags divergence
DIVERGENCE_RATIO = 2.0


@dataclass(frozen=True)
class PredictionResult:
    current_price: float
    sigma: float
    move: float
    upper_price: float
    lower_price: float
    model_type: ModelType
    reliable: bool


@dataclass(frozen=True)
class MultiTimeframePrediction:
    primary: PredictionResult
    secondary: PredictionResult
    divergence: bool


@dataclass(frozen=True)
class BacktestReport:
    """
    Walk-forward outcome.

    `records` holds one row per test point with columns
    index, lower_price, upper_price, actual, hit, model_type.
    """
    hits: int
    total: int
    hit_rate: float
    required_percent: float
    passed: bool
    records: pd.DataFrame


def _prepare(candles: CandleData, interval: IntervalLike):
    """Validate count and prices before any fitting."""
    interval = CandleInterval.parse(interval)
    frame = candles_to_frame(candles)
    if len(frame) < interval.min_candles:
        raise DataError(
            f"Need at least {interval.min_candles} candles for {interval.value}, got {len(frame)}"
        )
    validate_ohlc_data(frame)
    return frame, interval


def _resolve_price(frame: pd.DataFrame, current_price: Optional[float]) -> float:
    if current_price is None:
        return float(frame['close'].iloc[-1])
    if not (math.isfinite(current_price) and current_price > 0):
        raise ValidationError(f"current_price must be finite and positive, got {current_price}")
    return float(current_price)


def is_reliable(best: CandidateFit, config: PredictionConfig) -> bool:
    """
    A fit is reliable when it converged, its persistence is below
    `max_persistence` and the Ljung-Box test finds no remaining
    autocorrelation in squared standardized residuals.
    """
    if not best.result.diagnostics.converged:
        return False
    if best.result.params.persistence >= config.max_persistence:
        return False

    squared_residuals = best.model.returns ** 2 / best.variance
    test = ljung_box(squared_residuals, config.ljung_box_lags)
    return test.p_value >= config.reliability_p_value


def _band(current_price: float, sigma: float, confidence: float,
          best: CandidateFit, settings: Settings) -> PredictionResult:
    z = probit(confidence)
    return PredictionResult(
        current_price=current_price,
        sigma=sigma,
        move=current_price * (math.exp(z * sigma) - 1),
        upper_price=current_price * math.exp(z * sigma),
        lower_price=current_price * math.exp(-z * sigma),
        model_type=best.model_type,
        reliable=is_reliable(best, settings.prediction),
    )


def _forecast_sigma(frame: pd.DataFrame, interval: CandleInterval, steps: int,
                    settings: Settings):
    data = ModelData.from_candles(frame)
    selection = select_model(data, interval.periods_per_year, settings.fit)
    best = selection.best
    forecast = best.model.forecast(best.result.params, steps)
    return math.sqrt(float(np.sum(forecast.variance))), best


def predict(
    candles: CandleData,
    interval: IntervalLike,
    current_price: Optional[float] = None,
    confidence: Optional[float] = None,
    settings: Optional[Settings] = None
) -> PredictionResult:
    """
    Forecast the price band for the next candle.

    Args:
        candles: Candle history, oldest first
        interval: Candle interval token or CandleInterval
        current_price: Band centre (default: last close)
        confidence: Two-sided coverage in (0, 1) (default 0.6827, ±1σ)
        settings: Calibration and prediction settings

    Returns:
        PredictionResult with band P·exp(±z·σ)

    Raises:
        DataError: Too few candles for the interval or invalid prices
        ValueError: Confidence outside (0, 1)
    """
    settings = settings or Settings()
    confidence = settings.prediction.confidence if confidence is None else confidence
    probit(confidence)

    frame, interval = _prepare(candles, interval)
    price = _resolve_price(frame, current_price)

    sigma, best = _forecast_sigma(frame, interval, 1, settings)
    result = _band(price, sigma, confidence, best, settings)

    logger.info(f"Prediction ({interval.value}): model={best.model_type.value}, "
                f"sigma={sigma:.6f}, band=[{result.lower_price:.4f}, {result.upper_price:.4f}], "
                f"reliable={result.reliable}")
    return result


def predict_range(
    candles: CandleData,
    interval: IntervalLike,
    steps: int,
    current_price: Optional[float] = None,
    confidence: Optional[float] = None,
    settings: Optional[Settings] = None
) -> PredictionResult:
    """
    Forecast the price band over the next `steps` candles.

    Per-step variances are summed: σ_total = √(σ₁² + ... + σₙ²).

    Raises:
        ValidationError: If steps is not a positive integer
        DataError: Too few candles for the interval or invalid prices
    """
    if int(steps) != steps or steps < 1:
        raise ValidationError(f"steps must be a positive integer, got {steps}")

    settings = settings or Settings()
    confidence = settings.prediction.confidence if confidence is None else confidence
    probit(confidence)

    frame, interval = _prepare(candles, interval)
    price = _resolve_price(frame, current_price)

    sigma, best = _forecast_sigma(frame, interval, int(steps), settings)
    result = _band(price, sigma, confidence, best, settings)

    logger.info(f"Range prediction ({interval.value}, {steps} steps): "
                f"model={best.model_type.value}, sigma={sigma:.6f}")
    return result


def backtest_report(
    candles: CandleData,
    interval: IntervalLike,
    confidence: Optional[float] = None,
    required_percent: float = 68,
    settings: Optional[Settings] = None
) -> BacktestReport:
    """
    Walk-forward validation of `predict`.

    The trailing window is max(interval minimum, ⌊ratio·n⌋) candles. For each
    i in [window, n-2] the band is predicted from candles[i-window : i+1]
    and scored against close[i+1].

    Returns:
        BacktestReport

    Raises:
        DataError: If the history leaves no candle after the window to score
    """
    settings = settings or Settings()
    config = settings.prediction
    confidence = config.confidence if confidence is None else confidence
    probit(confidence)
    ratio = validate_numeric_range(config.backtest_window_ratio, 0.0, 1.0,
                                   'backtest_window_ratio')

    interval = CandleInterval.parse(interval)
    frame = candles_to_frame(candles)
    validate_ohlc_data(frame)
    n = len(frame)
    window = max(interval.min_candles, int(math.floor(n * ratio)))
    required = interval.min_candles + 2
    if n < required:
        raise DataError(
            f"Need at least {required} candles for a {interval.value} backtest, got {n}"
        )
    if n - 1 <= window:
        raise DataError(
            f"Backtest window of {window} candles leaves no test point in {n} candles"
        )
    closes = frame['close'].to_numpy()

    rows = []
    for i in tqdm(range(window, n - 1), desc="Backtest", disable=not config.show_progress):
        trailing = frame.iloc[i - window:i + 1].reset_index(drop=True)
        sigma, best = _forecast_sigma(trailing, interval, 1, settings)
        band = _band(float(closes[i]), sigma, confidence, best, settings)
        actual = float(closes[i + 1])
        rows.append({
            'index': i + 1,
            'lower_price': band.lower_price,
            'upper_price': band.upper_price,
            'actual': actual,
            'hit': band.lower_price <= actual <= band.upper_price,
            'model_type': best.model_type.value,
        })

    records = pd.DataFrame(
        rows, columns=['index', 'lower_price', 'upper_price', 'actual', 'hit', 'model_type']
    )
    total = len(records)
    hits = int(records['hit'].sum())
    hit_rate = hits / total
    passed = hit_rate * 100 >= required_percent

    logger.info(f"Backtest ({interval.value}): window={window}, hits={hits}/{total} "
                f"({hit_rate * 100:.1f}%), required={required_percent}%, passed={passed}")

    return BacktestReport(
        hits=hits,
        total=total,
        hit_rate=hit_rate,
        required_percent=required_percent,
        passed=passed,
        records=records,
    )


def backtest(
    candles: CandleData,
    interval: IntervalLike,
    confidence: Optional[float] = None,
    required_percent: float = 68,
    settings: Optional[Settings] = None
) -> bool:
    """
    True when the walk-forward hit rate reaches `required_percent`.

    Thresholds ≤ 0 pass and ≥ 100 fail without fitting anything.
    """
    if required_percent <= 0:
        return True
    if required_percent >= 100:
        return False
    return backtest_report(candles, interval, confidence, required_percent, settings).passed


def predict_multi_timeframe(
    primary_candles: CandleData,
    primary_interval: IntervalLike,
    secondary_candles: CandleData,
    secondary_interval: IntervalLike,
    current_price: Optional[float] = None,
    settings: Optional[Settings] = None
) -> MultiTimeframePrediction:
    """
    Compare volatility forecasts across two timeframes.

    Both sigmas are normalized to per-hour, σ·√(60/minutes); divergence is
    flagged when one timeframe sees more than twice the other's volatility.
    """
    primary_interval = CandleInterval.parse(primary_interval)
    secondary_interval = CandleInterval.parse(secondary_interval)

    primary = predict(primary_candles, primary_interval, current_price, settings=settings)
    secondary = predict(secondary_candles, secondary_interval, current_price, settings=settings)

    primary_hourly = primary.sigma * math.sqrt(60 / primary_interval.minutes)
    secondary_hourly = secondary.sigma * math.sqrt(60 / secondary_interval.minutes)

    ratio = primary_hourly / secondary_hourly
    divergence = ratio > DIVERGENCE_RATIO or ratio < 1 / DIVERGENCE_RATIO

    return MultiTimeframePrediction(primary=primary, secondary=secondary, divergence=divergence)

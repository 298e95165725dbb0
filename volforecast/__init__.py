"""
volforecast - short-horizon volatility forecasting from OHLC candles.

Five competing conditional-variance models (GARCH, EGARCH, GJR-GARCH,
HAR-RV, NoVaS) are calibrated on the same data, the best one by QLIKE is
selected, and its forecast is turned into a confidence-banded price range.
"""

from volforecast.candles import Candle, candles_to_frame
from volforecast.models import (
    CalibrationResult,
    ModelData,
    ModelType,
    Unavailable,
    VolatilityForecast,
    calibrate_egarch,
    calibrate_garch,
    calibrate_gjr_garch,
    calibrate_har_rv,
    calibrate_novas,
)
from volforecast.prediction import (
    CandleInterval,
    PredictionResult,
    backtest,
    backtest_report,
    predict,
    predict_multi_timeframe,
    predict_range,
)
from volforecast.returns import calculate_returns, calculate_returns_from_prices
from volforecast.utils import (
    CalibrationError,
    ConfigError,
    DataError,
    ValidationError,
    load_settings,
    probit,
    setup_logging,
)

__version__ = '0.1.0'

__all__ = [
    'Candle',
    'candles_to_frame',
    'CalibrationResult',
    'ModelData',
    'ModelType',
    'Unavailable',
    'VolatilityForecast',
    'calibrate_egarch',
    'calibrate_garch',
    'calibrate_gjr_garch',
    'calibrate_har_rv',
    'calibrate_novas',
    'CandleInterval',
    'PredictionResult',
    'backtest',
    'backtest_report',
    'predict',
    'predict_multi_timeframe',
    'predict_range',
    'calculate_returns',
    'calculate_returns_from_prices',
    'CalibrationError',
    'ConfigError',
    'DataError',
    'ValidationError',
    'load_settings',
    'probit',
    'setup_logging',
]

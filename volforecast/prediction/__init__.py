"""
Model selection, price-band prediction and walk-forward backtesting.
"""

from volforecast.prediction.intervals import CandleInterval
from volforecast.prediction.selection import (
    CandidateFit,
    SelectionResult,
    select_best,
    select_model,
    selection_score,
)
from volforecast.prediction.predictions import (
    BacktestReport,
    MultiTimeframePrediction,
    PredictionResult,
    backtest,
    backtest_report,
    is_reliable,
    predict,
    predict_multi_timeframe,
    predict_range,
)

__all__ = [
    'CandleInterval',
    'CandidateFit',
    'SelectionResult',
    'select_best',
    'select_model',
    'selection_score',
    'BacktestReport',
    'MultiTimeframePrediction',
    'PredictionResult',
    'backtest',
    'backtest_report',
    'is_reliable',
    'predict',
    'predict_multi_timeframe',
    'predict_range',
]

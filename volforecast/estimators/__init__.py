"""
Variance proxy estimators.

This package contains range-based estimators used to seed and drive the
conditional-variance models:
- Garman-Klass: whole-sample OHLC estimator
- Parkinson: per-candle high/low range proxy
- Yang-Zhang: overnight + open-close + Rogers-Satchell estimator
"""

from volforecast.estimators.base import BaseEstimator as VarianceEstimator
from volforecast.estimators.garman_klass import GarmanKlassEstimator, garman_klass_variance
from volforecast.estimators.parkinson import ParkinsonEstimator, parkinson_per_candle
from volforecast.estimators.yang_zhang import YangZhangEstimator, yang_zhang_variance
from volforecast.estimators.factory import (
    get_estimator,
    list_estimators,
    register_estimator,
    ESTIMATORS,
)

__all__ = [
    'VarianceEstimator',
    'GarmanKlassEstimator',
    'ParkinsonEstimator',
    'YangZhangEstimator',
    'garman_klass_variance',
    'parkinson_per_candle',
    'yang_zhang_variance',
    'get_estimator',
    'list_estimators',
    'register_estimator',
    'ESTIMATORS',
]

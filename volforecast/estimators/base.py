"""
Base estimator class for whole-sample variance estimators.

All variance-proxy estimators inherit from this abstract base class.
"""

from abc import ABC, abstractmethod

import pandas as pd

from volforecast.candles import CandleData, OHLC_COLUMNS, candles_to_frame, validate_ohlc_data
from volforecast.utils import DataError


class BaseEstimator(ABC):
    """
    Abstract base class for variance estimators.

    All estimators must implement:
    - calculate(): Compute the per-period variance over the whole sample
    - validate_inputs(): Validate input data
    """

    required_columns = OHLC_COLUMNS

    @abstractmethod
    def calculate(self, data: pd.DataFrame) -> float:
        """
        Calculate the variance estimate.

        Args:
            data: Validated DataFrame with OHLC columns

        Returns:
            Per-period variance (not annualized)
        """
        pass

    def validate_inputs(self, data: pd.DataFrame) -> None:
        """
        Validate input data.

        Args:
            data: DataFrame to validate

        Raises:
            DataError: If data is empty or holds invalid prices
        """
        if data.empty:
            raise DataError("Input data is empty")

        missing_cols = [col for col in self.required_columns if col not in data.columns]
        if missing_cols:
            raise DataError(f"Data must contain columns: {missing_cols}")

        validate_ohlc_data(data)

    def compute(self, candles: CandleData) -> float:
        """
        Main interface: convert, validate and calculate.

        Args:
            candles: Candle sequence or OHLC DataFrame

        Returns:
            Per-period variance estimate
        """
        data = candles_to_frame(candles)
        self.validate_inputs(data)
        return self.calculate(data)

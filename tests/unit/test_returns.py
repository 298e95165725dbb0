"""
Unit tests for returns calculation module.
"""

import numpy as np
import pandas as pd
import pytest

from volforecast.candles import Candle
from volforecast.returns import (
    calculate_ranges,
    calculate_returns,
    calculate_returns_from_prices,
    sample_variance,
    sample_variance_with_mean,
)
from volforecast.utils import DataError


def _candles(closes):
    return [Candle(open=c, high=c * 1.01, low=c * 0.99, close=c) for c in closes]


class TestCalculateReturns:
    """Tests for calculate_returns function."""

    def test_log_returns_basic(self):
        """Test basic log returns calculation."""
        returns = calculate_returns(_candles([100, 105, 102, 108]))

        assert len(returns) == 3
        # Manual calculation: ln(105/100) ≈ 0.04879
        assert abs(returns[0] - np.log(105 / 100)) < 1e-12
        assert abs(returns[2] - np.log(108 / 102)) < 1e-12

    def test_accepts_dataframe(self):
        """Test that an OHLC DataFrame gives the same returns."""
        df = pd.DataFrame({
            'open': [100, 105, 102],
            'high': [101, 106, 103],
            'low': [99, 104, 101],
            'close': [100, 105, 102],
        })
        np.testing.assert_allclose(calculate_returns(df),
                                   np.log([105 / 100, 102 / 105]))

    def test_zero_close_rejected(self):
        """Test that a zero close raises with its index."""
        candles = _candles([100, 105, 102])
        candles[2] = Candle(open=102, high=103, low=101, close=0)

        with pytest.raises(DataError, match="Invalid close price at index 2"):
            calculate_returns(candles)

    def test_nan_close_rejected(self):
        """Test that a NaN close raises."""
        candles = _candles([100, 105])
        candles[1] = Candle(open=105, high=106, low=104, close=float('nan'))

        with pytest.raises(DataError, match="Invalid close price"):
            calculate_returns(candles)


class TestCalculateReturnsFromPrices:
    """Tests for calculate_returns_from_prices function."""

    def test_single_return_round_trip(self):
        """Test [100, 110] gives exactly ln(1.1)."""
        returns = calculate_returns_from_prices([100, 110])

        assert len(returns) == 1
        assert returns[0] == pytest.approx(np.log(1.1), abs=1e-15)

    @pytest.mark.parametrize("bad", [0.0, -1.0, np.nan, np.inf])
    def test_invalid_price_rejected(self, bad):
        """Test rejection of non-positive and non-finite prices."""
        with pytest.raises(DataError, match="Invalid price at index 2"):
            calculate_returns_from_prices([100, 101, bad, 103])

    def test_invalid_first_price_reports_first_return(self):
        """Test that a bad first price is reported at return index 1."""
        with pytest.raises(DataError, match="Invalid price at index 1"):
            calculate_returns_from_prices([0, 101, 102])

    def test_empty_and_single(self):
        """Test that fewer than two prices give no returns."""
        assert len(calculate_returns_from_prices([])) == 0
        assert len(calculate_returns_from_prices([100])) == 0


class TestSampleVariance:
    """Tests for the sample variance helpers."""

    def test_zero_mean(self):
        """Test mean-zero variance is mean of squares."""
        assert sample_variance(np.array([0.01, -0.02, 0.03])) == pytest.approx(
            (0.0001 + 0.0004 + 0.0009) / 3
        )

    def test_with_mean(self):
        """Test mean-adjusted variance uses n-1."""
        data = np.array([1.0, 2.0, 3.0, 4.0])
        assert sample_variance_with_mean(data) == pytest.approx(np.var(data, ddof=1))
        assert sample_variance_with_mean(data) == pytest.approx(5 / 3)


class TestCalculateRanges:
    """Tests for calculate_ranges function."""

    def test_basic_ranges(self):
        """Test basic range calculation."""
        df = pd.DataFrame({
            'open': [105, 110, 107],
            'high': [110, 115, 112],
            'low': [100, 105, 102],
            'close': [108, 112, 109],
        })

        ranges = calculate_ranges(df)

        expected_hl = np.log(110 / 100)
        assert abs(ranges['high_low_ratio'].iloc[0] - expected_hl) < 1e-12

        assert 'high_close_ratio' in ranges.columns
        assert 'high_open_ratio' in ranges.columns
        assert 'low_close_ratio' in ranges.columns
        assert 'low_open_ratio' in ranges.columns

    def test_overnight_ratio(self):
        """Test overnight gap uses the previous close."""
        df = pd.DataFrame({
            'open': [105, 110],
            'high': [110, 115],
            'low': [100, 105],
            'close': [108, 112],
        })

        ranges = calculate_ranges(df)

        assert pd.isna(ranges['overnight_ratio'].iloc[0])
        assert abs(ranges['overnight_ratio'].iloc[1] - np.log(110 / 108)) < 1e-12

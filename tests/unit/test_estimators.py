"""
Unit tests for variance proxy estimators.
"""

import numpy as np
import pandas as pd
import pytest

from volforecast.candles import Candle
from volforecast.estimators import (
    GarmanKlassEstimator,
    ParkinsonEstimator,
    YangZhangEstimator,
    garman_klass_variance,
    get_estimator,
    list_estimators,
    parkinson_per_candle,
    register_estimator,
    yang_zhang_variance,
)
from volforecast.returns import calculate_returns
from volforecast.utils import DataError


class TestGarmanKlass:
    """Tests for Garman-Klass estimator."""

    def test_single_candle_formula(self):
        """Test the per-candle formula on one bar."""
        candle = Candle(open=100, high=110, low=95, close=105)
        expected = (0.5 * np.log(110 / 95) ** 2
                    - (2 * np.log(2) - 1) * np.log(105 / 100) ** 2)

        assert garman_klass_variance([candle]) == pytest.approx(expected)

    def test_mean_over_candles(self):
        """Test that the estimate averages the per-candle values."""
        a = Candle(open=100, high=110, low=95, close=105)
        b = Candle(open=105, high=108, low=101, close=102)

        expected = (garman_klass_variance([a]) + garman_klass_variance([b])) / 2
        assert garman_klass_variance([a, b]) == pytest.approx(expected)

    def test_invalid_price(self):
        """Test rejection of a non-positive high."""
        with pytest.raises(DataError, match="Invalid high price"):
            garman_klass_variance([Candle(open=100, high=0, low=95, close=105)])

    def test_empty(self):
        """Test error handling for empty input."""
        with pytest.raises(DataError, match="empty"):
            GarmanKlassEstimator().compute([])


class TestYangZhang:
    """Tests for Yang-Zhang estimator."""

    def test_positive(self, candles):
        """Test a positive estimate on realistic candles."""
        assert yang_zhang_variance(candles) > 0

    def test_single_candle_falls_back_to_garman_klass(self):
        """Test n=1 falls back to Garman-Klass."""
        candle = [Candle(open=100, high=105, low=97, close=102)]

        assert yang_zhang_variance(candle) == garman_klass_variance(candle)

    def test_overnight_gaps_increase_variance(self):
        """Test that gaps between close and next open add variance."""
        np.random.seed(42)
        closes = 100 * np.exp(np.cumsum(np.random.randn(60) * 0.01))
        no_gap, with_gap = [], []
        prev = 100.0
        for i, c in enumerate(closes):
            hi, lo = max(prev, c) * 1.002, min(prev, c) * 0.998
            no_gap.append(Candle(open=prev, high=hi, low=lo, close=c))
            gap_open = prev * (1.02 if i % 2 else 0.98)
            with_gap.append(Candle(open=gap_open, high=max(gap_open, c) * 1.002,
                                   low=min(gap_open, c) * 0.998, close=c))
            prev = c

        assert yang_zhang_variance(with_gap) > yang_zhang_variance(no_gap)

    def test_volume_invariance(self, candles):
        """Test that volume does not affect the estimate."""
        loud = [Candle(c.open, c.high, c.low, c.close, volume=1e9) for c in candles]
        quiet = [Candle(c.open, c.high, c.low, c.close, volume=0.0) for c in candles]

        assert yang_zhang_variance(loud) == yang_zhang_variance(quiet)

    def test_invalid_price(self, candles):
        """Test rejection of an infinite open."""
        bad = list(candles)
        c = bad[5]
        bad[5] = Candle(open=float('inf'), high=c.high, low=c.low, close=c.close)

        with pytest.raises(DataError, match="Invalid open price at index 5"):
            yang_zhang_variance(bad)


class TestParkinsonPerCandle:
    """Tests for per-candle Parkinson RV."""

    def test_alignment_and_formula(self, candles):
        """Test output aligns with returns and matches the formula."""
        returns = calculate_returns(candles)
        rv = parkinson_per_candle(candles, returns)

        assert len(rv) == len(returns)
        c = candles[1]
        assert rv[0] == pytest.approx(np.log(c.high / c.low) ** 2 / (4 * np.log(2)))

    def test_zero_range_falls_back_to_squared_return(self):
        """Test H == L uses the squared return of that period."""
        candles = [
            Candle(open=100, high=101, low=99, close=100),
            Candle(open=102, high=102, low=102, close=102),
        ]
        returns = calculate_returns(candles)
        rv = parkinson_per_candle(candles, returns)

        assert rv[0] == pytest.approx(np.log(102 / 100) ** 2)
        assert rv[0] > 0

    def test_length_mismatch(self, candles):
        """Test misaligned returns are rejected."""
        with pytest.raises(DataError, match="does not match"):
            parkinson_per_candle(candles, np.zeros(3))

    def test_volume_invariance(self, candles):
        """Test that volume does not affect the proxy."""
        returns = calculate_returns(candles)
        loud = [Candle(c.open, c.high, c.low, c.close, volume=1e9) for c in candles]

        np.testing.assert_array_equal(parkinson_per_candle(loud, returns),
                                      parkinson_per_candle(candles, returns))

    def test_whole_sample_mean(self, candles):
        """Test the whole-sample estimate is the mean per-candle RV."""
        returns = calculate_returns(candles)
        rv = parkinson_per_candle(candles, returns)

        assert ParkinsonEstimator().compute(candles) == pytest.approx(rv.mean())


class TestEstimatorFactory:
    """Tests for the estimator registry."""

    def test_list_estimators(self):
        """Test registered names."""
        names = list_estimators()
        assert 'garman_klass' in names
        assert 'yang_zhang' in names

    def test_get_estimator(self):
        """Test lookup is case and whitespace insensitive."""
        assert isinstance(get_estimator(' Yang_Zhang '), YangZhangEstimator)
        assert isinstance(get_estimator('garman_klass'), GarmanKlassEstimator)

    def test_unknown_estimator(self):
        """Test error handling for unknown names."""
        with pytest.raises(ValueError, match="Unknown estimator"):
            get_estimator('close_to_close')

    def test_register_requires_subclass(self):
        """Test that only estimator classes can be registered."""
        with pytest.raises(TypeError):
            register_estimator('bogus', dict)

    def test_register_duplicate(self):
        """Test duplicate registration without override."""
        with pytest.raises(ValueError, match="already registered"):
            register_estimator('yang_zhang', YangZhangEstimator)

    def test_dataframe_input(self, candles):
        """Test estimators accept an OHLC DataFrame."""
        df = pd.DataFrame([
            {'open': c.open, 'high': c.high, 'low': c.low, 'close': c.close}
            for c in candles
        ])
        assert get_estimator('yang_zhang').compute(df) == pytest.approx(
            yang_zhang_variance(candles)
        )

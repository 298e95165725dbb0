"""
Unit tests for the shared model data snapshot and the model registry.
"""

from dataclasses import asdict

import numpy as np
import pandas as pd
import pytest

from volforecast.candles import Candle
from volforecast.models import (
    EgarchModel,
    GarchModel,
    GjrGarchModel,
    HarRvModel,
    ModelData,
    ModelType,
    NoVaSModel,
    VolatilityForecast,
    get_model,
    list_models,
    resolve_data,
)
from volforecast.estimators import parkinson_per_candle
from volforecast.returns import calculate_returns
from volforecast.utils import DataError


class TestModelData:
    """Tests for ModelData snapshots."""

    def test_from_candles(self, candles):
        """Test returns and RV are aligned and the seed is positive."""
        data = ModelData.from_candles(candles)

        assert data.has_ohlc
        assert data.n_points == 200
        assert len(data.returns) == 199
        assert len(data.rv) == 199
        assert data.initial_variance > 0
        np.testing.assert_allclose(data.returns, calculate_returns(candles))
        np.testing.assert_allclose(data.rv, parkinson_per_candle(candles, data.returns))

    def test_innovation_is_rv_for_candles(self, candles):
        """Test the innovation series is the Parkinson RV."""
        data = ModelData.from_candles(candles)
        np.testing.assert_array_equal(data.innovation, data.rv)

    def test_from_prices(self, prices):
        """Test bare prices use squared returns and the sample variance."""
        data = ModelData.from_prices(prices)

        assert not data.has_ohlc
        assert data.rv is None
        np.testing.assert_allclose(data.innovation, data.returns ** 2)
        assert data.initial_variance == pytest.approx(np.mean(data.returns ** 2))

    def test_arrays_read_only(self, candles):
        """Test the snapshot cannot be modified in place."""
        data = ModelData.from_candles(candles)

        with pytest.raises(ValueError):
            data.returns[0] = 1.0
        with pytest.raises(ValueError):
            data.rv[0] = 1.0

    def test_does_not_alias_input(self):
        """Test the snapshot copies caller arrays."""
        prices = np.array([100.0, 101.0, 99.0, 102.0])
        data = ModelData.from_prices(prices)
        prices[0] = 50.0

        assert data.returns[0] == pytest.approx(np.log(101 / 100))

    def test_constant_prices(self):
        """Test zero variation is rejected."""
        with pytest.raises(DataError, match="not positive"):
            ModelData.from_prices([100.0] * 60)

    def test_too_short(self, candles):
        """Test a single candle or price is rejected."""
        with pytest.raises(DataError, match="at least 2"):
            ModelData.from_candles(candles[:1])
        with pytest.raises(DataError, match="at least 2"):
            ModelData.from_prices([100.0])

    def test_invalid_candle(self, candles):
        """Test invalid OHLC values are rejected before fitting."""
        broken = list(candles)
        broken[10] = Candle(open=100.0, high=101.0, low=-1.0, close=100.0)

        with pytest.raises(DataError, match="Invalid low price at index 10"):
            ModelData.from_candles(broken)


class TestResolveData:
    """Tests for resolve_data function."""

    def test_candle_sequence(self, candles):
        assert resolve_data(candles).has_ohlc

    def test_dataframe(self, candles):
        frame = pd.DataFrame([asdict(c) for c in candles])
        assert resolve_data(frame).has_ohlc

    def test_prices(self, prices):
        assert not resolve_data(prices).has_ohlc
        assert not resolve_data(np.asarray(prices)).has_ohlc

    def test_passthrough(self, prices):
        data = ModelData.from_prices(prices)
        assert resolve_data(data) is data


class TestMinimumData:
    """Tests for per-model minimum sample sizes."""

    @pytest.mark.parametrize("model_class,required", [
        (GarchModel, 50),
        (EgarchModel, 50),
        (GjrGarchModel, 50),
        (HarRvModel, 52),
        (NoVaSModel, 40),
    ])
    def test_one_short(self, candle_factory, model_class, required):
        """Test one point below the minimum raises a descriptive error."""
        with pytest.raises(DataError, match=f"at least {required} data points"):
            model_class.from_candles(candle_factory(n=required - 1))

    @pytest.mark.parametrize("model_class,required", [
        (GarchModel, 50),
        (HarRvModel, 52),
        (NoVaSModel, 40),
    ])
    def test_exact_minimum(self, candle_factory, model_class, required):
        """Test the minimum itself is accepted."""
        model = model_class.from_candles(candle_factory(n=required))
        assert model.data.n_points == required


class TestVolatilityForecast:
    """Tests for VolatilityForecast."""

    def test_from_variance(self):
        forecast = VolatilityForecast.from_variance([1e-4, 4e-4], 252)

        np.testing.assert_allclose(forecast.volatility, [0.01, 0.02])
        np.testing.assert_allclose(forecast.annualized, [0.01 * np.sqrt(252) * 100,
                                                         0.02 * np.sqrt(252) * 100])


class TestModelFactory:
    """Tests for the model registry."""

    def test_list_models(self):
        """Test selection order."""
        assert list_models() == ['garch', 'egarch', 'gjr-garch', 'har-rv', 'novas']

    @pytest.mark.parametrize("key,model_class", [
        ('garch', GarchModel),
        ('egarch', EgarchModel),
        ('gjr-garch', GjrGarchModel),
        ('har-rv', HarRvModel),
        (ModelType.NOVAS, NoVaSModel),
    ])
    def test_get_model(self, candles, key, model_class):
        """Test lookup by string and by enum."""
        model = get_model(key, ModelData.from_candles(candles), periods_per_year=8760)

        assert isinstance(model, model_class)
        assert model.periods_per_year == 8760

    def test_unknown(self, candles):
        """Test error handling for an unknown model."""
        with pytest.raises(ValueError, match="Unknown model"):
            get_model('figarch', ModelData.from_candles(candles))

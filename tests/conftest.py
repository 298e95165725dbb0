"""
Shared synthetic data generators for the test suite.
"""

from typing import Optional

import numpy as np
import pytest

from volforecast.candles import Candle


def _bar(rng, log_open: float, ret: float, sigma: float):
    """OHLC for one bar whose log price moves by `ret` with diffusion vol `sigma`."""
    # Maximum and minimum of a Brownian bridge from 0 to ret
    up = (ret + np.sqrt(ret ** 2 - 2 * sigma ** 2 * np.log(rng.uniform()))) / 2
    down = (ret - np.sqrt(ret ** 2 - 2 * sigma ** 2 * np.log(rng.uniform()))) / 2
    return (np.exp(log_open), np.exp(log_open + up),
            np.exp(log_open + down), np.exp(log_open + ret))


def make_candles(n: int = 200, sigma: float = 0.01, seed: int = 42,
                 start: float = 100.0, df: Optional[float] = None):
    """
    Constant-volatility candles with realistic high/low ranges.

    With `df` set, returns are unit-variance Student-t draws scaled by sigma.
    """
    rng = np.random.default_rng(seed)
    candles = []
    log_price = np.log(start)
    for t in range(n):
        if df is None:
            ret = sigma * rng.standard_normal()
        else:
            ret = sigma * rng.standard_t(df) * np.sqrt((df - 2) / df)
        o, h, l, c = _bar(rng, log_price, ret, sigma)
        candles.append(Candle(open=o, high=h, low=l, close=c, volume=1000.0, timestamp=t))
        log_price += ret
    return candles


def make_garch_candles(n: int = 200, omega: float = 2e-6, alpha: float = 0.1,
                       beta: float = 0.85, seed: int = 42, start: float = 100.0):
    """Candles whose per-bar variance follows a GARCH(1,1) recursion."""
    rng = np.random.default_rng(seed)
    candles = []
    log_price = np.log(start)
    variance = omega / (1 - alpha - beta)
    for t in range(n):
        sigma = np.sqrt(variance)
        ret = sigma * rng.standard_normal()
        o, h, l, c = _bar(rng, log_price, ret, sigma)
        candles.append(Candle(open=o, high=h, low=l, close=c, volume=1000.0, timestamp=t))
        log_price += ret
        variance = omega + alpha * ret ** 2 + beta * variance
    return candles


def make_process_candles(n: int, update, initial_variance: float = 4e-5, seed: int = 42,
                         start: float = 100.0, burn_in: int = 100):
    """
    Candles from a variance process driven by earlier bars.

    `update(returns, rv, variances)` gives the next bar's variance from the
    history so far, most recent last. rv holds each bar's Parkinson RV. The
    first `burn_in` bars are generated and discarded.
    """
    rng = np.random.default_rng(seed)
    returns, rv, variances = [], [], []
    candles = []
    log_price = np.log(start)
    variance = initial_variance
    for t in range(n + burn_in):
        sigma = np.sqrt(variance)
        ret = sigma * rng.standard_normal()
        o, h, l, c = _bar(rng, log_price, ret, sigma)
        if t >= burn_in:
            candles.append(Candle(open=o, high=h, low=l, close=c, volume=1000.0,
                                  timestamp=t - burn_in))
        log_price += ret
        returns.append(ret)
        rv.append(np.log(h / l) ** 2 / (4 * np.log(2)))
        variances.append(variance)
        variance = max(update(returns, rv, variances), 1e-8)
    return candles


def make_prices(n: int = 200, sigma: float = 0.01, seed: int = 42, start: float = 100.0):
    """Geometric random-walk closes."""
    rng = np.random.default_rng(seed)
    return list(start * np.exp(np.cumsum(sigma * rng.standard_normal(n))))


@pytest.fixture
def candle_factory():
    return make_candles


@pytest.fixture
def garch_candle_factory():
    return make_garch_candles


@pytest.fixture
def candles():
    return make_candles()


@pytest.fixture
def garch_candles():
    return make_garch_candles()


@pytest.fixture
def prices():
    return make_prices()


@pytest.fixture
def process_candle_factory():
    return make_process_candles


@pytest.fixture
def price_factory():
    return make_prices

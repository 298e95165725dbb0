"""
Candle interval tokens and their calendar constants.
"""

from enum import Enum
from typing import Union

from volforecast.utils import ValidationError


class CandleInterval(str, Enum):
    M1 = '1m'
    M3 = '3m'
    M5 = '5m'
    M15 = '15m'
    M30 = '30m'
    H1 = '1h'
    H2 = '2h'
    H4 = '4h'
    H6 = '6h'
    H8 = '8h'

    @classmethod
    def parse(cls, value: Union['CandleInterval', str]) -> 'CandleInterval':
        """
        Accept an enum member or its token ('1m' ... '8h').

        Raises:
            ValidationError: If the token is unknown
        """
        try:
            return cls(value)
        except ValueError:
            available = ', '.join(member.value for member in cls)
            raise ValidationError(
                f"Unknown interval '{value}'. Available intervals: {available}"
            ) from None

    @property
    def minutes(self) -> int:
        return INTERVAL_MINUTES[self]

    @property
    def periods_per_year(self) -> int:
        return PERIODS_PER_YEAR[self]

    @property
    def min_candles(self) -> int:
        """Minimum history before any model is fitted; finer intervals need more."""
        return MIN_CANDLES[self]


INTERVAL_MINUTES = {
    CandleInterval.M1: 1,
    CandleInterval.M3: 3,
    CandleInterval.M5: 5,
    CandleInterval.M15: 15,
    CandleInterval.M30: 30,
    CandleInterval.H1: 60,
    CandleInterval.H2: 120,
    CandleInterval.H4: 240,
    CandleInterval.H6: 360,
    CandleInterval.H8: 480,
}

PERIODS_PER_YEAR = {
    CandleInterval.M1: 525_600,
    CandleInterval.M3: 175_200,
    CandleInterval.M5: 105_120,
    CandleInterval.M15: 35_040,
    CandleInterval.M30: 17_520,
    CandleInterval.H1: 8_760,
    CandleInterval.H2: 4_380,
    CandleInterval.H4: 2_190,
    CandleInterval.H6: 1_460,
    CandleInterval.H8: 1_095,
}

MIN_CANDLES = {
    CandleInterval.M1: 500,
    CandleInterval.M3: 500,
    CandleInterval.M5: 500,
    CandleInterval.M15: 300,
    CandleInterval.M30: 200,
    CandleInterval.H1: 200,
    CandleInterval.H2: 200,
    CandleInterval.H4: 200,
    CandleInterval.H6: 150,
    CandleInterval.H8: 150,
}

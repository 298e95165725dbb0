"""
Conditional-variance models.

- GARCH(1,1), EGARCH(1,1), GJR-GARCH(1,1): Student-t maximum likelihood
- HAR-RV: OLS on multi-horizon realized variance
- NoVaS: normalizing transformation over a fixed lag set
"""

from volforecast.models.base import (
    CalibrationResult,
    Diagnostics,
    ModelData,
    ModelType,
    Unavailable,
    VarianceModel,
    VolatilityForecast,
    resolve_data,
)
from volforecast.models.garch import GarchModel, GarchParams, calibrate_garch
from volforecast.models.egarch import EgarchModel, EgarchParams, calibrate_egarch
from volforecast.models.gjr_garch import GjrGarchModel, GjrGarchParams, calibrate_gjr_garch
from volforecast.models.har_rv import HarRvModel, HarRvParams, calibrate_har_rv
from volforecast.models.novas import NoVaSModel, NoVaSParams, calibrate_novas
from volforecast.models.factory import MODELS, get_model, list_models

__all__ = [
    'CalibrationResult',
    'Diagnostics',
    'ModelData',
    'ModelType',
    'Unavailable',
    'VarianceModel',
    'VolatilityForecast',
    'resolve_data',
    'GarchModel',
    'GarchParams',
    'calibrate_garch',
    'EgarchModel',
    'EgarchParams',
    'calibrate_egarch',
    'GjrGarchModel',
    'GjrGarchParams',
    'calibrate_gjr_garch',
    'HarRvModel',
    'HarRvParams',
    'calibrate_har_rv',
    'NoVaSModel',
    'NoVaSParams',
    'calibrate_novas',
    'MODELS',
    'get_model',
    'list_models',
]

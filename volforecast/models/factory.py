"""
Registry of variance model classes keyed by ModelType.

The model selector iterates `MODELS` in order, so the order doubles as the
tie-break order (GARCH family first).
"""

from typing import Dict, List, Optional, Type, Union

from volforecast.models.base import ModelData, ModelType, VarianceModel
from volforecast.models.egarch import EgarchModel
from volforecast.models.garch import GarchModel
from volforecast.models.gjr_garch import GjrGarchModel
from volforecast.models.har_rv import HarRvModel
from volforecast.models.novas import NoVaSModel
from volforecast.utils import FitConfig

MODELS: Dict[ModelType, Type[VarianceModel]] = {
    ModelType.GARCH: GarchModel,
    ModelType.EGARCH: EgarchModel,
    ModelType.GJR_GARCH: GjrGarchModel,
    ModelType.HAR_RV: HarRvModel,
    ModelType.NOVAS: NoVaSModel,
}


def get_model(
    model_type: Union[ModelType, str],
    data: ModelData,
    periods_per_year: float = 252,
    config: Optional[FitConfig] = None
) -> VarianceModel:
    """
    Create a model instance by type.

    Args:
        model_type: ModelType or its string value (e.g. 'gjr-garch')
        data: Resolved input snapshot
        periods_per_year: Annualization factor
        config: Calibration settings

    Raises:
        ValueError: If the model type is unknown
    """
    try:
        key = ModelType(model_type)
    except ValueError:
        available = ', '.join(t.value for t in MODELS)
        raise ValueError(f"Unknown model '{model_type}'. Available models: {available}") from None
    return MODELS[key](data, periods_per_year, config)


def list_models() -> List[str]:
    """Model identifiers in selection order."""
    return [t.value for t in MODELS]

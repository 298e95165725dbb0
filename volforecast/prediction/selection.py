"""
Model selection by QLIKE loss.

Every candidate is scored against the same RV proxy over the same span,
which keeps the comparison neutral between likelihood-calibrated models
(GARCH family, NoVaS) and the regression-calibrated HAR-RV. The span starts
after the longest warm-up of the competing models, so no candidate is judged
on its seed values.

QLIKE stands in for -2·LL/n of a Gaussian quasi-likelihood, so the score
adds the BIC charge per observation, k·ln(n)/n. A richer model has to earn
its extra parameters; otherwise the earlier, smaller model is kept. AIC/BIC
from each candidate's own likelihood are reported but do not drive the
choice.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from volforecast.evaluation.metrics import qlike
from volforecast.models import (
    MODELS,
    CalibrationResult,
    ModelData,
    ModelType,
    Unavailable,
    VarianceModel,
)
from volforecast.utils import DataError, FitConfig, ValidationError

logger = logging.getLogger(__name__)

# Candidates that drop out instead of aborting selection when they cannot be built
OPTIONAL_MODELS = frozenset({ModelType.HAR_RV, ModelType.NOVAS})


@dataclass(frozen=True)
class CandidateFit:
    """
    A calibrated candidate with its variance series and selection score.

    Attributes:
        loss: QLIKE over the common scoring span
        score: loss plus the per-parameter charge; lower wins
    """
    model_type: ModelType
    model: VarianceModel
    result: CalibrationResult
    variance: np.ndarray
    loss: float
    score: float


@dataclass(frozen=True)
class SelectionResult:
    best: CandidateFit
    candidates: List[CandidateFit] = field(default_factory=list)
    unavailable: List[Unavailable] = field(default_factory=list)
    start: int = 0


def selection_score(loss: float, num_params: int, num_obs: int) -> float:
    """QLIKE plus k·ln(n)/n."""
    if num_obs < 2:
        return loss
    return loss + num_params * np.log(num_obs) / num_obs


def select_best(candidates: List[CandidateFit]) -> CandidateFit:
    """
    Lowest score wins; on ties the earlier candidate is kept.

    Raises:
        ValueError: If there are no candidates
    """
    if not candidates:
        raise ValueError("No candidate models to select from")

    best = candidates[0]
    for candidate in candidates[1:]:
        if candidate.score < best.score:
            best = candidate
    return best


def _build(model_type: ModelType, data: ModelData, periods_per_year: float,
           config: Optional[FitConfig]):
    """Construct one candidate; optional models report Unavailable on bad input."""
    try:
        return MODELS[model_type](data, periods_per_year, config)
    except (DataError, ValidationError) as e:
        if model_type not in OPTIONAL_MODELS:
            raise
        logger.debug(f"{model_type.value} excluded: {e}")
        return Unavailable(model_type, str(e))


def select_model(
    data: ModelData,
    periods_per_year: float,
    config: Optional[FitConfig] = None
) -> SelectionResult:
    """
    Fit GARCH, EGARCH, GJR-GARCH, HAR-RV and NoVaS and pick the best.

    HAR-RV and NoVaS drop out (as Unavailable) when the data is too short for
    their lags, when non-stationary or when their fit fails; GARCH-family
    errors propagate.

    Args:
        data: Resolved input snapshot shared by every candidate
        periods_per_year: Annualization factor
        config: Calibration settings

    Returns:
        SelectionResult with the winner, all scored candidates, the
        excluded models and the first scored index
    """
    rv = data.innovation
    built = []
    fitted = []
    unavailable = []

    for model_type in MODELS:
        model = _build(model_type, data, periods_per_year, config)
        if isinstance(model, Unavailable):
            unavailable.append(model)
            continue
        built.append(model)

        outcome = model.fit_candidate()
        if isinstance(outcome, Unavailable):
            unavailable.append(outcome)
            continue
        fitted.append((model, outcome))

    start = max(model.warmup_points() for model in built)
    num_obs = len(rv) - start

    candidates = []
    for model, outcome in fitted:
        variance = model.variance_series(outcome.params)
        diagnostics = outcome.diagnostics
        loss = qlike(variance[start:], rv[start:])
        score = selection_score(loss, diagnostics.num_params, num_obs)
        logger.debug(f"{model.model_type.value}: QLIKE={loss:.6f}, score={score:.6f}, "
                     f"AIC={diagnostics.aic:.2f}, converged={diagnostics.converged}")
        candidates.append(CandidateFit(model.model_type, model, outcome, variance, loss, score))

    best = select_best(candidates)
    logger.debug(f"Selected {best.model_type.value} (QLIKE={best.loss:.6f}) "
                 f"from {len(candidates)} candidates scored from index {start}")

    return SelectionResult(best=best, candidates=candidates, unavailable=unavailable,
                           start=start)

"""
Factory module for creating variance estimator instances.

The GARCH-family models pick their initial variance through this registry,
so the estimator can be chosen by name without hardcoding class imports.
"""

from typing import Dict, List, Type
import warnings

from volforecast.estimators.base import BaseEstimator
from volforecast.estimators.garman_klass import GarmanKlassEstimator
from volforecast.estimators.parkinson import ParkinsonEstimator
from volforecast.estimators.yang_zhang import YangZhangEstimator


# Registry of available estimators
_ESTIMATORS: Dict[str, Type[BaseEstimator]] = {
    'garman_klass': GarmanKlassEstimator,
    'parkinson': ParkinsonEstimator,
    'yang_zhang': YangZhangEstimator,
}

ESTIMATORS = _ESTIMATORS


def get_estimator(name: str) -> BaseEstimator:
    """
    Create an estimator instance by name.

    Args:
        name: Estimator name (e.g., 'yang_zhang', 'garman_klass')

    Returns:
        Estimator instance

    Raises:
        ValueError: If estimator name is not found
    """
    name = name.lower().strip()

    if name not in _ESTIMATORS:
        available = ', '.join(_ESTIMATORS.keys())
        raise ValueError(
            f"Unknown estimator '{name}'. Available estimators: {available}"
        )

    return _ESTIMATORS[name]()


def list_estimators() -> List[str]:
    """
    Get a list of available estimator names.

    Returns:
        List of estimator names
    """
    return list(_ESTIMATORS.keys())


def register_estimator(
    name: str,
    estimator_class: Type[BaseEstimator],
    override: bool = False
) -> None:
    """
    Register a custom estimator.

    Args:
        name: Estimator name (will be converted to lowercase)
        estimator_class: Estimator class (must inherit from BaseEstimator)
        override: If True, allow overriding existing estimators

    Raises:
        TypeError: If estimator_class is not a subclass of BaseEstimator
        ValueError: If name already exists and override=False
    """
    if not issubclass(estimator_class, BaseEstimator):
        raise TypeError(
            f"Estimator class must inherit from BaseEstimator, "
            f"got {estimator_class}"
        )

    name = name.lower().strip()

    if name in _ESTIMATORS and not override:
        raise ValueError(
            f"Estimator '{name}' already registered. "
            f"Use override=True to replace it."
        )

    if name in _ESTIMATORS and override:
        warnings.warn(
            f"Overriding existing estimator '{name}'",
            UserWarning
        )

    _ESTIMATORS[name] = estimator_class


__all__ = [
    'ESTIMATORS',
    'get_estimator',
    'list_estimators',
    'register_estimator',
]

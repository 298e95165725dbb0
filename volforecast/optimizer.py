"""
Derivative-free minimisation used to calibrate every variance model.

Nelder-Mead simplex search plus a deterministic multi-start wrapper.
Objectives are plain callables over a 1-D numpy array; constraint
violations are expected to come back as a large finite penalty.
"""

from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

Objective = Callable[[np.ndarray], float]

# Golden ratio, drives the quasi-random restart offsets
PHI = (1 + np.sqrt(5)) / 2


@dataclass(frozen=True)
class OptimizerResult:
    """Best vertex found, its objective value and run statistics."""
    x: np.ndarray
    fx: float
    iterations: int
    converged: bool


def _initial_simplex(x0: np.ndarray) -> np.ndarray:
    n = len(x0)
    simplex = np.tile(x0, (n + 1, 1))
    for i in range(n):
        delta = 0.00025 if x0[i] == 0 else x0[i] * 0.20
        simplex[i + 1, i] += delta
    return simplex


def nelder_mead(
    fn: Objective,
    x0: Sequence[float],
    max_iter: int = 1000,
    tol: float = 1e-8,
    alpha: float = 1.0,
    gamma: float = 2.0,
    rho: float = 0.5,
    sigma: float = 0.5,
) -> OptimizerResult:
    """
    Minimise `fn` with the Nelder-Mead simplex method.

    The initial simplex perturbs each coordinate of x0 by 20%, or by a small
    fixed delta when the coordinate is zero. Each iteration sorts the
    vertices and applies reflect, expand, contract (outside or inside) or
    shrink towards the best vertex.

    Args:
        fn: Objective over a 1-D array
        x0: Starting point (never modified)
        max_iter: Iteration limit
        tol: Stop when f(worst) - f(best) falls below this value
        alpha: Reflection coefficient
        gamma: Expansion coefficient
        rho: Contraction coefficient
        sigma: Shrink coefficient

    Returns:
        OptimizerResult; converged is False when max_iter was exhausted
    """
    x0 = np.array(x0, dtype=float)
    n = len(x0)

    simplex = _initial_simplex(x0)
    values = np.array([fn(vertex) for vertex in simplex], dtype=float)

    converged = False
    iterations = 0
    while iterations < max_iter:
        order = np.argsort(values, kind='stable')
        simplex = simplex[order]
        values = values[order]

        if values[n] - values[0] < tol:
            converged = True
            break

        centroid = simplex[:n].mean(axis=0)
        worst = simplex[n]

        reflected = centroid + alpha * (centroid - worst)
        fr = fn(reflected)

        if fr < values[0]:
            expanded = centroid + gamma * (reflected - centroid)
            fe = fn(expanded)
            if fe < fr:
                simplex[n], values[n] = expanded, fe
            else:
                simplex[n], values[n] = reflected, fr
        elif fr < values[n - 1]:
            simplex[n], values[n] = reflected, fr
        else:
            if fr < values[n]:
                contracted = centroid + rho * (reflected - centroid)
                fc = fn(contracted)
                accept = fc <= fr
            else:
                contracted = centroid + rho * (worst - centroid)
                fc = fn(contracted)
                accept = fc < values[n]

            if accept:
                simplex[n], values[n] = contracted, fc
            else:
                # Shrink towards the best vertex
                simplex[1:] = simplex[0] + sigma * (simplex[1:] - simplex[0])
                values[1:] = [fn(vertex) for vertex in simplex[1:]]

        iterations += 1

    best = int(np.argmin(values))
    return OptimizerResult(
        x=simplex[best].copy(),
        fx=float(values[best]),
        iterations=iterations,
        converged=converged,
    )


def nelder_mead_multi_start(
    fn: Objective,
    x0: Sequence[float],
    max_iter: int = 1000,
    tol: float = 1e-8,
    restarts: int = 3,
) -> OptimizerResult:
    """
    Run Nelder-Mead from x0 and from `restarts` perturbed starting points.

    Offsets follow a golden-ratio sequence mapped to [-0.5, 0.5], so the
    starts spread out without clustering and every run is reproducible.

    Returns:
        The result with the lowest objective value
    """
    x0 = np.array(x0, dtype=float)
    best = nelder_mead(fn, x0, max_iter=max_iter, tol=tol)

    for k in range(1, restarts + 1):
        frac = np.mod(k * np.arange(1, len(x0) + 1) * PHI, 1.0)
        scale = frac - 0.5
        perturbed = np.where(x0 == 0, 0.001 * scale, x0 * (1 + scale))

        result = nelder_mead(fn, perturbed, max_iter=max_iter, tol=tol)
        if result.fx < best.fx:
            best = result

    return best


def minimize(fn: Objective, x0: Sequence[float], max_iter: int, tol: float,
             restarts: int = 0) -> OptimizerResult:
    """Single run when restarts is 0, multi-start otherwise."""
    if restarts > 0:
        return nelder_mead_multi_start(fn, x0, max_iter=max_iter, tol=tol, restarts=restarts)
    return nelder_mead(fn, x0, max_iter=max_iter, tol=tol)

"""
Monte Carlo estimation helpers.

``estimate_integral`` works with any object following the Density contract
(``value`` and ``generate``), whether it lives on an interval of the real
line or on the sphere of directions. Comparing estimators built on
different densities for the same integrand shows the effect of importance
sampling: every positive density gives the same expected value, only the
variance changes.
"""

from __future__ import annotations
from typing import Callable, Tuple
import math

import numpy as np


class UniformIntervalDensity:
    """Uniform density on [lower, upper)."""

    def __init__(self, lower: float, upper: float):
        if not upper > lower:
            raise ValueError(f"Empty interval [{lower}, {upper})")
        self.lower = lower
        self.upper = upper

    def value(self, x: float) -> float:
        if x < self.lower or x > self.upper:
            return 0.0
        return 1.0 / (self.upper - self.lower)

    def generate(self, rng: np.random.Generator) -> float:
        return self.lower + (self.upper - self.lower) * rng.random()


class PowerIntervalDensity:
    """Density proportional to x**exponent on [0, upper].

    Normalized value: (k + 1) x^k / upper^(k + 1). Sampling inverts the CDF,
    x = upper * u^(1 / (k + 1)).
    """

    def __init__(self, upper: float, exponent: float):
        if upper <= 0:
            raise ValueError(f"upper must be positive, got {upper}")
        if exponent < 0:
            raise ValueError(f"exponent must be non-negative, got {exponent}")
        self.upper = upper
        self.exponent = exponent

    def value(self, x: float) -> float:
        if x < 0 or x > self.upper:
            return 0.0
        k = self.exponent
        return (k + 1) * x ** k / self.upper ** (k + 1)

    def generate(self, rng: np.random.Generator) -> float:
        return self.upper * rng.random() ** (1.0 / (self.exponent + 1))


def _sample_estimates(
    integrand: Callable,
    density,
    samples: int,
    rng: np.random.Generator
) -> np.ndarray:
    if samples <= 0:
        raise ValueError(f"samples must be positive, got {samples}")

    estimates = np.zeros(samples, dtype=np.float64)
    for i in range(samples):
        x = density.generate(rng)
        pdf = density.value(x)
        # Zero or non-finite density: this sample contributes nothing
        if pdf <= 0 or not math.isfinite(pdf):
            continue
        estimates[i] = integrand(x) / pdf
    return estimates


def estimate_integral(
    integrand: Callable,
    density,
    samples: int,
    rng: np.random.Generator
) -> float:
    """Estimate the integral of ``integrand`` by importance sampling.

    Args:
        integrand: Function of one sample (float or Vec3) returning a float
        density: Object with ``value(x)`` and ``generate(rng)``
        samples: Number of samples
        rng: Random stream

    Returns:
        Mean of integrand(x) / density.value(x) over the samples
    """
    return float(np.mean(_sample_estimates(integrand, density, samples, rng)))


def estimate_with_variance(
    integrand: Callable,
    density,
    samples: int,
    rng: np.random.Generator
) -> Tuple[float, float]:
    """Like estimate_integral, also returning the per-sample variance."""
    estimates = _sample_estimates(integrand, density, samples, rng)
    variance = float(np.var(estimates, ddof=1)) if samples > 1 else 0.0
    return float(np.mean(estimates)), variance

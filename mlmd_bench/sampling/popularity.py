from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from mlmd_bench.errors import ConfigurationError
from mlmd_bench.types import CategoricalDistribution


@dataclass(frozen=True, eq=False)
class CategoricalSampler:
    """Categorical distribution over ``[0, size)`` with fixed, unnormalized weights."""

    weights: np.ndarray

    def __post_init__(self) -> None:
        cdf = np.cumsum(self.weights)
        cdf.setflags(write=False)
        # weights below the float spacing of the running total add nothing to the CDF
        reachable = np.flatnonzero(np.diff(cdf, prepend=0.0) > 0)
        if reachable.size == 0:
            raise ConfigurationError("Categorical weights must contain at least one positive entry")
        reachable.setflags(write=False)
        object.__setattr__(self, "_cdf", cdf)
        object.__setattr__(self, "_support", reachable)

    @property
    def size(self) -> int:
        return int(self.weights.size)

    @property
    def probabilities(self) -> np.ndarray:
        return self.weights / self._cdf[-1]

    def support(self) -> np.ndarray:
        """Indices that ``sample`` can actually return."""
        return self._support

    def sample(self, rng: np.random.Generator) -> int:
        # Scale a uniform draw by the total weight so normalization happens per draw.
        u = rng.random() * self._cdf[-1]
        idx = int(np.searchsorted(self._cdf, u, side="right"))
        return min(idx, int(self._support[-1]))


def build_popularity_sampler(
    sample_size: int,
    dist: CategoricalDistribution,
    rng: np.random.Generator,
) -> CategoricalSampler:
    """
    Draw one Dirichlet(alpha, ..., alpha) popularity vector over ``sample_size``
    nodes and wrap it in a sampler.

    ``sample_size`` independent Gamma(alpha, 1) variates are used directly as
    categorical weights; normalizing them gives a Dirichlet draw. The skew is
    fixed for the lifetime of the returned sampler.
    """
    if sample_size <= 0:
        raise ConfigurationError(f"Cannot build a popularity distribution over {sample_size} nodes")
    alpha = float(dist.dirichlet_alpha)
    if not math.isfinite(alpha) or alpha <= 0:
        raise ConfigurationError(f"dirichlet_alpha must be a positive finite number, got {dist.dirichlet_alpha!r}")

    weights = rng.gamma(shape=alpha, scale=1.0, size=sample_size)
    if not np.any(weights > 0):
        # every variate underflowed for a tiny alpha
        weights = np.ones(sample_size, dtype=float)
    weights.setflags(write=False)
    return CategoricalSampler(weights=weights)

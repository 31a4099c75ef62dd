"""
Pluggable uniform random sources and the Box-Muller transform.

Monte Carlo sampling only ever asks a RandomSource for uniform draws, so
tests can pin outputs with a seed (NumpyRandomSource) or replay an exact
sequence (SequenceRandomSource).
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np


class RandomSource:
    """Interface for uniform draws on [0, 1)."""

    def uniform(self, size: int) -> np.ndarray:
        raise NotImplementedError


class NumpyRandomSource(RandomSource):
    """numpy Generator (PCG64) seeded once; None seeds from OS entropy."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng = np.random.default_rng(seed)

    def uniform(self, size: int) -> np.ndarray:
        return self.rng.random(size)


class SequenceRandomSource(RandomSource):
    """Replays a fixed cycle of uniforms. Useful for hand-checked tests."""

    def __init__(self, values: Iterable[float]):
        self.values = np.asarray(list(values), dtype=float)
        if self.values.size == 0:
            raise ValueError("SequenceRandomSource needs at least one value")
        if np.any((self.values < 0) | (self.values >= 1)):
            raise ValueError("Uniform values must lie in [0, 1)")
        self._pos = 0

    def uniform(self, size: int) -> np.ndarray:
        idx = (self._pos + np.arange(size)) % self.values.size
        self._pos = int((self._pos + size) % self.values.size)
        return self.values[idx]


def box_muller(source: RandomSource, size: int) -> np.ndarray:
    """
    Standard normal draws from pairs of uniforms:
        z = sqrt(-2 ln u1) * cos(2 pi u2)

    u1 is taken as 1 - u so it lies in (0, 1] and the log stays finite.
    """
    u1 = 1.0 - source.uniform(size)
    u2 = source.uniform(size)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)

"""
Distributions package: random sources, parameter sampling, and the
heuristic correlation table.

  1. random_source.py  injectable uniform sources + Box-Muller transform
  2. sampler.py        generate N randomized parameter sets around a base case
  3. correlation.py    narrative correlation estimates between parameters
"""

from .correlation import (
    analyze_parameter_correlations,
    correlation_matrix,
    describe_correlations,
    estimate_correlation,
)
from .random_source import NumpyRandomSource, RandomSource, SequenceRandomSource, box_muller
from .sampler import ParameterSampler, SampledParameters

__all__ = [
    "analyze_parameter_correlations",
    "correlation_matrix",
    "describe_correlations",
    "estimate_correlation",
    "NumpyRandomSource",
    "RandomSource",
    "SequenceRandomSource",
    "box_muller",
    "ParameterSampler",
    "SampledParameters",
]

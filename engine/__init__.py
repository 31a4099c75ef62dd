"""
Projection engine: compounding math, scenario generation, and the goal runner.

Only the calculator is re-exported here; import engine.scenarios and
engine.runner directly (they depend on the risk package, which itself
builds on the calculator).
"""

from .calculator import CompoundingCalculator, apply_parameter_variation

__all__ = ["CompoundingCalculator", "apply_parameter_variation"]

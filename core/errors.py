"""
Error taxonomy for the projection engine.

InvalidParameter and NonConvergence propagate to the caller.
UpstreamDataUnavailable is raised by providers and recovered by the
fetch helpers in inputs/providers.py with a documented fallback.
"""

from __future__ import annotations


class ProjectionError(Exception):
    """Base class for every engine error."""


class InvalidParameter(ProjectionError, ValueError):
    """Input rejected before any computation runs."""


class NonConvergence(ProjectionError, ArithmeticError):
    """An iterative solver hit its cap without reaching a solution."""

    def __init__(self, message: str, *, iterations: int | None = None):
        super().__init__(message)
        self.iterations = iterations


class UpstreamDataUnavailable(ProjectionError):
    """A provider could not supply a value."""

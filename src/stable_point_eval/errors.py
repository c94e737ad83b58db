from __future__ import annotations


class PointEvaluationError(ValueError):
    """Base class for failures of the point-evaluation routines."""


class SingularEvaluationError(PointEvaluationError):
    """Fundamental solution requested at (numerically) coincident points."""


class GeometryError(PointEvaluationError):
    """Missing or unsupported mesh geometry, e.g. a non-triangular cell."""


class NotApplicableError(PointEvaluationError):
    """Evaluation point lies outside the region where the stabilized formula holds."""

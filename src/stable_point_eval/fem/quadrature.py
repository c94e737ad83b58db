from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class QuadRule:
    """
    Reference quadrature table.

    points  : (P, d) reference coordinates
    weights : (P,)   weights summing to the reference element's measure
    """
    points: npt.NDArray[np.float64]
    weights: npt.NDArray[np.float64]

    def __post_init__(self) -> None:
        if self.points.shape[0] != self.weights.shape[0]:
            raise ValueError(
                f"{self.points.shape[0]} points but {self.weights.shape[0]} weights"
            )
        self.points.setflags(write=False)
        self.weights.setflags(write=False)

    @property
    def num_points(self) -> int:
        return int(self.weights.shape[0])


def make_tria_midpoint_rule() -> QuadRule:
    """
    One-point rule on the reference triangle (0,0), (1,0), (0,1).

    The weight is the reference area 1/2; for a physical triangle multiply
    by |det J| = 2 * Area(T).
    """
    return QuadRule(points=np.array([[1.0/3.0, 1.0/3.0]]), weights=np.array([0.5]))


def make_segment_midpoint_rule() -> QuadRule:
    """One-point rule on the reference segment [0, 1]."""
    return QuadRule(points=np.array([[0.5]]), weights=np.array([1.0]))

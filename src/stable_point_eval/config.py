from __future__ import annotations
import math
from dataclasses import dataclass


DEFAULT_SINGULAR_TOL = 1e-14


# ----------------------------- Configuration -----------------------------
@dataclass(slots=True)
class EvalConfig:
    CENTER: tuple[float, float] = (0.5, 0.5)
    R_INNER: float = 0.25 * math.sqrt(2.0)
    R_OUTER: float = 0.5
    TRUSTED_RADIUS: float = 0.25
    SINGULAR_TOL: float = DEFAULT_SINGULAR_TOL
    TEST_POINT: tuple[float, float] = (0.3, 0.4)
    STAB_TEST_POINT: tuple[float, float] = (0.5, 0.3)

    @property
    def cutoff_frequency(self) -> float:
        # cos^2(k (r - R_OUTER)) vanishes at R_INNER and equals 1 at R_OUTER
        return 0.5 * math.pi / (self.R_INNER - self.R_OUTER)

    def __post_init__(self) -> None:
        if not (0.0 < self.TRUSTED_RADIUS < self.R_INNER < self.R_OUTER):
            raise ValueError(
                "expected 0 < TRUSTED_RADIUS < R_INNER < R_OUTER, got "
                f"{self.TRUSTED_RADIUS}, {self.R_INNER}, {self.R_OUTER}"
            )

# imports <<<
from dataclasses import dataclass
from typing import Optional

import numpy as np
import numpy.typing as npt
from scipy.stats import linregress
# >>>


@dataclass(frozen=True)
class LinearFit:
    """
    Least-squares line y = slope * x + intercept.

    Attributes:
        slope: Fitted slope.
        intercept: Fitted intercept.
        r_squared: Coefficient of determination (1 for a constant y).
        n_points: Number of points used.
    """

    slope: float
    intercept: float
    r_squared: float
    n_points: int

    def predict(self, x: npt.ArrayLike) -> np.ndarray:
        return self.slope * np.asarray(x, dtype=float) + self.intercept

    @property
    def x_intercept(self) -> float:
        """x where the line crosses zero; 0 for a flat line."""
        return -self.intercept / self.slope if self.slope != 0 else 0.0


def r_squared(y: np.ndarray, y_predicted: np.ndarray) -> float:
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    if ss_tot == 0:
        return 1.0
    ss_res = float(np.sum((y - y_predicted) ** 2))
    return float(np.clip(1 - ss_res / ss_tot, 0.0, 1.0))


def linear_fit(x: npt.ArrayLike, y: npt.ArrayLike) -> Optional[LinearFit]:
    """
    Ordinary least-squares fit.

    Returns None when fewer than two points are given or all x are equal.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.size < 2 or np.all(x == x[0]):
        return None
    result = linregress(x, y)
    slope, intercept = float(result.slope), float(result.intercept)
    return LinearFit(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared(y, slope * x + intercept),
        n_points=int(x.size),
    )


def fixed_slope_fit(x: npt.ArrayLike, y: npt.ArrayLike, slope: float = 1.0) -> Optional[LinearFit]:
    """
    Least-squares intercept of y = slope * x + intercept with the slope held fixed.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.size == 0:
        return None
    intercept = float(np.mean(y - slope * x))
    return LinearFit(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared(y, slope * x + intercept),
        n_points=int(x.size),
    )

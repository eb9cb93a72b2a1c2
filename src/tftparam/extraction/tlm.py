import logging
import math
import re
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from ..regression import linear_fit

logger = logging.getLogger(__name__)

# Bias window of the two-terminal I-V sweeps (V).
VOLTAGE_RANGE = (-2.0, 2.0)
# I-V slopes below this (S) are treated as an open circuit.
MIN_SLOPE = 1e-12
# Contact pad width (mm).
DEFAULT_CONTACT_WIDTH = 1.0
# Largest pad spacing accepted from a sheet name (mm).
MAX_DISTANCE = 10.0


@dataclass(frozen=True)
class ResistanceFit:
    """
    Attributes:
        resistance: Two-terminal resistance (Ω); inf for an open circuit.
        r_squared: Quality of the I-V fit.
        n_points: Points inside the bias window.
    """

    resistance: float
    r_squared: float
    n_points: int


@dataclass(frozen=True)
class TLMResult:
    """
    Transfer length method parameters from R_total = 2 Rc + (Rsh / W) d.

    Attributes:
        rc: Contact resistance (Ω), half the zero-spacing intercept.
        rsh: Sheet resistance (Ω/sq).
        transfer_length: Transfer length LT (cm).
        rho_c: Specific contact resistivity Rsh * LT² (Ω·cm²).
        r_squared: Quality of the R vs d fit.
        slope: Fitted slope (Ω/mm).
        intercept: Fitted intercept (Ω).
        n_points: Spacings used in the fit.
    """

    rc: float
    rsh: float
    transfer_length: float
    rho_c: float
    r_squared: float
    slope: float
    intercept: float
    n_points: int


def resistance_from_iv(voltage: npt.ArrayLike, current: npt.ArrayLike) -> Optional[ResistanceFit]:
    """
    R = 1 / slope of I against V inside VOLTAGE_RANGE.

    Points with zero or non-finite current are skipped. Returns None with
    fewer than two usable points.
    """
    voltage = np.asarray(voltage, dtype=float)
    current = np.asarray(current, dtype=float)
    low, high = VOLTAGE_RANGE
    mask = np.isfinite(voltage) & np.isfinite(current) & (current != 0) & (voltage >= low) & (voltage <= high)
    fit = linear_fit(voltage[mask], current[mask])
    if fit is None:
        return None
    if abs(fit.slope) < MIN_SLOPE:
        return ResistanceFit(resistance=math.inf, r_squared=fit.r_squared, n_points=fit.n_points)
    return ResistanceFit(resistance=1.0 / fit.slope, r_squared=fit.r_squared, n_points=fit.n_points)


def distance_from_name(name: str, step: float = 0.5) -> Optional[float]:
    """
    Pad spacing (mm) encoded in a sheet name such as "1.5" or "d_2,0mm".

    Known spacings (multiples of `step` up to 5 mm) are matched first, whole
    name then substring. Otherwise the first number in the name is taken if
    it is a multiple of `step` between `step` and MAX_DISTANCE.
    """
    normalized = name.replace(",", ".")
    candidates = [f"{step * i:.1f}" for i in range(1, int(round(5.0 / step)) + 1)]
    for candidate in candidates:
        if normalized == candidate:
            return float(candidate)
    for candidate in candidates:
        if candidate in normalized:
            return float(candidate)

    match = re.search(r"(\d+\.?\d*)", normalized)
    if match:
        value = float(match.group(1))
        ratio = value / step
        if abs(ratio - round(ratio)) < 0.01 and step <= value <= MAX_DISTANCE:
            return value
    return None


class TLMAnalyzer:
    """
    Contact and sheet resistance from resistances measured at several pad spacings.

    Args:
        contact_width: Contact pad width W (mm).

    Examples:
        analyzer = TLMAnalyzer(contact_width=1.0)
        result = analyzer.analyze([0.5, 1.0, 1.5], [150.0, 200.0, 250.0])
        result.rc, result.rsh
    """

    def __init__(self, contact_width: float = DEFAULT_CONTACT_WIDTH) -> None:
        if contact_width <= 0:
            raise ValueError("Contact width must be positive.")
        self.contact_width = contact_width

    def analyze(self, distances: Sequence[float], resistances: Sequence[float]) -> TLMResult:
        """
        Fits R against the pad spacing d (mm).

        Spacings that are not positive and resistances that are not finite are
        dropped. Raises ValueError when fewer than two points remain.
        """
        distances = np.asarray(distances, dtype=float)
        resistances = np.asarray(resistances, dtype=float)
        if distances.shape != resistances.shape:
            raise ValueError("Distances and resistances must have the same length.")
        mask = np.isfinite(distances) & (distances > 0) & np.isfinite(resistances)
        fit = linear_fit(distances[mask], resistances[mask])
        if fit is None:
            raise ValueError(f"TLM needs at least two distinct spacings, got {int(mask.sum())}.")

        rc = fit.intercept / 2
        rsh = fit.slope * self.contact_width
        if fit.slope != 0:
            transfer_length_mm = abs(fit.intercept / (2 * fit.slope))
        else:
            transfer_length_mm = 0.0
        transfer_length = transfer_length_mm * 0.1
        logger.debug("TLM over %d spacings: Rc=%.3g Ω, Rsh=%.3g Ω/sq.", fit.n_points, rc, rsh)
        return TLMResult(
            rc=rc,
            rsh=rsh,
            transfer_length=transfer_length,
            rho_c=rsh * transfer_length ** 2,
            r_squared=fit.r_squared,
            slope=fit.slope,
            intercept=fit.intercept,
            n_points=fit.n_points,
        )

    def analyze_sheets(
        self,
        sheets: Mapping[str, Tuple[npt.ArrayLike, npt.ArrayLike]],
        step: float = 0.5,
    ) -> Tuple[TLMResult, List[Tuple[float, ResistanceFit]]]:
        """
        Runs the whole method on named I-V sweeps, one per pad spacing.

        Args:
            sheets: Sheet name -> (voltage, current). The spacing is read from the name.
            step: Spacing increment used to recognise names (mm).

        Returns:
            The TLM result and the (spacing, resistance fit) pairs, sorted by spacing.
        """
        measurements = []
        for name, (voltage, current) in sheets.items():
            distance = distance_from_name(name, step)
            if distance is None:
                logger.warning("Sheet '%s' has no recognizable pad spacing; skipped.", name)
                continue
            fit = resistance_from_iv(voltage, current)
            if fit is None or not math.isfinite(fit.resistance):
                logger.warning("Sheet '%s' gives no finite resistance; skipped.", name)
                continue
            measurements.append((distance, fit))
        measurements.sort(key=lambda item: item[0])
        result = self.analyze([d for d, _ in measurements], [fit.resistance for _, fit in measurements])
        return result, measurements

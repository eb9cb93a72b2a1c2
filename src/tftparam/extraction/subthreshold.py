import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..constants import ELEMENTARY_CHARGE, thermal_voltage
from ..datatypes import AnalysisConfig, DeviceGeometry, TransferSweep
from ..regression import linear_fit

logger = logging.getLogger(__name__)

# A user-chosen VG range only needs enough points for a line.
CUSTOM_RANGE_MIN_POINTS = 3
# Switching window tried first by the automatic range selection (V).
SWITCHING_WINDOW = (-1.0, 1.0)
SWITCHING_MIN_POINTS = 10
# Middle share of the sweep used when no window holds enough points.
MIDDLE_FRACTION = (0.3, 0.7)

# Windows compared by suggest_range: (name, start, stop).
CANDIDATE_RANGES = (
    ("wide switching", -2.0, 2.0),
    ("standard switching", -1.0, 1.0),
    ("asymmetric", -1.5, 0.5),
    ("positive biased", -0.5, 1.5),
)
SUGGESTION_MIN_SWEEP_POINTS = 10
SUGGESTION_MIN_POINTS = 5


@dataclass(frozen=True)
class SubthresholdSwing:
    """
    Attributes:
        ss: Subthreshold swing (V/decade); 0 when it could not be fitted.
        r_squared: Quality of the log10|ID| vs VG fit.
        n_points: Points inside the window.
        vg_range: VG span of the fitted points, None when nothing was fitted.
        method: How the points were chosen: "window", "vg_range", "switching" or "middle".
    """

    ss: float = 0.0
    r_squared: float = 0.0
    n_points: int = 0
    vg_range: Optional[Tuple[float, float]] = None
    method: str = "window"


@dataclass(frozen=True)
class SSRangeSuggestion:
    """
    Attributes:
        start: Suggested lower VG bound (V).
        stop: Suggested upper VG bound (V).
        name: Which candidate window won.
        confidence: "High" (R² > 0.95), "Medium" (R² > 0.90) or "Low".
        r_squared: Fit quality inside the window.
        n_points: Points inside the window.
    """

    start: float
    stop: float
    name: str
    confidence: str
    r_squared: float = 0.0
    n_points: int = 0


@dataclass(frozen=True)
class SSQuality:
    """
    Attributes:
        label: "Excellent", "Good", "Fair", "Poor" or "Invalid".
        score: 0 to 100; R² (40) + point count (30) + SS magnitude (30).
        r_squared: Fit quality inside the range.
        n_points: Points inside the range.
        issues: Human-readable reasons for lost points.
    """

    label: str
    score: float
    r_squared: float = 0.0
    n_points: int = 0
    issues: Tuple[str, ...] = ()


def _quality_label(score: float) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


class SubthresholdAnalyzer:
    def __init__(self, config: Optional[AnalysisConfig] = None) -> None:
        self.config = config if config is not None else AnalysisConfig()

    def select_range(self, sweep: TransferSweep) -> Tuple[np.ndarray, str]:
        """
        Mask of the points the swing is fitted on, and the name of the rule used.

        A configured `ss_vg_range` wins. Otherwise the open log-current window
        `ss_window` is used, unless `ss_auto_range` is set: then the switching
        window (|VG| <= 1 V, at least 10 points) is tried first, the log window
        second, and the middle 30-70 % of the finite points last.
        """
        log_id = sweep.log_id
        finite = np.isfinite(log_id)
        if self.config.ss_vg_range is not None:
            start, stop = self.config.ss_vg_range
            return finite & (sweep.vg >= start) & (sweep.vg <= stop), "vg_range"

        low, high = self.config.ss_window
        window = finite & (log_id > low) & (log_id < high)
        if not self.config.ss_auto_range:
            return window, "window"

        switching = finite & (sweep.vg >= SWITCHING_WINDOW[0]) & (sweep.vg <= SWITCHING_WINDOW[1])
        if switching.sum() >= SWITCHING_MIN_POINTS:
            return switching, "switching"
        if window.sum() >= self.config.ss_min_points:
            return window, "window"
        indices = np.flatnonzero(finite)
        start, stop = int(indices.size * MIDDLE_FRACTION[0]), int(indices.size * MIDDLE_FRACTION[1])
        middle = np.zeros_like(finite)
        middle[indices[start:stop]] = True
        return middle, "middle"

    def swing(self, sweep: TransferSweep) -> SubthresholdSwing:
        """
        SS = |1 / slope| of log10|ID| against VG over the points chosen by select_range.

        The log window needs `ss_min_points` points; a user VG range or an
        automatically selected range needs three.
        """
        mask, method = self.select_range(sweep)
        min_points = self.config.ss_min_points if method == "window" else CUSTOM_RANGE_MIN_POINTS
        n_points = int(mask.sum())
        if n_points < min_points:
            logger.debug("SS skipped: %d points selected by the %s rule.", n_points, method)
            return SubthresholdSwing(n_points=n_points, method=method)
        vg = sweep.vg[mask]
        fit = linear_fit(vg, sweep.log_id[mask])
        if fit is None or fit.slope == 0:
            return SubthresholdSwing(n_points=n_points, method=method)
        return SubthresholdSwing(
            ss=abs(1.0 / fit.slope),
            r_squared=fit.r_squared,
            n_points=n_points,
            vg_range=(float(vg.min()), float(vg.max())),
            method=method,
        )

    def suggest_range(self, sweep: TransferSweep) -> SSRangeSuggestion:
        """
        The candidate VG window with the best log10|ID| fit.

        Windows holding fewer than five points are skipped. A sweep shorter than
        ten points gets the standard ±1 V window with low confidence.
        """
        default = SSRangeSuggestion(start=-1.0, stop=1.0, name="standard switching", confidence="Low")
        log_id = sweep.log_id
        finite = np.isfinite(log_id)
        if finite.sum() < SUGGESTION_MIN_SWEEP_POINTS:
            return default

        best = None
        for name, start, stop in CANDIDATE_RANGES:
            mask = finite & (sweep.vg >= start) & (sweep.vg <= stop)
            if mask.sum() < SUGGESTION_MIN_POINTS:
                continue
            fit = linear_fit(sweep.vg[mask], log_id[mask])
            if fit is None:
                continue
            if best is None or fit.r_squared > best[0].r_squared:
                best = (fit, name, start, stop)
        if best is None:
            return default

        fit, name, start, stop = best
        if fit.r_squared > 0.95:
            confidence = "High"
        elif fit.r_squared > 0.90:
            confidence = "Medium"
        else:
            confidence = "Low"
        return SSRangeSuggestion(
            start=start, stop=stop, name=name, confidence=confidence, r_squared=fit.r_squared, n_points=fit.n_points
        )

    def quality(self, sweep: TransferSweep, start: float, stop: float, ss: float) -> SSQuality:
        """
        Scores an SS fit over [start, stop] out of 100.

        R² >= 0.95/0.90/0.85 gives 40/30/20, at least 15/10/5 points give
        30/20/10, and SS below 100/300/1000 mV/dec gives 30/20/10.
        """
        if start >= stop:
            return SSQuality(label="Invalid", score=0.0, issues=("VG range is empty",))
        log_id = sweep.log_id
        mask = np.isfinite(log_id) & (sweep.vg >= start) & (sweep.vg <= stop)
        n_points = int(mask.sum())
        if n_points < CUSTOM_RANGE_MIN_POINTS:
            return SSQuality(label="Poor", score=0.0, n_points=n_points, issues=("fewer than 3 points in range",))
        fit = linear_fit(sweep.vg[mask], log_id[mask])
        if fit is None:
            return SSQuality(label="Poor", score=0.0, n_points=n_points, issues=("VG does not vary in range",))

        score = 0.0
        issues = []
        if fit.r_squared >= 0.95:
            score += 40
        elif fit.r_squared >= 0.90:
            score += 30
        elif fit.r_squared >= 0.85:
            score += 20
        else:
            issues.append(f"low linearity (R²={fit.r_squared:.3f})")

        if n_points >= 15:
            score += 30
        elif n_points >= 10:
            score += 20
        elif n_points >= 5:
            score += 10
        else:
            issues.append(f"only {n_points} points")

        ss_mv = ss * 1000
        if ss <= 0:
            issues.append("SS not fitted")
        elif ss_mv < 100:
            score += 30
        elif ss_mv < 300:
            score += 20
        elif ss_mv < 1000:
            score += 10
        else:
            issues.append(f"SS too large ({ss_mv:.0f} mV/dec)")

        return SSQuality(
            label=_quality_label(score),
            score=score,
            r_squared=fit.r_squared,
            n_points=n_points,
            issues=tuple(issues),
        )

    def trap_density(self, ss: float, geometry: Optional[DeviceGeometry]) -> float:
        """
        Dit = (Cox / q) * (SS / (2.3 kT/q) - 1) in cm⁻²·eV⁻¹, floored at 0.
        """
        if ss <= 0 or geometry is None:
            return 0.0
        dit = geometry.cox_per_cm2 / ELEMENTARY_CHARGE * (ss / (2.3 * thermal_voltage(self.config.temperature)) - 1)
        return max(dit, 0.0)

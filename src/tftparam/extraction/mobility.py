# imports <<<
import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from ..constants import CURRENT_FLOOR
from ..datatypes import AnalysisConfig, DeviceGeometry, TransconductanceCurve, TransferSweep
from ..regression import fixed_slope_fit, linear_fit
# >>>

logger = logging.getLogger(__name__)

# m²/V·s -> cm²/V·s
SI_TO_CM2 = 1e4


@dataclass(frozen=True)
class YFunctionResult:
    """
    Low-field mobility from the Y-function fit.

    Attributes:
        mu0: Low-field mobility (cm²/V·s); 0 when the fit failed.
        slope: Slope A of Y = A*X.
        r_squared: Fit quality.
        quality: "Excellent", "Good", "Fair" or "Poor".
        n_points: Points that qualified for the Y-function.
        n_fit_points: Points of the central region actually fitted.
        error: Why the fit failed, empty on success.
    """

    mu0: float = 0.0
    slope: float = 0.0
    r_squared: float = 0.0
    quality: str = "Poor"
    n_points: int = 0
    n_fit_points: int = 0
    error: str = ""
    points: Tuple[np.ndarray, np.ndarray] = field(default=(np.array([]), np.array([])), compare=False)


@dataclass(frozen=True)
class ThetaResult:
    """
    Mobility degradation factor.

    Attributes:
        theta: Fitted intercept (1/V), floored at 0.
        raw_theta: Intercept before flooring.
        n_points: Points used in the fit.
        error: Why the fit failed, empty on success.
    """

    theta: float = 0.0
    raw_theta: float = 0.0
    n_points: int = 0
    error: str = ""


def y_function_quality(r_squared: float) -> str:
    if r_squared > 0.95:
        return "Excellent"
    if r_squared > 0.9:
        return "Good"
    if r_squared > 0.8:
        return "Fair"
    return "Poor"


class MobilityEstimator:
    """
    Field-effect, low-field and effective mobility plus the degradation factor.

    All mobilities are returned in cm²/V·s. Missing or zero inputs give 0.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None) -> None:
        self.config = config if config is not None else AnalysisConfig()

    @staticmethod
    def field_effect(gm_max: float, geometry: Optional[DeviceGeometry], vds: float) -> float:
        """muFE = L / (W * Cox * VDS) * gm_max."""
        if not gm_max or geometry is None or not vds:
            return 0.0
        return geometry.L / (geometry.W * geometry.cox * vds) * gm_max * SI_TO_CM2

    def low_field(
        self,
        sweep: TransferSweep,
        gm_curve: TransconductanceCurve,
        vth: float,
        geometry: Optional[DeviceGeometry],
        vds: Optional[float] = None,
    ) -> YFunctionResult:
        """
        Y-function method: Y = ID / sqrt(gm) against X = VG - Vth above threshold.

        The line is fitted over the central 20-80 % of the qualifying points
        and mu0 = A² * L / (Cox * VD * W).
        """
        vds = sweep.vds if vds is None else vds
        if geometry is None or not vds:
            return YFunctionResult(error="geometry or drain bias missing")
        if gm_curve.is_empty:
            return YFunctionResult(error="no transconductance data")

        xs, ys = [], []
        for vg, id_ in zip(sweep.vg, sweep.id):
            if vg <= vth or id_ <= CURRENT_FLOOR:
                continue
            gm = gm_curve.gm_at(vg, self.config.y_function_tolerance)
            if gm is None or gm <= CURRENT_FLOOR:
                continue
            xs.append(vg - vth)
            ys.append(id_ / np.sqrt(gm))
        x, y = np.array(xs), np.array(ys)
        if x.size < 5:
            return YFunctionResult(error="not enough points above threshold", n_points=int(x.size), points=(x, y))

        start, end = int(x.size * 0.2), int(x.size * 0.8)
        if end - start < 3:
            return YFunctionResult(error="linear region too short", n_points=int(x.size), points=(x, y))
        fit = linear_fit(x[start:end], y[start:end])
        if fit is None:
            return YFunctionResult(error="degenerate Y-function fit", n_points=int(x.size), points=(x, y))

        mu0 = fit.slope ** 2 * geometry.L / (geometry.cox * vds * geometry.W) * SI_TO_CM2
        logger.debug("Y-function: A=%.4g R²=%.4f mu0=%.4g cm²/V·s", fit.slope, fit.r_squared, mu0)
        return YFunctionResult(
            mu0=mu0,
            slope=fit.slope,
            r_squared=fit.r_squared,
            quality=y_function_quality(fit.r_squared),
            n_points=int(x.size),
            n_fit_points=fit.n_points,
            points=(x, y),
        )

    @staticmethod
    def effective(mu0: float, theta: float, vg: float, vth: float) -> float:
        """muEff = mu0 / (1 + theta * (VG - Vth)); 0 at or below threshold."""
        if not mu0 or vg <= vth:
            return 0.0
        return mu0 / (1 + theta * (vg - vth))

    @staticmethod
    def degradation_factor(
        sweep: TransferSweep,
        mu0: float,
        vth: float,
        geometry: Optional[DeviceGeometry],
        vds: Optional[float] = None,
    ) -> ThetaResult:
        """
        theta from Ycal = theta + Xcal with the slope held at 1, using
        Xcal = 1 / (VG - Vth) and Ycal = mu0 * W * Cox * VD / (ID * L)
        for points more than 1 V above threshold.
        """
        vds = sweep.vds if vds is None else vds
        if not mu0 or geometry is None or not vds:
            return ThetaResult(error="mu0, geometry or drain bias missing")
        mask = (sweep.vg > vth + 1.0) & (sweep.id > CURRENT_FLOOR)
        if mask.sum() < 3:
            return ThetaResult(error="not enough points above Vth + 1 V", n_points=int(mask.sum()))

        mu0_si = mu0 / SI_TO_CM2
        x_cal = 1.0 / (sweep.vg[mask] - vth)
        y_cal = mu0_si * geometry.W * geometry.cox * vds / (sweep.id[mask] * geometry.L)
        fit = fixed_slope_fit(x_cal, y_cal, slope=1.0)
        raw_theta = fit.intercept
        return ThetaResult(theta=max(raw_theta, 0.0), raw_theta=raw_theta, n_points=fit.n_points)

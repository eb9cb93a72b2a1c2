# imports <<<
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

import numpy as np

from ..constants import CURRENT_FLOOR
from ..datatypes import AnalysisConfig, ThresholdResult, TransconductanceCurve, TransferSweep
from ..regression import linear_fit
# >>>

logger = logging.getLogger(__name__)


class ThresholdMethod(ABC):
    """
    One threshold-voltage extraction algorithm.

    Every method takes the sweep, its gm curve and the run configuration and
    returns a ThresholdResult. A failed extraction returns vth=0 with an
    "error" entry in the auxiliary diagnostics instead of raising.
    """

    name: str = ""

    @abstractmethod
    def extract(self, sweep: TransferSweep, gm_curve: TransconductanceCurve, config: AnalysisConfig) -> ThresholdResult:
        pass

    def failed(self, error: str, **auxiliary) -> ThresholdResult:
        logger.debug("%s failed: %s", self.name, error)
        return ThresholdResult(vth=0.0, method=self.name, auxiliary={"error": error, **auxiliary})


# linear extrapolation <<<
class LinearExtrapolation(ThresholdMethod):
    """Vth = VG(gm_max) - ID(gm_max) / gm_max, the tangent at the gm peak."""

    name = "linear_extrapolation"

    def extract(self, sweep, gm_curve, config):
        if gm_curve.is_empty or gm_curve.gm_max <= 0:
            return self.failed("no transconductance data")
        vg_max = gm_curve.vg_at_gm_max
        gm_max = gm_curve.gm_max
        distance = np.abs(sweep.vg - vg_max)
        idx = int(np.argmin(distance))
        if distance[idx] > config.gm_match_tolerance:
            return self.failed(f"no drain current within {config.gm_match_tolerance} V of VG={vg_max}")
        id_max = float(sweep.id[idx])
        return ThresholdResult(
            vth=vg_max - id_max / gm_max,
            method=self.name,
            auxiliary={"gm_max": gm_max, "vg_at_gm_max": vg_max, "id_at_gm_max": id_max},
        )
# >>>


# constant current <<<
class ConstantCurrent(ThresholdMethod):
    """Vth = VG where |ID| first reaches the target current, interpolated on log10|ID|."""

    name = "constant_current"

    def extract(self, sweep, gm_curve, config):
        if sweep.is_empty:
            return self.failed("empty sweep")
        order = np.argsort(sweep.vg, kind="stable")
        vg = sweep.vg[order]
        log_id = np.log10(np.maximum(np.abs(sweep.id[order]), CURRENT_FLOOR))
        target = np.log10(config.target_current)

        above = np.nonzero(log_id >= target)[0]
        if above.size == 0:
            return self.failed("target current never reached", target_current=config.target_current)
        idx = int(above[0])
        if idx == 0:
            # The sweep starts above the target; no crossing to interpolate.
            return self.failed("sweep starts above the target current", target_current=config.target_current)
        x0, x1 = vg[idx - 1], vg[idx]
        y0, y1 = log_id[idx - 1], log_id[idx]
        vth = x1 if y1 == y0 else x0 + (target - y0) * (x1 - x0) / (y1 - y0)
        return ThresholdResult(
            vth=float(vth),
            method=self.name,
            auxiliary={"target_current": config.target_current, "bracket": (float(x0), float(x1))},
        )
# >>>


# subthreshold extrapolation <<<
class SubthresholdExtrapolation(ThresholdMethod):
    """Fits log10|ID| = slope*VG + intercept inside a log-current window and inverts it."""

    name = "subthreshold_extrapolation"

    def extract(self, sweep, gm_curve, config):
        low, high = config.subthreshold_window
        log_id = sweep.log_id
        mask = np.isfinite(log_id) & (log_id >= low) & (log_id <= high)
        fit = linear_fit(sweep.vg[mask], log_id[mask])
        if fit is None:
            return self.failed("not enough points in the subthreshold window", n_points=int(mask.sum()))
        if fit.slope == 0:
            return self.failed("flat subthreshold region", r_squared=fit.r_squared)
        return ThresholdResult(
            vth=(config.target_log_current - fit.intercept) / fit.slope,
            method=self.name,
            auxiliary={
                "slope": fit.slope,
                "intercept": fit.intercept,
                "r_squared": fit.r_squared,
                "n_points": fit.n_points,
            },
        )
# >>>


# log extrapolation <<<
class LogExtrapolation(ThresholdMethod):
    """
    Tangent of log10|ID| at its steepest point, extrapolated down to a
    reference current (the off-current floor of the sweep by default).
    """

    name = "log_extrapolation"

    def extract(self, sweep, gm_curve, config):
        if len(sweep) < 3:
            return self.failed("not enough points")
        order = np.argsort(sweep.vg, kind="stable")
        vg = sweep.vg[order]
        log_id = np.log10(np.maximum(np.abs(sweep.id[order]), CURRENT_FLOOR))
        delta_vg = vg[2:] - vg[:-2]
        valid = np.nonzero(delta_vg != 0)[0]
        if valid.size == 0:
            return self.failed("constant gate voltage")
        slopes = (log_id[2:] - log_id[:-2])[valid] / delta_vg[valid]
        best = int(np.argmax(slopes))
        slope_max = float(slopes[best])
        if slope_max <= 0:
            return self.failed("log current never rises")
        idx = int(valid[best]) + 1

        reference = config.log_reference_current
        if reference is None:
            positive = np.abs(sweep.id[sweep.id != 0])
            reference = float(positive.min()) if positive.size else CURRENT_FLOOR
        vth = vg[idx] - (log_id[idx] - np.log10(reference)) / slope_max
        return ThresholdResult(
            vth=float(vth),
            method=self.name,
            auxiliary={"log_gm_max": slope_max, "vg_at_log_gm_max": float(vg[idx]), "reference_current": reference},
        )
# >>>


THRESHOLD_METHODS: Dict[str, Type[ThresholdMethod]] = {
    method.name: method
    for method in (LinearExtrapolation, ConstantCurrent, SubthresholdExtrapolation, LogExtrapolation)
}


class ThresholdVoltageExtractor:
    """
    Extracts Vth with the strategy named by the configuration.

    Args:
        config: Analysis settings; `config.vth_method` selects the strategy.
        method: Optional strategy instance overriding the configured one.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None, method: Optional[ThresholdMethod] = None) -> None:
        self.config = config if config is not None else AnalysisConfig()
        self.method = method if method is not None else THRESHOLD_METHODS[self.config.vth_method]()

    def extract(self, sweep: TransferSweep, gm_curve: TransconductanceCurve) -> ThresholdResult:
        result = self.method.extract(sweep, gm_curve, self.config)
        logger.debug("Vth of '%s' by %s: %.4g V", sweep.source or sweep.sample_name, result.method, result.vth)
        return result

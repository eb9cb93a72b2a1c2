import logging
from dataclasses import dataclass

import numpy as np

from ..datatypes import TransferSweep
from ..regression import linear_fit

logger = logging.getLogger(__name__)

MIN_SEGMENT_POINTS = 10


@dataclass(frozen=True)
class HysteresisResult:
    """
    Attributes:
        delta_vth: |Vth_forward - Vth_backward| (V).
        vth_forward: Vth of the forward segment; 0 if it could not be fitted.
        vth_backward: Vth of the backward segment; 0 if it could not be fitted.
        reliable: False when either segment could not be fitted.
        stability: Stability label derived from delta_vth.
    """

    delta_vth: float
    vth_forward: float
    vth_backward: float
    reliable: bool
    stability: str


def stability_label(delta_vth: float) -> str:
    if delta_vth < 0.5:
        return "Excellent"
    if delta_vth < 1.0:
        return "Good"
    if delta_vth < 2.0:
        return "Fair"
    if delta_vth < 3.0:
        return "Poor"
    return "Very Poor"


def segment_vth(vg: np.ndarray, id_: np.ndarray):
    """
    Vth of one sweep direction from sqrt|ID| vs VG over the middle 30-70 % of
    the segment. Returns (vth, ok).
    """
    # One point per VG, ordered by VG.
    vg, first = np.unique(vg, return_index=True)
    id_ = np.asarray(id_)[first]
    if vg.size <= MIN_SEGMENT_POINTS:
        return 0.0, False
    start, end = int(vg.size * 0.3), int(vg.size * 0.7)
    fit = linear_fit(vg[start:end], np.sqrt(np.abs(id_[start:end])))
    if fit is None or fit.slope == 0:
        return 0.0, False
    return fit.x_intercept, True


class HysteresisAnalyzer:
    """
    Threshold shift between the forward and backward halves of a hysteresis sweep.

    The sweep must carry its turning index; sweeps without one are rejected
    by returning None rather than guessing the direction.
    """

    def analyze(self, sweep: TransferSweep):
        segments = sweep.segments()
        if segments is None:
            logger.warning("Hysteresis sweep '%s' has no forward/backward split.", sweep.source or sweep.sample_name)
            return None
        (vg_fwd, id_fwd), (vg_bwd, id_bwd) = segments
        vth_forward, ok_forward = segment_vth(vg_fwd, id_fwd)
        vth_backward, ok_backward = segment_vth(vg_bwd, id_bwd)
        delta_vth = abs(vth_forward - vth_backward)
        return HysteresisResult(
            delta_vth=delta_vth,
            vth_forward=vth_forward,
            vth_backward=vth_backward,
            reliable=ok_forward and ok_backward,
            stability=stability_label(delta_vth),
        )

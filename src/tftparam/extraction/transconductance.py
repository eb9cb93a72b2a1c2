import logging

import numpy as np

from ..datatypes import TransconductanceCurve, TransferSweep

logger = logging.getLogger(__name__)


def central_difference_gm(vg: np.ndarray, id_: np.ndarray) -> TransconductanceCurve:
    """
    gm_i = |ID[i+1] - ID[i-1]| / |VG[i+1] - VG[i-1]| for every interior point.

    Points whose neighbours share the same VG are skipped. The VG of each
    point is rounded to 0.1 V so curves can be matched point by point.
    """
    vg = np.asarray(vg, dtype=float)
    id_ = np.asarray(id_, dtype=float)
    if vg.size < 3:
        return TransconductanceCurve(vg=[], gm=[], source="numerical")
    delta_vg = vg[2:] - vg[:-2]
    delta_id = id_[2:] - id_[:-2]
    valid = delta_vg != 0
    gm = np.abs(delta_id[valid] / delta_vg[valid])
    return TransconductanceCurve(vg=np.round(vg[1:-1][valid], 1), gm=gm, source="numerical")


class TransconductanceEstimator:
    """
    Derives the gm curve of a Linear or Saturation sweep.

    An instrument-measured gm column with at least one positive value is used
    as is; otherwise gm comes from central differences of ID.
    """

    def estimate(self, sweep: TransferSweep) -> TransconductanceCurve:
        measured = sweep.gm_measured
        if measured is not None and np.any(measured > 0):
            positive = measured > 0
            logger.debug("Using measured gm for '%s'.", sweep.source or sweep.sample_name)
            return TransconductanceCurve(
                vg=np.round(sweep.vg[positive], 1),
                gm=measured[positive],
                source="measured",
            )
        return central_difference_gm(sweep.vg, sweep.id)

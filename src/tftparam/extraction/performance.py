import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..constants import CURRENT_FLOOR
from ..datatypes import DeviceGeometry, OutputSweep, TransferSweep
from ..regression import linear_fit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnOffCurrents:
    ion: float
    ioff: float
    ratio: float


class PerformanceMetricsCalculator:
    @staticmethod
    def on_off(id_: np.ndarray) -> OnOffCurrents:
        """
        Ion = max(ID), Ioff = min of the positive ID values (1e-12 if none),
        ratio = Ion / max(Ioff, 1e-12).
        """
        id_ = np.asarray(id_, dtype=float)
        if id_.size == 0:
            return OnOffCurrents(ion=0.0, ioff=CURRENT_FLOOR, ratio=0.0)
        ion = float(id_.max())
        positive = id_[id_ > 0]
        ioff = float(positive.min()) if positive.size else CURRENT_FLOOR
        return OnOffCurrents(ion=ion, ioff=ioff, ratio=ion / max(ioff, CURRENT_FLOOR))

    @staticmethod
    def on_resistance(sweep: OutputSweep) -> Optional[float]:
        """
        Ron = 1 / slope of ID vs VD over points 2-6 of the highest gate-voltage curve.

        Returns None when fewer than 3 points are available or the slope is not positive.
        """
        if sweep.is_empty or not sweep.gate_voltages:
            return None
        highest = int(np.argmax(sweep.gate_voltages))
        vd, id_ = sweep.curve(highest)
        vd, id_ = vd[1:6], id_[1:6]
        if vd.size < 3:
            return None
        fit = linear_fit(vd, id_)
        if fit is None or fit.slope <= 0:
            return None
        return 1.0 / fit.slope

    @staticmethod
    def saturation_current(sweep: TransferSweep, geometry: Optional[DeviceGeometry] = None) -> float:
        """max(ID) of a Saturation sweep, in A/mm when a geometry is given."""
        if sweep.is_empty:
            return 0.0
        id_sat = float(sweep.id.max())
        if geometry is not None:
            return id_sat / geometry.width_mm
        return id_sat

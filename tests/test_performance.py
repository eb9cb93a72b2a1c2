import numpy as np
import pytest

from tftparam.datatypes import MeasurementKind, OutputSweep
from tftparam.extraction import PerformanceMetricsCalculator


@pytest.mark.parametrize(
    "id_",
    [
        np.array([1e-12, 3e-10, 5e-6, 2e-7]),
        np.array([-1e-9, 0.0, 3e-12, 5e-6, 2e-7]),
        np.array([4e-15, 1e-3]),
        np.array([-1e-9, 0.0]),
    ],
)
def test_on_off_ratio_definition(id_):
    result = PerformanceMetricsCalculator.on_off(id_)
    positive = id_[id_ > 0]
    ioff = positive.min() if positive.size else 1e-12
    assert result.ion == id_.max()
    assert result.ioff == ioff
    assert result.ratio == id_.max() / max(ioff, 1e-12)


def test_on_off_of_empty_sweep():
    result = PerformanceMetricsCalculator.on_off(np.array([]))
    assert result.ion == 0.0
    assert result.ratio == 0.0


def make_output(curves):
    vd, id_, index = [], [], []
    for position, (vd_curve, id_curve) in enumerate(curves.values()):
        vd.append(vd_curve)
        id_.append(id_curve)
        index.append(np.full(len(vd_curve), position))
    return OutputSweep(
        kind=MeasurementKind.OUTPUT,
        sample_name="S",
        vd=np.concatenate(vd),
        id=np.concatenate(id_),
        vg_index=np.concatenate(index),
        gate_voltages=tuple(curves),
    )


def test_on_resistance_uses_highest_gate_voltage():
    vd = np.arange(0, 10.0)
    sweep = make_output({20.0: (vd, vd / 1e3), 0.0: (vd, vd / 1e6)})
    assert PerformanceMetricsCalculator.on_resistance(sweep) == pytest.approx(1e3)


def test_on_resistance_with_flat_curve():
    vd = np.arange(0, 10.0)
    sweep = make_output({10.0: (vd, np.full(vd.size, 1e-6))})
    assert PerformanceMetricsCalculator.on_resistance(sweep) is None


def test_on_resistance_with_too_few_points():
    vd = np.arange(0, 3.0)
    sweep = make_output({10.0: (vd, vd / 1e3)})
    assert PerformanceMetricsCalculator.on_resistance(sweep) is None


def test_saturation_current(saturation_sweep, geometry):
    id_sat = PerformanceMetricsCalculator.saturation_current(saturation_sweep)
    assert id_sat == saturation_sweep.id.max()
    normalized = PerformanceMetricsCalculator.saturation_current(saturation_sweep, geometry)
    assert normalized == pytest.approx(id_sat / 0.1)

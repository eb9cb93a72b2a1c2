import numpy as np
import pytest

from tftparam.constants import oxide_capacitance
from tftparam.datatypes import (
    AnalysisConfig,
    DeviceGeometry,
    MeasurementKind,
    OutputSweep,
    SampleParameterSet,
    TransferSweep,
    Unavailable,
    is_available,
)


def test_unavailable_is_distinct_from_zero():
    missing = Unavailable("no Saturation sweep")
    assert not missing
    assert missing != 0.0
    assert str(missing) == "N/A"
    assert is_available(0.0)
    assert not is_available(missing)


def test_geometry_oxide_capacitance():
    geometry = DeviceGeometry(W=100e-6, L=20e-6, tox=100e-9)
    assert geometry.cox == pytest.approx(3.9 * 8.854e-12 / 100e-9)
    assert geometry.cox_per_cm2 == pytest.approx(geometry.cox * 1e-4)
    assert geometry.width_mm == pytest.approx(0.1)


@pytest.mark.parametrize("values", [dict(W=0, L=1e-5, tox=1e-7), dict(W=1e-4, L=1e-5, tox=-1e-7)])
def test_geometry_rejects_non_positive_values(values):
    with pytest.raises(ValueError):
        DeviceGeometry(**values)


def test_oxide_capacitance_rejects_zero_thickness():
    with pytest.raises(ValueError):
        oxide_capacitance(0.0)


def test_transfer_sweep_validates_columns():
    with pytest.raises(ValueError):
        TransferSweep(kind=MeasurementKind.LINEAR, sample_name="S", vg=[0, 1, 2], id=[1, 2])
    with pytest.raises(ValueError):
        TransferSweep(kind=MeasurementKind.OUTPUT, sample_name="S", vg=[0, 1], id=[1, 2])


def test_transfer_sweep_arrays_are_read_only():
    sweep = TransferSweep(kind=MeasurementKind.LINEAR, sample_name="S", vg=[0, 1, 2], id=[1e-9, 1e-8, 1e-7])
    with pytest.raises(ValueError):
        sweep.vg[0] = 5.0
    np.testing.assert_allclose(sweep.log_id, [-9, -8, -7])


def test_transfer_sweep_segments_share_turning_point():
    sweep = TransferSweep(
        kind=MeasurementKind.HYSTERESIS,
        sample_name="S",
        vg=[0, 1, 2, 1, 0],
        id=[1, 2, 3, 2, 1],
        turning_index=2,
    )
    (vg_forward, _), (vg_backward, _) = sweep.segments()
    np.testing.assert_array_equal(vg_forward, [0, 1, 2])
    np.testing.assert_array_equal(vg_backward, [2, 1, 0])


def test_transfer_sweep_rejects_turning_index_at_the_edge():
    with pytest.raises(ValueError):
        TransferSweep(kind=MeasurementKind.HYSTERESIS, sample_name="S", vg=[0, 1, 2], id=[1, 2, 3], turning_index=2)


def test_output_sweep_curve_is_sorted_by_drain_voltage():
    sweep = OutputSweep(
        kind=MeasurementKind.OUTPUT,
        sample_name="S",
        vd=[2, 0, 1, 0, 1],
        id=[3, 1, 2, 5, 6],
        vg_index=[0, 0, 0, 1, 1],
        gate_voltages=(0, 10),
    )
    vd, id_ = sweep.curve(0)
    np.testing.assert_array_equal(vd, [0, 1, 2])
    np.testing.assert_array_equal(id_, [1, 2, 3])
    assert sweep.gate_voltages == (0.0, 10.0)


def test_output_sweep_rejects_unknown_gate_index():
    with pytest.raises(ValueError):
        OutputSweep(kind=MeasurementKind.OUTPUT, sample_name="S", vd=[0], id=[1], vg_index=[3], gate_voltages=(0,))


def test_parameter_set_value_falls_back_for_unavailable():
    sample = SampleParameterSet(sample_name="S", parameters={"theta": 0.0, "dit": Unavailable("geometry missing")})
    assert sample["theta"] == 0.0
    assert sample.value("theta") == 0.0
    assert sample.value("dit") is None
    assert sample.value("ron", default=-1.0) == -1.0


@pytest.mark.parametrize(
    "values",
    [
        dict(vth_method="second_derivative"),
        dict(target_current=0.0),
        dict(ss_window=(-6.0, -10.0)),
        dict(ss_min_points=1),
        dict(n_process=0),
    ],
)
def test_config_rejects_invalid_values(values):
    with pytest.raises(ValueError):
        AnalysisConfig(**values)


def test_dielectric_permittivity_is_set_on_geometry():
    sio2 = DeviceGeometry(W=100e-6, L=20e-6, tox=100e-9)
    high_k = DeviceGeometry(W=100e-6, L=20e-6, tox=100e-9, epsilon_r=7.8)
    assert high_k.cox == pytest.approx(2 * sio2.cox)
    with pytest.raises(TypeError):
        AnalysisConfig(epsilon_r=7.8)

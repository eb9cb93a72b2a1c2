import numpy as np
import pytest

from conftest import vg_grid
from tftparam.datatypes import AnalysisConfig, MeasurementKind, TransferSweep
from tftparam.extraction import (
    ConstantCurrent,
    LinearExtrapolation,
    ThresholdVoltageExtractor,
    TransconductanceEstimator,
)


def make_sweep(vg, id_):
    return TransferSweep(kind=MeasurementKind.LINEAR, sample_name="S", vg=vg, id=id_, vds=0.1)


def extract(sweep, **config):
    gm_curve = TransconductanceEstimator().estimate(sweep)
    return ThresholdVoltageExtractor(AnalysisConfig(**config)).extract(sweep, gm_curve)


@pytest.fixture
def steep_sweep():
    # Vth = 2 V: 10 mV/decade below threshold, constant gm above it.
    vg = np.round(np.linspace(0, 4, 401), 2)
    with np.errstate(under="ignore"):
        id_ = np.where(vg <= 2.0, 1e-7 * 10 ** ((vg - 2.0) / 0.01), 1e-7 + 1e-4 * (vg - 2.0))
    return make_sweep(vg, id_)


def test_constant_current_recovers_known_threshold(steep_sweep):
    targets = [1e-9, 1e-8, 1e-7, 1e-6]
    vths = [extract(steep_sweep, target_current=target).vth for target in targets]
    recovered = [abs(vth - 2.0) <= 0.05 for vth in vths]
    assert sum(recovered) >= 3


def test_constant_current_is_monotonic_in_target(linear_sweep):
    targets = np.logspace(-11, -6, 11)
    vths = [extract(linear_sweep, target_current=target).vth for target in targets]
    assert np.all(np.diff(vths) >= 0)


def test_constant_current_interpolates_on_log_scale():
    sweep = make_sweep([0.0, 1.0, 2.0], [1e-9, 1e-8, 1e-7])
    result = extract(sweep, target_current=10 ** -7.5)
    assert result.vth == pytest.approx(1.5)
    assert result.method == "constant_current"


def test_constant_current_target_never_reached():
    sweep = make_sweep([0.0, 1.0, 2.0], [1e-12, 1e-11, 1e-10])
    result = extract(sweep, target_current=1e-7)
    assert not result.is_valid
    assert result.vth == 0.0


def test_constant_current_sweep_starting_above_target():
    sweep = make_sweep([0.0, 1.0, 2.0], [1e-6, 2e-6, 3e-6])
    assert not extract(sweep, target_current=1e-7).is_valid


def test_linear_extrapolation_in_linear_regime():
    vg = vg_grid(-10.0, 20.0, 0.1)
    sweep = make_sweep(vg, np.where(vg > 2.0, 1e-5 * (vg - 2.0), 0.0))
    result = extract(sweep, vth_method="linear_extrapolation")
    assert result.is_valid
    assert result.vth == pytest.approx(2.0, abs=0.2)
    assert result.auxiliary["gm_max"] == pytest.approx(1e-5)


def test_linear_extrapolation_without_gm():
    sweep = make_sweep([0.0, 1.0], [1e-9, 1e-8])
    assert not extract(sweep, vth_method="linear_extrapolation").is_valid


def test_subthreshold_extrapolation():
    vg = vg_grid(0.0, 4.0, 0.1)
    sweep = make_sweep(vg, 1e-9 * 10 ** ((vg - 2.0) / 0.25))
    result = extract(sweep, vth_method="subthreshold_extrapolation", subthreshold_window=(-10, -6), target_log_current=-9)
    assert result.vth == pytest.approx(2.0, abs=1e-6)
    assert result.auxiliary["r_squared"] == pytest.approx(1.0)


def test_subthreshold_extrapolation_with_empty_window():
    sweep = make_sweep([0.0, 1.0, 2.0], [1e-3, 1e-3, 1e-3])
    result = extract(sweep, vth_method="subthreshold_extrapolation")
    assert not result.is_valid


def test_log_extrapolation_reaches_the_off_current():
    vg = vg_grid(0.0, 4.0, 0.1)
    sweep = make_sweep(vg, 1e-12 + 1e-9 * 10 ** ((vg - 2.0) / 0.25))
    # The exponential branch meets the 1 pA floor at 1.25 V.
    assert extract(sweep, vth_method="log_extrapolation").vth == pytest.approx(1.25, abs=0.01)
    assert extract(sweep, vth_method="log_extrapolation", log_reference_current=1e-10).vth == pytest.approx(1.75, abs=0.01)


def test_strategy_override():
    sweep = make_sweep([0.0, 1.0, 2.0], [1e-9, 1e-8, 1e-7])
    gm_curve = TransconductanceEstimator().estimate(sweep)
    extractor = ThresholdVoltageExtractor(AnalysisConfig(vth_method="linear_extrapolation"), method=ConstantCurrent())
    assert extractor.extract(sweep, gm_curve).method == "constant_current"
    assert isinstance(ThresholdVoltageExtractor(AnalysisConfig(vth_method="linear_extrapolation")).method, LinearExtrapolation)

import math

import numpy as np
import pytest

from tftparam.extraction import TLMAnalyzer, distance_from_name, resistance_from_iv

# R_total = 2 Rc + (Rsh / W) d with Rc = 50 Ω, Rsh = 200 Ω/sq, W = 1 mm.
RC = 50.0
RSH = 200.0


def total_resistance(distance_mm):
    return 2 * RC + RSH * np.asarray(distance_mm, dtype=float)


def iv_sweep(resistance):
    voltage = np.linspace(-3.0, 3.0, 13)
    return voltage, voltage / resistance


def test_parameters_from_resistance_line():
    distances = [0.5, 1.0, 1.5, 2.0, 2.5]
    result = TLMAnalyzer(contact_width=1.0).analyze(distances, total_resistance(distances))
    assert result.rc == pytest.approx(RC)
    assert result.rsh == pytest.approx(RSH)
    assert result.slope == pytest.approx(200.0)
    assert result.intercept == pytest.approx(100.0)
    # LT = 100 / (2 * 200) = 0.25 mm.
    assert result.transfer_length == pytest.approx(0.025)
    assert result.rho_c == pytest.approx(200.0 * 0.025 ** 2)
    assert result.r_squared == pytest.approx(1.0)
    assert result.n_points == 5


def test_sheet_resistance_scales_with_contact_width():
    distances = [0.5, 1.0, 2.0]
    result = TLMAnalyzer(contact_width=2.0).analyze(distances, total_resistance(distances))
    assert result.rsh == pytest.approx(2 * RSH)
    assert result.rc == pytest.approx(RC)


def test_unusable_points_are_dropped():
    distances = [0.0, 0.5, 1.0, 1.5]
    resistances = list(total_resistance(distances))
    resistances[2] = math.inf
    result = TLMAnalyzer().analyze(distances, resistances)
    assert result.n_points == 2
    assert result.rc == pytest.approx(RC)


def test_fewer_than_two_spacings_raise():
    with pytest.raises(ValueError):
        TLMAnalyzer().analyze([0.0, 1.0], [100.0, 300.0])
    with pytest.raises(ValueError):
        TLMAnalyzer(contact_width=0.0)


def test_resistance_from_iv_sweep():
    voltage, current = iv_sweep(1e3)
    fit = resistance_from_iv(voltage, current)
    assert fit.resistance == pytest.approx(1e3)
    assert fit.r_squared == pytest.approx(1.0)
    # Inside ±2 V, without the zero-current point at 0 V.
    assert fit.n_points == 8


def test_resistance_of_open_circuit_is_infinite():
    voltage = np.linspace(-2.0, 2.0, 9)
    fit = resistance_from_iv(voltage, np.full(voltage.size, 1e-15))
    assert math.isinf(fit.resistance)
    assert resistance_from_iv(voltage, np.zeros(voltage.size)) is None
    assert resistance_from_iv([1.0], [1e-3]) is None


@pytest.mark.parametrize(
    "name, expected",
    [("1.5", 1.5), ("d_2,0mm", 2.0), ("7.5mm", 7.5), ("IV sweep", None), ("12", None), ("0.3", None)],
)
def test_distance_from_name(name, expected):
    assert distance_from_name(name) == expected


def test_analyze_sheets():
    sheets = {distance: iv_sweep(float(total_resistance(float(distance)))) for distance in ("2.0", "0.5", "1.0")}
    sheets["notes"] = iv_sweep(1.0)
    result, measurements = TLMAnalyzer().analyze_sheets(sheets)
    assert [distance for distance, _ in measurements] == [0.5, 1.0, 2.0]
    assert measurements[0][1].resistance == pytest.approx(200.0)
    assert result.rc == pytest.approx(RC)
    assert result.rsh == pytest.approx(RSH)

import pytest

from tftparam.aggregation import evaluate_quality, grade_from_score
from tftparam.datatypes import Unavailable


@pytest.fixture
def parameters():
    return {"vth": 2.0, "gm_max": 1e-6, "mu_fe": 10.0, "on_off_ratio": 1e6}


def test_complete_sample_is_excellent(parameters):
    quality = evaluate_quality(parameters, [], {"SS": 0.99})
    assert quality.score == 100
    assert quality.grade == "excellent"
    assert quality.issues == ()


def test_missing_parameters_are_penalized(parameters):
    parameters["vth"] = Unavailable("no transfer sweep")
    parameters["mu_fe"] = Unavailable("geometry missing")
    quality = evaluate_quality(parameters, [])
    assert quality.score == 65
    assert quality.grade == "fair"
    assert quality.issues == ("Vth missing", "muFE missing")


def test_zero_values_are_not_missing(parameters):
    # A depletion-mode device can have Vth = 0 V.
    parameters["vth"] = 0.0
    quality = evaluate_quality(parameters, [])
    assert quality.score == 100
    assert quality.grade == "excellent"
    assert quality.issues == ()

    parameters["mu_fe"] = 0.0
    assert evaluate_quality(parameters, []).score == 100


def test_warnings_are_penalized(parameters):
    quality = evaluate_quality(parameters, ["a", "b"])
    assert quality.score == 90


def test_weak_fit_caps_the_grade(parameters):
    quality = evaluate_quality(parameters, [], {"Y-function": 0.93})
    assert quality.score == 95
    assert quality.grade == "good"


def test_poor_fit_and_short_sweep(parameters):
    parameters["on_off_ratio"] = 50.0
    quality = evaluate_quality(parameters, [], {"SS": 0.5})
    assert quality.score == 80
    assert len(quality.issues) == 2


def test_score_is_not_negative():
    quality = evaluate_quality({}, ["w"] * 30)
    assert quality.score == 0
    assert quality.grade == "poor"


@pytest.mark.parametrize("score, grade", [(95, "excellent"), (90, "excellent"), (80, "good"), (60, "fair"), (10, "poor")])
def test_grade_from_score(score, grade):
    assert grade_from_score(score) == grade

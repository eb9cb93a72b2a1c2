import pytest

from tftparam.aggregation import SampleAggregator
from tftparam.datatypes import AnalysisConfig, SampleParameterSet, Unavailable
from tftparam.report import SampleReport


@pytest.mark.parametrize(
    "value, unit, text",
    [
        (1.5e-6, "A", "1.5 uA"),
        (2.2e-9, "S", "2.2 nS"),
        (4.7e3, "Ω", "4.7 kΩ"),
        (0.0, "A", "0 A"),
        (Unavailable("no IDVD sweep"), "Ω", "N/A"),
        (None, "A", "N/A"),
    ],
)
def test_format_eng(value, unit, text):
    assert SampleReport.format_eng(value, unit) == text


def test_report_lists_parameters_and_warnings(geometry, linear_sweep):
    aggregator = SampleAggregator(geometry=geometry, config=AnalysisConfig(vth_method="linear_extrapolation"))
    results = aggregator.analyze([linear_sweep])
    text = SampleReport(results.values()).report()

    assert "Sample SampleA:" in text
    assert "Measurements: IDVG-Linear" in text
    assert "Vth: 1.99" in text
    assert "ID_sat: N/A (no Saturation sweep)" in text
    assert "muFE:" in text
    assert "cm²/V·s" in text


def test_report_without_samples():
    assert "No samples" in SampleReport([]).report()


def test_report_shows_subthreshold_fit_quality():
    sample = SampleParameterSet(
        sample_name="SampleB",
        parameters={"ss": 0.25},
        details={"ss_quality": "Good", "ss_quality_score": 70.0},
    )
    text = SampleReport([sample]).report()
    assert "SS: 0.250 V/dec" in text
    assert "SS fit: Good (70/100)" in text

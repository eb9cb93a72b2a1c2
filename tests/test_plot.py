import matplotlib.pyplot as plt
import numpy as np
import pytest

from conftest import hysteresis_sweep
from tftparam.aggregation import SampleAggregator
from tftparam.plot import Expression, Plotter, evaluate_expression, plot_hysteresis, plot_output, plot_transfer


@pytest.fixture
def sample(geometry, linear_sweep, saturation_sweep, output_sweep):
    sweeps = [linear_sweep, saturation_sweep, output_sweep, hysteresis_sweep(shift=0.5)]
    return SampleAggregator(geometry=geometry).analyze(sweeps)["SampleA"]


@pytest.mark.parametrize("regime", ["linear", "saturation"])
def test_plot_transfer_saves_figure(sample, regime, tmp_path):
    path = tmp_path / f"transfer_{regime}.png"
    fig = plot_transfer(sample, regime=regime, save_fig=str(path))
    assert path.exists()
    assert len(fig.axes) == 2
    assert fig.axes[0].get_yscale() == "log"
    plt.close(fig)


def test_plot_output_draws_one_line_per_gate_voltage(sample, tmp_path):
    path = tmp_path / "output.png"
    fig = plot_output(sample, save_fig=str(path))
    assert path.exists()
    assert len(fig.axes[0].get_lines()) == 3
    plt.close(fig)


def test_plot_hysteresis(sample, tmp_path):
    path = tmp_path / "hysteresis.png"
    fig = plot_hysteresis(sample, save_fig=str(path))
    assert path.exists()
    assert len(fig.axes[0].get_lines()) == 2
    plt.close(fig)


def test_missing_curve_is_reported(geometry, linear_sweep):
    sample = SampleAggregator(geometry=geometry).analyze([linear_sweep])["SampleA"]
    with pytest.raises(ValueError):
        plot_output(sample)


def test_expression_evaluation():
    sqrt_id = Expression(variables=["id"], function=lambda x: np.sqrt(x), label="sqrt")
    values, label = evaluate_expression(sqrt_id, {"id": np.array([4.0, 9.0])})
    np.testing.assert_allclose(values, [2.0, 3.0])
    assert label == "sqrt"
    with pytest.raises(KeyError):
        evaluate_expression(sqrt_id, {"vg": np.array([1.0])})


def test_plotter_twin_axes_formatting():
    plotter = Plotter(fig_size=(4, 3))
    fig, ax, ax2 = plotter.create_figure_with_twin(x_label="VG", y_label="ID", y2_label="gm", y_scale="log", y2_lim=(0, 1))
    assert ax.get_xlabel() == "VG"
    assert ax2.get_ylabel() == "gm"
    assert ax2.get_ylim() == (0, 1)
    plt.close(fig)

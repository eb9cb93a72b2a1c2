# imports <<<
from typing import Optional, Tuple

from matplotlib.figure import Figure

from ..datatypes import SampleParameterSet
from .expressions import (
    ABS_ID_EXPRESSION,
    GM_EXPRESSION,
    ID_EXPRESSION,
    SQRT_ID_EXPRESSION,
    VD_EXPRESSION,
    VG_EXPRESSION,
    evaluate_expression,
)
from .plotter import Plotter
# >>>


def _curve(sample: SampleParameterSet, name: str) -> dict:
    try:
        return sample.curves[name]
    except KeyError:
        raise ValueError(f"Sample '{sample.sample_name}' has no {name.replace('_', ' ')} data.") from None


# transfer <<<
def plot_transfer(
    sample: SampleParameterSet,
    regime: str = "linear",
    fig_size: Optional[Tuple[int, int]] = (6, 4),
    save_fig: str = "",
    show: bool = False,
) -> Figure:
    """
    Plots |ID| on a log axis and gm on a twin linear axis against VG.

    Args:
        sample: An analyzed sample.
        regime: "linear" or "saturation".
        fig_size: Figure size in inches.
        save_fig: Filename to save the figure.
        show: Open the figure window when done.

    Example:
        plot_transfer(results["SampleA"], regime="saturation", save_fig="sampleA_sat.png")
    """
    transfer = _curve(sample, f"transfer_{regime}")
    gm_curve = _curve(sample, f"gm_{regime}")
    vg, x_label = evaluate_expression(VG_EXPRESSION, transfer)
    id_, y_label = evaluate_expression(ABS_ID_EXPRESSION, transfer)
    vg_gm, _ = evaluate_expression(VG_EXPRESSION, gm_curve)
    gm, y2_label = evaluate_expression(GM_EXPRESSION, gm_curve)

    plotter = Plotter(fig_size=fig_size)
    _, ax, ax2 = plotter.create_figure_with_twin(
        title=f"{sample.sample_name}: transfer ({regime})",
        x_label=x_label,
        y_label=y_label,
        y2_label=y2_label,
        y_scale="log",
        y2_eng_format=True,
    )
    plotter.plot_data(ax2, vg_gm, gm, line_style="dashed", color="tab:orange", end_plotting=False)
    return plotter.plot_data(
        ax, vg, id_,
        color="tab:blue",
        legend=["$|I_D|$"],
        legend_placement="best",
        legend_eng_format=False,
        save_fig=save_fig,
        show=show,
    )
# >>>


# output <<<
def plot_output(
    sample: SampleParameterSet,
    fig_size: Optional[Tuple[int, int]] = (8, 4),
    save_fig: str = "",
    show: bool = False,
) -> Figure:
    """Plots the ID-VD family, one line per gate voltage."""
    output = _curve(sample, "output")
    vd = [evaluate_expression(VD_EXPRESSION, {"vd": values})[0] for values in output["vd"]]
    id_ = [evaluate_expression(ID_EXPRESSION, {"id": values})[0] for values in output["id"]]

    plotter = Plotter(fig_size=fig_size)
    _, ax = plotter.create_figure(
        title=f"{sample.sample_name}: output",
        x_label=VD_EXPRESSION.label,
        y_label=ID_EXPRESSION.label,
        y_eng_format=True,
    )
    return plotter.plot_data(
        ax, vd, id_,
        legend=list(output["gate_voltages"]),
        legend_title="$V_{G}$",
        save_fig=save_fig,
        show=show,
    )
# >>>


# hysteresis <<<
def plot_hysteresis(
    sample: SampleParameterSet,
    fig_size: Optional[Tuple[int, int]] = (6, 4),
    save_fig: str = "",
    show: bool = False,
) -> Figure:
    """Plots sqrt|ID| of the forward and backward segments against VG."""
    hysteresis = _curve(sample, "hysteresis")
    forward = {"vg": hysteresis["vg_forward"], "id": hysteresis["id_forward"]}
    backward = {"vg": hysteresis["vg_backward"], "id": hysteresis["id_backward"]}

    plotter = Plotter(fig_size=fig_size)
    title = f"{sample.sample_name}: hysteresis"
    stability = sample.details.get("stability")
    if stability is not None:
        title += f" ({stability})"
    _, ax = plotter.create_figure(title=title, x_label=VG_EXPRESSION.label, y_label=SQRT_ID_EXPRESSION.label)
    plotter.plot_data(
        ax,
        evaluate_expression(VG_EXPRESSION, forward)[0],
        evaluate_expression(SQRT_ID_EXPRESSION, forward)[0],
        color="tab:blue",
        end_plotting=False,
    )
    return plotter.plot_data(
        ax,
        evaluate_expression(VG_EXPRESSION, backward)[0],
        evaluate_expression(SQRT_ID_EXPRESSION, backward)[0],
        line_style="dashed",
        color="tab:red",
        legend=["forward", "backward"],
        legend_placement="best",
        save_fig=save_fig,
        show=show,
    )
# >>>

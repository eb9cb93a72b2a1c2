# imports <<<
from typing import List, Optional, Sequence, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.ticker import EngFormatter

# >>>

Curve = Union[np.ndarray, Sequence[float]]


class Plotter:
    def __init__(
        self,
        fig_size: Optional[Tuple[int, int]] = (8, 4),
        line_width: float = 1.5,
        grid_color: str = "0.9",
        show_legend: bool = True,
    ) -> None:
        self.fig_size = fig_size
        self.line_width = line_width
        self.grid_color = grid_color
        self.show_legend = show_legend

    # legend columns <<<
    def _get_legend_ncols(self, labels: List[str], fig: Figure, legend_placement: str) -> int:
        """
        Number of legend columns so that the labels fit in the figure width
        (top/bottom placement) or height (side placement).
        """
        # Average character width in inches at the default font size.
        char_inch = plt.rcParams["font.size"] * 0.5 / fig.dpi
        legend_len = len("".join(labels))

        if legend_placement in ("bottom", "top"):
            symbol_inch = 0.15
            legend_width = legend_len * (char_inch + symbol_inch)
            nrow = max(int(np.ceil(legend_width / fig.get_size_inches()[0])), 1)
            return min(int(np.ceil(len(labels) / nrow)), len(labels))
        return max(int(np.ceil(legend_len * char_inch / fig.get_size_inches()[1])), 1)
    # >>>

    # axes <<<
    def _configure_axis(
        self,
        ax: Axes,
        axis: str,
        lim: Optional[Tuple[float, float]],
        scale: str,
        eng_format: bool,
    ) -> None:
        if lim is not None:
            getattr(ax, f"set_{axis}lim")(*lim)
        if scale:
            getattr(ax, f"set_{axis}scale")(scale)
        if eng_format:
            getattr(ax, f"{axis}axis").set_major_formatter(EngFormatter(unit=""))

    def create_figure(
        self,
        title: str = "",
        x_label: str = "",
        y_label: str = "",
        x_lim: Optional[Tuple[float, float]] = None,
        y_lim: Optional[Tuple[float, float]] = None,
        x_scale: str = "",
        y_scale: str = "",
        x_eng_format: bool = False,
        y_eng_format: bool = False,
    ) -> Tuple[Figure, Axes]:

        fig, ax = plt.subplots(figsize=self.fig_size, tight_layout=True)
        ax.set_title(title)
        ax.set_xlabel(x_label)
        ax.set_ylabel(y_label)
        ax.grid(True, which="major", ls="--", color=self.grid_color)
        self._configure_axis(ax, "x", x_lim, x_scale, x_eng_format)
        self._configure_axis(ax, "y", y_lim, y_scale, y_eng_format)
        return fig, ax

    def create_figure_with_twin(
        self,
        title: str = "",
        x_label: str = "",
        y_label: str = "",
        y2_label: str = "",
        x_lim: Optional[Tuple[float, float]] = None,
        y_lim: Optional[Tuple[float, float]] = None,
        y2_lim: Optional[Tuple[float, float]] = None,
        x_scale: str = "",
        y_scale: str = "",
        y2_scale: str = "",
        x_eng_format: bool = False,
        y_eng_format: bool = False,
        y2_eng_format: bool = False,
    ) -> Tuple[Figure, Axes, Axes]:

        fig, ax = self.create_figure(
            title=title,
            x_label=x_label,
            y_label=y_label,
            x_lim=x_lim,
            y_lim=y_lim,
            x_scale=x_scale,
            y_scale=y_scale,
            x_eng_format=x_eng_format,
            y_eng_format=y_eng_format,
        )
        ax2 = ax.twinx()
        ax2.set_ylabel(y2_label)
        self._configure_axis(ax2, "y", y2_lim, y2_scale, y2_eng_format)
        return fig, ax, ax2
    # >>>

    # plot data <<<
    def plot_data(
        self,
        ax: Axes,
        x: Union[Curve, List[Curve]],
        y: Union[Curve, List[Curve]],
        line_style: str = "solid",
        color: Optional[str] = None,
        legend: Optional[Sequence[Union[float, str]]] = None,
        legend_title: Optional[str] = None,
        legend_placement: str = "right",
        legend_eng_format: bool = True,
        save_fig: str = "",
        end_plotting: bool = True,
        show: bool = False,
    ) -> Figure:
        """
        Draws one curve, or one line per item when x and y are lists of curves.

        The legend is added once plotting ends; pass end_plotting=False when
        more data goes on the same figure (e.g. a twin axis).
        """
        if isinstance(x, (list, tuple)) and isinstance(y, (list, tuple)) and len(x) and np.ndim(x[0]) > 0:
            pairs = list(zip(x, y))
        else:
            pairs = [(x, y)]
        for x_item, y_item in pairs:
            ax.plot(np.asarray(x_item), np.asarray(y_item), lw=self.line_width, ls=line_style, color=color)

        if end_plotting:
            if legend is not None and len(legend) and self.show_legend:
                self._add_legend(ax, legend, legend_title, legend_placement, legend_eng_format)
            if save_fig:
                ax.figure.savefig(save_fig, bbox_inches="tight")
            if show:
                plt.show()
        return ax.figure

    def _add_legend(self, ax, legend, legend_title, legend_placement, legend_eng_format) -> None:
        if legend_eng_format and isinstance(legend[0], (int, float, np.number)):
            formatter = EngFormatter(unit="V")
            labels = [formatter(val) for val in legend]
        else:
            labels = [str(val) for val in legend]
        ncol = self._get_legend_ncols(labels, ax.figure, legend_placement)

        if legend_placement == "bottom":
            leg = ax.legend(labels, loc="upper center", bbox_to_anchor=(0.5, -0.25), ncol=ncol, title=legend_title)
        elif legend_placement == "top":
            leg = ax.legend(labels, loc="lower center", bbox_to_anchor=(0.5, 1.05), ncol=ncol, title=legend_title)
        elif legend_placement == "best":
            leg = ax.legend(labels, loc="best", ncol=ncol, title=legend_title)
        else:
            leg = ax.legend(labels, loc="center left", bbox_to_anchor=(1, 0.5), ncol=ncol, title=legend_title)
        if legend_title:
            leg.get_title().set_fontsize("large")
    # >>>

from .plotter import Plotter
from .expressions import Expression, evaluate_expression
from .curves import plot_hysteresis, plot_output, plot_transfer

__all__ = ["Plotter", "Expression", "evaluate_expression", "plot_transfer", "plot_output", "plot_hysteresis"]

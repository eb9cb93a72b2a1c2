from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np


class Expression:
    """
    A plotted quantity: a function of one or more named curve arrays plus its axis label.

    Examples:
        sqrt_id = Expression(variables=["id"], function=lambda x: np.sqrt(np.abs(x)), label="$\\sqrt{I_D}$")
    """

    def __init__(
        self,
        variables: List[str],
        label: str = "",
        function: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.variables = variables
        self.label = label
        self.function = (
            function
            if function is not None
            else (lambda *x: x[0] if len(x) == 1 else x)
        )


def evaluate_expression(expression: Expression, curve: Dict[str, Any]) -> Tuple[Any, str]:
    """
    Applies an expression to a curve dict of named arrays.

    Returns the computed values and the expression's label. Raises KeyError
    when the curve lacks one of the expression's variables.
    """
    missing = [var for var in expression.variables if var not in curve]
    if missing:
        raise KeyError(f"Curve has no {', '.join(missing)} data.")
    values = expression.function(*(curve[var] for var in expression.variables))
    return values, expression.label


VG_EXPRESSION = Expression(variables=["vg"], label="$V_{G}\\ (V)$")
VD_EXPRESSION = Expression(variables=["vd"], label="$V_{D}\\ (V)$")
ID_EXPRESSION = Expression(variables=["id"], label="$I_{D}\\ (A)$")
ABS_ID_EXPRESSION = Expression(
    variables=["id"],
    function=lambda x: np.abs(np.asarray(x)),
    label="$|I_{D}|\\ (A)$"
)
SQRT_ID_EXPRESSION = Expression(
    variables=["id"],
    function=lambda x: np.sqrt(np.abs(np.asarray(x))),
    label="$\\sqrt{|I_{D}|}\\ (A^{1/2})$"
)
GM_EXPRESSION = Expression(variables=["gm"], label="$g_{m}\\ (S)$")

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import numpy as np

from .constants import EPSILON_R_SIO2, oxide_capacitance


class MeasurementKind(enum.Enum):
    OUTPUT = "IDVD"
    LINEAR = "IDVG-Linear"
    SATURATION = "IDVG-Saturation"
    HYSTERESIS = "IDVG-Hysteresis"

    @property
    def is_transfer(self) -> bool:
        return self is not MeasurementKind.OUTPUT


VthMethod = Literal[
    "linear_extrapolation",
    "constant_current",
    "subthreshold_extrapolation",
    "log_extrapolation",
]
VTH_METHODS: Tuple[str, ...] = (
    "linear_extrapolation",
    "constant_current",
    "subthreshold_extrapolation",
    "log_extrapolation",
)


def _frozen_array(values: Any) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class Unavailable:
    """
    Marks a parameter that could not be computed.

    Distinct from a computed zero: theta or Dit may legitimately be 0.

    Attributes:
        reason: Why the parameter is missing.
    """

    reason: str = ""

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return "N/A"


ParameterValue = Union[float, Unavailable]


def is_available(value: Any) -> bool:
    return not isinstance(value, Unavailable)


@dataclass(frozen=True)
class DeviceGeometry:
    """
    Channel geometry of a transistor.

    Attributes:
        W: Channel width (m).
        L: Channel length (m).
        tox: Gate oxide thickness (m).
        epsilon_r: Relative permittivity of the gate dielectric.
    """

    W: float
    L: float
    tox: float
    epsilon_r: float = EPSILON_R_SIO2

    def __post_init__(self) -> None:
        for name in ("W", "L", "tox", "epsilon_r"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise ValueError(f"Geometry value {name}={value} must be positive.")

    @property
    def cox(self) -> float:
        """Oxide capacitance per unit area (F/m²)."""
        return oxide_capacitance(self.tox, self.epsilon_r)

    @property
    def cox_per_cm2(self) -> float:
        return self.cox * 1e-4

    @property
    def width_mm(self) -> float:
        return self.W * 1e3


@dataclass(frozen=True, eq=False)
class MeasurementSweep:
    """
    Base record shared by transfer and output sweeps.

    Attributes:
        kind: Measurement kind the sweep was classified as.
        sample_name: Grouping key of the physical sample.
        source: Name of the file or table the sweep came from.
        geometry: Optional per-sweep device geometry.
    """

    kind: MeasurementKind
    sample_name: str
    source: str = ""
    geometry: Optional[DeviceGeometry] = None


@dataclass(frozen=True, eq=False)
class TransferSweep(MeasurementSweep):
    """
    ID-VG sweep (Linear, Saturation or Hysteresis).

    Arrays are read-only once the sweep is built. For hysteresis sweeps
    `turning_index` is the index of the last forward point, which is also
    the first backward point; it is None when the direction of the sweep
    was not established.
    """

    vg: np.ndarray = field(default_factory=lambda: _frozen_array([]))
    id: np.ndarray = field(default_factory=lambda: _frozen_array([]))
    ig: Optional[np.ndarray] = None
    gm_measured: Optional[np.ndarray] = None
    vds: float = 0.0
    turning_index: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.kind.is_transfer:
            raise ValueError(f"{self.kind} is not a transfer measurement.")
        object.__setattr__(self, "vg", _frozen_array(self.vg))
        object.__setattr__(self, "id", _frozen_array(self.id))
        if len(self.vg) != len(self.id):
            raise ValueError("VG and ID must have the same length.")
        for name in ("ig", "gm_measured"):
            column = getattr(self, name)
            if column is not None:
                column = _frozen_array(column)
                if len(column) != len(self.vg):
                    raise ValueError(f"{name} must have the same length as VG.")
                object.__setattr__(self, name, column)
        if self.turning_index is not None and not 0 < self.turning_index < len(self.vg) - 1:
            raise ValueError(f"Turning index {self.turning_index} is outside the sweep.")

    def __len__(self) -> int:
        return len(self.vg)

    @property
    def is_empty(self) -> bool:
        return len(self.vg) == 0

    @property
    def log_id(self) -> np.ndarray:
        with np.errstate(divide="ignore"):
            return np.log10(np.abs(self.id))

    @property
    def sqrt_id(self) -> np.ndarray:
        return np.sqrt(np.abs(self.id))

    def segments(self) -> Optional[Tuple[Tuple[np.ndarray, np.ndarray], Tuple[np.ndarray, np.ndarray]]]:
        """
        Returns ((vg_forward, id_forward), (vg_backward, id_backward)),
        or None if the turning point is unknown.
        """
        if self.turning_index is None:
            return None
        k = self.turning_index
        return (self.vg[: k + 1], self.id[: k + 1]), (self.vg[k:], self.id[k:])


@dataclass(frozen=True, eq=False)
class OutputSweep(MeasurementSweep):
    """
    ID-VD family of curves, one per gate voltage.

    Attributes:
        vd: Drain voltage of each point.
        id: Drain current of each point.
        vg_index: Index into `gate_voltages` of the curve each point belongs to.
        gate_voltages: Gate voltage of each sub-curve.
    """

    vd: np.ndarray = field(default_factory=lambda: _frozen_array([]))
    id: np.ndarray = field(default_factory=lambda: _frozen_array([]))
    vg_index: np.ndarray = field(default_factory=lambda: np.array([], dtype=int))
    gate_voltages: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if self.kind is not MeasurementKind.OUTPUT:
            raise ValueError(f"{self.kind} is not an output measurement.")
        object.__setattr__(self, "vd", _frozen_array(self.vd))
        object.__setattr__(self, "id", _frozen_array(self.id))
        vg_index = np.array(self.vg_index, dtype=int)
        vg_index.setflags(write=False)
        object.__setattr__(self, "vg_index", vg_index)
        object.__setattr__(self, "gate_voltages", tuple(float(v) for v in self.gate_voltages))
        if not len(self.vd) == len(self.id) == len(self.vg_index):
            raise ValueError("VD, ID and VG index must have the same length.")
        if len(vg_index) and (vg_index.min() < 0 or vg_index.max() >= len(self.gate_voltages)):
            raise ValueError("VG index refers to an unknown gate voltage.")

    def __len__(self) -> int:
        return len(self.vd)

    @property
    def is_empty(self) -> bool:
        return len(self.vd) == 0

    def curve(self, index: int) -> Tuple[np.ndarray, np.ndarray]:
        """Returns the (VD, ID) points of one gate-voltage curve, sorted by VD."""
        mask = self.vg_index == index
        vd, id_ = self.vd[mask], self.id[mask]
        order = np.argsort(vd, kind="stable")
        return vd[order], id_[order]


@dataclass(frozen=True, eq=False)
class TransconductanceCurve:
    """
    gm versus VG derived from a transfer sweep.

    Attributes:
        vg: Gate voltages, rounded to 0.1 V for numerically derived curves.
        gm: Transconductance (S).
        source: "measured" when taken from the instrument, else "numerical".
    """

    vg: np.ndarray
    gm: np.ndarray
    source: str = "numerical"

    def __post_init__(self) -> None:
        object.__setattr__(self, "vg", _frozen_array(self.vg))
        object.__setattr__(self, "gm", _frozen_array(self.gm))

    def __len__(self) -> int:
        return len(self.gm)

    @property
    def is_empty(self) -> bool:
        return len(self.gm) == 0

    @property
    def gm_max(self) -> float:
        return float(self.gm.max()) if len(self.gm) else 0.0

    @property
    def vg_at_gm_max(self) -> float:
        return float(self.vg[int(np.argmax(self.gm))]) if len(self.gm) else 0.0

    def gm_at(self, vg: float, tolerance: float) -> Optional[float]:
        """gm of the point nearest to `vg` if it lies within `tolerance`."""
        if self.is_empty:
            return None
        distance = np.abs(self.vg - vg)
        idx = int(np.argmin(distance))
        return float(self.gm[idx]) if distance[idx] <= tolerance else None


@dataclass(frozen=True)
class ThresholdResult:
    """
    Threshold voltage from one extraction method.

    Attributes:
        vth: Threshold voltage (V); 0 when the method failed.
        method: Name of the method that produced it.
        auxiliary: Method-specific diagnostics (r_squared, error, ...).
    """

    vth: float
    method: str
    auxiliary: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return "error" not in self.auxiliary


@dataclass(frozen=True)
class QualityScore:
    """
    Data quality of one sample.

    Attributes:
        grade: One of "excellent", "good", "fair", "poor".
        score: Numeric score in [0, 100].
        issues: Reasons for the deductions.
    """

    grade: Literal["excellent", "good", "fair", "poor"]
    score: float
    issues: Tuple[str, ...] = ()


@dataclass
class SampleParameterSet:
    """
    Consolidated parameters of one sample.

    Attributes:
        sample_name: Sample grouping key.
        parameters: Parameter name to value or Unavailable.
        quality: Data quality score.
        kinds: Measurement kinds that were supplied.
        warnings: Messages for skipped or degraded parameters.
        curves: Derived curves for charting, keyed by name.
        details: Method labels and fit diagnostics.
    """

    sample_name: str
    parameters: Dict[str, ParameterValue] = field(default_factory=dict)
    quality: Optional[QualityScore] = None
    kinds: Tuple[MeasurementKind, ...] = ()
    warnings: List[str] = field(default_factory=list)
    curves: Dict[str, Any] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, name: str) -> ParameterValue:
        return self.parameters[name]

    def value(self, name: str, default: Optional[float] = None) -> Optional[float]:
        """Numeric value of a parameter, or `default` when unavailable."""
        value = self.parameters.get(name, Unavailable())
        return default if isinstance(value, Unavailable) else value


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Settings for one analysis run.

    Attributes:
        vth_method: Threshold extraction strategy name.
        target_current: Drain current defining Vth for the constant current method (A).
        subthreshold_window: log10(ID) window used by subthreshold extrapolation.
        target_log_current: log10(ID) the subthreshold fit is inverted at.
        log_reference_current: Current the log-scale tangent is extrapolated to;
            None uses the off-current floor of the sweep.
        ss_window: Open log10(ID) window used for subthreshold swing.
        ss_min_points: Minimum number of points in the SS window.
        ss_vg_range: Optional VG range replacing `ss_window`.
        ss_auto_range: Pick the SS points automatically: the switching window,
            then `ss_window`, then the middle of the sweep.
        gm_match_tolerance: VG tolerance when matching ID to gm_max (V).
        y_function_tolerance: VG tolerance when matching gm to ID in the Y-function (V).
        temperature: Device temperature (K).
        normalize_id_sat: Report ID_sat per mm of channel width when geometry is known.
        n_process: Number of worker processes across samples.
    """

    vth_method: VthMethod = "constant_current"
    target_current: float = 1e-7
    subthreshold_window: Tuple[float, float] = (-10.0, -6.0)
    target_log_current: float = -7.0
    log_reference_current: Optional[float] = None
    ss_window: Tuple[float, float] = (-10.0, -6.0)
    ss_min_points: int = 5
    ss_vg_range: Optional[Tuple[float, float]] = None
    ss_auto_range: bool = False
    gm_match_tolerance: float = 0.1
    y_function_tolerance: float = 0.05
    temperature: float = 300.0
    normalize_id_sat: bool = True
    n_process: int = 1

    def __post_init__(self) -> None:
        if self.vth_method not in VTH_METHODS:
            raise ValueError(f"Unknown threshold method '{self.vth_method}'. Choose one of {VTH_METHODS}.")
        if self.target_current <= 0:
            raise ValueError("Target current must be positive.")
        if self.log_reference_current is not None and self.log_reference_current <= 0:
            raise ValueError("Log reference current must be positive.")
        for name in ("subthreshold_window", "ss_window", "ss_vg_range"):
            window = getattr(self, name)
            if window is not None and not window[0] < window[1]:
                raise ValueError(f"{name} must be an increasing (low, high) pair.")
        if self.ss_min_points < 2:
            raise ValueError("At least two points are needed for a regression.")
        if self.temperature <= 0:
            raise ValueError("Temperature must be positive.")
        if self.n_process < 1:
            raise ValueError("n_process must be at least 1.")

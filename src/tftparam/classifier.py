# imports <<<
import logging
import os
import re
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt

from .constants import CURRENT_FLOOR
from .datatypes import DeviceGeometry, MeasurementKind, OutputSweep, TransferSweep
# >>>

logger = logging.getLogger(__name__)

Table = Mapping[str, npt.ArrayLike]
Sweep = Union[TransferSweep, OutputSweep]

SAMPLE_NAME_KEYWORDS = ["IDVG", "Linear", "Lin", "Saturation", "Sat", "Hysteresis", "Hys", "IDVD"]

# Normalized header -> canonical column.
COLUMN_ALIASES = {
    "gatev": "VG",
    "vg": "VG",
    "draini": "ID",
    "id": "ID",
    "drainv": "VD",
    "vd": "VD",
    "gatei": "IG",
    "ig": "IG",
    "gm": "GM",
    "transconductance": "GM",
    "direction": "DIR",
}

DEFAULT_DRAIN_BIAS = {
    MeasurementKind.LINEAR: 0.1,
    MeasurementKind.SATURATION: 20.0,
    MeasurementKind.HYSTERESIS: 0.1,
}

_SUFFIX = re.compile(r"^(?P<name>.*?)\s*\((?P<index>\d+)\)\s*$")


def detect_measurement_kind(filename: str) -> MeasurementKind:
    """
    Classifies a measurement file from the keywords in its name.

    Raises:
        ValueError: If no measurement keyword is found.
    """
    name = os.path.basename(filename).lower()
    if "idvd" in name:
        return MeasurementKind.OUTPUT
    if "idvg" in name:
        if "hys" in name:
            return MeasurementKind.HYSTERESIS
        if "lin" in name:
            return MeasurementKind.LINEAR
        if "sat" in name:
            return MeasurementKind.SATURATION
    raise ValueError(f"Cannot determine the measurement kind of '{filename}'.")


def generate_sample_name(filename: str) -> str:
    """
    Strips the extension and the measurement keywords from a file name.

    "0616_IDVG_Lin_1sccm_100.xls" -> "0616_1sccm_100"
    """
    sample_name = os.path.splitext(os.path.basename(filename))[0]
    for keyword in SAMPLE_NAME_KEYWORDS:
        sample_name = re.sub(f"_?{keyword}_?", "_", sample_name, flags=re.IGNORECASE)
    sample_name = re.sub(r"__+", "_", sample_name)
    return sample_name.strip("_")


def split_column_name(header: str) -> Tuple[Optional[str], int]:
    """
    Maps a raw header such as "DrainI(2)" to ("ID", 2).

    Headers without a suffix get index 1. Unknown headers map to (None, index).
    """
    match = _SUFFIX.match(header.strip())
    if match:
        name, index = match.group("name"), int(match.group("index"))
    else:
        name, index = header.strip(), 1
    key = re.sub(r"[\s_]", "", name).lower()
    return COLUMN_ALIASES.get(key), index


def resolve_columns(table: Table) -> Dict[int, Dict[str, np.ndarray]]:
    """Groups the table columns by suffix index, keyed by canonical name."""
    groups: Dict[int, Dict[str, np.ndarray]] = {}
    for header, values in table.items():
        canonical, index = split_column_name(str(header))
        if canonical is None:
            continue
        group = groups.setdefault(index, {})
        if canonical not in group:
            group[canonical] = np.asarray(values, dtype=float)
    return groups


def find_turning_index(vg: np.ndarray) -> Optional[int]:
    """
    Index of the VG apex when the sweep rises to it and falls back from it.

    Returns None when the sweep does not follow that ordering.
    """
    if vg.size < 3:
        return None
    apex = int(np.argmax(vg))
    if not 0 < apex < vg.size - 1:
        return None
    rising = np.all(np.diff(vg[: apex + 1]) >= 0)
    falling = np.all(np.diff(vg[apex:]) <= 0)
    return apex if rising and falling else None


class MeasurementClassifier:
    """
    Turns decoded measurement tables into normalized sweep records.

    Args:
        geometry: Device geometry applied to every sweep that does not get its own.

    Examples:
        classifier = MeasurementClassifier(geometry=DeviceGeometry(W=1e-4, L=2e-5, tox=1e-7))
        sweep = classifier.classify_file("SampleA_IDVG_Linear.xlsx", table)
    """

    def __init__(self, geometry: Optional[DeviceGeometry] = None) -> None:
        self.geometry = geometry

    def classify_file(
        self,
        filename: str,
        table: Table,
        *,
        geometry: Optional[DeviceGeometry] = None,
        turning_index: Optional[int] = None,
    ) -> Sweep:
        """Classifies a table using the keywords of its file name."""
        kind = detect_measurement_kind(filename)
        return self.classify(
            table,
            kind,
            generate_sample_name(filename),
            source=os.path.basename(filename),
            geometry=geometry,
            turning_index=turning_index,
        )

    def classify_files(self, files: Sequence[Tuple[str, Table]]) -> List[Sweep]:
        return [self.classify_file(filename, table) for filename, table in files]

    def classify(
        self,
        table: Table,
        kind: MeasurementKind,
        sample_name: str,
        *,
        source: str = "",
        geometry: Optional[DeviceGeometry] = None,
        turning_index: Optional[int] = None,
    ) -> Sweep:
        """
        Builds the sweep record for a table of a declared measurement kind.

        Args:
            table: Column name to values.
            kind: Declared measurement kind.
            sample_name: Sample grouping key.
            source: Name of the originating file.
            geometry: Per-sweep geometry; falls back to the classifier's geometry.
            turning_index: Row of the last forward point in the raw table, before
                rows with missing values are dropped.

        Raises:
            ValueError: If the table lacks the columns the kind needs.
        """
        geometry = geometry if geometry is not None else self.geometry
        groups = resolve_columns(table)
        if not groups:
            raise ValueError(f"No recognizable columns in '{source or sample_name}'.")
        if kind is MeasurementKind.OUTPUT:
            return self._output_sweep(groups, sample_name, source, geometry)
        return self._transfer_sweep(groups, kind, sample_name, source, geometry, turning_index)

    # transfer <<<
    def _transfer_sweep(self, groups, kind, sample_name, source, geometry, turning_index) -> TransferSweep:
        columns = groups[min(groups)]
        if "VG" not in columns or "ID" not in columns:
            raise ValueError(f"Transfer sweep '{source or sample_name}' needs gate voltage and drain current columns.")
        _check_lengths(columns, source or sample_name)

        vg = columns["VG"]
        keep = np.isfinite(vg) & np.isfinite(columns["ID"])
        vg = vg[keep]
        id_ = _clean_current(columns["ID"][keep])
        ig = columns["IG"][keep] if "IG" in columns else None
        gm = np.nan_to_num(np.abs(columns["GM"][keep])) if "GM" in columns else None

        vds = DEFAULT_DRAIN_BIAS[kind]
        if "VD" in columns:
            vd = columns["VD"][keep]
            if vd.size and np.isfinite(vd[0]) and vd[0] != 0:
                vds = float(abs(vd[0]))

        if kind is MeasurementKind.HYSTERESIS:
            if turning_index is not None:
                # Row number of the raw table; count the rows kept before it.
                if not 0 <= turning_index < keep.size or not keep[turning_index]:
                    raise ValueError(
                        f"Turning index {turning_index} of '{source or sample_name}' is not a valid measured row."
                    )
                turning_index = int(np.count_nonzero(keep[:turning_index]))
            elif "DIR" in columns:
                turning_index = _turning_index_from_direction(columns["DIR"][keep])
            if turning_index is None:
                turning_index = find_turning_index(vg)
                if turning_index is None:
                    logger.warning("Sweep direction of '%s' could not be established.", source or sample_name)
        else:
            # First occurrence of each VG, ascending.
            _, first = np.unique(vg, return_index=True)
            order = np.sort(first)
            order = order[np.argsort(vg[order], kind="stable")]
            vg, id_ = vg[order], id_[order]
            ig = ig[order] if ig is not None else None
            gm = gm[order] if gm is not None else None
            turning_index = None

        logger.debug("Classified '%s' as %s with %d points.", source or sample_name, kind.value, vg.size)
        return TransferSweep(
            kind=kind,
            sample_name=sample_name,
            source=source,
            geometry=geometry,
            vg=vg,
            id=id_,
            ig=ig,
            gm_measured=gm,
            vds=vds,
            turning_index=turning_index,
        )
    # >>>

    # output <<<
    def _output_sweep(self, groups, sample_name, source, geometry) -> OutputSweep:
        shared_vd = next((g["VD"] for g in groups.values() if "VD" in g), None)
        vd_parts, id_parts, index_parts, gate_voltages = [], [], [], []
        curves = []
        for index in sorted(groups):
            columns = groups[index]
            if "ID" not in columns:
                continue
            vd = columns.get("VD", shared_vd)
            if vd is None or len(vd) != len(columns["ID"]):
                raise ValueError(f"Output sweep '{source or sample_name}' has no drain voltage for curve {index}.")
            gate = columns.get("VG")
            finite_gate = gate[np.isfinite(gate)] if gate is not None else np.array([])
            vg_value = float(finite_gate[0]) if finite_gate.size else float(index)
            curves.append((vg_value, vd, columns["ID"]))
        if not curves:
            raise ValueError(f"Output sweep '{source or sample_name}' has no drain current column.")

        curves.sort(key=lambda curve: curve[0])
        for position, (vg_value, vd, id_) in enumerate(curves):
            keep = np.isfinite(vd) & np.isfinite(id_)
            vd, id_ = vd[keep], _clean_current(id_[keep])
            _, first = np.unique(vd, return_index=True)
            first = np.sort(first)
            vd_parts.append(vd[first])
            id_parts.append(id_[first])
            index_parts.append(np.full(first.size, position, dtype=int))
            gate_voltages.append(vg_value)

        logger.debug("Classified '%s' as IDVD with %d gate voltages.", source or sample_name, len(gate_voltages))
        return OutputSweep(
            kind=MeasurementKind.OUTPUT,
            sample_name=sample_name,
            source=source,
            geometry=geometry,
            vd=np.concatenate(vd_parts),
            id=np.concatenate(id_parts),
            vg_index=np.concatenate(index_parts),
            gate_voltages=tuple(gate_voltages),
        )
    # >>>


def _clean_current(id_: np.ndarray) -> np.ndarray:
    id_ = np.abs(id_)
    return np.where(id_ == 0, CURRENT_FLOOR, id_)


def _check_lengths(columns: Dict[str, np.ndarray], name: str) -> None:
    lengths = {key: len(values) for key, values in columns.items()}
    if len(set(lengths.values())) > 1:
        raise ValueError(f"Columns of '{name}' have different lengths: {lengths}.")


def _turning_index_from_direction(direction: np.ndarray) -> Optional[int]:
    # Non-negative marks forward points, negative marks backward points.
    backward = np.nonzero(direction < 0)[0]
    if backward.size == 0 or backward[0] < 2:
        return None
    if np.any(direction[backward[0]:] >= 0):
        return None
    # The backward segment starts at the last forward point.
    return int(backward[0] - 1)

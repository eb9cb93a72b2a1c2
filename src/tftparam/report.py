import math
from typing import Dict, Iterable, List, Optional, Tuple

from .datatypes import ParameterValue, SampleParameterSet, Unavailable

# Parameter -> (label, unit). An empty unit prints the value as is.
PARAMETER_UNITS: Dict[str, Tuple[str, str]] = {
    "vth": ("Vth", "V"),
    "vth_linear": ("Vth (Linear)", "V"),
    "vth_saturation": ("Vth (Saturation)", "V"),
    "gm_max": ("gm_max", "S"),
    "gm_max_linear": ("gm_max (Linear)", "S"),
    "gm_max_saturation": ("gm_max (Saturation)", "S"),
    "vg_at_gm_max": ("VG @ gm_max", "V"),
    "vds_linear": ("VDS (Linear)", "V"),
    "mu_fe": ("muFE", "cm²/V·s"),
    "mu_0": ("mu0", "cm²/V·s"),
    "mu_eff": ("muEff", "cm²/V·s"),
    "theta": ("theta", "1/V"),
    "ss": ("SS", "V/dec"),
    "dit": ("Dit", "cm⁻²·eV⁻¹"),
    "ion": ("Ion", "A"),
    "ioff": ("Ioff", "A"),
    "on_off_ratio": ("Ion/Ioff", ""),
    "ron": ("Ron", "Ω"),
    "id_sat": ("ID_sat", "A"),
    "delta_vth": ("ΔVth", "V"),
    "vth_forward": ("Vth (forward)", "V"),
    "vth_backward": ("Vth (backward)", "V"),
}

# Units that read better in plain or scientific notation than with SI prefixes.
PLAIN_UNITS = ("V", "cm²/V·s", "V/dec", "1/V")
SCIENTIFIC_UNITS = ("cm⁻²·eV⁻¹", "")

_PREFIXES = {-15: "f", -12: "p", -9: "n", -6: "u", -3: "m", 0: "", 3: "k", 6: "M", 9: "G"}


class SampleReport:
    """
    Generates a plain-text parameter report for analyzed samples.

    Attributes:
        samples: The analyzed samples, in report order.
    """

    def __init__(self, samples: Iterable[SampleParameterSet]) -> None:
        self.samples: List[SampleParameterSet] = list(samples)

    @staticmethod
    def format_eng(value: Optional[ParameterValue], unit: str = "") -> str:
        """
        Formats a value using engineering prefixes.

        Args:
            value: The value to format.
            unit: Unit appended after the prefix.

        Returns:
            A string with the formatted value, "N/A" when the value is unavailable.
        """
        if value is None or isinstance(value, Unavailable):
            return "N/A"
        if value == 0 or not math.isfinite(value):
            return f"{value:g} {unit}".rstrip()
        exponent = int(math.floor(math.log10(abs(value)) / 3) * 3)
        exponent = max(min(exponent, 9), -15)
        return f"{value / 10 ** exponent:.3g} {_PREFIXES[exponent]}{unit}".rstrip()

    def format_parameter(self, name: str, value: ParameterValue, sample: Optional[SampleParameterSet] = None) -> str:
        label, unit = PARAMETER_UNITS.get(name, (name, ""))
        if name == "id_sat" and sample is not None:
            unit = sample.details.get("id_sat_unit", unit)
        if isinstance(value, Unavailable):
            text = "N/A" if not value.reason else f"N/A ({value.reason})"
        elif unit in PLAIN_UNITS:
            text = f"{value:.3f} {unit}"
        elif unit in SCIENTIFIC_UNITS:
            text = f"{value:.3e} {unit}".rstrip()
        else:
            text = self.format_eng(value, unit)
        return f"{label}: {text}"

    def sample_report(self, sample: SampleParameterSet) -> str:
        lines: List[str] = [f"\nSample {sample.sample_name}:"]
        kinds = ", ".join(kind.value for kind in sample.kinds) or "none"
        lines.append(f"    Measurements: {kinds}")
        if sample.quality is not None:
            lines.append(f"    Quality: {sample.quality.grade} ({sample.quality.score:.0f}/100)")

        lines.append("    Parameters:")
        for name in PARAMETER_UNITS:
            if name in sample.parameters:
                lines.append(f"        {self.format_parameter(name, sample.parameters[name], sample)}")

        stability = sample.details.get("stability")
        if stability is not None:
            lines.append(f"    Hysteresis stability: {stability}")
        ss_quality = sample.details.get("ss_quality")
        if ss_quality is not None:
            lines.append(f"    SS fit: {ss_quality} ({sample.details['ss_quality_score']:.0f}/100)")
        y_quality = sample.details.get("y_function_quality")
        if y_quality is not None:
            lines.append(f"    Y-function fit: {y_quality}")

        if sample.warnings:
            lines.append("    Warnings:")
            for warning in sample.warnings:
                lines.append(f"        - {warning}")
        return "\n".join(lines)

    def report(self) -> str:
        """
        Generates the report of every sample.

        Returns:
            A multi-line string, one block per sample.
        """
        if not self.samples:
            return "\nNo samples analyzed."
        return "\n".join(self.sample_report(sample) for sample in self.samples)

# imports <<<
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from ..datatypes import (
    AnalysisConfig,
    DeviceGeometry,
    MeasurementKind,
    OutputSweep,
    QualityScore,
    SampleParameterSet,
    ThresholdResult,
    TransconductanceCurve,
    TransferSweep,
    Unavailable,
)
from ..extraction import (
    HysteresisAnalyzer,
    HysteresisResult,
    MobilityEstimator,
    OnOffCurrents,
    PerformanceMetricsCalculator,
    SubthresholdAnalyzer,
    SubthresholdSwing,
    ThresholdVoltageExtractor,
    TransconductanceEstimator,
)
from .parallel import analyze_in_parallel
from .quality import evaluate_quality
# >>>

logger = logging.getLogger(__name__)

Sweep = Union[TransferSweep, OutputSweep]

PARAMETER_NAMES = (
    "vth_linear",
    "vth_saturation",
    "vth",
    "gm_max_linear",
    "gm_max_saturation",
    "gm_max",
    "vg_at_gm_max",
    "vds_linear",
    "mu_fe",
    "mu_0",
    "theta",
    "mu_eff",
    "ss",
    "dit",
    "ion",
    "ioff",
    "on_off_ratio",
    "ron",
    "id_sat",
    "delta_vth",
    "vth_forward",
    "vth_backward",
)


# phase one records <<<
@dataclass
class TransferAnalysis:
    """Results that depend on one Linear or Saturation sweep only."""

    sweep: TransferSweep
    geometry: Optional[DeviceGeometry]
    gm_curve: TransconductanceCurve
    threshold: ThresholdResult
    swing: SubthresholdSwing
    dit: float
    on_off: OnOffCurrents


@dataclass
class SweepAnalyses:
    """Phase-one results of one sample, keyed by measurement kind."""

    sample_name: str
    linear: Optional[TransferAnalysis] = None
    saturation: Optional[TransferAnalysis] = None
    output: Optional[OutputSweep] = None
    ron: Optional[float] = None
    hysteresis_sweep: Optional[TransferSweep] = None
    hysteresis: Optional[HysteresisResult] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def kinds(self):
        present = [
            (MeasurementKind.OUTPUT, self.output),
            (MeasurementKind.LINEAR, self.linear),
            (MeasurementKind.SATURATION, self.saturation),
            (MeasurementKind.HYSTERESIS, self.hysteresis_sweep),
        ]
        return tuple(kind for kind, item in present if item is not None)
# >>>


def group_by_sample(sweeps: Iterable[Sweep]) -> Dict[str, List[Sweep]]:
    groups: Dict[str, List[Sweep]] = {}
    for sweep in sweeps:
        groups.setdefault(sweep.sample_name, []).append(sweep)
    return groups


class SampleAggregator:
    """
    Groups sweeps by sample and consolidates their parameters.

    Analysis runs in two phases. Phase one runs the single-sweep analyzers
    on every sweep of a sample. Phase two combines those results: gm_max of
    the Linear sweep (Saturation as fallback) and the Linear Vth feed the
    mobility stage.

    Args:
        geometry: Geometry shared by all sweeps that carry none of their own.
        config: Analysis settings.

    Examples:
        aggregator = SampleAggregator(geometry=DeviceGeometry(W=1e-4, L=2e-5, tox=1e-7))
        results = aggregator.analyze(sweeps)
        results["SampleA"]["mu_fe"]
    """

    def __init__(self, geometry: Optional[DeviceGeometry] = None, config: Optional[AnalysisConfig] = None) -> None:
        self.geometry = geometry
        self.config = config if config is not None else AnalysisConfig()
        self.gm_estimator = TransconductanceEstimator()
        self.threshold_extractor = ThresholdVoltageExtractor(self.config)
        self.subthreshold = SubthresholdAnalyzer(self.config)
        self.performance = PerformanceMetricsCalculator()
        self.hysteresis_analyzer = HysteresisAnalyzer()
        self.mobility = MobilityEstimator(self.config)

    def analyze(self, sweeps: Iterable[Sweep]) -> Dict[str, SampleParameterSet]:
        """Analyzes every sample, in parallel when `config.n_process` > 1."""
        groups = group_by_sample(sweeps)
        if self.config.n_process > 1 and len(groups) > 1:
            return analyze_in_parallel(self, groups, self.config.n_process)
        return {name: self.analyze_sample_safely(name, group) for name, group in groups.items()}

    def analyze_sample_safely(self, sample_name: str, sweeps: List[Sweep]) -> SampleParameterSet:
        """Like analyze_sample, but a failing sample is reported instead of raised."""
        try:
            return self.analyze_sample(sample_name, sweeps)
        except Exception as exc:
            logger.exception("Analysis of sample '%s' failed.", sample_name)
            return self.failed_sample(sample_name, sweeps, f"analysis failed: {exc}")

    @staticmethod
    def failed_sample(sample_name: str, sweeps: List[Sweep], reason: str) -> SampleParameterSet:
        return failed_sample(sample_name, sweeps, reason)

    def analyze_sample(self, sample_name: str, sweeps: List[Sweep]) -> SampleParameterSet:
        analyses = self.analyze_sweeps(sample_name, sweeps)
        return self.combine(analyses)

    def geometry_for(self, sweep: Sweep) -> Optional[DeviceGeometry]:
        return sweep.geometry if sweep.geometry is not None else self.geometry

    # phase one <<<
    def analyze_sweeps(self, sample_name: str, sweeps: List[Sweep]) -> SweepAnalyses:
        analyses = SweepAnalyses(sample_name=sample_name)
        seen = set()
        for sweep in sweeps:
            if sweep.kind in seen:
                analyses.warnings.append(f"duplicate {sweep.kind.value} sweep '{sweep.source}' ignored")
                continue
            seen.add(sweep.kind)
            if sweep.is_empty:
                analyses.warnings.append(f"{sweep.kind.value} sweep '{sweep.source}' is empty")
                continue

            if sweep.kind is MeasurementKind.LINEAR:
                analyses.linear = self.analyze_transfer(sweep)
            elif sweep.kind is MeasurementKind.SATURATION:
                analyses.saturation = self.analyze_transfer(sweep)
            elif sweep.kind is MeasurementKind.OUTPUT:
                analyses.output = sweep
                analyses.ron = self.performance.on_resistance(sweep)
            elif sweep.kind is MeasurementKind.HYSTERESIS:
                analyses.hysteresis_sweep = sweep
                analyses.hysteresis = self.hysteresis_analyzer.analyze(sweep)
        return analyses

    def analyze_transfer(self, sweep: TransferSweep) -> TransferAnalysis:
        geometry = self.geometry_for(sweep)
        gm_curve = self.gm_estimator.estimate(sweep)
        swing = self.subthreshold.swing(sweep)
        return TransferAnalysis(
            sweep=sweep,
            geometry=geometry,
            gm_curve=gm_curve,
            threshold=self.threshold_extractor.extract(sweep, gm_curve),
            swing=swing,
            dit=self.subthreshold.trap_density(swing.ss, geometry),
            on_off=self.performance.on_off(sweep.id),
        )
    # >>>

    # phase two <<<
    def combine(self, analyses: SweepAnalyses) -> SampleParameterSet:
        result = SampleParameterSet(
            sample_name=analyses.sample_name,
            kinds=analyses.kinds,
            warnings=list(analyses.warnings),
        )
        params = result.parameters
        fits: Dict[str, float] = {}
        linear, saturation = analyses.linear, analyses.saturation

        # Threshold voltages.
        result.details["vth_method"] = self.config.vth_method
        for key, analysis, label in (("vth_linear", linear, "Linear"), ("vth_saturation", saturation, "Saturation")):
            if analysis is None:
                params[key] = Unavailable(f"no {label} sweep")
                continue
            params[key] = analysis.threshold.vth
            if not analysis.threshold.is_valid:
                result.warnings.append(f"{label} Vth failed: {analysis.threshold.auxiliary['error']}")
            elif "r_squared" in analysis.threshold.auxiliary:
                fits[f"{label} Vth"] = analysis.threshold.auxiliary["r_squared"]
        vth_source = next((a for a in (linear, saturation) if a is not None and a.threshold.is_valid), None)
        if vth_source is not None:
            params["vth"] = vth_source.threshold.vth
            result.details["vth_source"] = vth_source.sweep.kind.value
        else:
            params["vth"] = Unavailable("no valid threshold voltage")

        # Transconductance.
        gm_max_lin = linear.gm_curve.gm_max if linear is not None else 0.0
        gm_max_sat = saturation.gm_curve.gm_max if saturation is not None else 0.0
        params["gm_max_linear"] = gm_max_lin if linear is not None else Unavailable("no Linear sweep")
        params["gm_max_saturation"] = gm_max_sat if saturation is not None else Unavailable("no Saturation sweep")
        final_gm_max = gm_max_lin if gm_max_lin > 0 else gm_max_sat
        if linear is None and saturation is None:
            params["gm_max"] = Unavailable("no transfer sweep")
        else:
            params["gm_max"] = final_gm_max
        if linear is not None and not linear.gm_curve.is_empty:
            params["vg_at_gm_max"] = linear.gm_curve.vg_at_gm_max
            result.details["gm_source"] = linear.gm_curve.source
        else:
            params["vg_at_gm_max"] = Unavailable("no Linear gm curve")

        self._combine_mobility(analyses, params, result, fits, final_gm_max)

        # Subthreshold swing and trap density.
        ss_source = saturation if saturation is not None else linear
        if ss_source is None:
            params["ss"] = Unavailable("no transfer sweep")
            params["dit"] = Unavailable("no transfer sweep")
        else:
            params["ss"] = ss_source.swing.ss
            result.details["ss_source"] = ss_source.sweep.kind.value
            if ss_source.swing.ss == 0:
                result.warnings.append(f"SS not fitted: {ss_source.swing.n_points} points in the subthreshold window")
                params["dit"] = Unavailable("SS could not be fitted")
            else:
                fits["SS"] = ss_source.swing.r_squared
                start, stop = ss_source.swing.vg_range
                ss_quality = self.subthreshold.quality(ss_source.sweep, start, stop, ss_source.swing.ss)
                result.details["ss_method"] = ss_source.swing.method
                result.details["ss_quality"] = ss_quality.label
                result.details["ss_quality_score"] = ss_quality.score
                if ss_source.geometry is None:
                    params["dit"] = Unavailable("geometry missing")
                else:
                    params["dit"] = ss_source.dit

        # On/off currents.
        on_off_source = linear if linear is not None else saturation
        if on_off_source is None:
            for key in ("ion", "ioff", "on_off_ratio"):
                params[key] = Unavailable("no transfer sweep")
        else:
            params["ion"] = on_off_source.on_off.ion
            params["ioff"] = on_off_source.on_off.ioff
            params["on_off_ratio"] = on_off_source.on_off.ratio

        # Output characteristics.
        if analyses.output is None:
            params["ron"] = Unavailable("no IDVD sweep")
        elif analyses.ron is None:
            params["ron"] = Unavailable("non-positive output conductance")
            result.warnings.append("Ron not computed: output curve slope is not positive")
        else:
            params["ron"] = analyses.ron

        if saturation is None:
            params["id_sat"] = Unavailable("no Saturation sweep")
        else:
            geometry = saturation.geometry if self.config.normalize_id_sat else None
            params["id_sat"] = self.performance.saturation_current(saturation.sweep, geometry)
            result.details["id_sat_unit"] = "A/mm" if geometry is not None else "A"

        self._combine_hysteresis(analyses, params, result)

        result.curves = self._curves(analyses)
        result.details["fit_r_squared"] = dict(fits)
        result.quality = evaluate_quality(params, result.warnings, fits)
        logger.info("Sample '%s': %s (%.0f)", result.sample_name, result.quality.grade, result.quality.score)
        return result

    def _combine_mobility(self, analyses, params, result, fits, final_gm_max) -> None:
        linear = analyses.linear
        if linear is None:
            for key in ("vds_linear", "mu_fe", "mu_0", "theta", "mu_eff"):
                params[key] = Unavailable("no Linear sweep")
            return

        vds = linear.sweep.vds
        params["vds_linear"] = vds
        geometry = linear.geometry
        if geometry is None:
            for key in ("mu_fe", "mu_0", "theta", "mu_eff"):
                params[key] = Unavailable("geometry missing")
            return

        params["mu_fe"] = self.mobility.field_effect(final_gm_max, geometry, vds)
        if params["mu_fe"] == 0:
            result.warnings.append("muFE is 0: no transconductance")

        vth = params["vth"]
        if isinstance(vth, Unavailable):
            for key in ("mu_0", "theta", "mu_eff"):
                params[key] = Unavailable("no threshold voltage")
            return

        y_function = self.mobility.low_field(linear.sweep, linear.gm_curve, vth, geometry, vds)
        result.details["y_function_quality"] = y_function.quality
        if y_function.error:
            result.warnings.append(f"Y-function failed: {y_function.error}")
            for key in ("mu_0", "theta", "mu_eff"):
                params[key] = Unavailable(f"Y-function failed: {y_function.error}")
            return
        params["mu_0"] = y_function.mu0
        fits["Y-function"] = y_function.r_squared
        result.details["y_function_r_squared"] = y_function.r_squared

        theta = self.mobility.degradation_factor(linear.sweep, y_function.mu0, vth, geometry, vds)
        if theta.error:
            result.warnings.append(f"theta failed: {theta.error}")
            params["theta"] = Unavailable(theta.error)
            params["mu_eff"] = Unavailable("no theta")
            return
        if theta.raw_theta < 0:
            result.warnings.append(f"negative theta ({theta.raw_theta:.3g} 1/V) clamped to 0")
        params["theta"] = theta.theta

        vg = linear.gm_curve.vg_at_gm_max
        params["mu_eff"] = self.mobility.effective(y_function.mu0, theta.theta, vg, vth)
        result.details["mu_eff_vg"] = vg

    def _combine_hysteresis(self, analyses, params, result) -> None:
        keys = ("delta_vth", "vth_forward", "vth_backward")
        if analyses.hysteresis_sweep is None:
            for key in keys:
                params[key] = Unavailable("no Hysteresis sweep")
            return
        hysteresis = analyses.hysteresis
        if hysteresis is None:
            for key in keys:
                params[key] = Unavailable("sweep direction unknown")
            result.warnings.append("hysteresis skipped: forward and backward segments not identified")
            return
        params["delta_vth"] = hysteresis.delta_vth
        params["vth_forward"] = hysteresis.vth_forward
        params["vth_backward"] = hysteresis.vth_backward
        result.details["stability"] = hysteresis.stability
        result.details["hysteresis_reliable"] = hysteresis.reliable
        if not hysteresis.reliable:
            result.warnings.append("hysteresis unreliable: a segment could not be fitted")
    # >>>

    @staticmethod
    def _curves(analyses: SweepAnalyses) -> Dict[str, dict]:
        curves: Dict[str, dict] = {}
        for label, analysis in (("linear", analyses.linear), ("saturation", analyses.saturation)):
            if analysis is None:
                continue
            curves[f"transfer_{label}"] = {"vg": analysis.sweep.vg, "id": analysis.sweep.id}
            curves[f"gm_{label}"] = {"vg": analysis.gm_curve.vg, "gm": analysis.gm_curve.gm}
        if analyses.output is not None:
            output = analyses.output
            curves["output"] = {
                "gate_voltages": output.gate_voltages,
                "vd": [output.curve(i)[0] for i in range(len(output.gate_voltages))],
                "id": [output.curve(i)[1] for i in range(len(output.gate_voltages))],
            }
        if analyses.hysteresis_sweep is not None:
            segments = analyses.hysteresis_sweep.segments()
            if segments is not None:
                (vg_fwd, id_fwd), (vg_bwd, id_bwd) = segments
                curves["hysteresis"] = {"vg_forward": vg_fwd, "id_forward": id_fwd, "vg_backward": vg_bwd, "id_backward": id_bwd}
        return curves


def failed_sample(sample_name: str, sweeps: List[Sweep], reason: str) -> SampleParameterSet:
    """Result of a sample whose analysis raised: every parameter unavailable, graded poor."""
    return SampleParameterSet(
        sample_name=sample_name,
        parameters={name: Unavailable(reason) for name in PARAMETER_NAMES},
        quality=QualityScore(grade="poor", score=0.0, issues=(reason,)),
        kinds=tuple(dict.fromkeys(sweep.kind for sweep in sweeps)),
        warnings=[reason],
    )

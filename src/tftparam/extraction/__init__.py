from .transconductance import TransconductanceEstimator, central_difference_gm
from .threshold import (
    THRESHOLD_METHODS,
    ConstantCurrent,
    LinearExtrapolation,
    LogExtrapolation,
    SubthresholdExtrapolation,
    ThresholdMethod,
    ThresholdVoltageExtractor,
)
from .mobility import MobilityEstimator, ThetaResult, YFunctionResult
from .subthreshold import SSQuality, SSRangeSuggestion, SubthresholdAnalyzer, SubthresholdSwing
from .performance import OnOffCurrents, PerformanceMetricsCalculator
from .hysteresis import HysteresisAnalyzer, HysteresisResult, stability_label
from .tlm import ResistanceFit, TLMAnalyzer, TLMResult, distance_from_name, resistance_from_iv

__all__ = [
    "TransconductanceEstimator",
    "central_difference_gm",
    "THRESHOLD_METHODS",
    "ThresholdMethod",
    "ThresholdVoltageExtractor",
    "LinearExtrapolation",
    "ConstantCurrent",
    "SubthresholdExtrapolation",
    "LogExtrapolation",
    "MobilityEstimator",
    "YFunctionResult",
    "ThetaResult",
    "SubthresholdAnalyzer",
    "SubthresholdSwing",
    "SSRangeSuggestion",
    "SSQuality",
    "PerformanceMetricsCalculator",
    "OnOffCurrents",
    "HysteresisAnalyzer",
    "HysteresisResult",
    "stability_label",
    "TLMAnalyzer",
    "TLMResult",
    "ResistanceFit",
    "resistance_from_iv",
    "distance_from_name",
]

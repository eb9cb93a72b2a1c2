from .datatypes import (
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
    is_available,
)
from .classifier import MeasurementClassifier, detect_measurement_kind, generate_sample_name
from .aggregation import SampleAggregator
from .report import SampleReport

__all__ = [
    "AnalysisConfig",
    "DeviceGeometry",
    "MeasurementKind",
    "TransferSweep",
    "OutputSweep",
    "TransconductanceCurve",
    "ThresholdResult",
    "QualityScore",
    "SampleParameterSet",
    "Unavailable",
    "is_available",
    "MeasurementClassifier",
    "detect_measurement_kind",
    "generate_sample_name",
    "SampleAggregator",
    "SampleReport",
]

from .quality import evaluate_quality, grade_from_score
from .sample_aggregator import PARAMETER_NAMES, SampleAggregator, group_by_sample
from .parallel import analyze_in_parallel

__all__ = [
    "SampleAggregator",
    "PARAMETER_NAMES",
    "group_by_sample",
    "analyze_in_parallel",
    "evaluate_quality",
    "grade_from_score",
]

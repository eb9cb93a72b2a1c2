from typing import Dict, List, Mapping, Optional

from ..datatypes import ParameterValue, QualityScore, Unavailable

# Parameter -> (deduction, issue) when it is unavailable.
REQUIRED_PARAMETERS = {
    "vth": (20, "Vth missing"),
    "gm_max": (20, "gm_max missing"),
    "mu_fe": (15, "muFE missing"),
}
WARNING_PENALTY = 5
MIN_ON_OFF_DECADES = 3


def _missing(value: Optional[ParameterValue]) -> bool:
    return value is None or isinstance(value, Unavailable)


def grade_from_score(score: float) -> str:
    if score >= 90:
        return "excellent"
    if score >= 75:
        return "good"
    if score >= 60:
        return "fair"
    return "poor"


def evaluate_quality(
    parameters: Mapping[str, ParameterValue],
    warnings: List[str],
    fit_r_squared: Optional[Dict[str, float]] = None,
) -> QualityScore:
    """
    Scores a sample from 100 down.

    Deductions: missing key parameters, each warning, regression fits with
    R² at or below 0.95, and an on/off ratio spanning fewer than three
    decades (the sweep did not cover both the off and on state). A sample
    with any fit at or below R² = 0.95 cannot grade excellent.
    """
    score = 100.0
    issues = []
    for name, (deduction, issue) in REQUIRED_PARAMETERS.items():
        if _missing(parameters.get(name)):
            score -= deduction
            issues.append(issue)

    score -= WARNING_PENALTY * len(warnings)

    weak_fit = False
    for name, r2 in (fit_r_squared or {}).items():
        if r2 <= 0.9:
            score -= 10
            weak_fit = True
            issues.append(f"poor {name} fit (R²={r2:.3f})")
        elif r2 <= 0.95:
            score -= 5
            weak_fit = True
            issues.append(f"weak {name} fit (R²={r2:.3f})")

    ratio = parameters.get("on_off_ratio")
    if not _missing(ratio) and ratio < 10 ** MIN_ON_OFF_DECADES:
        score -= 10
        issues.append("sweep range covers less than three decades of current")

    score = max(0.0, score)
    grade = grade_from_score(score)
    if weak_fit and grade == "excellent":
        grade = "good"
    return QualityScore(grade=grade, score=score, issues=tuple(issues))

"""Overall misinformation risk derived from the stage outputs."""

from __future__ import annotations

from collections import Counter

from trustle.models import AnalysisResults, RiskAssessment

_SOURCE_WEIGHT = 0.6
_EMOTION_WEIGHT = 0.2
_VISUAL_WEIGHT = 0.2
_NEGATIVE_SENTIMENT_PENALTY = 10
_LEVEL_RISK = {"Low": 0, "Medium": 60, "High": 100}


def assess_risk(results: AnalysisResults) -> RiskAssessment:
    if not (results.source or results.emotion or results.visual or results.textual):
        return RiskAssessment(score=0, breakdown=["Not enough data for risk assessment."])

    score = 0.0
    weights = 0.0
    breakdown: list[str] = []

    if results.source is not None:
        source_risk = 100 - results.source.trust_score
        score += source_risk * _SOURCE_WEIGHT
        weights += _SOURCE_WEIGHT
        if source_risk > 60:
            breakdown.append("Source credibility is low.")
        elif source_risk > 20:
            breakdown.append("Source credibility is moderate.")
        else:
            breakdown.append("Source credibility is high.")

    if results.emotion is not None:
        level = results.emotion.manipulation_level
        score += _LEVEL_RISK[level] * _EMOTION_WEIGHT
        weights += _EMOTION_WEIGHT
        if level != "Low":
            breakdown.append(f"Detected {level.lower()} emotional manipulation.")

    if results.visual is not None and results.visual.visual_insights:
        flag = results.visual.visual_insights[0].manipulation_flag
        score += _LEVEL_RISK[flag] * _VISUAL_WEIGHT
        weights += _VISUAL_WEIGHT
        if flag != "Low":
            breakdown.append(f"Image manipulation risk is {flag.lower()}.")

    if 0 < weights < 1:
        score /= weights

    if results.textual is not None and results.textual.sentiment == "Negative":
        score = min(100.0, score + _NEGATIVE_SENTIMENT_PENALTY)
        # Only worth mentioning alongside another factor.
        if breakdown:
            breakdown.append("Content has a negative sentiment.")

    if not breakdown:
        breakdown.append("No significant risk factors detected.")

    return RiskAssessment(score=max(0, min(100, round(score))), breakdown=breakdown)


def evidence_tally(results: AnalysisResults) -> dict[str, int]:
    """Count source evidence by finding, leaving out findings that never occur."""
    if results.source is None:
        return {}
    counts = Counter(item.finding for item in results.source.evidence)
    return {finding: counts[finding] for finding in ("Positive", "Negative", "Neutral") if counts[finding]}

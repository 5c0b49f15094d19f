"""Tests for the risk assessment."""

from trustle.models import (
    AnalysisResults,
    EmotionAnalysisOutput,
    SourceEvidence,
    SourceIntelligenceOutput,
    TextualAnalysisOutput,
    VisualAnalysisOutput,
    VisualInsight,
)
from trustle.risk import assess_risk, evidence_tally


def test_no_data():
    risk = assess_risk(AnalysisResults())
    assert risk.score == 0
    assert risk.breakdown == ["Not enough data for risk assessment."]


def test_source_only_is_normalised():
    risk = assess_risk(AnalysisResults(source=SourceIntelligenceOutput(trust_score=30)))
    assert risk.score == 70
    assert risk.breakdown == ["Source credibility is low."]


def test_all_factors_weighted():
    results = AnalysisResults(
        source=SourceIntelligenceOutput(trust_score=50),
        emotion=EmotionAnalysisOutput(manipulation_level="High"),
        visual=VisualAnalysisOutput(visual_insights=[VisualInsight(manipulation_flag="Medium")]),
    )
    risk = assess_risk(results)
    # 50 * 0.6 + 100 * 0.2 + 60 * 0.2
    assert risk.score == 62
    assert risk.breakdown == [
        "Source credibility is moderate.",
        "Detected high emotional manipulation.",
        "Image manipulation risk is medium.",
    ]


def test_negative_sentiment_penalty():
    results = AnalysisResults(
        source=SourceIntelligenceOutput(trust_score=95),
        textual=TextualAnalysisOutput(sentiment="Negative"),
    )
    risk = assess_risk(results)
    assert risk.score == 15
    assert risk.breakdown[-1] == "Content has a negative sentiment."


def test_negative_sentiment_alone_is_not_listed():
    risk = assess_risk(AnalysisResults(textual=TextualAnalysisOutput(sentiment="Negative")))
    assert risk.score == 10
    assert risk.breakdown == ["No significant risk factors detected."]


def test_score_is_capped():
    results = AnalysisResults(
        source=SourceIntelligenceOutput(trust_score=0),
        textual=TextualAnalysisOutput(sentiment="Negative"),
    )
    assert assess_risk(results).score == 100


def test_evidence_tally():
    results = AnalysisResults(
        source=SourceIntelligenceOutput(
            evidence=[
                SourceEvidence(finding="Negative"),
                SourceEvidence(finding="Negative"),
                SourceEvidence(finding="Neutral"),
            ]
        )
    )
    assert evidence_tally(results) == {"Negative": 2, "Neutral": 1}
    assert evidence_tally(AnalysisResults()) == {}

"""Unit tests for the offline fallback responder and its metrics."""

import pytest

from realty_insights.insights.fallback import (
    FallbackResponder,
    best_property,
    growth_rate,
    overall_conversion_rate,
    percentage,
    round_half_up,
    stage_conversions,
)
from realty_insights.models.analytics import (
    AnalyticsSnapshot,
    FunnelStage,
    InsightSource,
    PeriodLeads,
    PropertyPerformance,
    ResponseKind,
)


@pytest.mark.unit
class TestMetrics:

    def test_overall_conversion_rate(self, sample_snapshot):
        assert overall_conversion_rate(sample_snapshot.funnel_data) == 11.3

    def test_stage_conversions(self, sample_snapshot):
        conversions = stage_conversions(sample_snapshot.funnel_data)

        assert conversions[0][1] == 100.0
        assert conversions[1][0].name == "Contacted"
        assert conversions[1][1] == 75.0
        assert conversions[2][1] == 72.2

    def test_conversion_with_zero_first_stage(self):
        funnel = [FunnelStage(name="Leads", value=0), FunnelStage(name="Registered", value=0)]

        assert overall_conversion_rate(funnel) == 0.0
        assert stage_conversions(funnel)[1][1] == 0.0

    def test_conversion_of_empty_funnel(self):
        assert overall_conversion_rate([]) == 0.0

    def test_growth_rate(self, sample_snapshot):
        assert growth_rate(sample_snapshot.monthly_lead_data) == 113.3

    def test_growth_rate_guards_zero_first_period(self):
        periods = [PeriodLeads(name="Jan", leads=0), PeriodLeads(name="Feb", leads=40)]

        assert growth_rate(periods) == 0.0

    def test_negative_growth(self):
        periods = [PeriodLeads(name="Jan", leads=200), PeriodLeads(name="Feb", leads=150)]

        assert growth_rate(periods) == -25.0

    def test_best_property_keeps_first_on_tie(self):
        properties = [
            PropertyPerformance(name="A", leads=10),
            PropertyPerformance(name="B", leads=10),
        ]

        assert best_property(properties).name == "A"

    def test_rounding_is_half_up(self):
        assert round_half_up(11.25, 1) == 11.3
        assert round_half_up(65.5, 0) == 66.0
        assert percentage(1, 8) == 12.5
        assert percentage(5, 0) == 0.0


@pytest.mark.unit
class TestFallbackResponder:

    @pytest.fixture
    def responder(self):
        return FallbackResponder()

    def test_conversion_question(self, responder, sample_snapshot):
        result = responder.respond("What's our conversion rate?", sample_snapshot)

        assert result.kind is ResponseKind.INSIGHT
        assert result.source is InsightSource.FALLBACK
        assert "**11.3%**" in result.text
        assert "135 registrations out of 1200 leads" in result.text
        assert "Contacted: 900 (75.0% conversion from previous step)" in result.text

    def test_property_question(self, responder, sample_snapshot):
        result = responder.respond("Which property is performing best?", sample_snapshot)

        assert result.kind is ResponseKind.INSIGHT
        assert "**Best Performing Property:** Olive Heights" in result.text
        assert "1. Olive Heights: 98 leads" in result.text
        assert "2. Sapphire Greens: 60 leads" in result.text
        assert "Average leads per property: 66" in result.text
        assert "Token conversion at Olive Heights: 21.4%" in result.text

    def test_lead_source_question(self, responder, sample_snapshot):
        result = responder.respond("Show me lead source insights", sample_snapshot)

        assert "1. Website: 35% (420 leads)" in result.text
        assert "Most effective: Website (35%)" in result.text
        assert "Diversification: 5 different sources" in result.text

    def test_trend_question(self, responder, sample_snapshot):
        result = responder.respond("What's the trend in monthly leads?", sample_snapshot)

        assert "Total leads: 1370" in result.text
        assert "Average monthly leads: 228" in result.text
        assert "Growth rate: 113.3% (increase)" in result.text
        assert "Above average performance" in result.text

    def test_first_matching_topic_wins(self, responder, sample_snapshot):
        # "rate" matches before "source"
        result = responder.respond("Conversion by lead source?", sample_snapshot)

        assert "Conversion Rate Analysis" in result.text

    def test_unmatched_question_returns_help(self, responder, sample_snapshot):
        result = responder.respond("Hello there", sample_snapshot)

        assert result.kind is ResponseKind.TEXT
        assert "questions you can ask" in result.text

    def test_empty_snapshot_does_not_fail(self, responder):
        empty = AnalyticsSnapshot()

        for question in ("conversion", "property", "source", "trend"):
            result = responder.respond(question, empty)
            assert "No " in result.text

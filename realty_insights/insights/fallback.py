"""Offline, rule-based analytics answers.

Used when the remote insight provider is unavailable after retries, and as a
deterministic responder in tests. Questions are matched against four known
topics on their lower-cased text; the first matching topic answers.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Sequence, Tuple

from ..models.analytics import (
    AnalyticsSnapshot,
    FunnelStage,
    InsightResult,
    InsightSource,
    LeadSourceShare,
    PeriodLeads,
    PropertyPerformance,
    ResponseKind,
)

logger = logging.getLogger(__name__)


def round_half_up(value, places: int = 1) -> float:
    """Round like a spreadsheet: 11.25 -> 11.3."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage(numerator: float, denominator: float, places: int = 1) -> float:
    """numerator / denominator * 100, rounded half-up; 0 when denominator is 0."""
    if not denominator:
        return 0.0
    exact = Decimal(str(numerator)) * 100 / Decimal(str(denominator))
    return round_half_up(exact, places)


def overall_conversion_rate(funnel: Sequence[FunnelStage]) -> float:
    """Last funnel stage as a percentage of the first."""
    if not funnel:
        return 0.0
    return percentage(funnel[-1].value, funnel[0].value)


def stage_conversions(funnel: Sequence[FunnelStage]) -> List[Tuple[FunnelStage, float]]:
    """Each stage paired with its conversion from the previous stage (first stage: 100)."""
    conversions = []
    for index, stage in enumerate(funnel):
        if index == 0:
            conversions.append((stage, 100.0))
        else:
            conversions.append((stage, percentage(stage.value, funnel[index - 1].value)))
    return conversions


def growth_rate(periods: Sequence[PeriodLeads]) -> float:
    """Change from the first to the last period in percent; 0 if the first is 0."""
    if not periods:
        return 0.0
    first, last = periods[0].leads, periods[-1].leads
    if first <= 0:
        return 0.0
    return percentage(last - first, first)


def best_property(properties: Sequence[PropertyPerformance]) -> PropertyPerformance:
    """Property with the most leads; the earliest wins a tie."""
    return max(properties, key=lambda prop: prop.leads)


def _format_number(value: float) -> str:
    return f"{value:.1f}"


class FallbackResponder:
    """Answers analytics questions from the snapshot alone."""

    def respond(self, question: str, snapshot: AnalyticsSnapshot) -> InsightResult:
        lower_question = question.lower()

        if "conversion" in lower_question or "rate" in lower_question:
            topic, content = "conversion", self.conversion_analysis(snapshot)
        elif "property" in lower_question or "best performing" in lower_question:
            topic, content = "property", self.property_analysis(snapshot)
        elif "lead source" in lower_question or "source" in lower_question:
            topic, content = "lead_source", self.lead_source_analysis(snapshot)
        elif "monthly" in lower_question or "trend" in lower_question:
            topic, content = "trend", self.monthly_trend_analysis(snapshot)
        else:
            logger.debug("No fallback topic matched; returning help text")
            return InsightResult(text=self.help_text(), kind=ResponseKind.TEXT,
                                 source=InsightSource.FALLBACK)

        logger.debug(f"Fallback responder answered topic '{topic}'")
        return InsightResult(text=content, kind=ResponseKind.INSIGHT, source=InsightSource.FALLBACK)

    def conversion_analysis(self, snapshot: AnalyticsSnapshot) -> str:
        funnel = snapshot.funnel_data
        if not funnel:
            return "**Conversion Rate Analysis**\n\nNo funnel data is available yet."

        total_leads = funnel[0].value
        registered = funnel[-1].value
        breakdown = "\n".join(
            f"- {stage.name}: {stage.value} ({_format_number(conversion)}% conversion from previous step)"
            for stage, conversion in stage_conversions(funnel)
        )
        return (
            "**Conversion Rate Analysis**\n\n"
            f"Your overall conversion rate is **{_format_number(overall_conversion_rate(funnel))}%** "
            f"({registered} registrations out of {total_leads} leads).\n\n"
            f"**Funnel Breakdown:**\n{breakdown}\n\n"
            "**Recommendations:**\n"
            "- Focus on the stage with the largest drop-off for better lead nurturing\n"
            "- Consider A/B testing your demo booking process\n"
            "- Analyze drop-off points to optimize conversion"
        )

    def property_analysis(self, snapshot: AnalyticsSnapshot) -> str:
        properties = snapshot.property_performance_data
        if not properties:
            return "**Property Performance Analysis**\n\nNo property performance data is available yet."

        best = best_property(properties)
        ranked = sorted(properties, key=lambda prop: prop.leads, reverse=True)
        ranking = "\n".join(f"{index}. {prop.name}: {prop.leads} leads"
                            for index, prop in enumerate(ranked, 1))
        average = round_half_up(sum(prop.leads for prop in properties) / len(properties), 0)
        return (
            "**Property Performance Analysis**\n\n"
            f"**Best Performing Property:** {best.name}\n"
            f"- Leads: {best.leads}\n"
            f"- Site Visits: {best.site_visits}\n"
            f"- Tokens: {best.tokens}\n\n"
            f"**All Properties Ranked by Leads:**\n{ranking}\n\n"
            "**Key Insights:**\n"
            f"- Average leads per property: {int(average)}\n"
            f"- Token conversion at {best.name}: {_format_number(percentage(best.tokens, best.leads))}%"
        )

    def lead_source_analysis(self, snapshot: AnalyticsSnapshot) -> str:
        sources: List[LeadSourceShare] = sorted(snapshot.lead_source_data,
                                                key=lambda source: source.value, reverse=True)
        if not sources:
            return "**Lead Source Analysis**\n\nNo lead source data is available yet."

        total_leads = snapshot.funnel_data[0].value if snapshot.funnel_data else 0
        lines = []
        for index, source in enumerate(sources, 1):
            line = f"{index}. {source.name}: {source.value:g}%"
            if total_leads:
                line += f" ({int(round_half_up(source.value / 100 * total_leads, 0))} leads)"
            lines.append(line)

        top = sources[0]
        return (
            "**Lead Source Analysis**\n\n"
            "**Top Performing Sources:**\n" + "\n".join(lines) + "\n\n"
            "**Distribution Insights:**\n"
            f"- Most effective: {top.name} ({top.value:g}%)\n"
            f"- Diversification: {len(sources)} different sources\n\n"
            "**Recommendations:**\n"
            f"- Invest more in {top.name} marketing\n"
            "- Explore underperforming sources for optimization\n"
            "- Consider A/B testing different source strategies"
        )

    def monthly_trend_analysis(self, snapshot: AnalyticsSnapshot) -> str:
        periods = snapshot.monthly_lead_data
        if not periods:
            return "**Monthly Lead Trend Analysis**\n\nNo monthly lead data is available yet."

        total_leads = sum(period.leads for period in periods)
        average = int(round_half_up(total_leads / len(periods), 0))
        last_month = periods[-1].leads
        growth = growth_rate(periods)
        direction = "decrease" if growth < 0 else "increase"
        breakdown = "\n".join(f"- {period.name}: {period.leads} leads" for period in periods)

        if last_month > average:
            performance = "Above average performance in the most recent month"
        else:
            performance = "Below average performance in the most recent month"
        trend = "Declining trend detected" if growth < 0 else "Positive growth trajectory"
        if last_month < average:
            recommendations = "- Focus on lead generation strategies\n- Analyze seasonal factors"
        else:
            recommendations = "- Maintain current momentum\n- Scale successful campaigns"

        return (
            "**Monthly Lead Trend Analysis**\n\n"
            "**Overall Performance:**\n"
            f"- Total leads: {total_leads}\n"
            f"- Average monthly leads: {average}\n"
            f"- Growth rate: {_format_number(growth)}% ({direction})\n\n"
            f"**Monthly Breakdown:**\n{breakdown}\n\n"
            f"**Trend Insights:**\n- {performance}\n- {trend}\n\n"
            f"**Recommendations:**\n{recommendations}"
        )

    @staticmethod
    def help_text() -> str:
        return (
            "I can help you analyze your analytics data! Here are some questions you can ask:\n\n"
            "**Conversion Analysis:**\n"
            '- "What\'s our conversion rate?"\n'
            '- "Show me funnel performance"\n\n'
            "**Property Insights:**\n"
            '- "Which property is performing best?"\n'
            '- "Show me property performance"\n\n'
            "**Lead Sources:**\n"
            '- "What are our top lead sources?"\n'
            '- "Show me lead source distribution"\n\n'
            "**Trends:**\n"
            '- "What\'s the monthly lead trend?"\n'
            '- "Show me growth patterns"'
        )

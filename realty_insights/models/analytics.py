"""Analytics snapshot and insight request/result models.

The snapshot arrives from the CRM dashboard as camelCase JSON; the models
accept both the wire names and the Python field names.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import InsightError


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class FunnelStage(_Frozen):
    name: str
    value: int = Field(ge=0)


class PeriodLeads(_Frozen):
    name: str
    leads: int = Field(ge=0)


class LeadSourceShare(_Frozen):
    name: str
    value: float = Field(ge=0)  # percentage of all leads


class PropertyPerformance(_Frozen):
    name: str
    leads: int = Field(ge=0)
    site_visits: int = Field(default=0, ge=0, alias="siteVisits")
    tokens: int = Field(default=0, ge=0)


class AnalyticsSnapshot(_Frozen):
    """Read-only aggregates the insight pipeline reasons about."""

    funnel_data: List[FunnelStage] = Field(default_factory=list, alias="funnelData")
    monthly_lead_data: List[PeriodLeads] = Field(default_factory=list, alias="monthlyLeadData")
    lead_source_data: List[LeadSourceShare] = Field(default_factory=list, alias="leadSourceData")
    property_performance_data: List[PropertyPerformance] = Field(
        default_factory=list, alias="propertyPerformanceData"
    )

    def to_prompt_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class InsightRequest(_Frozen):
    """Body of an insight request: the question plus the snapshot to ground it in."""

    text: str = Field(min_length=1)
    analytics_data: AnalyticsSnapshot = Field(default_factory=AnalyticsSnapshot, alias="analyticsData")

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("text must not be blank")
        return value


class ResponseKind(Enum):
    TEXT = "text"
    INSIGHT = "insight"


class InsightSource(Enum):
    PROVIDER = "provider"
    FALLBACK = "fallback"


@dataclass
class InsightResult:
    """Answer to one analytics question."""
    text: str
    kind: ResponseKind = ResponseKind.INSIGHT
    source: InsightSource = InsightSource.PROVIDER
    attempts: int = 0
    error: Optional[InsightError] = None

    @property
    def ok(self) -> bool:
        return self.source is InsightSource.PROVIDER and self.error is None

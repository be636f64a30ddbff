"""Monetra — Revenue Schemas.

Covers the AdSense connection state stored on a project, the adapter's
revenue report, and every revenue response shape served by the API.
Responses serialize with camelCase keys.
"""

import json
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from monetra.core.logging import get_logger

logger = get_logger("models.revenue")


class CamelModel(BaseModel):
    """Base for API shapes: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─────────────────────────────────────────────
# ADSENSE CONNECTION STATE
# ─────────────────────────────────────────────


class AdUnit(CamelModel):
    id: str
    name: str
    code: str = ""
    status: Literal["active", "inactive"] = "active"
    type: Literal["display", "text", "link"] = "display"
    size: str = "responsive"


class AdSenseAccount(CamelModel):
    id: str
    name: str = ""
    currency: str = "USD"


class AdSenseConfig(CamelModel):
    publisher_id: str = ""
    ad_units: List[AdUnit] = []
    auto_ads: bool = False
    ad_density: Literal["low", "medium", "high"] = "medium"
    excluded_pages: List[str] = []


class AdSenseTokens(CamelModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None


class Disconnected(CamelModel):
    status: Literal["disconnected"] = "disconnected"


class Connected(CamelModel):
    """A monetized project. Account and config are always present."""

    status: Literal["connected"] = "connected"
    account: AdSenseAccount
    config: AdSenseConfig
    tokens: Optional[AdSenseTokens] = None


RevenueState = Annotated[Union[Disconnected, Connected], Field(discriminator="status")]

_state_adapter: TypeAdapter = TypeAdapter(RevenueState)


def parse_revenue_state(raw: Union[str, Dict[str, Any], None]) -> Union[Disconnected, Connected]:
    """Parse a project's stored revenue blob.

    Accepts the persisted form ``{adsenseEnabled, adsenseAccount, adsenseConfig,
    adsenseTokens}`` and the tagged form ``{status, ...}``. A blob that claims to be
    enabled without an account and config is treated as disconnected, as is any
    blob that is not valid JSON or does not validate.
    """
    if raw is None or raw == "":
        return Disconnected()
    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError as e:
        logger.warning(f"Revenue blob is not valid JSON; treating as disconnected: {e}")
        return Disconnected()
    if not isinstance(data, dict):
        return Disconnected()

    if "status" in data:
        try:
            return _state_adapter.validate_python(data)
        except PydanticValidationError as e:
            logger.warning(f"Malformed revenue state; treating as disconnected: {e}")
            return Disconnected()

    if not data.get("adsenseEnabled"):
        return Disconnected()

    account = data.get("adsenseAccount")
    config = data.get("adsenseConfig")
    if not account or config is None:
        logger.warning("Revenue blob enabled without account/config; treating as disconnected")
        return Disconnected()

    try:
        return Connected(
            account=account,
            config=config,
            tokens=data.get("adsenseTokens") or None,
        )
    except PydanticValidationError as e:
        logger.warning(f"Malformed revenue blob; treating as disconnected: {e}")
        return Disconnected()


def dump_revenue_state(state: Union[Disconnected, Connected]) -> str:
    """Serialize a revenue state back to the persisted blob form."""
    if isinstance(state, Connected):
        return json.dumps(
            {
                "adsenseEnabled": True,
                "adsenseAccount": state.account.model_dump(mode="json", by_alias=True),
                "adsenseConfig": state.config.model_dump(mode="json", by_alias=True),
                "adsenseTokens": (
                    state.tokens.model_dump(mode="json", by_alias=True)
                    if state.tokens
                    else None
                ),
            }
        )
    return json.dumps(
        {
            "adsenseEnabled": False,
            "adsenseAccount": None,
            "adsenseConfig": None,
            "adsenseTokens": None,
        }
    )


# ─────────────────────────────────────────────
# ADAPTER OUTPUT
# ─────────────────────────────────────────────


class DailyRevenuePoint(CamelModel):
    date: str  # YYYY-MM-DD
    earnings: float = 0.0
    impressions: int = 0
    clicks: int = 0


class RevenueReport(CamelModel):
    """Revenue for one project over a date range."""

    earnings: float = 0.0
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0
    cpm: float = 0.0
    period: str = ""
    total_earnings: float = 0.0
    daily_data: List[DailyRevenuePoint] = []


# ─────────────────────────────────────────────
# DASHBOARD & SUMMARY
# ─────────────────────────────────────────────


class TopPerformingAd(CamelModel):
    ad_unit_id: str
    name: str
    earnings: float
    impressions: int
    clicks: int


class RevenueBreakdown(CamelModel):
    adsense: float = 0.0
    affiliate: float = 0.0
    sponsored: float = 0.0
    other: float = 0.0


class ProjectedEarnings(CamelModel):
    this_month: float = 0.0
    next_month: float = 0.0
    this_year: float = 0.0


class DashboardSnapshot(CamelModel):
    """Revenue dashboard. The default instance is the not-connected state."""

    total_earnings: float = 0.0
    monthly_earnings: float = 0.0
    daily_earnings: float = 0.0
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0
    cpm: float = 0.0
    top_performing_ads: List[TopPerformingAd] = []
    earnings_chart: List[DailyRevenuePoint] = []
    revenue_breakdown: RevenueBreakdown = RevenueBreakdown()
    projected_earnings: ProjectedEarnings = ProjectedEarnings()


class TopProject(CamelModel):
    id: str
    name: str
    earnings: float


class ActivityEntry(CamelModel):
    project_id: str
    project_name: str
    earnings: float
    date: str


class RevenueSummary(CamelModel):
    total_earnings: float = 0.0
    monthly_earnings: float = 0.0
    active_projects: int = 0
    top_project: Optional[TopProject] = None
    recent_activity: List[ActivityEntry] = []


# ─────────────────────────────────────────────
# ANALYTICS, TRENDS, COMPARISON, EXPORT
# ─────────────────────────────────────────────


class PerformanceMetrics(CamelModel):
    average_ctr: float
    average_cpm: float
    fill_rate: float
    viewability: float


class CountryEarnings(CamelModel):
    country: str
    earnings: float
    percentage: float


class TrafficSource(CamelModel):
    source: str
    earnings: float
    percentage: float


class DeviceBreakdown(CamelModel):
    desktop: float
    mobile: float
    tablet: float


class AudienceInsights(CamelModel):
    top_countries: List[CountryEarnings]
    device_breakdown: DeviceBreakdown
    traffic_sources: List[TrafficSource]


class OptimizationSuggestion(CamelModel):
    type: Literal["placement", "format", "targeting", "content"]
    title: str
    description: str
    potential_increase: float
    priority: Literal["high", "medium", "low"]


class CompetitorAnalysis(CamelModel):
    average_industry_earnings: float
    your_performance: Literal["above", "average", "below"]
    improvement_areas: List[str]


class RevenueAnalytics(CamelModel):
    performance_metrics: PerformanceMetrics
    audience_insights: AudienceInsights
    optimization_suggestions: List[OptimizationSuggestion]
    competitor_analysis: CompetitorAnalysis


class TrendPoint(CamelModel):
    current: float
    previous: float
    change: float
    trend: Literal["up", "down", "flat"]


class RevenueTrends(CamelModel):
    earnings: TrendPoint
    impressions: TrendPoint
    ctr: TrendPoint
    cpm: TrendPoint


class ComparisonFigures(CamelModel):
    earnings: float
    impressions: float
    clicks: float
    ctr: float
    cpm: float


class RevenueComparison(CamelModel):
    current: ComparisonFigures
    comparison: ComparisonFigures
    changes: ComparisonFigures


class ExportSummary(CamelModel):
    total_earnings: float
    total_impressions: int
    total_clicks: int
    average_ctr: float
    average_cpm: float


class RevenueExport(CamelModel):
    project: str
    export_date: str
    date_range: Dict[str, str]
    summary: ExportSummary
    daily_data: List[DailyRevenuePoint]
    top_performing_ads: List[TopPerformingAd]
    revenue_breakdown: RevenueBreakdown


# ─────────────────────────────────────────────
# OPTIMIZATION SETTINGS
# ─────────────────────────────────────────────


class AdPlacementSettings(CamelModel):
    header_ads: bool = False
    sidebar_ads: bool = False
    content_ads: bool = False
    footer_ads: bool = False
    mobile_optimized: bool = True


class AdFormatSettings(CamelModel):
    display_ads: bool = True
    text_ads: bool = True
    video_ads: bool = False
    native_ads: bool = False
    responsive_ads: bool = False


class TargetingSettings(CamelModel):
    geographic_targeting: bool = False
    demographic_targeting: bool = False
    behavioral_targeting: bool = False
    contextual_targeting: bool = False


class OptimizationToggles(CamelModel):
    auto_optimization: bool = False
    ad_block_recovery: bool = False
    lazy_loading: bool = False
    ad_refresh: bool = False
    ad_refresh_interval: int = 30  # seconds


class ContentFilterSettings(CamelModel):
    adult_content: bool = True
    gambling: bool = True
    alcohol: bool = False
    politics: bool = False
    religion: bool = False


class RevenueSettings(CamelModel):
    ad_placement: AdPlacementSettings = AdPlacementSettings()
    ad_formats: AdFormatSettings = AdFormatSettings()
    targeting: TargetingSettings = TargetingSettings()
    optimization: OptimizationToggles = OptimizationToggles()
    filters: ContentFilterSettings = ContentFilterSettings()


class RecommendationImpact(CamelModel):
    revenue: int
    user_experience: int
    page_speed: int


class OptimizationRecommendation(CamelModel):
    id: str
    type: Literal["placement", "format", "targeting", "content", "technical"]
    priority: Literal["high", "medium", "low"]
    title: str
    description: str
    expected_increase: float
    implementation_difficulty: Literal["easy", "medium", "hard"]
    estimated_time_to_implement: str
    steps: List[str]
    impact: RecommendationImpact


class CurrentPerformance(CamelModel):
    score: int
    earnings: float
    ctr: float
    cpm: float
    fill_rate: float


class ProjectedImprovements(CamelModel):
    potential_earnings_increase: float
    estimated_timeframe: str = "2-4 weeks"
    confidence_level: int = 85


class IndustryAverage(CamelModel):
    ctr: float = 2.5
    cpm: float = 1.2
    earnings: float = 150.0


class CompetitorBenchmark(CamelModel):
    industry_average: IndustryAverage = IndustryAverage()
    your_position: Literal["above", "average", "below"]
    improvement_opportunity: float


class OptimizationReport(CamelModel):
    current_performance: CurrentPerformance
    recommendations: List[OptimizationRecommendation]
    projected_improvements: ProjectedImprovements
    competitor_benchmark: CompetitorBenchmark


class AppliedRecommendation(CamelModel):
    recommendation_id: str
    message: str
    settings: RevenueSettings


class AdSenseStatus(CamelModel):
    connected: bool
    account: Optional[AdSenseAccount] = None
    ad_units: List[AdUnit] = []

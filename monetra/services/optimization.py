"""Monetra — Revenue Optimization.

Per-project ad settings (placement, formats, targeting, optimization toggles,
content filters) and the rule table that turns disabled settings into
prioritized recommendations.
"""

from typing import Any, Dict, List, Tuple

from pydantic import ValidationError as PydanticValidationError

from monetra.core.errors import ValidationError
from monetra.core.logging import get_logger
from monetra.core.synthetic import SyntheticSource
from monetra.models.db_models import Project
from monetra.models.revenue_models import (
    AppliedRecommendation,
    CompetitorBenchmark,
    CurrentPerformance,
    OptimizationRecommendation,
    OptimizationReport,
    ProjectedImprovements,
    RevenueSettings,
)
from monetra.services.ownership import load_owned_project
from monetra.storage.repository import ProjectRepository

logger = get_logger("services.optimization")

PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}
INDUSTRY_AVERAGE_EARNINGS = 150.0
MAX_PROJECTED_INCREASE = 100.0

# (settings section, toggle) that silences a recommendation once enabled
_RULES: List[Tuple[str, str, Dict[str, Any]]] = [
    (
        "ad_placement",
        "header_ads",
        {
            "id": "header-ads",
            "type": "placement",
            "priority": "high",
            "title": "Enable Header Ad Placement",
            "description": "Adding ads in the header area can significantly increase visibility "
            "and earnings. Header ads typically have high viewability rates.",
            "expected_increase": 25,
            "implementation_difficulty": "easy",
            "estimated_time_to_implement": "15 minutes",
            "steps": [
                "Enable header ads in your revenue settings",
                "Choose appropriate ad sizes (728x90 or 320x50 for mobile)",
                "Test ad placement to ensure it doesn't interfere with navigation",
                "Monitor performance for 7 days",
            ],
            "impact": {"revenue": 4, "user_experience": -1, "page_speed": -1},
        },
    ),
    (
        "ad_placement",
        "content_ads",
        {
            "id": "content-ads",
            "type": "placement",
            "priority": "high",
            "title": "Add In-Content Ad Placements",
            "description": "Placing ads within content provides better user engagement and "
            "higher click-through rates.",
            "expected_increase": 35,
            "implementation_difficulty": "medium",
            "estimated_time_to_implement": "30 minutes",
            "steps": [
                "Enable content ads in settings",
                "Configure ad insertion after specific paragraphs",
                "Use responsive ad units for better mobile experience",
                "A/B test different positions",
            ],
            "impact": {"revenue": 5, "user_experience": -2, "page_speed": -1},
        },
    ),
    (
        "ad_formats",
        "responsive_ads",
        {
            "id": "responsive-ads",
            "type": "format",
            "priority": "high",
            "title": "Enable Responsive Ad Units",
            "description": "Responsive ads automatically adjust to different screen sizes, "
            "improving performance across all devices.",
            "expected_increase": 20,
            "implementation_difficulty": "easy",
            "estimated_time_to_implement": "10 minutes",
            "steps": [
                "Enable responsive ads in format settings",
                "Replace fixed-size ad units with responsive ones",
                "Test on different devices",
                "Monitor performance improvements",
            ],
            "impact": {"revenue": 3, "user_experience": 2, "page_speed": 1},
        },
    ),
    (
        "ad_formats",
        "native_ads",
        {
            "id": "native-ads",
            "type": "format",
            "priority": "medium",
            "title": "Implement Native Ad Formats",
            "description": "Native ads blend seamlessly with your content, providing better "
            "user experience and higher engagement.",
            "expected_increase": 30,
            "implementation_difficulty": "medium",
            "estimated_time_to_implement": "45 minutes",
            "steps": [
                "Enable native ads in format settings",
                "Design native ad templates that match your content style",
                "Configure native ad placements",
                "Monitor user engagement metrics",
            ],
            "impact": {"revenue": 4, "user_experience": 1, "page_speed": 0},
        },
    ),
    (
        "optimization",
        "auto_optimization",
        {
            "id": "auto-optimization",
            "type": "technical",
            "priority": "medium",
            "title": "Enable Auto-Optimization",
            "description": "Automatic optimization uses machine learning to improve ad "
            "performance without manual intervention.",
            "expected_increase": 15,
            "implementation_difficulty": "easy",
            "estimated_time_to_implement": "5 minutes",
            "steps": [
                "Enable auto-optimization in settings",
                "Allow 2-3 weeks for the system to learn",
                "Monitor performance improvements",
                "Fine-tune settings based on results",
            ],
            "impact": {"revenue": 3, "user_experience": 0, "page_speed": 0},
        },
    ),
    (
        "optimization",
        "lazy_loading",
        {
            "id": "lazy-loading",
            "type": "technical",
            "priority": "medium",
            "title": "Implement Ad Lazy Loading",
            "description": "Lazy loading ads improves page speed and user experience while "
            "maintaining ad revenue.",
            "expected_increase": 10,
            "implementation_difficulty": "medium",
            "estimated_time_to_implement": "20 minutes",
            "steps": [
                "Enable lazy loading in optimization settings",
                "Configure loading thresholds",
                "Test page speed improvements",
                "Monitor ad viewability metrics",
            ],
            "impact": {"revenue": 1, "user_experience": 3, "page_speed": 4},
        },
    ),
    (
        "targeting",
        "contextual_targeting",
        {
            "id": "contextual-targeting",
            "type": "targeting",
            "priority": "medium",
            "title": "Enable Contextual Targeting",
            "description": "Contextual targeting shows ads relevant to your content, "
            "improving click-through rates.",
            "expected_increase": 18,
            "implementation_difficulty": "easy",
            "estimated_time_to_implement": "10 minutes",
            "steps": [
                "Enable contextual targeting in settings",
                "Review and approve content categories",
                "Monitor ad relevance and performance",
                "Adjust targeting parameters as needed",
            ],
            "impact": {"revenue": 3, "user_experience": 1, "page_speed": 0},
        },
    ),
]

# Always recommended, whatever the settings
_CONTENT_QUALITY = {
    "id": "content-quality",
    "type": "content",
    "priority": "high",
    "title": "Improve Content Quality and Length",
    "description": "Higher quality, longer content attracts better ads and higher CPMs. "
    "Aim for 1000+ words per page.",
    "expected_increase": 40,
    "implementation_difficulty": "hard",
    "estimated_time_to_implement": "2-4 hours per page",
    "steps": [
        "Audit existing content for quality and length",
        "Expand short articles to 1000+ words",
        "Add relevant images and media",
        "Improve SEO optimization",
        "Update content regularly",
    ],
    "impact": {"revenue": 5, "user_experience": 4, "page_speed": -1},
}

APPLY_MESSAGES = {
    "header-ads": "Header ads have been enabled",
    "content-ads": "In-content ads have been enabled",
    "responsive-ads": "Responsive ad units have been enabled",
    "native-ads": "Native ad formats have been enabled",
    "auto-optimization": "Auto-optimization has been enabled",
    "lazy-loading": "Ad lazy loading has been enabled",
    "contextual-targeting": "Contextual targeting has been enabled",
}


def load_settings(project: Project) -> RevenueSettings:
    """Stored settings for a project, or the defaults when none were saved."""
    if not project.settings_json:
        return RevenueSettings()
    return RevenueSettings.model_validate_json(project.settings_json)


def merge_settings(current: RevenueSettings, update: Dict[str, Any]) -> RevenueSettings:
    """Merge a partial camelCase update into ``current`` one section deep."""
    merged = current.model_dump(by_alias=True)
    for section, values in update.items():
        if section not in merged:
            continue
        if not isinstance(values, dict):
            raise ValidationError(f"Settings section '{section}' must be an object")
        merged[section] = {**merged[section], **values}
    try:
        return RevenueSettings.model_validate(merged)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid revenue settings: {e.errors()[0]['msg']}")


def build_recommendations(settings: RevenueSettings) -> List[OptimizationRecommendation]:
    """Recommend every disabled toggle in the rule table, plus content quality.

    Ordered by priority (high first), then by expected increase.
    """
    recs = [
        OptimizationRecommendation.model_validate(rec)
        for section, toggle, rec in _RULES
        if not getattr(getattr(settings, section), toggle)
    ]
    recs.append(OptimizationRecommendation.model_validate(_CONTENT_QUALITY))
    recs.sort(key=lambda r: (-PRIORITY_ORDER[r.priority], -r.expected_increase))
    return recs


class RevenueOptimizationService:
    def __init__(self, projects: ProjectRepository, synthetic: SyntheticSource):
        self.projects = projects
        self.synthetic = synthetic

    def get_settings(self, project_id: str, user_id: str) -> RevenueSettings:
        project = load_owned_project(self.projects, project_id, user_id, "view settings for")
        return load_settings(project)

    def update_settings(
        self, project_id: str, user_id: str, update: Dict[str, Any]
    ) -> RevenueSettings:
        project = load_owned_project(self.projects, project_id, user_id, "update settings for")
        settings = merge_settings(load_settings(project), update)
        self.projects.update_settings(project, settings)
        logger.info(f"Revenue settings updated for {project_id}", extra={"project_id": project_id})
        return settings

    def recommendations(self, project_id: str, user_id: str) -> List[OptimizationRecommendation]:
        project = load_owned_project(
            self.projects, project_id, user_id, "get recommendations for"
        )
        return build_recommendations(load_settings(project))

    def report(self, project_id: str, user_id: str) -> OptimizationReport:
        """Recommendations plus placeholder performance and benchmark figures."""
        recs = self.recommendations(project_id, user_id)
        performance = CurrentPerformance(**self.synthetic.optimization_performance())

        high_priority_increase = sum(r.expected_increase for r in recs if r.priority == "high")

        if performance.earnings > INDUSTRY_AVERAGE_EARNINGS:
            position = "above"
        elif performance.earnings > 100:
            position = "average"
        else:
            position = "below"

        return OptimizationReport(
            current_performance=performance,
            recommendations=recs,
            projected_improvements=ProjectedImprovements(
                potential_earnings_increase=min(high_priority_increase, MAX_PROJECTED_INCREASE)
            ),
            competitor_benchmark=CompetitorBenchmark(
                your_position=position,
                improvement_opportunity=max(
                    0.0,
                    (INDUSTRY_AVERAGE_EARNINGS - performance.earnings) / performance.earnings * 100,
                ),
            ),
        )

    def apply_recommendation(
        self, project_id: str, user_id: str, recommendation_id: str
    ) -> AppliedRecommendation:
        project = load_owned_project(
            self.projects, project_id, user_id, "apply optimizations to"
        )
        rule = next((r for r in _RULES if r[2]["id"] == recommendation_id), None)
        if rule is None:
            raise ValidationError("Unknown recommendation ID")

        section, toggle, _ = rule
        settings = load_settings(project)
        setattr(getattr(settings, section), toggle, True)
        self.projects.update_settings(project, settings)

        logger.info(
            f"Optimization recommendation {recommendation_id} applied",
            extra={"project_id": project_id},
        )
        return AppliedRecommendation(
            recommendation_id=recommendation_id,
            message=APPLY_MESSAGES[recommendation_id],
            settings=settings,
        )

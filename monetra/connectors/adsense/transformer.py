"""Monetra — AdSense Report → RevenueReport Transformer.

Converts a raw ``reports:generate`` response (headers + rows of cells) into the
daily revenue series and period totals the dashboard consumes.
"""

from datetime import date
from typing import Any, Dict, List

from monetra.models.revenue_models import DailyRevenuePoint, RevenueReport
from monetra.core.logging import get_logger

logger = get_logger("adsense.transformer")

# AdSense metric header → DailyRevenuePoint field
METRIC_FIELDS = {
    "ESTIMATED_EARNINGS": "earnings",
    "IMPRESSIONS": "impressions",
    "CLICKS": "clicks",
}


def _safe_float(value: Any) -> float:
    """Safely convert a value to float."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _header_index(headers: List[Dict[str, Any]]) -> Dict[str, int]:
    return {h.get("name", ""): i for i, h in enumerate(headers)}


def parse_report_rows(raw: Dict[str, Any]) -> List[DailyRevenuePoint]:
    """Extract one DailyRevenuePoint per DATE row, chronological and unique per date."""
    index = _header_index(raw.get("headers") or [])
    if "DATE" not in index:
        logger.warning("AdSense report has no DATE dimension; returning empty series")
        return []

    by_date: Dict[str, DailyRevenuePoint] = {}
    for row in raw.get("rows") or []:
        cells = row.get("cells") or []

        def cell(name: str) -> Any:
            i = index.get(name)
            if i is None or i >= len(cells):
                return None
            return cells[i].get("value")

        day = cell("DATE")
        if not day:
            continue

        values = {field: _safe_float(cell(name)) for name, field in METRIC_FIELDS.items()}
        point = by_date.setdefault(day, DailyRevenuePoint(date=day))
        point.earnings = round(point.earnings + values["earnings"], 2)
        point.impressions += int(values["impressions"])
        point.clicks += int(values["clicks"])

    return [by_date[d] for d in sorted(by_date)]


def build_report(points: List[DailyRevenuePoint], start: date, end: date) -> RevenueReport:
    """Aggregate a daily series into period totals with derived CTR / CPM."""
    earnings = round(sum(p.earnings for p in points), 2)
    impressions = sum(p.impressions for p in points)
    clicks = sum(p.clicks for p in points)

    ctr = (clicks / impressions * 100) if impressions > 0 else 0.0
    cpm = (earnings / impressions * 1000) if impressions > 0 else 0.0

    return RevenueReport(
        earnings=earnings,
        impressions=impressions,
        clicks=clicks,
        ctr=round(ctr, 4),
        cpm=round(cpm, 4),
        period=f"{start.isoformat()} to {end.isoformat()}",
        total_earnings=earnings,
        daily_data=points,
    )


def transform_report(raw: Dict[str, Any], start: date, end: date) -> RevenueReport:
    points = parse_report_rows(raw)
    logger.info(f"Transformed AdSense report: {len(points)} days ({start} → {end})")
    return build_report(points, start, end)

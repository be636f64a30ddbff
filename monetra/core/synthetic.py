"""Monetra — Synthetic Data Source.

Every placeholder number the API serves (mock ad-unit performance, fallback
revenue series, admin revenue/community figures, demo analytics) comes from
here. Nothing in this module derives a metric from real data.

Pass a seed for deterministic output; ``None`` gives non-deterministic values.
"""

import random
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, TypeVar

T = TypeVar("T")


class SyntheticSource:
    """Seedable generator for placeholder figures."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    # ── Primitives ──

    def uniform(self, low: float, high: float) -> float:
        """Float in [low, high)."""
        return low + self._rng.random() * (high - low)

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high)."""
        return low + int(self._rng.random() * (high - low))

    def chance(self, probability: float) -> bool:
        return self._rng.random() < probability

    def choice(self, options: Sequence[T]) -> T:
        return options[int(self._rng.random() * len(options))]

    # ── Revenue ──

    def ad_unit_performance(self) -> Dict[str, float]:
        """Per-ad-unit numbers for the dashboard's top performing ads."""
        return {
            "earnings": self.uniform(0, 50),
            "impressions": self.randint(0, 1000),
            "clicks": self.randint(0, 50),
        }

    def daily_revenue(self, start: date, end: date) -> List[Dict[str, Any]]:
        """One point per calendar day in [start, end], chronological."""
        points = []
        day = start
        while day <= end:
            points.append(
                {
                    "date": day.isoformat(),
                    "earnings": round(self.uniform(1, 50), 2),
                    "impressions": self.randint(100, 1000),
                    "clicks": self.randint(1, 50),
                }
            )
            day += timedelta(days=1)
        return points

    def performance_metrics(self) -> Dict[str, float]:
        return {
            "average_ctr": self.uniform(1, 4),
            "average_cpm": self.uniform(0.5, 2.5),
            "fill_rate": self.uniform(0.8, 1.0),
            "viewability": self.uniform(0.7, 1.0),
        }

    def country_earnings(self) -> List[Dict[str, Any]]:
        return [
            {"country": "United States", "earnings": self.uniform(0, 100), "percentage": 45},
            {"country": "United Kingdom", "earnings": self.uniform(0, 50), "percentage": 20},
            {"country": "Canada", "earnings": self.uniform(0, 30), "percentage": 15},
            {"country": "Australia", "earnings": self.uniform(0, 20), "percentage": 10},
            {"country": "Germany", "earnings": self.uniform(0, 15), "percentage": 10},
        ]

    def device_breakdown(self) -> Dict[str, float]:
        return {
            "desktop": self.uniform(30, 70),
            "mobile": self.uniform(30, 70),
            "tablet": self.uniform(5, 25),
        }

    def traffic_sources(self) -> List[Dict[str, Any]]:
        return [
            {"source": "Organic Search", "earnings": self.uniform(0, 60), "percentage": 40},
            {"source": "Direct", "earnings": self.uniform(0, 45), "percentage": 30},
            {"source": "Social Media", "earnings": self.uniform(0, 30), "percentage": 20},
            {"source": "Referral", "earnings": self.uniform(0, 15), "percentage": 10},
        ]

    def industry_benchmark(self) -> Dict[str, Any]:
        return {
            "average_industry_earnings": self.uniform(100, 300),
            "your_performance": "above" if self.chance(0.5) else "average",
        }

    # ── Admin ──

    def platform_revenue(self) -> Dict[str, float]:
        return {
            "total": self.uniform(50000, 150000),
            "this_month": self.uniform(5000, 15000),
            "last_month": self.uniform(4000, 12000),
        }

    def community_counts(self) -> Dict[str, int]:
        return {
            "posts": self.randint(100, 1000),
            "comments": self.randint(500, 5000),
            "shared_projects": self.randint(50, 500),
            "reports": self.randint(0, 20),
        }

    def user_revenue(self) -> float:
        return self.uniform(100, 1100)

    def system_health(self) -> Dict[str, Any]:
        return {
            "uptime": self.uniform(95, 100),
            "response_time": self.uniform(50, 250),
            "error_rate": self.uniform(0, 2),
            "services": {
                "database": "warning" if self.chance(0.1) else "healthy",
                "api": "warning" if self.chance(0.05) else "healthy",
                "deployment": "warning" if self.chance(0.15) else "healthy",
                "revenue": "warning" if self.chance(0.08) else "healthy",
            },
        }

    def system_logs(self, now: datetime, count: int = 100) -> List[Dict[str, Any]]:
        logs = []
        for i in range(count):
            logs.append(
                {
                    "id": f"log-{i}",
                    "timestamp": now - timedelta(minutes=i),
                    "level": self.choice(["error", "warn", "info", "debug"]),
                    "message": f"System log message {i}",
                    "service": self.choice(["api", "database", "deployment", "revenue"]),
                    "metadata": {
                        "user_id": f"user-{self.randint(0, 100)}" if self.chance(0.5) else None,
                        "project_id": f"project-{self.randint(0, 50)}" if self.chance(0.3) else None,
                    },
                }
            )
        return logs

    def platform_revenue_trend(self, today: date, days: int = 30) -> Dict[str, Any]:
        return {
            "total_revenue": self.uniform(50000, 150000),
            "growth": self.uniform(5, 25),
            "daily_data": [
                {
                    "date": (today - timedelta(days=days - 1 - i)).isoformat(),
                    "revenue": self.uniform(1000, 3000),
                    "users": self.randint(50, 150),
                }
                for i in range(days)
            ],
            "top_performers": [
                {"user_id": "user1", "name": "John Doe", "revenue": self.uniform(2000, 7000)},
                {"user_id": "user2", "name": "Jane Smith", "revenue": self.uniform(1500, 5500)},
                {"user_id": "user3", "name": "Bob Johnson", "revenue": self.uniform(1000, 4000)},
            ],
        }

    def deployment_stats(self, now: datetime) -> Dict[str, Any]:
        platforms = ["cloudflare", "vercel", "netlify"]
        return {
            "total_deployments": self.randint(500, 1500),
            "successful_deployments": self.randint(450, 1350),
            "failed_deployments": self.randint(10, 60),
            "average_deploy_time": self.uniform(120, 420),
            "deployments_by_platform": {
                "cloudflare": self.randint(200, 600),
                "vercel": self.randint(150, 450),
                "netlify": self.randint(100, 300),
            },
            "recent_deployments": [
                {
                    "id": f"deploy-{i}",
                    "project_name": f"Project {i + 1}",
                    "status": self.choice(["success", "failed", "pending"]),
                    "platform": self.choice(platforms),
                    "deployed_at": now - timedelta(hours=i),
                    "duration": self.randint(60, 360),
                }
                for i in range(10)
            ],
        }

    # ── Optimization ──

    def optimization_performance(self) -> Dict[str, Any]:
        return {
            "score": self.randint(60, 100),
            "earnings": self.uniform(50, 250),
            "ctr": self.uniform(1, 4),
            "cpm": self.uniform(0.5, 2.5),
            "fill_rate": self.uniform(0.8, 1.0),
        }

"""Dashboard package."""

from lifepath.dashboard.aggregator import DashboardAggregator, area_progress

__all__ = ["DashboardAggregator", "area_progress"]

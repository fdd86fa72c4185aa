"""
Builds the group statistics view model from the four raw feeds.
"""
from typing import Any, Dict, Iterable, Optional
from normalize.util import normalize_overview, normalize_distribution, normalize_weekly_feed, normalize_dev_weekly_feed
from analytics.models import GroupStatistics
from analytics.ranking import rank_distribution
from analytics.densify import build_member_universe, densify, WORK_ITEM_EXTRACTORS, DEVELOPMENT_EXTRACTORS
from analytics.utils import assign_series_colors


def build_group_statistics(overview: Any = None, distribution: Any = None, weekly: Any = None, dev_weekly: Any = None, failed_feeds: Optional[Iterable[str]] = None) -> GroupStatistics:
    """
    Normalize the raw feeds and compute ranking and both densified weekly series.
    Any feed may be None (not fetched / failed); its section simply comes out empty.
    """
    distribution_records = normalize_distribution(distribution)
    weekly_feed = normalize_weekly_feed(weekly)
    dev_feed = normalize_dev_weekly_feed(dev_weekly)

    work_members = build_member_universe(weekly_feed)
    dev_members = build_member_universe(dev_feed)

    return GroupStatistics(
        overview=normalize_overview(overview),
        contributors=rank_distribution(distribution_records),
        work_members=work_members,
        work_rows=densify(weekly_feed, WORK_ITEM_EXTRACTORS, universe=work_members),
        dev_members=dev_members,
        dev_rows=densify(dev_feed, DEVELOPMENT_EXTRACTORS, universe=dev_members),
        failed_feeds=list(failed_feeds or []),
    )


def to_view_model(stats: GroupStatistics, saturation: int = 70, lightness: int = 50) -> Dict[str, Any]:
    """Plain-data view of the statistics, ready for JSON or a template."""
    return {
        'overview': stats.overview_cards(),
        'overview_available': stats.overview is not None,
        'contributors': [c.as_dict() for c in stats.contributors],
        'contributor_table': [c.table_row() for c in stats.contributors],
        'contributor_colors': assign_series_colors((c.name for c in stats.contributors), saturation, lightness),
        'work_members': list(stats.work_members),
        'work_colors': assign_series_colors(stats.work_members, saturation, lightness),
        'work_series': [r.as_dict() for r in stats.work_rows],
        'dev_members': list(stats.dev_members),
        'dev_colors': assign_series_colors(stats.dev_members, saturation, lightness),
        'dev_series': [r.as_dict() for r in stats.dev_rows],
        'failed_feeds': list(stats.failed_feeds),
    }

"""
Chart-ready result models produced by the analytics pipeline.
"""

from typing import Dict, List, Optional
from normalize.models import DistributionRecord, WorkOverview
from normalize.util import format_rating

DEFAULT_GROUP_ROLE = 'MEMBER'
NO_EXTERNAL_ID = 'No ID'


class RankedContributor:
    """
    One row of the ranked contributor table / grouped bar chart.
    """

    def __init__(self, name: str, commits: int, work_items: int, evidences: int, full_name: str, record: Optional[DistributionRecord] = None):
        self.name = name
        self.commits = commits
        self.work_items = work_items
        self.evidences = evidences
        self.full_name = full_name
        self.record = record

    @property
    def idle(self) -> bool:
        return self.work_items == 0

    def as_dict(self) -> Dict[str, object]:
        """Chart row keyed the way the bar chart reads it."""
        return {
            'name': self.name,
            'commits': self.commits,
            'workItems': self.work_items,
            'evidences': self.evidences,
            'fullName': self.full_name,
        }

    def table_row(self) -> Dict[str, object]:
        """Full table row including the distribution details."""
        rec = self.record
        return {
            'name': self.full_name,
            'initial': rec.identity.initial if rec else (self.full_name[:1].upper() or 'U'),
            'external_id': (rec.external_id if rec and rec.external_id else NO_EXTERNAL_ID),
            'group_role': (rec.group_role if rec and rec.group_role else DEFAULT_GROUP_ROLE),
            'work_items': self.work_items,
            'story_points': rec.story_points if rec else 0,
            'commits': self.commits,
            'lines_added': rec.lines_added if rec else 0,
            'lines_deleted': rec.lines_deleted if rec else 0,
            'evidences': self.evidences,
            'rating': format_rating(rec.average_rating if rec else None),
            'idle': self.idle,
        }

    def __repr__(self):
        return f"RankedContributor({self.name!r}, work_items={self.work_items}, commits={self.commits}, evidences={self.evidences})"


class DenseRow:
    """
    One period of a densified series: a label plus an explicit value for every series key.
    """

    def __init__(self, period: str, timestamp: Optional[int], label: str, values: Dict[str, int]):
        self.period = period
        self.timestamp = timestamp
        self.label = label
        self.values = values

    def as_dict(self, label_key: str = 'week') -> Dict[str, object]:
        row = {label_key: self.label}
        row.update(self.values)
        # a member whose display name equals label_key must not clobber the label
        row[label_key] = self.label
        return row

    def __eq__(self, other):
        if not isinstance(other, DenseRow):
            return NotImplemented
        return (self.period, self.timestamp, self.label, self.values) == (other.period, other.timestamp, other.label, other.values)

    def __repr__(self):
        return f"DenseRow({self.period!r}, {self.label!r}, {self.values!r})"


class GroupStatistics:
    """
    View model for one group's statistics page.
    """

    def __init__(self, overview: Optional[WorkOverview], contributors: List[RankedContributor], work_members: List[str], work_rows: List[DenseRow], dev_members: List[str], dev_rows: List[DenseRow], failed_feeds: Optional[List[str]] = None):
        self.overview = overview
        self.contributors = contributors
        self.work_members = work_members
        self.work_rows = work_rows
        self.dev_members = dev_members
        self.dev_rows = dev_rows
        self.failed_feeds = failed_feeds or []

    def overview_cards(self) -> Dict[str, int]:
        # an unavailable overview renders as zeroed cards
        return (self.overview or WorkOverview()).as_dict()

    def __str__(self):
        ov = self.overview_cards()
        lines = [
            f"Total Items: {ov['total_items']}",
            f"Total Commits: {ov['commits']}",
            f"Total Changes: {ov['total_changes']}",
            f"Evidence Files: {ov['evidence_files']}",
            f"Contributors: {len(self.contributors)}",
            f"Weeks Tracked: {len(self.work_rows)}",
        ]
        return "\n".join(lines)

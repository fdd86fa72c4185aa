"""
Normalized record models for the group statistics feeds.
Counts are plain ints after normalization; only the rating keeps None for "not rated".
"""

from typing import Optional


class MemberIdentity:
    """
    Display identity of a contributor derived from (name, email).
    """
    def __init__(self, display_name: str, initial: str):
        self.display_name = display_name
        self.initial = initial

    def __eq__(self, other):
        if not isinstance(other, MemberIdentity):
            return NotImplemented
        return self.display_name == other.display_name and self.initial == other.initial

    def __hash__(self):
        return hash((self.display_name, self.initial))

    def __repr__(self):
        return f"MemberIdentity({self.display_name!r}, {self.initial!r})"


class WorkOverview:
    """
    Group-wide totals snapshot shown on the overview cards.
    """
    def __init__(self, epics_done: int = 0, stories_done: int = 0, tasks_done: int = 0, subtasks_done: int = 0, commits: int = 0, lines_added: int = 0, lines_deleted: int = 0, evidence_files: int = 0):
        self.epics_done = epics_done
        self.stories_done = stories_done
        self.tasks_done = tasks_done
        self.subtasks_done = subtasks_done
        self.commits = commits
        self.lines_added = lines_added
        self.lines_deleted = lines_deleted
        self.evidence_files = evidence_files

    @property
    def total_items(self) -> int:
        return self.epics_done + self.stories_done + self.tasks_done + self.subtasks_done

    @property
    def total_changes(self) -> int:
        return self.lines_added + self.lines_deleted

    def as_dict(self) -> dict:
        return {
            'epics_done': self.epics_done,
            'stories_done': self.stories_done,
            'tasks_done': self.tasks_done,
            'subtasks_done': self.subtasks_done,
            'total_items': self.total_items,
            'commits': self.commits,
            'lines_added': self.lines_added,
            'lines_deleted': self.lines_deleted,
            'total_changes': self.total_changes,
            'evidence_files': self.evidence_files,
        }


class DistributionRecord:
    """
    Per-member totals from the distribution snapshot.
    A record with email None is a placeholder slot, not a real member.
    """
    def __init__(self, member_id: Optional[str], name: Optional[str], email: Optional[str], external_id: Optional[str], group_role: Optional[str], identity: MemberIdentity, work_done: int = 0, story_points: int = 0, average_rating: Optional[float] = None, commits: int = 0, lines_added: int = 0, lines_deleted: int = 0, evidence_files: int = 0):
        self.member_id = member_id
        self.name = name
        self.email = email
        self.external_id = external_id
        self.group_role = group_role
        self.identity = identity
        self.work_done = work_done
        self.story_points = story_points
        self.average_rating = average_rating
        self.commits = commits
        self.lines_added = lines_added
        self.lines_deleted = lines_deleted
        self.evidence_files = evidence_files

    @property
    def is_placeholder(self) -> bool:
        return self.email is None


class WeeklyRecord:
    """
    One member's work-item totals for one reporting week.
    """
    def __init__(self, member_id: Optional[str], name: Optional[str], email: Optional[str], external_id: Optional[str], identity: MemberIdentity, work_done: int = 0, story_points: int = 0, average_rating: Optional[float] = None, week: Optional[str] = None):
        self.member_id = member_id
        self.name = name
        self.email = email
        self.external_id = external_id
        self.identity = identity
        self.work_done = work_done
        self.story_points = story_points
        self.average_rating = average_rating
        self.week = week


class DevWeeklyRecord:
    """
    One member's development activity for one reporting week.
    """
    def __init__(self, member_id: Optional[str], name: Optional[str], email: Optional[str], external_id: Optional[str], identity: MemberIdentity, commits: int = 0, lines_added: int = 0, lines_deleted: int = 0, week: Optional[str] = None):
        self.member_id = member_id
        self.name = name
        self.email = email
        self.external_id = external_id
        self.identity = identity
        self.commits = commits
        self.lines_added = lines_added
        self.lines_deleted = lines_deleted
        self.week = week

    @property
    def code_changes(self) -> int:
        return self.lines_added + self.lines_deleted

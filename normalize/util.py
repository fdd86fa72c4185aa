"""
Normalization utility helpers.
Parses the numeric-string fields of the statistics feeds and builds normalize.models entities.
All feed parsing goes through to_count/to_float so callers never call int()/float() on raw payloads.
"""
import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, List, Optional
from normalize.models import MemberIdentity, WorkOverview, DistributionRecord, WeeklyRecord, DevWeeklyRecord

UNKNOWN_MEMBER = 'Unknown'
UNKNOWN_INITIAL = 'U'
RATING_NOT_AVAILABLE = 'N/A'

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')
ONE_DECIMAL = Decimal('0.1')

# wire name first, then the aliases accepted from camelCase/short payloads
FIELD_ALIASES = {
    'id': ('student_id', 'studentId', 'id'),
    'name': ('student_name', 'studentName', 'name'),
    'email': ('student_email', 'studentEmail', 'email'),
    'external_id': ('student_externalid', 'externalId', 'external_id'),
    'group_role': ('group_role', 'groupRole'),
    'work_done': ('total_work_done', 'totalWorkDone'),
    'story_points': ('story_points_received', 'storyPointsReceived'),
    'average_rating': ('average_rating', 'averageRating'),
    'commits': ('total_commit', 'totalCommit'),
    'lines_added': ('total_of_line_code_add', 'linesAdded', 'lines_added'),
    'lines_deleted': ('total_of_line_code_deleted', 'linesDeleted', 'lines_deleted'),
    'evidence_files': ('file_work_evidences', 'evidenceFileCount', 'evidence_file_count'),
    'week': ('week',),
    'epics_done': ('total_epic_done', 'totalEpicDone'),
    'stories_done': ('total_story_done', 'totalStoryDone'),
    'tasks_done': ('total_task_done', 'totalTaskDone'),
    'subtasks_done': ('total_sub_task_done', 'totalSubTaskDone'),
}


def to_count(value: Any) -> int:
    """Parse a count transmitted as a decimal string. Missing, empty, negative or unparseable values give 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        return max(0, int(value))
    if not isinstance(value, str):
        return 0
    m = _LEADING_INT.match(value)
    if not m:
        return 0
    try:
        return max(0, int(m.group(1)))
    except ValueError:
        # digit runs past the interpreter's int conversion limit
        return 0


def to_float(value: Any) -> Optional[float]:
    """Parse a rating. Returns None when absent or unparseable, otherwise the value rounded to one decimal.

    A rating of 0 is meaningful and must stay distinct from "not rated", so 0.0 is returned as-is.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    # half-up, so 4.25 displays as 4.3
    return float(Decimal(repr(parsed)).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


def format_rating(rating: Optional[float]) -> str:
    """Render a normalized rating for display."""
    if rating is None:
        return RATING_NOT_AVAILABLE
    return f"{rating:.1f}"


def resolve_member(name: Optional[str], email: Optional[str]) -> MemberIdentity:
    """Derive the display identity of a contributor: name, else email, else 'Unknown'."""
    if name is not None:
        display_name = name
    elif email is not None:
        display_name = email
    else:
        display_name = UNKNOWN_MEMBER
    initial = display_name[0].upper() if display_name else UNKNOWN_INITIAL
    return MemberIdentity(display_name=display_name, initial=initial)


def get_field(raw: Dict[str, Any], field: str) -> Any:
    """Return the value of the first alias of field present in raw (present-but-None counts as present)."""
    for key in FIELD_ALIASES[field]:
        if key in raw:
            return raw[key]
    return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _identity_fields(raw: Dict[str, Any]):
    name = _optional_str(get_field(raw, 'name'))
    email = _optional_str(get_field(raw, 'email'))
    return (
        _optional_str(get_field(raw, 'id')),
        name,
        email,
        _optional_str(get_field(raw, 'external_id')),
        resolve_member(name, email),
    )


def normalize_overview(raw: Any) -> Optional[WorkOverview]:
    """Create a WorkOverview from the overview payload, or None when there is no usable payload."""
    if not isinstance(raw, dict):
        return None
    return WorkOverview(
        epics_done=to_count(get_field(raw, 'epics_done')),
        stories_done=to_count(get_field(raw, 'stories_done')),
        tasks_done=to_count(get_field(raw, 'tasks_done')),
        subtasks_done=to_count(get_field(raw, 'subtasks_done')),
        commits=to_count(get_field(raw, 'commits')),
        lines_added=to_count(get_field(raw, 'lines_added')),
        lines_deleted=to_count(get_field(raw, 'lines_deleted')),
        evidence_files=to_count(get_field(raw, 'evidence_files')),
    )


def normalize_distribution_record(raw: Dict[str, Any]) -> DistributionRecord:
    member_id, name, email, external_id, identity = _identity_fields(raw)
    return DistributionRecord(
        member_id=member_id,
        name=name,
        email=email,
        external_id=external_id,
        group_role=_optional_str(get_field(raw, 'group_role')),
        identity=identity,
        work_done=to_count(get_field(raw, 'work_done')),
        story_points=to_count(get_field(raw, 'story_points')),
        average_rating=to_float(get_field(raw, 'average_rating')),
        commits=to_count(get_field(raw, 'commits')),
        lines_added=to_count(get_field(raw, 'lines_added')),
        lines_deleted=to_count(get_field(raw, 'lines_deleted')),
        evidence_files=to_count(get_field(raw, 'evidence_files')),
    )


def normalize_distribution(raw: Any) -> List[DistributionRecord]:
    """Normalize the distribution snapshot; non-dict entries are skipped."""
    if not isinstance(raw, list):
        return []
    return [normalize_distribution_record(r) for r in raw if isinstance(r, dict)]


def normalize_weekly_record(raw: Dict[str, Any]) -> WeeklyRecord:
    member_id, name, email, external_id, identity = _identity_fields(raw)
    return WeeklyRecord(
        member_id=member_id,
        name=name,
        email=email,
        external_id=external_id,
        identity=identity,
        work_done=to_count(get_field(raw, 'work_done')),
        story_points=to_count(get_field(raw, 'story_points')),
        average_rating=to_float(get_field(raw, 'average_rating')),
        week=_optional_str(get_field(raw, 'week')),
    )


def normalize_dev_weekly_record(raw: Dict[str, Any]) -> DevWeeklyRecord:
    member_id, name, email, external_id, identity = _identity_fields(raw)
    return DevWeeklyRecord(
        member_id=member_id,
        name=name,
        email=email,
        external_id=external_id,
        identity=identity,
        commits=to_count(get_field(raw, 'commits')),
        lines_added=to_count(get_field(raw, 'lines_added')),
        lines_deleted=to_count(get_field(raw, 'lines_deleted')),
        week=_optional_str(get_field(raw, 'week')),
    )


def _normalize_period_feed(raw: Any, record_factory) -> Dict[str, list]:
    # period keys are kept verbatim; a period whose value is not a list is still a period, just empty
    if not isinstance(raw, dict):
        return {}
    feed = {}
    for period, records in raw.items():
        entries = records if isinstance(records, list) else []
        feed[str(period)] = [record_factory(r) for r in entries if isinstance(r, dict)]
    return feed


def normalize_weekly_feed(raw: Any) -> Dict[str, List[WeeklyRecord]]:
    """Normalize the weekly work-item summary (timestamp -> records)."""
    return _normalize_period_feed(raw, normalize_weekly_record)


def normalize_dev_weekly_feed(raw: Any) -> Dict[str, List[DevWeeklyRecord]]:
    """Normalize the weekly development summary (timestamp -> records)."""
    return _normalize_period_feed(raw, normalize_dev_weekly_record)

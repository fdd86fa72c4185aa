"""
Period densification: pivots sparse per-period member records into dense, time-ordered chart rows.

Every member seen in any period gets an explicit value in every period, so a chart can tell
"zero that week" apart from "not tracked".
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from analytics.models import DenseRow

# fixed English abbreviations; strftime('%b') would follow the process locale
MONTH_ABBR = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

COMMITS_SUFFIX = 'Commits'
CODE_CHANGES_SUFFIX = 'Code Changes'


def series_key(display_name: str, suffix: Optional[str] = None) -> str:
    """Chart data key for a member series, e.g. 'Ana' or 'Ana (Commits)'."""
    if not suffix:
        return display_name
    return f"{display_name} ({suffix})"


class SeriesExtractor:
    """
    Maps a member record to one series value. key_for() names the series for a display name.
    """

    def __init__(self, value: Callable[[Any], int], suffix: Optional[str] = None):
        self.value = value
        self.suffix = suffix

    def key_for(self, display_name: str) -> str:
        return series_key(display_name, self.suffix)


WORK_ITEM_EXTRACTORS = (
    SeriesExtractor(lambda r: r.work_done),
)

DEVELOPMENT_EXTRACTORS = (
    SeriesExtractor(lambda r: r.commits, suffix=COMMITS_SUFFIX),
    SeriesExtractor(lambda r: r.lines_added + r.lines_deleted, suffix=CODE_CHANGES_SUFFIX),
)


def _display_name(record: Any) -> str:
    return record.identity.display_name


def build_member_universe(feed: Mapping[str, Iterable[Any]]) -> List[str]:
    """Distinct member display names across every period, in first-seen order."""
    seen: Dict[str, None] = {}
    for records in feed.values():
        for r in records or []:
            seen.setdefault(_display_name(r), None)
    return list(seen)


def parse_period_key(period: str) -> Optional[int]:
    """Parse a period key (millisecond timestamp string); None when it is not an integer."""
    try:
        return int(str(period).strip())
    except (TypeError, ValueError):
        return None


def period_label(timestamp_ms: int) -> str:
    """Human label for a period, e.g. 'Mar 4'. Rendered in UTC so labels do not depend on the host."""
    dt = datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)
    return f"{MONTH_ABBR[dt.month - 1]} {dt.day}"


def _safe_label(period: str, timestamp: Optional[int]) -> str:
    if timestamp is None:
        return str(period)
    try:
        return period_label(timestamp)
    except (OverflowError, OSError, ValueError):
        return str(period)


def sorted_periods(feed: Mapping[str, Any]) -> List[Tuple[str, Optional[int]]]:
    """Period keys ordered by numeric timestamp; unparseable keys go last in feed order."""
    parsed = [(p, parse_period_key(p)) for p in feed.keys()]
    numeric = sorted((item for item in parsed if item[1] is not None), key=lambda item: item[1])
    other = [item for item in parsed if item[1] is None]
    return numeric + other


def densify(feed: Mapping[str, Iterable[Any]], extractors: Sequence[SeriesExtractor], universe: Optional[Iterable[str]] = None) -> List[DenseRow]:
    """
    Build one dense row per period, in ascending timestamp order.

    Each row holds exactly len(universe) * len(extractors) series values: a 0 default for every
    member, overwritten by the member's extracted value where the period has a record for them.
    Records for names outside an explicitly supplied universe are ignored. If a member appears
    twice in one period the later record wins.
    """
    members = build_member_universe(feed) if universe is None else list(dict.fromkeys(universe))
    member_set = set(members)
    rows: List[DenseRow] = []
    for period, timestamp in sorted_periods(feed):
        values: Dict[str, int] = {}
        for name in members:
            for ex in extractors:
                values[ex.key_for(name)] = 0
        for record in feed.get(period) or []:
            name = _display_name(record)
            if name not in member_set:
                continue
            for ex in extractors:
                values[ex.key_for(name)] = ex.value(record)
        rows.append(DenseRow(period=period, timestamp=timestamp, label=_safe_label(period, timestamp), values=values))
    return rows

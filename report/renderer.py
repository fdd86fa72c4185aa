"""
Report renderer: generate text/Markdown/CSV/JSON/HTML views of GroupStatistics.
HTML is rendered with Jinja2 using report/templates/report.html.j2.
"""

from typing import Optional, List, Dict, Any
from analytics.models import GroupStatistics
from analytics.statistics import to_view_model
from analytics.densify import DEVELOPMENT_EXTRACTORS
import os
import json
import io
import csv
from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), 'templates')

CONTRIBUTOR_COLUMNS = ['name', 'external_id', 'group_role', 'work_items', 'story_points', 'commits', 'lines_added', 'lines_deleted', 'evidences', 'rating']

OVERVIEW_LABELS = [
    ('epics_done', 'Epics'),
    ('stories_done', 'Stories'),
    ('tasks_done', 'Tasks'),
    ('subtasks_done', 'Subtasks'),
    ('total_items', 'Total Items'),
    ('evidence_files', 'Evidence Files'),
    ('commits', 'Total Commits'),
    ('lines_added', 'Lines Added'),
    ('lines_deleted', 'Lines Deleted'),
    ('total_changes', 'Total Changes'),
]


def render_text(stats: GroupStatistics) -> str:
    """Render a simple plain-text summary."""
    return str(stats)


def _md_table(headers: List[str], rows: List[List[Any]]) -> List[str]:
    out = ["| " + " | ".join(headers) + " |", "|" + "|".join("---" for _ in headers) + "|"]
    for row in rows:
        out.append("| " + " | ".join(str(v) for v in row) + " |")
    return out


def _series_md(title: str, series: List[Dict[str, Any]], keys: List[str]) -> List[str]:
    md = [f"## {title}\n"]
    if not series:
        md.append("_No weekly data available._")
        return md
    md.extend(_md_table(['Week'] + keys, [[row['week']] + [row.get(k, 0) for k in keys] for row in series]))
    return md


def _dev_keys(members: List[str]) -> List[str]:
    return [ex.key_for(m) for m in members for ex in DEVELOPMENT_EXTRACTORS]


def render_markdown(stats: GroupStatistics) -> str:
    """Render the full statistics page as Markdown."""
    vm = to_view_model(stats)
    md = ["# Group Work Statistics\n"]
    for key, label in OVERVIEW_LABELS:
        md.append(f"- {label}: **{vm['overview'][key]}**")
    if vm['failed_feeds']:
        md.append(f"\n_Unavailable feeds: {', '.join(vm['failed_feeds'])}_")

    md.append("\n## Work Distribution\n")
    if vm['contributor_table']:
        md.extend(_md_table(
            ['Member', 'Role', 'Work Items', 'Story Points', 'Commits', 'Lines Added', 'Lines Deleted', 'Evidences', 'Rating'],
            [[r['name'], r['group_role'], r['work_items'], r['story_points'], r['commits'], r['lines_added'], r['lines_deleted'], r['evidences'], r['rating']] for r in vm['contributor_table']],
        ))
    else:
        md.append("_No contributors._")

    md.append("")
    md.extend(_series_md('Weekly Work Items', vm['work_series'], vm['work_members']))
    md.append("")
    md.extend(_series_md('Weekly Development Activity', vm['dev_series'], _dev_keys(vm['dev_members'])))
    return "\n".join(md)


def render_csv(stats: GroupStatistics) -> str:
    """Render the ranked contributor table as CSV with a header."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CONTRIBUTOR_COLUMNS)
    for c in stats.contributors:
        row = c.table_row()
        writer.writerow([row[col] for col in CONTRIBUTOR_COLUMNS])
    return output.getvalue()


def render_json(stats: GroupStatistics, saturation: int = 70, lightness: int = 50) -> str:
    """Export the whole view model as JSON."""
    return json.dumps(to_view_model(stats, saturation=saturation, lightness=lightness), indent=2)


def render_html(stats: GroupStatistics, generated_at: Optional[str] = None, scope: Optional[str] = None, saturation: int = 70, lightness: int = 50) -> str:
    """Render the statistics page with the Jinja2 report template."""
    env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(['html', 'xml', 'j2']))
    tmpl = env.get_template('report.html.j2')
    vm = to_view_model(stats, saturation=saturation, lightness=lightness)
    context = {
        'vm': vm,
        'overview_labels': OVERVIEW_LABELS,
        'dev_keys': _dev_keys(vm['dev_members']),
        'generated_at': generated_at,
        'scope': scope,
    }
    return tmpl.render(**context)


def render(
    stats: Optional[GroupStatistics],
    fmt: str = 'text',
    generated_at: Optional[str] = None,
    scope: Optional[str] = None,
    saturation: int = 70,
    lightness: int = 50,
) -> str:
    """Main render function; dispatches on the output format name."""
    if stats is None:
        return ''
    fmt_l = (fmt or 'text').lower()
    if fmt_l in ('md', 'markdown'):
        return render_markdown(stats)
    if fmt_l == 'csv':
        return render_csv(stats)
    if fmt_l in ('html', 'htm'):
        return render_html(stats, generated_at=generated_at, scope=scope, saturation=saturation, lightness=lightness)
    if fmt_l in ('json', 'js'):
        return render_json(stats, saturation=saturation, lightness=lightness)
    return render_text(stats)

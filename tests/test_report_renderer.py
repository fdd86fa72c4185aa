import csv
import io
import json
import unittest
from analytics import build_group_statistics
from report.renderer import render, render_html, render_markdown, render_csv, render_json

MAR_4 = '1709510400000'


def _stats():
    return build_group_statistics(
        {'total_commit': '5', 'total_task_done': '2'},
        [
            {'student_name': 'Ana <dev>', 'student_email': 'ana@x.com', 'total_work_done': '3', 'average_rating': '0'},
            {'student_name': 'Bo', 'student_email': 'bo@x.com', 'total_work_done': '1'},
        ],
        {MAR_4: [{'student_name': 'Ana <dev>', 'total_work_done': '3'}]},
        {MAR_4: [{'student_name': 'Bo', 'total_commit': '2', 'total_of_line_code_add': '7'}]},
        failed_feeds=[],
    )


class TestRenderer(unittest.TestCase):
    def test_markdown(self):
        md = render_markdown(_stats())
        self.assertIn('Group Work Statistics', md)
        self.assertIn('- Total Commits: **5**', md)
        self.assertIn('| Mar 4 | 3 |', md)
        self.assertIn('Bo (Code Changes)', md)

    def test_csv(self):
        rows = list(csv.reader(io.StringIO(render_csv(_stats()))))
        self.assertEqual(rows[0][:4], ['name', 'external_id', 'group_role', 'work_items'])
        self.assertEqual(rows[1][0], 'Ana <dev>')
        self.assertEqual(rows[1][-1], '0.0')
        self.assertEqual(rows[2][-1], 'N/A')

    def test_json(self):
        data = json.loads(render_json(_stats()))
        self.assertEqual(data['work_series'], [{'week': 'Mar 4', 'Ana <dev>': 3}])
        self.assertEqual(data['dev_series'][0]['Bo (Code Changes)'], 7)

    def test_json_uses_configured_colors(self):
        data = json.loads(render(_stats(), fmt='json', saturation=45, lightness=40))
        self.assertEqual(data['work_colors']['Ana <dev>'], 'hsl(0.00, 45%, 40%)')
        self.assertEqual(data['contributor_colors']['Ana <dev>'], 'hsl(0.00, 45%, 40%)')

    def test_html_escapes_and_includes_sections(self):
        html = render_html(_stats(), generated_at='now', scope='group g1')
        self.assertIn('Group Work Statistics', html)
        self.assertIn('Ana &lt;dev&gt;', html)
        self.assertNotIn('Ana <dev>', html)
        self.assertIn('hsl(0.00, 70%, 50%)', html)
        self.assertIn('group g1', html)

    def test_html_reports_unavailable_feeds(self):
        stats = build_group_statistics(None, None, None, None, failed_feeds=['overview'])
        html = render_html(stats)
        self.assertIn('Unavailable feeds: overview', html)
        self.assertIn('No contributors.', html)

    def test_render_dispatch(self):
        stats = _stats()
        for fmt in ('text', 'md', 'csv', 'json', 'html'):
            self.assertIsInstance(render(stats, fmt=fmt), str)
        self.assertIn('Contributors: 2', render(stats, fmt='text'))
        self.assertEqual(render(None, fmt='html'), '')


if __name__ == '__main__':
    unittest.main()

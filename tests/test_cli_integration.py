import json
import sys
from unittest.mock import patch

from cli import main

MAR_4 = '1709510400000'

FEEDS = {
    'overview': {'total_commit': '3', 'total_task_done': '2'},
    'distribution': [
        {'student_name': 'Ana', 'student_email': 'ana@x.com', 'total_work_done': '2'},
        {'student_name': None, 'student_email': None, 'total_work_done': '5'},
    ],
    'weekly': {MAR_4: [{'student_name': 'Ana', 'total_work_done': '2'}]},
    'dev_weekly': {MAR_4: [{'student_name': 'Ana', 'total_commit': '3', 'total_of_line_code_add': '10'}]},
}


def test_cli_main_feeds_file_export_all(tmp_path, monkeypatch):
    feeds_file = tmp_path / 'feeds.json'
    feeds_file.write_text(json.dumps(FEEDS), encoding='utf-8')
    out_base = str(tmp_path / 'report_cli')

    argv = ['cli.py', '--group', 'g1', '--feeds-file', str(feeds_file), '--export-all', '--out-file', out_base]
    monkeypatch.setattr(sys, 'argv', argv)
    assert main() == 0

    for ext in ('html', 'md', 'csv', 'json'):
        assert (tmp_path / f'report_cli.{ext}').exists()

    exported = json.loads((tmp_path / 'report_cli.json').read_text(encoding='utf-8'))
    assert [c['name'] for c in exported['contributors']] == ['Ana']
    assert exported['dev_series'] == [{'week': 'Mar 4', 'Ana (Commits)': 3, 'Ana (Code Changes)': 10}]


def test_cli_main_text_to_stdout(tmp_path, capsys):
    feeds_file = tmp_path / 'feeds.json'
    feeds_file.write_text(json.dumps(FEEDS), encoding='utf-8')
    assert main(['--group', 'g1', '--feeds-file', str(feeds_file), '--output', 'text']) == 0
    out = capsys.readouterr().out
    assert 'Total Commits: 3' in out
    assert 'Contributors: 1' in out


def test_cli_main_bad_feeds_file(tmp_path):
    bad = tmp_path / 'bad.json'
    bad.write_text('{not json', encoding='utf-8')
    assert main(['--group', 'g1', '--feeds-file', str(bad)]) == 1


def test_cli_main_live_fetch_saves_feeds(tmp_path, capsys):
    def fake_get_feed(self, group_id, feed):
        if feed == 'overview':
            raise RuntimeError('service down')
        return FEEDS[feed]

    saved = str(tmp_path / 'saved_feeds.json')
    with patch('ingest.stats_service.StatsServiceClient.get_feed', fake_get_feed):
        rc = main(['--group', 'g7', '--token', 't', '--base-url', 'http://stats.local', '--save-feeds', saved, '--output', 'csv', '--out-file', str(tmp_path / 'ranked')])
    assert rc == 0
    out = capsys.readouterr().out
    assert 'unavailable feeds for group g7: overview' in out

    snapshot = json.loads((tmp_path / 'saved_feeds.json').read_text(encoding='utf-8'))
    assert snapshot['overview'] is None
    assert snapshot['failed'] == ['overview']
    assert (tmp_path / 'ranked.csv').read_text(encoding='utf-8').splitlines()[1].startswith('Ana,')

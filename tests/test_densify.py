import unittest
from normalize.util import normalize_weekly_feed, normalize_dev_weekly_feed
from analytics.densify import (
    build_member_universe,
    densify,
    period_label,
    series_key,
    sorted_periods,
    WORK_ITEM_EXTRACTORS,
    DEVELOPMENT_EXTRACTORS,
)

# 2024-03-04T00:00:00Z and 2024-03-11T00:00:00Z
MAR_4 = '1709510400000'
MAR_11 = '1710115200000'


class TestMemberUniverse(unittest.TestCase):
    def test_collects_members_across_all_periods(self):
        feed = normalize_weekly_feed({
            '1000': [{'name': 'Ana', 'totalWorkDone': '3'}],
            '2000': [{'name': 'Ana', 'totalWorkDone': '5'}, {'name': 'Bo', 'totalWorkDone': '1'}],
        })
        self.assertEqual(build_member_universe(feed), ['Ana', 'Bo'])

    def test_identity_fallbacks_join_the_universe(self):
        feed = normalize_weekly_feed({'1': [{'email': 'e@x.com'}, {}]})
        self.assertEqual(build_member_universe(feed), ['e@x.com', 'Unknown'])

    def test_empty_feed(self):
        self.assertEqual(build_member_universe({}), [])


class TestDensify(unittest.TestCase):
    def test_scenario_sparse_weeks(self):
        feed = normalize_weekly_feed({
            '1000': [{'name': 'Ana', 'totalWorkDone': '3'}],
            '2000': [{'name': 'Ana', 'totalWorkDone': '5'}, {'name': 'Bo', 'totalWorkDone': '1'}],
        })
        rows = densify(feed, WORK_ITEM_EXTRACTORS)
        self.assertEqual([r.period for r in rows], ['1000', '2000'])
        self.assertEqual(rows[0].values, {'Ana': 3, 'Bo': 0})
        self.assertEqual(rows[1].values, {'Ana': 5, 'Bo': 1})

    def test_periods_sorted_numerically(self):
        feed = normalize_weekly_feed({'10': [{'name': 'Ana', 'totalWorkDone': '1'}], '2': [{'name': 'Ana', 'totalWorkDone': '2'}]})
        rows = densify(feed, WORK_ITEM_EXTRACTORS)
        self.assertEqual([r.period for r in rows], ['2', '10'])
        self.assertEqual([r.values['Ana'] for r in rows], [2, 1])

    def test_unparseable_period_keys_go_last(self):
        self.assertEqual(sorted_periods({'abc': [], '5': [], '1': []}), [('1', 1), ('5', 5), ('abc', None)])
        rows = densify({'abc': [], '5': []}, WORK_ITEM_EXTRACTORS)
        self.assertEqual(rows[1].label, 'abc')

    def test_every_row_is_complete(self):
        feed = normalize_dev_weekly_feed({
            MAR_11: [{'name': 'Ana', 'totalCommit': '2'}],
            MAR_4: [{'name': 'Bo', 'totalCommit': '1'}, {'email': 'cy@x.com', 'totalCommit': '4'}],
            '1710720000000': [],
        })
        universe = build_member_universe(feed)
        rows = densify(feed, DEVELOPMENT_EXTRACTORS)
        self.assertEqual(len(rows), 3)
        for row in rows:
            self.assertEqual(len(row.values), len(universe) * len(DEVELOPMENT_EXTRACTORS))
            for member in universe:
                self.assertIn(f"{member} (Commits)", row.values)
                self.assertIn(f"{member} (Code Changes)", row.values)
        self.assertTrue(all(v == 0 for v in rows[2].values.values()))

    def test_development_code_changes(self):
        feed = normalize_dev_weekly_feed({MAR_4: [{'name': 'Dee', 'linesAdded': '10', 'linesDeleted': None}]})
        row = densify(feed, DEVELOPMENT_EXTRACTORS)[0]
        self.assertEqual(row.values['Dee (Code Changes)'], 10)
        self.assertEqual(row.values['Dee (Commits)'], 0)

    def test_empty_universe_gives_label_only_rows(self):
        rows = densify({MAR_4: [], MAR_11: []}, WORK_ITEM_EXTRACTORS)
        self.assertEqual([r.as_dict() for r in rows], [{'week': 'Mar 4'}, {'week': 'Mar 11'}])

    def test_idempotent(self):
        raw = {MAR_11: [{'name': 'Ana', 'totalWorkDone': '1'}], MAR_4: [{'name': 'Bo', 'totalWorkDone': '2'}]}
        feed = normalize_weekly_feed(raw)
        first = densify(feed, WORK_ITEM_EXTRACTORS)
        second = densify(feed, WORK_ITEM_EXTRACTORS)
        self.assertEqual(first, second)
        self.assertEqual([r.as_dict() for r in first], [r.as_dict() for r in second])

    def test_supplied_universe_restricts_keys(self):
        feed = normalize_weekly_feed({'1': [{'name': 'Ana', 'totalWorkDone': '1'}, {'name': 'Zed', 'totalWorkDone': '9'}]})
        rows = densify(feed, WORK_ITEM_EXTRACTORS, universe=['Ana', 'Bo'])
        self.assertEqual(rows[0].values, {'Ana': 1, 'Bo': 0})

    def test_as_dict_flat_row(self):
        feed = normalize_weekly_feed({MAR_4: [{'name': 'Ana', 'totalWorkDone': '3'}]})
        self.assertEqual(densify(feed, WORK_ITEM_EXTRACTORS)[0].as_dict(), {'week': 'Mar 4', 'Ana': 3})

    def test_as_dict_label_survives_member_named_week(self):
        feed = normalize_weekly_feed({MAR_4: [{'name': 'week', 'totalWorkDone': '2'}]})
        row = densify(feed, WORK_ITEM_EXTRACTORS)[0]
        self.assertEqual(row.values, {'week': 2})
        self.assertEqual(row.as_dict()['week'], 'Mar 4')


class TestLabelsAndKeys(unittest.TestCase):
    def test_period_label(self):
        self.assertEqual(period_label(int(MAR_4)), 'Mar 4')
        self.assertEqual(period_label(0), 'Jan 1')

    def test_series_key(self):
        self.assertEqual(series_key('Ana'), 'Ana')
        self.assertEqual(series_key('Ana', 'Commits'), 'Ana (Commits)')
        self.assertEqual(series_key('Ana', 'Code Changes'), 'Ana (Code Changes)')


if __name__ == '__main__':
    unittest.main()

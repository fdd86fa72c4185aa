"""
Ranking of the distribution snapshot into the contributor table.
"""
from typing import Iterable, List
from normalize.models import DistributionRecord
from analytics.models import RankedContributor


def _to_ranked(record: DistributionRecord) -> RankedContributor:
    display_name = record.identity.display_name
    return RankedContributor(
        name=display_name,
        commits=record.commits,
        work_items=record.work_done,
        evidences=record.evidence_files,
        full_name=display_name,
        record=record,
    )


def rank_distribution(records: Iterable[DistributionRecord]) -> List[RankedContributor]:
    """
    Drop placeholder slots (email None) and order members by work items, most first.
    sorted() is stable, so tied members keep their input order across renders.
    """
    rows = [_to_ranked(r) for r in records if not r.is_placeholder]
    return sorted(rows, key=lambda row: row.work_items, reverse=True)

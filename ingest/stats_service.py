"""
Statistics service client and concurrent feed fetching.

The four group feeds are independent: each is fetched on its own worker, a failing feed is
logged and replaced by its empty default, and the others still come through.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait, FIRST_COMPLETED
from typing import Any, Dict, List, Optional
from storage.retry import perform_request_with_retries

logger = logging.getLogger(__name__)

OVERVIEW = 'overview'
DISTRIBUTION = 'distribution'
WEEKLY = 'weekly'
DEV_WEEKLY = 'dev_weekly'

FEED_NAMES = (OVERVIEW, DISTRIBUTION, WEEKLY, DEV_WEEKLY)

FEED_PATHS = {
    OVERVIEW: 'work/overview',
    DISTRIBUTION: 'work/distribution',
    WEEKLY: 'work/weekly-summary',
    DEV_WEEKLY: 'work/development-weekly-summary',
}


class StatsServiceError(Exception):
    """Raised when a statistics feed cannot be fetched."""

    def __init__(self, feed: str, status: int, detail: Any = None):
        super().__init__(f"{feed} feed request failed with status {status}: {detail}")
        self.feed = feed
        self.status = status
        self.detail = detail


def empty_feed(feed: str) -> Any:
    """Default value a section renders with when its feed is unavailable."""
    if feed == OVERVIEW:
        return None
    if feed == DISTRIBUTION:
        return []
    return {}


class GroupFeeds:
    """
    The four raw feeds of one group, fetched together. failed lists the feeds that fell back to defaults.
    """

    def __init__(self, overview: Any = None, distribution: Any = None, weekly: Any = None, dev_weekly: Any = None, failed: Optional[List[str]] = None):
        self.overview = overview
        self.distribution = distribution if distribution is not None else []
        self.weekly = weekly if weekly is not None else {}
        self.dev_weekly = dev_weekly if dev_weekly is not None else {}
        self.failed = failed or []

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GroupFeeds':
        data = data if isinstance(data, dict) else {}
        return cls(
            overview=data.get(OVERVIEW),
            distribution=data.get(DISTRIBUTION),
            weekly=data.get(WEEKLY),
            dev_weekly=data.get(DEV_WEEKLY),
            failed=list(data.get('failed') or []),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            OVERVIEW: self.overview,
            DISTRIBUTION: self.distribution,
            WEEKLY: self.weekly,
            DEV_WEEKLY: self.dev_weekly,
            'failed': list(self.failed),
        }


class StatsServiceClient:
    """Minimal client for the group work statistics endpoints."""

    def __init__(self, token: Optional[str], base_url: str = None, timeout: Optional[float] = 10.0, max_retries: Optional[int] = None):
        self.token = token
        self.base_url = (base_url or "http://localhost:8080").rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.headers = {
            "Authorization": f"Bearer {self.token}" if self.token else "",
            "Accept": "application/json",
        }

    def feed_url(self, group_id: str, feed: str) -> str:
        return f"{self.base_url}/v1/group/{group_id}/{FEED_PATHS[feed]}"

    def get_feed(self, group_id: str, feed: str) -> Any:
        """Fetch one feed and return its payload, unwrapping a {'data': ...} envelope."""
        res = perform_request_with_retries(self.feed_url(group_id, feed), headers=self.headers, timeout=self.timeout, max_retries=self.max_retries)
        status = res.get('status', 0)
        body = res.get('response')
        if status != 200:
            raise StatsServiceError(feed, status, body)
        if isinstance(body, dict) and 'data' in body:
            return body['data']
        return body

    def get_overview(self, group_id: str) -> Any:
        return self.get_feed(group_id, OVERVIEW)

    def get_distribution(self, group_id: str) -> Any:
        return self.get_feed(group_id, DISTRIBUTION)

    def get_weekly_summary(self, group_id: str) -> Any:
        return self.get_feed(group_id, WEEKLY)

    def get_development_weekly_summary(self, group_id: str) -> Any:
        return self.get_feed(group_id, DEV_WEEKLY)


def _fetchers(client: StatsServiceClient):
    return {
        OVERVIEW: client.get_overview,
        DISTRIBUTION: client.get_distribution,
        WEEKLY: client.get_weekly_summary,
        DEV_WEEKLY: client.get_development_weekly_summary,
    }


def fetch_group_feeds(client: StatsServiceClient, group_id: str, cancel_event: Optional[threading.Event] = None, poll_interval: float = 0.05) -> Optional[GroupFeeds]:
    """
    Fetch all four feeds concurrently and wait for every one of them.

    Returns None if cancel_event is set before all feeds resolve; whatever already arrived is
    discarded so a caller never renders a partial set.
    """
    executor = ThreadPoolExecutor(max_workers=len(FEED_NAMES), thread_name_prefix='groupstats')
    try:
        futures = {executor.submit(fn, group_id): feed for feed, fn in _fetchers(client).items()}
        pending = set(futures)
        while pending:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Fetch for group %s cancelled with %s feed(s) pending", group_id, len(pending))
                for fut in pending:
                    fut.cancel()
                return None
            _, pending = wait(pending, timeout=poll_interval, return_when=FIRST_COMPLETED)
        if cancel_event is not None and cancel_event.is_set():
            return None

        results: Dict[str, Any] = {}
        failed: List[str] = []
        for fut, feed in futures.items():
            try:
                results[feed] = fut.result()
            except Exception as exc:
                logger.warning("Failed to fetch %s feed for group %s: %s", feed, group_id, exc)
                results[feed] = empty_feed(feed)
                failed.append(feed)
        # keep a stable feed order in the failure list regardless of completion order
        failed.sort(key=FEED_NAMES.index)
        return GroupFeeds(failed=failed, **results)
    finally:
        executor.shutdown(wait=False)

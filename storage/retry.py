"""
Retry/backoff and rate-limit-aware HTTP GET helper.
The statistics client routes every request through perform_request_with_retries.
"""

import os
import time
import random
import logging
import email.utils
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import requests

logger = logging.getLogger(__name__)

# retry/backoff defaults from environment
# - GROUPSTATS_MAX_RETRIES: int
# - GROUPSTATS_BACKOFF_BASE: float (seconds)
# - GROUPSTATS_BACKOFF_JITTER: float (seconds), defaults to the backoff base
# - GROUPSTATS_MAX_BACKOFF: float (seconds)
DEFAULT_MAX_RETRIES = int(os.getenv("GROUPSTATS_MAX_RETRIES", "3"))
DEFAULT_BACKOFF_BASE = float(os.getenv("GROUPSTATS_BACKOFF_BASE", "0.5"))
_env_jitter = os.getenv("GROUPSTATS_BACKOFF_JITTER")
DEFAULT_BACKOFF_JITTER = float(_env_jitter) if _env_jitter is not None and _env_jitter != "" else None
DEFAULT_MAX_BACKOFF = float(os.getenv("GROUPSTATS_MAX_BACKOFF", "120.0"))

# hard cap for any single wait, including server-provided Retry-After
MAX_SINGLE_WAIT = 300.0

# runtime-overrides
_runtime_max_retries: Optional[int] = None
_runtime_backoff_base: Optional[float] = None
_runtime_backoff_jitter: Optional[float] = None
_runtime_max_backoff: Optional[float] = None


def configure_retry(
    max_retries: Optional[int] = None, backoff_base: Optional[float] = None, backoff_jitter: Optional[float] = None, max_backoff: Optional[float] = None
):
    """Configure retry/backoff defaults at runtime (e.g. from CLI)."""
    global _runtime_max_retries, _runtime_backoff_base, _runtime_backoff_jitter, _runtime_max_backoff
    if max_retries is not None:
        _runtime_max_retries = int(max_retries)
    if backoff_base is not None:
        _runtime_backoff_base = float(backoff_base)
    if backoff_jitter is not None:
        _runtime_backoff_jitter = float(backoff_jitter)
    if max_backoff is not None:
        _runtime_max_backoff = float(max_backoff)


def reset_retry():
    """Drop runtime overrides and return to the environment defaults."""
    global _runtime_max_retries, _runtime_backoff_base, _runtime_backoff_jitter, _runtime_max_backoff
    _runtime_max_retries = None
    _runtime_backoff_base = None
    _runtime_backoff_jitter = None
    _runtime_max_backoff = None


def _parse_retry_after(raw_ra: Optional[str]) -> Optional[float]:
    if not raw_ra:
        return None
    try:
        return float(raw_ra)
    except ValueError:
        pass
    try:
        dt = email.utils.parsedate_to_datetime(raw_ra)
    except (TypeError, ValueError, IndexError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return max(0.0, (dt - datetime.now(timezone.utc)).total_seconds())


def _header_number(headers, key: str, cast):
    val = headers.get(key)
    if val is None:
        return None
    try:
        return cast(val)
    except (TypeError, ValueError):
        return None


def _parse_rate_headers(resp):
    headers = getattr(resp, 'headers', None) or {}
    return (
        _parse_retry_after(headers.get('Retry-After')),
        _header_number(headers, 'X-RateLimit-Remaining', int),
        _header_number(headers, 'X-RateLimit-Reset', float),
    )


def _resolve_backoff_params(backoff_base: Optional[float], backoff_jitter: Optional[float], max_backoff: Optional[float]):
    if backoff_base is not None:
        base = float(backoff_base)
    elif _runtime_backoff_base is not None:
        base = float(_runtime_backoff_base)
    else:
        base = float(DEFAULT_BACKOFF_BASE)

    if backoff_jitter is not None:
        jitter = float(backoff_jitter)
    elif _runtime_backoff_jitter is not None:
        jitter = float(_runtime_backoff_jitter)
    elif DEFAULT_BACKOFF_JITTER is not None:
        jitter = float(DEFAULT_BACKOFF_JITTER)
    else:
        jitter = base

    if max_backoff is not None:
        cap = float(max_backoff)
    elif _runtime_max_backoff is not None:
        cap = float(_runtime_max_backoff)
    else:
        cap = float(DEFAULT_MAX_BACKOFF)

    return base, jitter, cap


def _should_retry_response(status_code: int, ra: Optional[float], rl_remaining: Optional[int]) -> bool:
    if status_code in (429, 502, 503, 504):
        return True
    if ra is not None:
        return True
    return rl_remaining is not None and rl_remaining <= 0


def _compute_wait_seconds(ra: Optional[float], rl_reset: Optional[float], backoff: float, jitter: float) -> float:
    if ra is not None:
        wait = float(ra)
    elif rl_reset:
        wait = max(0.0, float(rl_reset) - time.time())
    else:
        wait = backoff
    return min(wait + random.uniform(0, jitter), MAX_SINGLE_WAIT)


def _parse_body(resp):
    try:
        return resp.json()
    except ValueError:
        return getattr(resp, 'text', None)


def perform_request_with_retries(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
    max_retries: Optional[int] = None,
    backoff_base: Optional[float] = None,
    backoff_jitter: Optional[float] = None,
    max_backoff: Optional[float] = None,
) -> Dict[str, Any]:
    """
    GET url, retrying on connection errors, 429/5xx gateway errors and exhausted rate limits.

    Returns {'response': body, 'status': code, 'timestamp': t}. status is 0 when no response
    was ever received; the caller decides what a non-200 status means.
    """
    base, jitter, cap = _resolve_backoff_params(backoff_base, backoff_jitter, max_backoff)
    if _runtime_max_retries is not None:
        attempts = int(_runtime_max_retries)
    elif max_retries is not None:
        attempts = int(max_retries)
    else:
        attempts = int(DEFAULT_MAX_RETRIES)
    attempts = max(1, attempts)

    backoff = base
    last_result: Dict[str, Any] = {'response': None, 'status': 0, 'timestamp': time.time()}
    for attempt in range(attempts):
        try:
            resp = requests.get(url, headers=headers or {}, params=params or {}, timeout=timeout)
        except requests.RequestException as ex:
            logger.debug("GET %s failed (attempt %s/%s): %s", url, attempt + 1, attempts, ex)
            last_result = {'response': str(ex), 'status': 0, 'timestamp': time.time()}
            if attempt + 1 < attempts:
                time.sleep(min(backoff + random.uniform(0, jitter), cap))
            backoff = min(backoff * 2, cap)
            continue

        status = getattr(resp, 'status_code', 0)
        if status == 200:
            return {'response': _parse_body(resp), 'status': status, 'timestamp': time.time()}

        ra, rl_remaining, rl_reset = _parse_rate_headers(resp)
        if not _should_retry_response(status, ra, rl_remaining):
            return {'response': _parse_body(resp), 'status': status, 'timestamp': time.time()}

        last_result = {'response': getattr(resp, 'text', None), 'status': status, 'timestamp': time.time()}
        if attempt + 1 < attempts:
            wait_seconds = _compute_wait_seconds(ra, rl_reset, backoff, jitter)
            logger.debug("GET %s returned %s, retrying in %.2fs", url, status, wait_seconds)
            time.sleep(wait_seconds)
        backoff = min(backoff * 2, cap)

    return last_result


__all__ = ["configure_retry", "reset_retry", "perform_request_with_retries"]

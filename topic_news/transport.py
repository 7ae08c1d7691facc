from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "topic-news/1.0"

# Backoff between transport retries; replaceable, e.g. with tenacity.wait_none().
RETRY_WAIT = wait_exponential(multiplier=0.5, min=0.5, max=8)


def build_client(timeout: float = 15.0, user_agent: str = DEFAULT_USER_AGENT) -> httpx.Client:
    """HTTP client shared by all adapters of a run. Every request is bounded by `timeout`."""
    return httpx.Client(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": user_agent},
    )


def get(
    client: httpx.Client,
    url: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    retries: int = 3,
) -> httpx.Response:
    """
    GET `url`, retrying only on transport failures (connect errors, timeouts).

    HTTP error statuses are returned as-is; deciding what a 4xx/5xx means is
    the adapter's job. The last transport error is re-raised once attempts are
    exhausted.
    """
    for attempt in Retrying(
        wait=RETRY_WAIT,
        stop=stop_after_attempt(max(1, retries)),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    ):
        with attempt:
            if attempt.retry_state.attempt_number > 1:
                logger.debug("Retrying %s (attempt %d)", url, attempt.retry_state.attempt_number)
            return client.get(url, params=params, headers=headers)
    raise AssertionError("unreachable")  # pragma: no cover

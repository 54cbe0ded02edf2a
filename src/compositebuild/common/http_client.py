"""Shared HTTP helpers used by the repository backends.

Encapsulates retry and timeout handling so backends avoid duplicating
try/except blocks. Transport failures are reported as a zero status code
with the last error as the body; callers decide whether that is fatal.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from compositebuild.common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from compositebuild.constants import Constants

logger = logging.getLogger(__name__)


def robust_get(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    retries: Optional[int] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout and retries with DEBUG traces.

    Server errors (5xx) and transport exceptions are retried; any other
    response is returned as is.

    Returns:
        Tuple of (status_code, headers_dict, body_text). status_code is 0
        when every attempt failed at the transport level.
    """
    getter = session.get if session is not None else requests.get
    safe_target = safe_url(url)
    attempts = retries if retries is not None else Constants.HTTP_RETRY_MAX
    request_timeout = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
    last_exception = None
    last_response: Optional[Tuple[int, Dict[str, str], str]] = None

    for attempt in range(max(attempts, 1)):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1
                        )
                    )
                response = getter(url, timeout=request_timeout, headers=headers, **kwargs)
            except requests.Timeout:
                last_exception = "timeout"
                logger.debug("HTTP timeout on %s (attempt %d)", safe_target, attempt + 1)
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_exception = str(exc)
                logger.debug("HTTP request exception on %s (attempt %d): %s", safe_target, attempt + 1, exc)
                continue

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=response.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target
                )
            )
        last_response = (response.status_code, dict(response.headers), response.text)
        if response.status_code < 500:
            return last_response
        last_exception = f"HTTP {response.status_code}"

    if last_response is not None:
        return last_response
    return 0, {}, f"Request failed after {attempts} attempts: {last_exception}"


def get_json(
    url: str,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse JSON response.

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    status_code, response_headers, text = robust_get(url, **kwargs)

    if status_code == 200 and text:
        try:
            return status_code, response_headers, json.loads(text)
        except json.JSONDecodeError:
            logger.debug("JSON decode error from %s", safe_url(url))
            return status_code, response_headers, None

    return status_code, response_headers, None

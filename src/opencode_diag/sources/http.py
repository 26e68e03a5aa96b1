"""
HTTP probing via requests.

A single bounded attempt, no retries. Transport errors are raised as
probe errors; any HTTP response (including 4xx/5xx) is returned for
the caller to classify.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

import requests

from ..core.errors import ProbeTimeout, TransportFailure

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 200
USER_AGENT = 'opencode-diag'


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    latency_ms: float
    body_excerpt: str = ""


def http_probe(url: str, timeout: float = 10.0, method: str = 'HEAD') -> HttpResponse:
    """
    Issue one request and report its status.

    Raises:
        ProbeTimeout: no response within timeout
        TransportFailure: DNS, TLS or connection failure
    """
    start = time.monotonic()
    try:
        response = requests.request(
            method,
            url,
            timeout=timeout,
            allow_redirects=False,
            headers={'User-Agent': USER_AGENT},
        )
    except requests.exceptions.Timeout as e:
        raise ProbeTimeout(f"no response from {url} within {timeout:.0f}s") from e
    except requests.exceptions.ConnectionError as e:
        raise TransportFailure(f"cannot connect to {url}") from e
    except requests.exceptions.RequestException as e:
        raise TransportFailure(str(e)) from e

    latency = (time.monotonic() - start) * 1000
    excerpt = ""
    if method.upper() != 'HEAD':
        excerpt = (response.text or "")[:EXCERPT_LENGTH]
    response.close()

    logger.debug(f"{method} {url} -> {response.status_code} ({latency:.0f}ms)")
    return HttpResponse(status_code=response.status_code, latency_ms=latency, body_excerpt=excerpt)


def _one_line(text: str) -> Optional[str]:
    return " ".join(text.split()) or None


def extract_error_message(body: str) -> Optional[str]:
    """
    Pull a provider error message out of a response body.

    Tries JSON `error.message`, a string `error`, then `message`; falls
    back to the first non-empty line of a plain-text body. The result is
    always a single line.
    """
    if not body or not body.strip():
        return None

    try:
        data = json.loads(body)
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get('error')
        if isinstance(error, dict) and isinstance(error.get('message'), str):
            return _one_line(error['message'])
        if isinstance(error, str):
            return _one_line(error)
        if isinstance(data.get('message'), str):
            return _one_line(data['message'])
        return None

    if data is not None:
        return None
    for line in body.splitlines():
        if line.strip():
            return line.strip()
    return None

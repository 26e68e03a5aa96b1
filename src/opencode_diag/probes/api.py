"""
AI provider API probes.

One unauthenticated request per provider; the HTTP status is mapped to
a verdict. The probe only reports what the provider answered, it does
not try to explain it.

Status mapping:
    2xx        -> OK        AVAILABLE
    429        -> WARNING   RATE_LIMITED
    503, 529   -> CRITICAL  OVERLOADED
    other 5xx  -> CRITICAL  DOWN
    no answer  -> CRITICAL  DOWN
    otherwise  -> UNKNOWN   UNEXPECTED

Providers may list auth codes (e.g. 401 for a request without a key)
that prove the endpoint is up; those count as AVAILABLE.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Tuple
from urllib.parse import urlparse

from ..core.cancel import CancelToken
from ..core.models import CheckResult, Status
from ..sources.http import HttpResponse, extract_error_message, http_probe
from .base import ApiProviderProbe

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 120

HttpFn = Callable[[str, float, str], HttpResponse]


def classify_status_code(code: int, auth_codes: Iterable[int] = ()) -> Tuple[Status, str]:
    """Map an HTTP status code to (status, headline)."""
    if 200 <= code < 300 or code in auth_codes:
        return Status.OK, "AVAILABLE"
    if code == 429:
        return Status.WARNING, "RATE_LIMITED"
    if code in (503, 529):
        return Status.CRITICAL, "OVERLOADED"
    if 500 <= code < 600:
        return Status.CRITICAL, "DOWN"
    return Status.UNKNOWN, "UNEXPECTED"


@dataclass(frozen=True)
class ProviderEndpoint:
    check_id: str
    display_name: str
    url: str
    method: str = "HEAD"
    auth_codes: FrozenSet[int] = frozenset()
    status_page: Optional[str] = None


CLAUDE = ProviderEndpoint(
    check_id="claude_api",
    display_name="CLAUDE API",
    url="https://api.anthropic.com",
    method="HEAD",
    auth_codes=frozenset({401, 403}),
    status_page="https://status.anthropic.com",
)

OPENAI = ProviderEndpoint(
    check_id="openai_api",
    display_name="OPENAI API",
    url="https://api.openai.com/v1/models",
    method="GET",
    auth_codes=frozenset({401}),
    status_page="https://status.openai.com",
)

GOOGLE = ProviderEndpoint(
    check_id="google_api",
    display_name="GOOGLE AI",
    url="https://generativelanguage.googleapis.com/v1beta/models",
    method="GET",
    auth_codes=frozenset({400, 401, 403}),
)

PROVIDERS: Dict[str, ProviderEndpoint] = {p.check_id: p for p in (CLAUDE, OPENAI, GOOGLE)}


class ApiProbe(ApiProviderProbe):
    """Availability of one AI provider endpoint."""

    def __init__(self, endpoint: ProviderEndpoint, http: HttpFn = http_probe):
        super().__init__(endpoint.check_id, endpoint.display_name)
        self.endpoint = endpoint
        self._http = http

    @property
    def host(self) -> str:
        return urlparse(self.endpoint.url).hostname or self.endpoint.url

    def probe(self, timeout: float, token: CancelToken) -> CheckResult:
        response = self._http(self.endpoint.url, timeout, self.endpoint.method)
        token.raise_if_cancelled()

        status, headline = classify_status_code(response.status_code, self.endpoint.auth_codes)
        detail = {
            "HOST": self.host,
            "STATUS": str(response.status_code),
            "LATENCY": f"{response.latency_ms:.0f}ms",
        }
        if not status.is_ok():
            message = extract_error_message(response.body_excerpt)
            if message:
                detail["MESSAGE"] = message[:MAX_MESSAGE_LENGTH]

        return self.make_result(status, headline, detail, fix_hint=self._hint_for(headline))

    def _hint_for(self, headline: str) -> Optional[str]:
        name = self.display_name
        hints = {
            "RATE_LIMITED": f"{name} is rate limiting requests. Wait a minute and retry.",
            "OVERLOADED": f"{name} is over capacity. Try again later.",
            "DOWN": f"{name} is having server errors.",
            "UNEXPECTED": f"{name} returned an unexpected status.",
        }
        hint = hints.get(headline)
        if hint and self.endpoint.status_page and headline != "RATE_LIMITED":
            hint += f" See {self.endpoint.status_page}"
        return hint

# vanguard/scanner/engines/http_engine.py
"""
HTTP data collection: the shared HTTPS GET and the security-header engine.

Both HTTP-based probes (headers and fingerprint) issue their own single
GET to https://<target>/ through fetch(), each with its own User-Agent,
so neither depends on the other's request succeeding.

What HeadersEngine collects:
    - Strict-Transport-Security
    - Content-Security-Policy
    - X-Frame-Options
    - X-Content-Type-Options

Any request failure (client setup, DNS, connect, TLS, protocol) is
reported as the result's request_error plus a single critical finding;
no per-header findings are produced for that run.

Profile config options:
    timeout: float — request timeout in seconds (default: httpx's)
"""

from __future__ import annotations

import ipaddress
import logging
from typing import Any, Dict, Optional

import httpx

from vanguard.scanner.analyzers.header_analyzer import (
    SECURITY_HEADERS,
    analyze_headers,
    check_header,
)
from vanguard.scanner.base import BaseProbe, Failed, HeadersResult, describe_error

logger = logging.getLogger(__name__)

HEADERS_USER_AGENT = "Vanguard-Headers/1.0"

# Raised by fetch() for anything that prevented a response.
REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


def target_url(target: str) -> str:
    try:
        if ipaddress.ip_address(target).version == 6:
            return f"https://[{target}]/"
    except ValueError:
        pass
    return f"https://{target}/"


async def fetch(
    url: str,
    user_agent: str,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.Response:
    """One GET with a fresh client. The body is fully read before returning."""
    client_kwargs: Dict[str, Any] = {
        "headers": {"User-Agent": user_agent},
        "follow_redirects": True,
    }
    if timeout is not None:
        client_kwargs["timeout"] = httpx.Timeout(timeout)
    if transport is not None:
        client_kwargs["transport"] = transport

    async with httpx.AsyncClient(**client_kwargs) as client:
        response = await client.get(url)

    logger.debug(f"GET {url} → {response.status_code} ({len(response.content)} bytes)")
    return response


class HeadersEngine(BaseProbe[HeadersResult]):
    """Checks the four HTTP security headers on the target's HTTPS root."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    @property
    def name(self) -> str:
        return "headers"

    async def execute(self, target: str, config: Dict[str, Any]) -> HeadersResult:
        url = target_url(target)
        try:
            response = await fetch(
                url,
                user_agent=HEADERS_USER_AGENT,
                timeout=config.get("timeout"),
                transport=self._transport,
            )
        except REQUEST_ERRORS as e:
            logger.warning(f"Header request to {url} failed: {e}")
            return self.failed_result(describe_error(e))

        outcomes = {name: check_header(response.headers, name) for name in SECURITY_HEADERS}
        findings = analyze_headers(outcomes)

        return HeadersResult(
            hsts=outcomes["strict-transport-security"],
            csp=outcomes["content-security-policy"],
            x_frame_options=outcomes["x-frame-options"],
            x_content_type_options=outcomes["x-content-type-options"],
            findings=tuple(findings),
        )

    def failed_result(self, message: str) -> HeadersResult:
        failed = Failed(message)
        return HeadersResult(
            hsts=failed,
            csp=failed,
            x_frame_options=failed,
            x_content_type_options=failed,
            request_error=message,
            findings=tuple(analyze_headers({}, request_error=message)),
        )

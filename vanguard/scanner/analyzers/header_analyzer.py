# vanguard/scanner/analyzers/header_analyzer.py
"""
HTTP Security Headers Analyzer.

Extracts the four security headers from an HTTPS response and produces
findings for the ones that are missing.

Checks performed:
    CRITICAL:
        - The request itself failed (exclusive: no per-header findings)
    WARNING:
        - Missing Strict-Transport-Security (HSTS)
        - Missing Content-Security-Policy (CSP)
        - Missing X-Frame-Options
    INFO:
        - Missing X-Content-Type-Options
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

import httpx

from vanguard.scanner.base import NOT_FOUND, Finding, Found, HeaderValue, NotFound, Outcome

logger = logging.getLogger(__name__)

INVALID_HEADER_VALUE = "[Invalid UTF-8]"

# Header name (lowercase) → finding code when missing. Order matters for
# the finding list.
SECURITY_HEADERS: Dict[str, str] = {
    "strict-transport-security": "HSTS_MISSING",
    "content-security-policy": "CSP_MISSING",
    "x-frame-options": "XFO_MISSING",
    "x-content-type-options": "XCTO_MISSING",
}


def check_header(headers: httpx.Headers, name: str) -> Outcome:
    """
    Look up one header by name (case-insensitive).

    A value that is not valid UTF-8 is still Found, with a placeholder
    value, rather than being treated as absent.
    """
    logger.debug(f"Checking for header '{name}'")
    raw: Optional[bytes] = None
    for key, value in headers.raw:
        if key.decode("latin-1").lower() == name.lower():
            raw = value
            break

    if raw is None:
        logger.debug(f"Header '{name}' not found")
        return NOT_FOUND

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning(f"Header '{name}' found but contained invalid UTF-8")
        text = INVALID_HEADER_VALUE
    return Found(HeaderValue(text=text))


def analyze_headers(
    outcomes: Mapping[str, Outcome],
    request_error: Optional[str] = None,
) -> List[Finding]:
    """
    Produce findings from per-header outcomes.

    `outcomes` maps lowercase header names (as in SECURITY_HEADERS) to
    their Outcome.
    """
    if request_error is not None:
        logger.debug("Request error detected, adding HEADERS_REQUEST_FAILED")
        return [Finding.of("HEADERS_REQUEST_FAILED")]

    findings: List[Finding] = []
    for header_name, code in SECURITY_HEADERS.items():
        if isinstance(outcomes.get(header_name), NotFound):
            findings.append(Finding.of(code))
    return findings

# vanguard/scanner/engines/fingerprint_engine.py
"""
Technology fingerprinting engine.

Fetches https://<target>/ once and runs the tech detector's rule table
against that single response. Produces an inventory only, never findings.

Profile config options:
    timeout: float — request timeout in seconds (default: httpx's)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from vanguard.scanner.analyzers.tech_detector import Evidence, detect_technologies
from vanguard.scanner.base import BaseProbe, FingerprintResult, describe_error
from vanguard.scanner.engines.http_engine import REQUEST_ERRORS, fetch, target_url

logger = logging.getLogger(__name__)

FINGERPRINT_USER_AGENT = "Vanguard-Fingerprint/1.0"


class FingerprintEngine(BaseProbe[FingerprintResult]):

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    @property
    def name(self) -> str:
        return "fingerprint"

    async def execute(self, target: str, config: Dict[str, Any]) -> FingerprintResult:
        url = target_url(target)
        try:
            response = await fetch(
                url,
                user_agent=FINGERPRINT_USER_AGENT,
                timeout=config.get("timeout"),
                transport=self._transport,
            )
        except REQUEST_ERRORS as e:
            logger.warning(f"Fingerprint request to {url} failed: {e}")
            return self.failed_result(describe_error(e))

        evidence = Evidence.from_response_parts(
            headers=response.headers.multi_items(),
            body=response.text,
            set_cookies=response.headers.get_list("set-cookie"),
        )
        technologies = detect_technologies(evidence)

        logger.info(
            f"Fingerprinted {target}: "
            f"{', '.join(t.name for t in technologies) or 'nothing detected'}"
        )
        return FingerprintResult(technologies=tuple(technologies))

    def failed_result(self, message: str) -> FingerprintResult:
        return FingerprintResult(error=message)

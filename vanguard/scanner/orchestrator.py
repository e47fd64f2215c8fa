# vanguard/scanner/orchestrator.py
"""
Scan Orchestrator.

Coordinates one full scan:

    1. Normalize the target (bare host or URL → hostname)
    2. Run the four probes concurrently: DNS, TLS, headers, fingerprint
    3. Wait for all four (no partial results)
    4. Merge their results into one immutable ScanReport

Probes never raise (BaseProbe.run converts failures into the probe's own
failed result), so one probe failing can neither abort nor corrupt the
others.

Usage from scans/routes.py:
    from vanguard.scanner import ScanOrchestrator

    orchestrator = ScanOrchestrator(config)
    report = orchestrator.execute("example.com")
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import re
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import httpx

from vanguard.config import load_scan_config
from vanguard.scanner.base import BaseProbe, ScanReport, now_utc
from vanguard.scanner.engines import ALL_ENGINES

logger = logging.getLogger(__name__)

_LABEL_RE = re.compile(r"^[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9_])?$")

# Probes that issue an HTTPS request and accept an httpx transport.
HTTP_PROBES = ("headers", "fingerprint")


class InvalidTargetError(ValueError):
    """The scan target is empty or not a usable hostname."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _is_valid_hostname(host: str) -> bool:
    if len(host) > 253:
        return False
    return all(_LABEL_RE.match(label) for label in host.split("."))


def normalize_target(raw: Any) -> str:
    """
    Turn user input into the hostname every probe works on.

        "example.com"                     → "example.com"
        "https://WWW.Example.com/path?q"  → "www.example.com"
        "example.com."                    → "example.com"
    """
    value = (raw or "").strip() if isinstance(raw, str) else ""
    if not value:
        raise InvalidTargetError("target is required")

    if "://" not in value:
        value = f"https://{value}"

    try:
        host = urlparse(value).hostname
    except ValueError as e:
        raise InvalidTargetError(f"invalid target: {e}") from e

    host = (host or "").rstrip(".")
    if not host:
        raise InvalidTargetError(f"no hostname in target '{raw}'")

    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        pass

    if not _is_valid_hostname(host):
        raise InvalidTargetError(f"invalid hostname '{host}'")
    return host


def default_probes(transport: Optional[httpx.AsyncBaseTransport] = None) -> Dict[str, BaseProbe]:
    """One fresh instance of every registered engine; the HTTP ones share the transport."""
    probes: Dict[str, BaseProbe] = {}
    for name, engine_cls in ALL_ENGINES.items():
        if name in HTTP_PROBES:
            probes[name] = engine_cls(transport=transport)
        else:
            probes[name] = engine_cls()
    return probes


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class ScanOrchestrator:
    """
    Runs the four probes against one target and merges their results.

    Args:
        config:    Per-probe config sections ({"dns": {...}, "ssl": {...},
                   ...}). Defaults to the environment (vanguard.config).
        transport: Optional httpx transport for both HTTP probes.
        probes:    Replace individual probes by name.
    """

    def __init__(
        self,
        config: Optional[Mapping[str, Dict[str, Any]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        probes: Optional[Mapping[str, BaseProbe]] = None,
    ):
        self.config = dict(config) if config is not None else load_scan_config()
        self.probes = default_probes(transport)
        if probes:
            self.probes.update(probes)

    async def scan(self, target: str) -> ScanReport:
        host = normalize_target(target)
        started_at = now_utc()
        logger.info(f"Scan starting for {host}")

        # Each probe gets its own config section; none shares state with another.
        dns_result, ssl_result, headers_result, fingerprint_result = await asyncio.gather(
            self._run("dns", host),
            self._run("ssl", host),
            self._run("headers", host),
            self._run("fingerprint", host),
        )

        report = ScanReport(
            target=host,
            dns=dns_result,
            ssl=ssl_result,
            headers=headers_result,
            fingerprint=fingerprint_result,
            started_at=started_at,
            finished_at=now_utc(),
        )

        duration = (report.finished_at - started_at).total_seconds()
        logger.info(
            f"Scan complete for {host}: {len(report.all_findings())} finding(s), "
            f"{len(fingerprint_result.technologies)} technolog(ies) in {duration:.2f}s"
        )
        return report

    def execute(self, target: str) -> ScanReport:
        """Blocking wrapper around scan() for synchronous callers."""
        return asyncio.run(self.scan(target))

    async def _run(self, name: str, host: str) -> Any:
        probe = self.probes[name]
        return await probe.run(host, dict(self.config.get(name) or {}))


async def scan(target: str, config: Optional[Mapping[str, Dict[str, Any]]] = None) -> ScanReport:
    """Scan one target with the default probes."""
    return await ScanOrchestrator(config).scan(target)

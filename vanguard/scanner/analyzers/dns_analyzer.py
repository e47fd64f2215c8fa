# vanguard/scanner/analyzers/dns_analyzer.py
"""
DNS / Email Security Analyzer.

Reads the four DNS lookups collected by the DNS engine and produces
findings for mail-authentication and CA-authorization gaps.

Checks performed:
    CRITICAL:
        - No DMARC record
    WARNING:
        - DMARC policy is "none" (monitoring only)
        - No SPF record
    INFO:
        - SPF ends with ~all (soft fail)
        - SPF ends with ?all (neutral)
        - No DKIM key under any probed selector
        - No CAA record
        - One or more lookups failed (reported once per scan)

A lookup that Failed never produces its "missing" finding: a timeout is
not evidence that the record is absent.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from vanguard.scanner.base import Finding, Found, NotFound, Outcome

logger = logging.getLogger(__name__)


def parse_dmarc_policy(record: str) -> Optional[str]:
    """
    Extract the p= tag from a DMARC record.

    "v=DMARC1; p=quarantine; rua=mailto:x" → "quarantine"
    A record without a p= tag → None.
    """
    for part in record.split(";"):
        tag = part.strip()
        if not tag.startswith("p="):
            continue
        pieces = tag.split("=")
        if len(pieces) < 2:
            return None
        return pieces[1].strip()
    return None


def spf_all_qualifier(record: str) -> Optional[str]:
    """Return the qualifier of a trailing all mechanism ("~", "?", "-", "+")."""
    text = record.strip()
    if text.endswith("~all"):
        return "~"
    if text.endswith("?all"):
        return "?"
    if text.endswith("-all"):
        return "-"
    if text.endswith("+all") or text.endswith(" all"):
        return "+"
    return None


def analyze_dns(
    spf: Outcome,
    dmarc: Outcome,
    dkim: Outcome,
    caa: Outcome,
) -> List[Finding]:
    findings: List[Finding] = []

    # --- DMARC ---
    if isinstance(dmarc, NotFound):
        findings.append(Finding.of("DMARC_MISSING"))
    elif isinstance(dmarc, Found) and dmarc.value.policy == "none":
        findings.append(Finding.of("DMARC_POLICY_NONE"))

    # --- SPF ---
    if isinstance(spf, NotFound):
        findings.append(Finding.of("SPF_MISSING"))
    elif isinstance(spf, Found):
        qualifier = spf_all_qualifier(spf.value.text)
        if qualifier == "~":
            findings.append(Finding.of("SPF_SOFTFAIL"))
        elif qualifier == "?":
            findings.append(Finding.of("SPF_NEUTRAL"))

    # --- DKIM ---
    if isinstance(dkim, NotFound):
        findings.append(Finding.of("DKIM_MISSING"))

    # --- CAA ---
    if isinstance(caa, NotFound):
        findings.append(Finding.of("CAA_MISSING"))

    failed = [o for o in (spf, dmarc, dkim, caa) if o.is_failed()]
    if failed:
        logger.debug(f"{len(failed)} DNS lookup(s) failed, adding DNS_LOOKUP_FAILED")
        findings.append(Finding.of("DNS_LOOKUP_FAILED"))

    return findings

# vanguard/scanner/analyzers/ssl_analyzer.py
"""
SSL/TLS Analyzer.

Turns the TLS engine's certificate outcome into findings.

Checks performed:
    CRITICAL:
        - Handshake failed (exclusive: no other SSL finding that scan)
        - Certificate outside its validity window
    WARNING:
        - Handshake completed but no certificate was presented
        - Valid certificate expiring within 30 days
"""

from __future__ import annotations

import logging
from typing import List

from vanguard.scanner.base import CertificateInfo, Failed, Finding, Found, NotFound, Outcome

logger = logging.getLogger(__name__)

EXPIRING_SOON_DAYS = 30


def analyze_ssl(certificate: Outcome) -> List[Finding]:
    if isinstance(certificate, Failed):
        logger.debug(f"TLS failure ({certificate.message}), adding TLS_HANDSHAKE_FAILED")
        return [Finding.of("TLS_HANDSHAKE_FAILED")]

    if isinstance(certificate, NotFound):
        return [Finding.of("NO_CERTIFICATE_FOUND")]

    findings: List[Finding] = []
    if isinstance(certificate, Found):
        cert: CertificateInfo = certificate.value

        if not cert.is_valid:
            findings.append(Finding.of("CERT_EXPIRED"))
        elif 0 <= cert.days_until_expiry <= EXPIRING_SOON_DAYS:
            findings.append(Finding.of("CERT_EXPIRING_SOON"))

    return findings

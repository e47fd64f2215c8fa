# vanguard/scanner/engines/ssl_engine.py
"""
SSL/TLS data collection engine.

Connects to the target's TLS port, completes a handshake against the
system trust roots, and decodes the leaf certificate's validity window.

The stdlib ssl/socket primitives are blocking, so the whole connection is
run on a worker thread via asyncio.to_thread. The hand-off is the error
boundary: whatever happens on the worker (refused connection, handshake
failure, timeout, decode error, or anything unexpected) comes back as a
Failed outcome, never as an exception.

Certificate decoding uses cryptography's x509 module on the DER bytes,
since getpeercert(binary_form=False) hides fields we need.

Outcomes:
    connect / handshake / decode failure   → Failed(message)
    handshake ok, no certificate presented → NotFound
    handshake ok, certificate presented    → Found(CertificateInfo)

Profile config options:
    port:    int   — TLS port (default: 443)
    timeout: float — socket timeout in seconds (default: none, blocking)
"""

from __future__ import annotations

import asyncio
import logging
import socket
import ssl
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from cryptography import x509

from vanguard.scanner.analyzers.ssl_analyzer import analyze_ssl
from vanguard.scanner.base import (
    NOT_FOUND,
    BaseProbe,
    CertificateInfo,
    Failed,
    Found,
    Outcome,
    SslResult,
    describe_error,
)

logger = logging.getLogger(__name__)

DEFAULT_TLS_PORT = 443

# (host, port, timeout) → DER bytes, or None when no certificate was presented
CertificateFetcher = Callable[[str, int, Optional[float]], Optional[bytes]]


def fetch_peer_certificate(host: str, port: int, timeout: Optional[float] = None) -> Optional[bytes]:
    """
    Blocking: open TCP, handshake with default verification and SNI, and
    return the leaf certificate in DER form.
    """
    context = ssl.create_default_context()
    with socket.create_connection((host, port), timeout=timeout) as sock:
        with context.wrap_socket(sock, server_hostname=host) as ssock:
            logger.debug(f"TLS handshake with {host}:{port} completed ({ssock.version()})")
            return ssock.getpeercert(binary_form=True)


def decode_certificate(der: bytes, now: Optional[datetime] = None) -> CertificateInfo:
    """Decode a DER certificate into CertificateInfo. Raises ValueError on bad input."""
    cert = x509.load_der_x509_certificate(der)
    return CertificateInfo.from_validity(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
        now=now,
    )


class SSLEngine(BaseProbe[SslResult]):
    """
    Checks the TLS certificate served on the target's HTTPS port.

    Uses SNI (the target hostname) so the right certificate is returned
    on shared hosting.
    """

    def __init__(self, fetcher: Optional[CertificateFetcher] = None):
        self._fetch = fetcher or fetch_peer_certificate

    @property
    def name(self) -> str:
        return "ssl"

    async def execute(self, target: str, config: Dict[str, Any]) -> SslResult:
        port = int(config.get("port", DEFAULT_TLS_PORT))
        timeout = config.get("timeout")

        certificate = await self.collect(target, port, timeout)
        findings = analyze_ssl(certificate)
        return SslResult(certificate=certificate, findings=tuple(findings))

    def failed_result(self, message: str) -> SslResult:
        certificate = Failed(message)
        return SslResult(certificate=certificate, findings=tuple(analyze_ssl(certificate)))

    async def collect(self, host: str, port: int, timeout: Optional[float] = None) -> Outcome:
        try:
            der = await asyncio.to_thread(self._fetch, host, port, timeout)
        except ssl.SSLError as e:
            logger.warning(f"TLS handshake failed for {host}:{port}: {e}")
            return Failed(describe_error(e))
        except socket.timeout as e:
            logger.warning(f"Timeout connecting to {host}:{port}")
            return Failed(describe_error(e))
        except OSError as e:
            logger.warning(f"Connection failed to {host}:{port}: {e}")
            return Failed(describe_error(e))
        except Exception as e:
            logger.exception(f"Unexpected error in TLS worker for {host}:{port}")
            return Failed(describe_error(e))

        if not der:
            logger.warning(f"{host}:{port} completed the handshake without a certificate")
            return NOT_FOUND

        try:
            info = decode_certificate(der)
        except ValueError as e:
            logger.warning(f"Could not decode certificate from {host}:{port}: {e}")
            return Failed(describe_error(e))

        logger.debug(
            f"Certificate for {host}: subject={info.subject} "
            f"expires in {info.days_until_expiry} day(s), valid={info.is_valid}"
        )
        return Found(info)

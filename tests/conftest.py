"""Shared fixtures: fake DNS resolver, generated certificates, report builders."""

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Union

import dns.rdata
import dns.resolver
import httpx
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from vanguard.scanner.base import (
    NOT_FOUND,
    DnsResult,
    Finding,
    FingerprintResult,
    HeadersResult,
    NotFound,
    ScanReport,
    SslResult,
)

Answer = Union[Sequence[str], BaseException]


class FakeResolver:
    """
    Stand-in for dns.asyncresolver.Resolver.

    `answers` maps (qname, rdtype) to either a list of rdata texts in zone
    file syntax or an exception to raise. Unlisted names are NXDOMAIN.
    """

    def __init__(self, answers: Mapping[tuple[str, str], Answer]) -> None:
        self.answers = dict(answers)
        self.queries: list[tuple[str, str]] = []

    async def resolve(self, qname: str, rdtype: str) -> list:
        self.queries.append((qname, rdtype))
        answer = self.answers.get((qname, rdtype))
        if answer is None:
            raise dns.resolver.NXDOMAIN()
        if isinstance(answer, BaseException):
            raise answer
        return [dns.rdata.from_text("IN", rdtype, text) for text in answer]


@pytest.fixture
def fake_resolver() -> Callable[[Mapping[tuple[str, str], Answer]], FakeResolver]:
    return FakeResolver


def make_certificate_der(
    not_before: datetime,
    not_after: datetime,
    common_name: str = "example.com",
) -> bytes:
    """Self-signed DER certificate with the given validity window."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.DER)


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def certificate_der() -> Callable[..., bytes]:
    return make_certificate_der


def unreachable_transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    return httpx.MockTransport(handler)


@pytest.fixture
def unreachable() -> httpx.MockTransport:
    return unreachable_transport()


def make_report(
    dns_findings: Sequence[Finding] = (),
    ssl_findings: Sequence[Finding] = (),
    header_findings: Sequence[Finding] = (),
) -> ScanReport:
    missing: NotFound = NOT_FOUND
    return ScanReport(
        target="example.com",
        dns=DnsResult(spf=missing, dmarc=missing, dkim=missing, caa=missing, findings=tuple(dns_findings)),
        ssl=SslResult(certificate=missing, findings=tuple(ssl_findings)),
        headers=HeadersResult(
            hsts=missing,
            csp=missing,
            x_frame_options=missing,
            x_content_type_options=missing,
            findings=tuple(header_findings),
        ),
        fingerprint=FingerprintResult(),
    )


@pytest.fixture
def report_factory() -> Callable[..., ScanReport]:
    return make_report


"""Tests for target normalization and the scan orchestrator."""

import asyncio
import threading

import httpx
import pytest

from vanguard.scanner import InvalidTargetError, ScanOrchestrator, normalize_target
from vanguard.scanner.base import BaseProbe, Failed, Found, ScanReport
from vanguard.scanner.engines import ALL_ENGINES, DNSEngine, SSLEngine
from vanguard.scanner.orchestrator import default_probes

DNS_ANSWERS = {
    ("example.com", "TXT"): ['"v=spf1 -all"'],
    ("_dmarc.example.com", "TXT"): ['"v=DMARC1; p=reject"'],
    ("google._domainkey.example.com", "TXT"): ['"v=DKIM1; p=abc"'],
    ("example.com", "CAA"): ['0 issue "letsencrypt.org"'],
}


def refused(host, port, timeout):
    raise ConnectionRefusedError(111, "Connection refused")


class TestNormalizeTarget:
    """Tests for normalize_target."""

    @pytest.mark.parametrize(
        ("raw", "host"),
        [
            ("example.com", "example.com"),
            ("  Example.COM  ", "example.com"),
            ("https://www.example.com/login?next=/", "www.example.com"),
            ("http://example.com:8080", "example.com"),
            ("example.com.", "example.com"),
            ("sub.example.co.uk/path", "sub.example.co.uk"),
            ("93.184.216.34", "93.184.216.34"),
            ("https://[2001:db8::1]/", "2001:db8::1"),
        ],
    )
    def test_valid(self, raw: str, host: str) -> None:
        assert normalize_target(raw) == host

    @pytest.mark.parametrize("raw", ["", "   ", None, "https://", "exa mple.com", "-bad-.com", "a..b"])
    def test_invalid(self, raw) -> None:
        with pytest.raises(InvalidTargetError):
            normalize_target(raw)

    def test_invalid_target_is_value_error(self) -> None:
        assert issubclass(InvalidTargetError, ValueError)


class TestDefaultProbes:
    """Tests for default_probes."""

    def test_one_instance_per_registered_engine(self, unreachable) -> None:
        probes = default_probes(unreachable)

        assert list(probes) == list(ALL_ENGINES)
        for name, probe in probes.items():
            assert type(probe) is ALL_ENGINES[name]
            assert probe.name == name

    def test_http_probes_share_the_transport(self, unreachable) -> None:
        probes = default_probes(unreachable)
        assert probes["headers"]._transport is unreachable
        assert probes["fingerprint"]._transport is unreachable


class TestScanOrchestrator:
    """Tests for ScanOrchestrator.scan."""

    async def test_unreachable_host(self, fake_resolver, unreachable) -> None:
        """DNS succeeds independently while TLS and HTTP probes fail."""
        orchestrator = ScanOrchestrator(
            config={},
            transport=unreachable,
            probes={
                "dns": DNSEngine(resolver=fake_resolver(DNS_ANSWERS)),
                "ssl": SSLEngine(fetcher=refused),
            },
        )

        report = await orchestrator.scan("https://example.com/")

        assert report.target == "example.com"
        assert isinstance(report.ssl.certificate, Failed)
        assert report.headers.request_error is not None
        assert report.fingerprint.error is not None
        assert isinstance(report.dns.spf, Found)
        assert report.dns.findings == ()
        assert [f.code for f in report.all_findings()] == ["TLS_HANDSHAKE_FAILED", "HEADERS_REQUEST_FAILED"]
        assert report.started_at <= report.finished_at

    async def test_probes_run_concurrently(self, fake_resolver, unreachable) -> None:
        """All four probes are started before any of them finishes."""
        started: list[str] = []
        gate = asyncio.Event()

        class Waiting(BaseProbe):
            def __init__(self, name: str, inner: BaseProbe) -> None:
                self._name = name
                self._inner = inner

            @property
            def name(self) -> str:
                return self._name

            async def execute(self, target, config):
                started.append(self._name)
                if len(started) == 4:
                    gate.set()
                await asyncio.wait_for(gate.wait(), timeout=5)
                return await self._inner.execute(target, config)

            def failed_result(self, message):
                return self._inner.failed_result(message)

        base = ScanOrchestrator(config={}, transport=unreachable, probes={
            "dns": DNSEngine(resolver=fake_resolver(DNS_ANSWERS)),
            "ssl": SSLEngine(fetcher=refused),
        })
        orchestrator = ScanOrchestrator(
            config={},
            probes={name: Waiting(name, probe) for name, probe in base.probes.items()},
        )

        report = await orchestrator.scan("example.com")

        assert sorted(started) == ["dns", "fingerprint", "headers", "ssl"]
        assert isinstance(report, ScanReport)

    async def test_blocking_tls_does_not_stall_other_probes(self, fake_resolver, unreachable) -> None:
        """The DNS probe keeps running while the TLS fetch is blocked in its thread."""
        fetch_started = threading.Event()
        release = threading.Event()
        released_in_time = []

        def blocking_fetch(host, port, timeout):
            fetch_started.set()
            released_in_time.append(release.wait(timeout=5))
            return None

        class Releasing(DNSEngine):
            async def execute(self, target, config):
                for _ in range(500):
                    if fetch_started.is_set():
                        break
                    await asyncio.sleep(0.01)
                release.set()
                return await super().execute(target, config)

        orchestrator = ScanOrchestrator(
            config={},
            transport=unreachable,
            probes={
                "dns": Releasing(resolver=fake_resolver(DNS_ANSWERS)),
                "ssl": SSLEngine(fetcher=blocking_fetch),
            },
        )

        report = await orchestrator.scan("example.com")

        assert released_in_time == [True]
        assert isinstance(report.dns.spf, Found)
        assert [f.code for f in report.ssl.findings] == ["NO_CERTIFICATE_FOUND"]

    async def test_probe_crash_is_isolated(self, fake_resolver, unreachable) -> None:
        """One probe raising does not affect the others."""
        resolver = fake_resolver({("example.com", "TXT"): RuntimeError("boom")})
        orchestrator = ScanOrchestrator(
            config={},
            transport=unreachable,
            probes={"dns": DNSEngine(resolver=resolver), "ssl": SSLEngine(fetcher=refused)},
        )

        report = await orchestrator.scan("example.com")

        assert report.dns.spf == Failed("RuntimeError: boom")
        assert isinstance(report.ssl.certificate, Failed)

    async def test_config_sections_reach_probes(self, fake_resolver, unreachable) -> None:
        calls = []

        def fetch(host, port, timeout):
            calls.append((port, timeout))
            return None

        orchestrator = ScanOrchestrator(
            config={"ssl": {"port": 8443, "timeout": 3.0}},
            transport=unreachable,
            probes={"dns": DNSEngine(resolver=fake_resolver({})), "ssl": SSLEngine(fetcher=fetch)},
        )
        await orchestrator.scan("example.com")

        assert calls == [(8443, 3.0)]

    async def test_invalid_target_raises(self) -> None:
        with pytest.raises(InvalidTargetError):
            await ScanOrchestrator(config={}).scan("   ")

    def test_execute_is_blocking_wrapper(self, fake_resolver) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html></html>")

        orchestrator = ScanOrchestrator(
            config={},
            transport=httpx.MockTransport(handler),
            probes={"dns": DNSEngine(resolver=fake_resolver(DNS_ANSWERS)), "ssl": SSLEngine(fetcher=refused)},
        )

        report = orchestrator.execute("example.com")

        assert report.headers.request_error is None
        assert [f.code for f in report.headers.findings] == [
            "HSTS_MISSING", "CSP_MISSING", "XFO_MISSING", "XCTO_MISSING",
        ]

    async def test_ipv6_target(self, fake_resolver) -> None:
        """A bracketed IPv6 URL scans cleanly: no DNS findings, HTTP probes reach the host."""
        hosts = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            return httpx.Response(200, text="<html></html>")

        orchestrator = ScanOrchestrator(
            config={},
            transport=httpx.MockTransport(handler),
            probes={"dns": DNSEngine(resolver=fake_resolver({})), "ssl": SSLEngine(fetcher=refused)},
        )

        report = await orchestrator.scan("https://[2001:db8::1]/")

        assert report.target == "2001:db8::1"
        assert report.dns.findings == ()
        assert report.headers.request_error is None
        assert report.fingerprint.error is None
        assert hosts == ["2001:db8::1", "2001:db8::1"]

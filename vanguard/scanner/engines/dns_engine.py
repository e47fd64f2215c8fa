# vanguard/scanner/engines/dns_engine.py
"""
DNS / mail-authentication data collection engine.

Queries the four DNS lookups that describe a domain's email and
certificate-authority posture, then hands them to the DNS analyzer.

Uses dnspython's asyncio resolver so the four lookups (and the DKIM
selector fan-out) run concurrently without blocking the event loop.

What this engine collects:
    - SPF:   first TXT record on <domain> beginning "v=spf1"
    - DMARC: first TXT record on _dmarc.<domain>, with its p= policy
    - DKIM:  every TXT record beginning "v=DKIM1" under
             <selector>._domainkey.<domain>, for each candidate selector
    - CAA:   all CAA records on <domain>

Each lookup resolves to an Outcome:
    NXDOMAIN / NoAnswer            → NotFound
    any other resolver error       → Failed("<ExcType>: <message>")

A leading "www." is stripped before querying, since mail and CA records
live on the apex domain.
IP-address targets have no such records: every lookup is NotFound and
no findings are produced.

Profile config options:
    dkim_selectors: list — DKIM selectors to probe
    nameservers:    list — resolver IPs (default: system configuration)
    timeout:        float — per-query lifetime in seconds (default: dnspython's)
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
from typing import Any, Dict, List, Optional, Sequence

import dns.asyncresolver
import dns.exception
import dns.resolver

from vanguard.scanner.analyzers.dns_analyzer import analyze_dns, parse_dmarc_policy
from vanguard.scanner.base import (
    NOT_FOUND,
    BaseProbe,
    CaaRecord,
    DkimRecord,
    DmarcRecord,
    DnsResult,
    Failed,
    Found,
    Outcome,
    SpfRecord,
    describe_error,
)

logger = logging.getLogger(__name__)

# Common DKIM selectors to probe
DEFAULT_DKIM_SELECTORS = ["google", "selector1", "selector2", "default", "dkim"]


def apex_domain(target: str) -> str:
    domain = target.strip().lower().rstrip(".")
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def _is_ip_address(target: str) -> bool:
    try:
        ipaddress.ip_address(target)
    except ValueError:
        return False
    return True


def _txt_text(rdata: Any) -> str:
    """Join the character-strings of a TXT rdata into one value."""
    return b"".join(rdata.strings).decode("utf-8", errors="replace")


class DNSEngine(BaseProbe[DnsResult]):
    """
    Resolves SPF, DMARC, DKIM and CAA for a domain.

    A resolver may be injected (anything with an async
    `resolve(qname, rdtype)`), otherwise one is built from config.
    """

    def __init__(self, resolver: Optional[Any] = None):
        self._resolver = resolver

    @property
    def name(self) -> str:
        return "dns"

    async def execute(self, target: str, config: Dict[str, Any]) -> DnsResult:
        if _is_ip_address(target):
            # Mail and CA records only exist for names; nothing to look up.
            logger.info(f"DNS scan skipped for IP address {target}")
            return DnsResult(spf=NOT_FOUND, dmarc=NOT_FOUND, dkim=NOT_FOUND, caa=NOT_FOUND)

        domain = apex_domain(target)
        resolver = self._resolver or self._build_resolver(config)
        selectors = list(config.get("dkim_selectors") or DEFAULT_DKIM_SELECTORS)

        spf, dmarc, dkim, caa = await asyncio.gather(
            self._lookup_spf(resolver, domain),
            self._lookup_dmarc(resolver, domain),
            self._lookup_dkim(resolver, domain, selectors),
            self._lookup_caa(resolver, domain),
        )

        findings = analyze_dns(spf=spf, dmarc=dmarc, dkim=dkim, caa=caa)
        logger.info(
            f"DNS scan of {domain}: spf={_label(spf)} dmarc={_label(dmarc)} "
            f"dkim={_label(dkim)} caa={_label(caa)}, {len(findings)} finding(s)"
        )
        return DnsResult(spf=spf, dmarc=dmarc, dkim=dkim, caa=caa, findings=tuple(findings))

    def failed_result(self, message: str) -> DnsResult:
        failed = Failed(message)
        return DnsResult(
            spf=failed,
            dmarc=failed,
            dkim=failed,
            caa=failed,
            findings=tuple(analyze_dns(spf=failed, dmarc=failed, dkim=failed, caa=failed)),
        )

    # ------------------------------------------------------------------
    # Resolver
    # ------------------------------------------------------------------

    def _build_resolver(self, config: Dict[str, Any]) -> dns.asyncresolver.Resolver:
        nameservers = config.get("nameservers")
        resolver = dns.asyncresolver.Resolver(configure=not nameservers)
        if nameservers:
            resolver.nameservers = list(nameservers)

        timeout = config.get("timeout")
        if timeout is not None:
            resolver.timeout = float(timeout)
            resolver.lifetime = float(timeout)
        return resolver

    async def _query(self, resolver: Any, qname: str, rdtype: str) -> Outcome:
        """Query a single name/type. Found holds the list of rdata."""
        try:
            answer = await resolver.resolve(qname, rdtype)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            logger.debug(f"DNS {rdtype} {qname}: not found")
            return NOT_FOUND
        except (dns.exception.DNSException, OSError) as e:
            logger.warning(f"DNS {rdtype} query failed for {qname}: {e}")
            return Failed(describe_error(e))

        records = list(answer)
        if not records:
            return NOT_FOUND
        return Found(records)

    # ------------------------------------------------------------------
    # The four lookups
    # ------------------------------------------------------------------

    async def _lookup_spf(self, resolver: Any, domain: str) -> Outcome:
        outcome = await self._query(resolver, domain, "TXT")
        if not isinstance(outcome, Found):
            return outcome

        for rdata in outcome.value:
            text = _txt_text(rdata)
            if text.startswith("v=spf1"):
                return Found(SpfRecord(text=text))
        return NOT_FOUND

    async def _lookup_dmarc(self, resolver: Any, domain: str) -> Outcome:
        outcome = await self._query(resolver, f"_dmarc.{domain}", "TXT")
        if not isinstance(outcome, Found):
            return outcome

        text = _txt_text(outcome.value[0])
        return Found(DmarcRecord(text=text, policy=parse_dmarc_policy(text)))

    async def _lookup_dkim(self, resolver: Any, domain: str, selectors: Sequence[str]) -> Outcome:
        """
        Probe every selector concurrently.

        Any DKIM key found → Found(records). A selector with nothing there
        is skipped. Only when nothing was found and at least one selector
        query failed is the whole lookup Failed.
        """
        outcomes = await asyncio.gather(*(
            self._query(resolver, f"{selector}._domainkey.{domain}", "TXT")
            for selector in selectors
        ))

        records: List[DkimRecord] = []
        first_failure: Optional[Failed] = None
        for selector, outcome in zip(selectors, outcomes):
            if isinstance(outcome, Failed):
                first_failure = first_failure or outcome
                continue
            if not isinstance(outcome, Found):
                continue
            for rdata in outcome.value:
                text = _txt_text(rdata)
                if text.startswith("v=DKIM1"):
                    records.append(DkimRecord(selector=selector, text=text))

        if records:
            return Found(tuple(records))
        if first_failure is not None:
            return first_failure
        return NOT_FOUND

    async def _lookup_caa(self, resolver: Any, domain: str) -> Outcome:
        outcome = await self._query(resolver, domain, "CAA")
        if not isinstance(outcome, Found):
            return outcome
        return Found(tuple(CaaRecord(text=rdata.to_text()) for rdata in outcome.value))


def _label(outcome: Outcome) -> str:
    if isinstance(outcome, Found):
        return "found"
    if isinstance(outcome, Failed):
        return "failed"
    return "missing"

# vanguard/scanner/templates.py
"""
Finding Template Registry (the Knowledge Base).

Canonical source of truth for every finding code the scanner can produce.
Keyed by code (e.g. "DMARC_MISSING", "HSTS_MISSING").

Used by:
    - Analyzers:    Finding.of(code) reads the severity from here
    - Scoring:      Severity weights come from the findings built here
    - API/UI:       Title, category, description and remediation display

Templates are registered once at import time and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from vanguard.scanner.base import Severity

CATEGORY_DNS = "dns"
CATEGORY_SSL = "ssl"
CATEGORY_HEADERS = "headers"

CATEGORIES = (CATEGORY_DNS, CATEGORY_SSL, CATEGORY_HEADERS)


@dataclass(frozen=True)
class FindingTemplate:
    code: str
    title: str
    category: str                   # dns, ssl, headers
    severity: Severity
    description: str
    remediation: str


UNKNOWN_FINDING = FindingTemplate(
    code="",
    title="Unknown Finding",
    category="",
    severity=Severity.INFO,
    description="",
    remediation="",
)


# ═══════════════════════════════════════════════════════════════════════════
# REGISTRY
# ═══════════════════════════════════════════════════════════════════════════

_TEMPLATES: Dict[str, FindingTemplate] = {}


def _r(tmpl: FindingTemplate) -> FindingTemplate:
    """Register a template."""
    if tmpl.code in _TEMPLATES:
        raise ValueError(f"Duplicate finding code: {tmpl.code}")
    _TEMPLATES[tmpl.code] = tmpl
    return tmpl


# ───────────────────────────────────────────────────────────────────────────
# DNS / Email Security
# ───────────────────────────────────────────────────────────────────────────

_r(FindingTemplate(
    code="DMARC_MISSING",
    title="DMARC Record Missing",
    category=CATEGORY_DNS,
    severity=Severity.CRITICAL,
    description=(
        "DMARC is an email authentication policy that protects your domain "
        "from being used for email spoofing, phishing and other fraud by "
        "telling receiving mail servers how to handle unauthenticated mail."
    ),
    remediation=(
        "Add a TXT record at _dmarc.<domain>. Start with "
        "'v=DMARC1; p=none; rua=mailto:dmarc@<domain>' and move to "
        "'p=quarantine' or 'p=reject' after monitoring the reports."
    ),
))

_r(FindingTemplate(
    code="DMARC_POLICY_NONE",
    title="DMARC Policy is 'none'",
    category=CATEGORY_DNS,
    severity=Severity.WARNING,
    description=(
        "The DMARC policy is in monitoring-only mode. Failing mail is "
        "reported but receivers are not told to block or quarantine it, "
        "so the domain has no real protection against spoofing."
    ),
    remediation=(
        "Once legitimate mail passes SPF and DKIM, change the policy to "
        "'p=quarantine' (deliver to spam) or 'p=reject' (refuse delivery)."
    ),
))

_r(FindingTemplate(
    code="SPF_MISSING",
    title="SPF Record Missing",
    category=CATEGORY_DNS,
    severity=Severity.WARNING,
    description=(
        "Sender Policy Framework (SPF) lists the mail servers allowed to "
        "send email for your domain. Without it, attackers can more easily "
        "send mail that appears to come from you."
    ),
    remediation=(
        "Publish a TXT record on the domain listing your senders, e.g. "
        "'v=spf1 include:_spf.google.com -all' for Google Workspace."
    ),
))

_r(FindingTemplate(
    code="SPF_SOFTFAIL",
    title="SPF Uses Soft Fail (~all)",
    category=CATEGORY_DNS,
    severity=Severity.INFO,
    description=(
        "The SPF record ends with '~all'. Mail from unlisted servers is "
        "accepted but marked as suspicious rather than rejected."
    ),
    remediation=(
        "When every legitimate sender is listed, switch to '-all' (hard "
        "fail) so receivers reject unauthorized mail."
    ),
))

_r(FindingTemplate(
    code="SPF_NEUTRAL",
    title="SPF Uses Neutral (?all)",
    category=CATEGORY_DNS,
    severity=Severity.INFO,
    description=(
        "The SPF record ends with '?all', which makes no assertion about "
        "unlisted senders. Receivers treat it much like having no SPF."
    ),
    remediation="Replace '?all' with '~all' or, preferably, '-all'.",
))

_r(FindingTemplate(
    code="DKIM_MISSING",
    title="No DKIM Record Found",
    category=CATEGORY_DNS,
    severity=Severity.INFO,
    description=(
        "No DKIM public key was found under any of the common selectors. "
        "DKIM lets receivers verify that mail was signed by your domain. "
        "Your provider may use a selector that was not checked."
    ),
    remediation=(
        "Enable DKIM signing with your mail provider and publish the key "
        "at <selector>._domainkey.<domain>."
    ),
))

_r(FindingTemplate(
    code="CAA_MISSING",
    title="CAA Record Missing",
    category=CATEGORY_DNS,
    severity=Severity.INFO,
    description=(
        "Certification Authority Authorization (CAA) records restrict which "
        "certificate authorities may issue certificates for the domain. "
        "Without them any public CA may issue one."
    ),
    remediation=(
        "Add CAA records naming your CA(s), e.g. '0 issue \"letsencrypt.org\"'."
    ),
))

_r(FindingTemplate(
    code="DNS_LOOKUP_FAILED",
    title="DNS Lookup Failed",
    category=CATEGORY_DNS,
    severity=Severity.INFO,
    description=(
        "One or more DNS queries failed (timeout, SERVFAIL or no reachable "
        "nameserver), so some mail and CA records could not be checked."
    ),
    remediation=(
        "Check that the domain's authoritative nameservers respond, then "
        "run the scan again."
    ),
))

# ───────────────────────────────────────────────────────────────────────────
# SSL / TLS
# ───────────────────────────────────────────────────────────────────────────

_r(FindingTemplate(
    code="TLS_HANDSHAKE_FAILED",
    title="TLS Handshake Failed",
    category=CATEGORY_SSL,
    severity=Severity.CRITICAL,
    description=(
        "A secure TLS connection could not be established. The certificate "
        "may be invalid, untrusted or missing, the port may be closed, or "
        "the server's TLS configuration may be incompatible."
    ),
    remediation=(
        "Install a valid certificate from a trusted CA for this hostname and "
        "check the server's TLS configuration against modern clients."
    ),
))

_r(FindingTemplate(
    code="NO_CERTIFICATE_FOUND",
    title="No Certificate Presented",
    category=CATEGORY_SSL,
    severity=Severity.WARNING,
    description=(
        "The TLS handshake completed but the server did not present a "
        "certificate, so its identity cannot be verified."
    ),
    remediation="Configure the server to present its certificate chain.",
))

_r(FindingTemplate(
    code="CERT_EXPIRED",
    title="SSL Certificate Expired",
    category=CATEGORY_SSL,
    severity=Severity.CRITICAL,
    description=(
        "The certificate is outside its validity window (expired or not yet "
        "valid). Browsers show prominent security warnings."
    ),
    remediation=(
        "Renew the certificate immediately and automate renewal, for "
        "example with Let's Encrypt and certbot."
    ),
))

_r(FindingTemplate(
    code="CERT_EXPIRING_SOON",
    title="SSL Certificate Expiring Soon",
    category=CATEGORY_SSL,
    severity=Severity.WARNING,
    description="The certificate expires within 30 days.",
    remediation=(
        "Renew the certificate before it expires and verify that automated "
        "renewal is working."
    ),
))

# ───────────────────────────────────────────────────────────────────────────
# HTTP Security Headers
# ───────────────────────────────────────────────────────────────────────────

_r(FindingTemplate(
    code="HEADERS_REQUEST_FAILED",
    title="HTTP Request Failed",
    category=CATEGORY_HEADERS,
    severity=Severity.CRITICAL,
    description=(
        "The server could not be reached over HTTPS to check its headers. "
        "It may be down, unreachable or blocking requests."
    ),
    remediation=(
        "Verify the site is online over HTTPS and that no firewall is "
        "blocking the connection."
    ),
))

_r(FindingTemplate(
    code="HSTS_MISSING",
    title="HSTS Header Missing",
    category=CATEGORY_HEADERS,
    severity=Severity.WARNING,
    description=(
        "Strict-Transport-Security forces browsers to use HTTPS, protecting "
        "against protocol downgrade and cookie hijacking."
    ),
    remediation=(
        "Add 'Strict-Transport-Security: max-age=31536000; includeSubDomains'."
    ),
))

_r(FindingTemplate(
    code="CSP_MISSING",
    title="CSP Header Missing",
    category=CATEGORY_HEADERS,
    severity=Severity.WARNING,
    description=(
        "Content-Security-Policy restricts which resources the browser may "
        "load, mitigating cross-site scripting and data injection."
    ),
    remediation=(
        "Add a Content-Security-Policy header. Start in report-only mode "
        "with \"default-src 'self'\" and tighten from there."
    ),
))

_r(FindingTemplate(
    code="XFO_MISSING",
    title="X-Frame-Options Missing",
    category=CATEGORY_HEADERS,
    severity=Severity.WARNING,
    description=(
        "Without X-Frame-Options the page can be embedded in iframes on "
        "other sites, enabling clickjacking."
    ),
    remediation="Add 'X-Frame-Options: DENY' or 'X-Frame-Options: SAMEORIGIN'.",
))

_r(FindingTemplate(
    code="XCTO_MISSING",
    title="X-Content-Type-Options Missing",
    category=CATEGORY_HEADERS,
    severity=Severity.INFO,
    description=(
        "Without X-Content-Type-Options browsers may MIME-sniff responses "
        "and interpret files as a different content type."
    ),
    remediation="Add 'X-Content-Type-Options: nosniff'.",
))


# ═══════════════════════════════════════════════════════════════════════════
# Lookups
# ═══════════════════════════════════════════════════════════════════════════

def get_finding_detail(code: str) -> Optional[FindingTemplate]:
    """Return the template for a code, or None if it is not registered."""
    return _TEMPLATES.get(code)


def describe(code: str) -> FindingTemplate:
    """
    Like get_finding_detail(), but never fails: unknown codes render as an
    "Unknown Finding" placeholder carrying the original code.
    """
    tmpl = _TEMPLATES.get(code)
    if tmpl is not None:
        return tmpl
    return FindingTemplate(
        code=code,
        title=UNKNOWN_FINDING.title,
        category=UNKNOWN_FINDING.category,
        severity=UNKNOWN_FINDING.severity,
        description=UNKNOWN_FINDING.description,
        remediation=UNKNOWN_FINDING.remediation,
    )


def get_all_templates() -> Dict[str, FindingTemplate]:
    """Return the full registry (read-only copy)."""
    return dict(_TEMPLATES)


def get_templates_by_category(category: str) -> List[FindingTemplate]:
    """Return all templates in a given category."""
    return [t for t in _TEMPLATES.values() if t.category == category]

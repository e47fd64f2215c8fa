# vanguard/scanner/analyzers/tech_detector.py
"""
Technology Fingerprinting Analyzer.

Evaluates an ordered rule table against a single HTTP response to build an
inventory of the technologies running on the target. Purely informational:
no findings are produced.

Detection sources (one per rule, see CheckKind):
    - HEADER:     a named response header
    - META_TAG:   the content attribute of <meta name="...">
    - BODY:       the full response body text
    - SCRIPT_SRC: every <script src> attribute
    - LINK_HREF:  every <link href> attribute
    - COOKIE:     all Set-Cookie values joined with "; "

Several rules may name the same technology: a strong structural signal
plus a resilient textual fallback (an error-page string, a path), so that
detection survives header stripping or reverse proxies. Matches are
deduplicated by name; a later match may fill in a missing version but
never overwrites one already captured.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from bs4 import BeautifulSoup

from vanguard.scanner.base import Technology

logger = logging.getLogger(__name__)


class CheckKind(str, enum.Enum):
    HEADER = "header"
    META_TAG = "meta_tag"
    BODY = "body"
    SCRIPT_SRC = "script_src"
    LINK_HREF = "link_href"
    COOKIE = "cookie"


@dataclass(frozen=True)
class FingerprintRule:
    tech_name: str
    category: str
    kind: CheckKind
    pattern: Pattern[str]
    # Header name or meta tag name; unused by the other kinds.
    source: Optional[str] = None


def _rule(
    tech_name: str,
    category: str,
    kind: CheckKind,
    pattern: str,
    source: Optional[str] = None,
    flags: int = 0,
) -> FingerprintRule:
    if kind in (CheckKind.HEADER, CheckKind.META_TAG) and not source:
        raise ValueError(f"{kind.value} rule for {tech_name} needs a source name")
    return FingerprintRule(
        tech_name=tech_name,
        category=category,
        kind=kind,
        pattern=re.compile(pattern, flags),
        source=source.lower() if source else None,
    )


H, M, B, S, L, C = (
    CheckKind.HEADER, CheckKind.META_TAG, CheckKind.BODY,
    CheckKind.SCRIPT_SRC, CheckKind.LINK_HREF, CheckKind.COOKIE,
)

# ---------------------------------------------------------------------------
# Technology signatures
# ---------------------------------------------------------------------------
# Order matters only for version fill-in: the first match creates the entry.

RULES: Tuple[FingerprintRule, ...] = (
    # ── Web servers & CDNs (with resilient fallbacks) ──
    _rule("Nginx", "Web Server", H, r"nginx/([\d.]+)", "server"),
    _rule("Nginx", "Web Server", B, r"<hr><center>nginx</center>"),
    _rule("Apache", "Web Server", H, r"Apache/([\d.]+)", "server"),
    _rule("Apache", "Web Server", B, r"Apache Server at"),
    _rule("Cloudflare", "CDN / WAF", H, r"cloudflare", "server"),
    _rule("LiteSpeed", "Web Server", H, r"LiteSpeed", "server"),

    # ── CMS & e-commerce ──
    _rule("WordPress", "CMS", M, r"WordPress ([\d.]+)", "generator"),
    _rule("WordPress", "CMS", B, r"/wp-content/|/wp-includes/"),
    _rule("WordPress", "CMS", B, r"wp-login\.php"),
    _rule("Joomla", "CMS", M, r"Joomla!", "generator"),
    _rule("Shopify", "E-commerce", H, r"\d+", "x-shopid"),
    _rule("Magento", "E-commerce", C, r"magento", flags=re.IGNORECASE),

    # ── Server-side languages & frameworks ──
    _rule("PHP", "Language", H, r"PHP/([\d.]+)", "x-powered-by"),
    _rule("PHP", "Language", C, r"PHPSESSID"),
    _rule("ASP.NET", "Framework", H, r"([\d.]+)", "x-aspnet-version"),
    _rule("Java", "Language", C, r"JSESSIONID"),
    _rule("Python/Django", "Framework", C, r"csrftoken"),
    _rule("Ruby on Rails", "Framework", C, r"_rails_session|_session_id"),

    # ── Modern JS frameworks ──
    _rule("Next.js", "JS Framework", H, r"Next\.js ?([\d.]+)?", "x-powered-by"),
    _rule("Next.js", "JS Framework", S, r"/_next/static/"),
    _rule("Nuxt.js", "JS Framework", B, r"__NUXT__"),
    _rule("Angular", "JS Framework", B, r'ng-version="([\d.]+)"'),
    _rule("SolidJS", "JS Framework", B, r"data-hk="),
    _rule("Svelte", "JS Framework", B, r"""class=["']svelte-"""),
    _rule("Gatsby", "JS Framework", B, r"""id=["']___gatsby["']"""),
    _rule("Astro", "JS Framework", M, r"Astro v([\d.]+)", "generator"),
    _rule("React", "JS Library", B, r"react-dom|data-reactroot|react\.development"),
    _rule("Vue.js", "JS Library", B, r"data-v-app|__VUE_"),

    # ── JS libraries, UI & analytics ──
    _rule("jQuery", "JS Library", S, r"jquery[./-]?(?:min\.|slim\.)?(?:js)?(?:\?v=|-|/)?(\d+(?:\.\d+)+)?"),
    _rule("jQuery", "JS Library", B, r'\.fn\.jquery: ?"([\d.]+)"'),
    _rule("Bootstrap", "UI Framework", L, r"bootstrap(?:[.-]([\d.]+\d))?(?:\.min)?\.css"),
    _rule("Google Analytics", "Analytics", S, r"google-analytics\.com/|googletagmanager\.com/"),
)


# ---------------------------------------------------------------------------
# Evidence: everything the rules can look at, parsed once
# ---------------------------------------------------------------------------

@dataclass
class Evidence:
    headers: Dict[str, str]
    body: str
    cookies: str
    meta: Dict[str, str]
    script_srcs: List[str]
    link_hrefs: List[str]

    @classmethod
    def from_response_parts(
        cls,
        headers: Iterable[Tuple[str, str]],
        body: str,
        set_cookies: Sequence[str] = (),
    ) -> "Evidence":
        header_map: Dict[str, str] = {}
        for name, value in headers:
            # First occurrence wins, matching a plain header lookup.
            header_map.setdefault(name.lower(), value)

        soup = BeautifulSoup(body or "", "html.parser")

        meta: Dict[str, str] = {}
        for tag in soup.find_all("meta", attrs={"name": True}):
            name = str(tag.get("name", "")).lower()
            content = tag.get("content")
            if name and content is not None and name not in meta:
                meta[name] = str(content)

        script_srcs = [str(t["src"]) for t in soup.find_all("script", src=True)]
        link_hrefs = [str(t["href"]) for t in soup.find_all("link", href=True)]

        return cls(
            headers=header_map,
            body=body or "",
            cookies="; ".join(set_cookies),
            meta=meta,
            script_srcs=script_srcs,
            link_hrefs=link_hrefs,
        )


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def _search(text: Optional[str], pattern: Pattern[str]) -> Optional[Tuple[Optional[str]]]:
    """
    Apply a pattern to one piece of text.

    Returns None when there is no match, otherwise a 1-tuple holding the
    captured version (or None when the pattern has no group, or the group
    did not participate / captured an empty string). A match that captures
    a version wins over an earlier one that doesn't, so
    "/js/jquery/jquery-3.6.0.min.js" yields "3.6.0".
    """
    if text is None:
        return None

    hit: Optional[Tuple[Optional[str]]] = None
    for match in pattern.finditer(text):
        version = match.group(1) if pattern.groups else None
        if version:
            return (version,)
        if hit is None:
            hit = (None,)
    return hit


def _search_all(texts: Iterable[str], pattern: Pattern[str]) -> Optional[Tuple[Optional[str]]]:
    hit: Optional[Tuple[Optional[str]]] = None
    for text in texts:
        result = _search(text, pattern)
        if result is None:
            continue
        if result[0] is not None:
            return result
        hit = hit or result
    return hit


def evaluate_rule(rule: FingerprintRule, evidence: Evidence) -> Optional[Tuple[Optional[str]]]:
    """Dispatch a rule to its evidence source by check kind."""
    if rule.kind is CheckKind.HEADER:
        return _search(evidence.headers.get(rule.source or ""), rule.pattern)
    if rule.kind is CheckKind.META_TAG:
        return _search(evidence.meta.get(rule.source or ""), rule.pattern)
    if rule.kind is CheckKind.BODY:
        return _search(evidence.body, rule.pattern)
    if rule.kind is CheckKind.SCRIPT_SRC:
        return _search_all(evidence.script_srcs, rule.pattern)
    if rule.kind is CheckKind.LINK_HREF:
        return _search_all(evidence.link_hrefs, rule.pattern)
    if rule.kind is CheckKind.COOKIE:
        return _search(evidence.cookies, rule.pattern)
    raise ValueError(f"Unknown check kind: {rule.kind}")


def detect_technologies(
    evidence: Evidence,
    rules: Sequence[FingerprintRule] = RULES,
) -> List[Technology]:
    """
    Run every rule against the evidence and return the deduplicated
    inventory, in order of first detection.
    """
    found: Dict[str, Technology] = {}

    for rule in rules:
        hit = evaluate_rule(rule, evidence)
        if hit is None:
            continue
        (version,) = hit

        existing = found.get(rule.tech_name)
        if existing is None:
            found[rule.tech_name] = Technology(
                name=rule.tech_name,
                category=rule.category,
                version=version,
            )
            logger.debug(f"Detected {rule.tech_name} via {rule.kind.value} (version={version})")
        elif existing.version is None and version is not None:
            found[rule.tech_name] = Technology(
                name=existing.name,
                category=existing.category,
                version=version,
            )
            logger.debug(f"Filled in {rule.tech_name} version {version} via {rule.kind.value}")

    return list(found.values())

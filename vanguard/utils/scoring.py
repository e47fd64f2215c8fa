# File: vanguard/utils/scoring.py
# =============================================================================
# Security Posture Score
# =============================================================================
# Single source of truth for turning a scan report into a score.
# Used by: scans/routes.py, and any presentation layer.
#
# Scale (higher is better):
#   100      = no critical or warning findings
#   90–100   = Excellent
#   75–89    = Good
#   50–74    = Needs Improvement
#   < 50     = Poor
#
# Critical findings cost 15 points, warnings 5, info findings nothing.
# A category "passes" when its probe produced no findings at all.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from vanguard.scanner.base import Finding, ScanReport, Severity

CRITICAL_WEIGHT = 15
WARNING_WEIGHT = 5


def calc_security_score(critical: int = 0, warning: int = 0) -> int:
    """
    100 - 15 per critical - 5 per warning, clamped to 0–100.

    2 criticals + 1 warning → 65; 10 criticals → 0 (never negative).
    """
    raw = 100 - CRITICAL_WEIGHT * critical - WARNING_WEIGHT * warning
    return max(0, min(100, raw))


def posture_rating(score: int) -> str:
    if score >= 90:
        return "Excellent"
    elif score >= 75:
        return "Good"
    elif score >= 50:
        return "Needs Improvement"
    else:
        return "Poor"


def count_by_severity(findings: Iterable[Finding], severity: Severity) -> int:
    return sum(1 for f in findings if f.severity == severity)


def filter_findings(findings: Iterable[Finding], severity: Optional[Severity] = None) -> List[Finding]:
    """All findings (severity=None) or only one severity, in original order."""
    if severity is None:
        return list(findings)
    return [f for f in findings if f.severity == severity]


@dataclass(frozen=True)
class ScanSummary:
    score: int
    critical_issues: int
    warning_issues: int
    info_issues: int
    dns_check_passed: bool
    ssl_check_passed: bool
    headers_check_passed: bool
    rating: str


def summarize(report: ScanReport) -> ScanSummary:
    findings = report.all_findings()
    critical = count_by_severity(findings, Severity.CRITICAL)
    warning = count_by_severity(findings, Severity.WARNING)
    info = count_by_severity(findings, Severity.INFO)
    score = calc_security_score(critical=critical, warning=warning)

    return ScanSummary(
        score=score,
        critical_issues=critical,
        warning_issues=warning,
        info_issues=info,
        dns_check_passed=not report.dns.findings,
        ssl_check_passed=not report.ssl.findings,
        headers_check_passed=not report.headers.findings,
        rating=posture_rating(score),
    )

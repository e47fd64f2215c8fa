# vanguard/scanner/analyzers/__init__.py
"""
Finding analyzers.
Each analyzer reads raw engine data and produces Findings whose severity
comes from the template registry.
Analyzers do NOT collect data — they only interpret it.
"""
from vanguard.scanner.analyzers.dns_analyzer import analyze_dns, parse_dmarc_policy
from vanguard.scanner.analyzers.ssl_analyzer import analyze_ssl
from vanguard.scanner.analyzers.header_analyzer import analyze_headers, check_header
from vanguard.scanner.analyzers.tech_detector import RULES, Evidence, detect_technologies

__all__ = [
    "analyze_dns", "parse_dmarc_policy",
    "analyze_ssl",
    "analyze_headers", "check_header",
    "RULES", "Evidence", "detect_technologies",
]

# vanguard/scanner/__init__.py
"""
Vanguard scan engine.

Usage:
    from vanguard.scanner import ScanOrchestrator

    orchestrator = ScanOrchestrator()
    report = orchestrator.execute("example.com")

Architecture:
    Orchestrator
    ├── Engines (collect raw data, run concurrently)
    │   ├── DNSEngine          — SPF, DMARC, DKIM, CAA
    │   ├── SSLEngine          — leaf certificate (worker thread)
    │   ├── HeadersEngine      — HTTP security headers
    │   └── FingerprintEngine  — technology inventory
    │
    └── Analyzers (interpret data → produce findings)
        ├── dns_analyzer
        ├── ssl_analyzer
        ├── header_analyzer
        └── tech_detector      — inventory only, no findings
"""

from vanguard.scanner.orchestrator import (
    InvalidTargetError,
    ScanOrchestrator,
    normalize_target,
    scan,
)

__all__ = ["ScanOrchestrator", "InvalidTargetError", "normalize_target", "scan"]

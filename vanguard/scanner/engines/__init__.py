# vanguard/scanner/engines/__init__.py
"""
Data collection engines (the probes).
Each engine gathers raw data for one concern and hands it to its analyzer.
"""
from vanguard.scanner.engines.dns_engine import DNSEngine
from vanguard.scanner.engines.ssl_engine import SSLEngine
from vanguard.scanner.engines.http_engine import HeadersEngine
from vanguard.scanner.engines.fingerprint_engine import FingerprintEngine

# Registry of all probes, keyed by the config section each one reads.
ALL_ENGINES = {
    "dns": DNSEngine,
    "ssl": SSLEngine,
    "headers": HeadersEngine,
    "fingerprint": FingerprintEngine,
}

__all__ = [
    "DNSEngine", "SSLEngine", "HeadersEngine", "FingerprintEngine",
    "ALL_ENGINES",
]

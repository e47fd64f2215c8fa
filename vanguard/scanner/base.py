# vanguard/scanner/base.py
"""
Base classes and data structures for the Vanguard scan pipeline.

Architecture:
    target → ScanOrchestrator → four probes (in parallel) → ScanReport

BaseProbe:   Collects raw data for one concern (DNS, TLS, headers, tech
             stack) and hands it to the matching analyzer, which turns it
             into Findings. Probes never let an exception escape: any
             failure becomes the probe's own "failed" result.

Outcome:     Every single lookup resolves to exactly one of
                 Found(value)     — the record/header/certificate exists
                 NotFound()       — it simply does not exist (not an error)
                 Failed(message)  — network, protocol or parse failure
             A value and an error can never coexist.

Finding:     A (severity, code) pair. The severity is always read from the
             Knowledge Base (scanner/templates.py) so the two cannot drift.
"""

from __future__ import annotations

import enum
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def now_utc() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def describe_error(exc: BaseException) -> str:
    """Render an exception as "<Type>: <message>" for Failed outcomes."""
    message = str(exc).strip()
    if message:
        return f"{type(exc).__name__}: {message}"
    return type(exc).__name__


# ---------------------------------------------------------------------------
# Severity
# ---------------------------------------------------------------------------

class Severity(str, enum.Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Impact ordering: critical > warning > info."""
        return _SEVERITY_RANK[self]

    def __str__(self) -> str:
        return self.value

    # Compare by impact, not alphabetically as the str base would.
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.CRITICAL: 3,
    Severity.WARNING: 2,
    Severity.INFO: 1,
}


# ---------------------------------------------------------------------------
# Outcome: tri-state lookup result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Found(Generic[T]):
    value: T

    def is_found(self) -> bool:
        return True

    def is_failed(self) -> bool:
        return False

    def value_or(self, default: Any = None) -> Any:
        return self.value


@dataclass(frozen=True)
class NotFound:
    def is_found(self) -> bool:
        return False

    def is_failed(self) -> bool:
        return False

    def value_or(self, default: Any = None) -> Any:
        return default


@dataclass(frozen=True)
class Failed:
    message: str

    def __post_init__(self):
        if not self.message:
            raise ValueError("Failed outcome requires an error message")

    def is_found(self) -> bool:
        return False

    def is_failed(self) -> bool:
        return True

    def value_or(self, default: Any = None) -> Any:
        return default


Outcome = Union[Found, NotFound, Failed]

NOT_FOUND = NotFound()


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Finding:
    """
    A severity-tagged, coded observation about a scanned domain.

    Build with Finding.of(code) so the severity comes from the Knowledge
    Base. The plain constructor is kept for deserialization and tests.
    """
    severity: Severity
    code: str

    @classmethod
    def of(cls, code: str) -> "Finding":
        # Local import: templates imports Severity from this module.
        from vanguard.scanner.templates import get_finding_detail

        detail = get_finding_detail(code)
        if detail is None:
            raise KeyError(f"Finding code '{code}' is not registered in the knowledge base")
        return cls(severity=detail.severity, code=code)


# ---------------------------------------------------------------------------
# Raw records collected by each probe
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpfRecord:
    text: str


@dataclass(frozen=True)
class DmarcRecord:
    text: str
    policy: Optional[str] = None


@dataclass(frozen=True)
class DkimRecord:
    selector: str
    text: str


@dataclass(frozen=True)
class CaaRecord:
    text: str


@dataclass(frozen=True)
class CertificateInfo:
    subject: str
    issuer: str
    not_before: datetime
    not_after: datetime
    days_until_expiry: int
    is_valid: bool

    @classmethod
    def from_validity(
        cls,
        subject: str,
        issuer: str,
        not_before: datetime,
        not_after: datetime,
        now: Optional[datetime] = None,
    ) -> "CertificateInfo":
        """
        Build certificate info and evaluate its validity window.

        days_until_expiry is the ceiling of (not_after - now) in days, so a
        certificate expiring in 9.2 days reports 10 and one that expired
        1.5 days ago reports -1.
        """
        now = now or now_utc()
        remaining = (not_after - now) / timedelta(days=1)
        return cls(
            subject=subject,
            issuer=issuer,
            not_before=not_before,
            not_after=not_after,
            days_until_expiry=math.ceil(remaining),
            is_valid=not_before <= now <= not_after,
        )


@dataclass(frozen=True)
class HeaderValue:
    text: str


@dataclass(frozen=True)
class Technology:
    name: str
    category: str
    version: Optional[str] = None


# ---------------------------------------------------------------------------
# Per-probe results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DnsResult:
    spf: Outcome
    dmarc: Outcome
    dkim: Outcome
    caa: Outcome
    findings: Tuple[Finding, ...] = ()

    def lookups(self) -> Dict[str, Outcome]:
        return {"spf": self.spf, "dmarc": self.dmarc, "dkim": self.dkim, "caa": self.caa}


@dataclass(frozen=True)
class SslResult:
    certificate: Outcome
    findings: Tuple[Finding, ...] = ()


@dataclass(frozen=True)
class HeadersResult:
    hsts: Outcome
    csp: Outcome
    x_frame_options: Outcome
    x_content_type_options: Outcome
    request_error: Optional[str] = None
    findings: Tuple[Finding, ...] = ()

    def headers(self) -> Dict[str, Outcome]:
        return {
            "strict-transport-security": self.hsts,
            "content-security-policy": self.csp,
            "x-frame-options": self.x_frame_options,
            "x-content-type-options": self.x_content_type_options,
        }


@dataclass(frozen=True)
class FingerprintResult:
    technologies: Tuple[Technology, ...] = ()
    error: Optional[str] = None


@dataclass(frozen=True)
class ScanReport:
    """
    The merged output of one scan. Created once by the orchestrator and
    never mutated afterwards.
    """
    target: str
    dns: DnsResult
    ssl: SslResult
    headers: HeadersResult
    fingerprint: FingerprintResult
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def all_findings(self) -> List[Finding]:
        return [*self.dns.findings, *self.ssl.findings, *self.headers.findings]


# ---------------------------------------------------------------------------
# Serialization to JSON-safe primitives for the API layer
# ---------------------------------------------------------------------------

def serialize(obj: Any) -> Any:
    """
    Convert report values into JSON-safe primitives.

    Outcomes are tagged explicitly so consumers never have to guess:
        Found(x)     → {"status": "found", "value": x}
        NotFound()   → {"status": "not_found"}
        Failed(msg)  → {"status": "failed", "error": msg}
    """
    if isinstance(obj, Found):
        return {"status": "found", "value": serialize(obj.value)}
    if isinstance(obj, NotFound):
        return {"status": "not_found"}
    if isinstance(obj, Failed):
        return {"status": "failed", "error": obj.message}
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: serialize(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, dict):
        return {str(k): serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [serialize(v) for v in obj]
    return obj


# ---------------------------------------------------------------------------
# Abstract probe
# ---------------------------------------------------------------------------

class BaseProbe(ABC, Generic[R]):
    """
    Abstract base for the four scan probes.

    To create a new probe:
        1. Subclass BaseProbe
        2. Set the `name` property (e.g., "dns", "ssl")
        3. Implement `execute(target, config) -> result`
        4. Implement `failed_result(message)` — what this probe reports
           when it could not run at all

    The base class handles automatically:
        - Timing (logged at INFO on completion)
        - Error catching (exceptions become failed_result, never propagate)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique probe identifier. Used as the config key and in logs."""
        ...

    async def run(self, target: str, config: Dict[str, Any] | None = None) -> R:
        """
        Execute the probe with automatic timing and error handling.

        DO NOT OVERRIDE THIS METHOD. Override `execute()` instead.

        Returns the probe's result — always, even on failure.
        """
        config = config or {}
        start = time.monotonic()
        logger.info(f"Probe '{self.name}' starting for {target}")

        try:
            result = await self.execute(target, config)
        except Exception as e:
            logger.exception(f"Probe '{self.name}' failed for {target}")
            result = self.failed_result(describe_error(e))

        duration = round(time.monotonic() - start, 2)
        logger.info(f"Probe '{self.name}' finished for {target} in {duration}s")
        return result

    @abstractmethod
    async def execute(self, target: str, config: Dict[str, Any]) -> R:
        """
        Perform the actual probing. Override this in subclasses.

        Args:
            target: Normalized hostname, e.g. "www.example.com".
            config: Probe-specific settings, read with config.get(key, default).
        """
        ...

    @abstractmethod
    def failed_result(self, message: str) -> R:
        """Result to report when execute() raised unexpectedly."""
        ...

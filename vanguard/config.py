# vanguard/config.py
"""
Environment → configuration.

Everything is read with os.getenv, like the rest of the app. Scan
settings are grouped into one dict per engine; engines read them with
config.get(key, default), so a setting that is not present simply leaves
the engine's own default in place.

    VANGUARD_DKIM_SELECTORS   comma list   dns.dkim_selectors
    VANGUARD_DNS_NAMESERVERS  comma list   dns.nameservers
    VANGUARD_DNS_TIMEOUT      seconds      dns.timeout
    VANGUARD_TLS_PORT         int          ssl.port
    VANGUARD_TLS_TIMEOUT      seconds      ssl.timeout
    VANGUARD_HTTP_TIMEOUT     seconds      headers.timeout, fingerprint.timeout
    VANGUARD_LOG_LEVEL        name         logging level
    VANGUARD_ENV              "development" → DEBUG logging by default
    CORS_ORIGINS              comma list   API CORS origins

Malformed numbers raise ValueError at load time rather than at scan time.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, List, Mapping, Optional, Union

DEFAULT_CORS_ORIGINS: List[Union[str, "re.Pattern[str]"]] = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    re.compile(r"http://192\.168\.\d+\.\d+:3000"),
]


def _env(environ: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def _csv(environ: Mapping[str, str], name: str) -> Optional[List[str]]:
    raw = environ.get(name, "")
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or None


def _seconds(environ: Mapping[str, str], name: str) -> Optional[float]:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _port(environ: Mapping[str, str], name: str) -> Optional[int]:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer port, got {raw!r}") from None
    if not 1 <= value <= 65535:
        raise ValueError(f"{name} must be between 1 and 65535, got {value}")
    return value


def _put(section: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        section[key] = value


def load_scan_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Dict[str, Any]]:
    """Build the per-engine config sections from the environment."""
    env = _env(environ)

    dns: Dict[str, Any] = {}
    _put(dns, "dkim_selectors", _csv(env, "VANGUARD_DKIM_SELECTORS"))
    _put(dns, "nameservers", _csv(env, "VANGUARD_DNS_NAMESERVERS"))
    _put(dns, "timeout", _seconds(env, "VANGUARD_DNS_TIMEOUT"))

    ssl: Dict[str, Any] = {}
    _put(ssl, "port", _port(env, "VANGUARD_TLS_PORT"))
    _put(ssl, "timeout", _seconds(env, "VANGUARD_TLS_TIMEOUT"))

    http_timeout = _seconds(env, "VANGUARD_HTTP_TIMEOUT")
    headers: Dict[str, Any] = {}
    fingerprint: Dict[str, Any] = {}
    _put(headers, "timeout", http_timeout)
    _put(fingerprint, "timeout", http_timeout)

    return {"dns": dns, "ssl": ssl, "headers": headers, "fingerprint": fingerprint}


def log_level(environ: Optional[Mapping[str, str]] = None) -> int:
    env = _env(environ)
    name = (env.get("VANGUARD_LOG_LEVEL") or "").strip().upper()
    if not name:
        return logging.DEBUG if env.get("VANGUARD_ENV") == "development" else logging.INFO

    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"VANGUARD_LOG_LEVEL must be a logging level name, got {name!r}")
    return level


def cors_origins(environ: Optional[Mapping[str, str]] = None) -> List[Any]:
    """Origins from CORS_ORIGINS, falling back to local dev origins."""
    return _csv(_env(environ), "CORS_ORIGINS") or list(DEFAULT_CORS_ORIGINS)

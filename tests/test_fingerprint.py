"""Tests for the technology detector and FingerprintEngine."""

import httpx
import pytest

from vanguard.scanner.analyzers.tech_detector import (
    RULES,
    CheckKind,
    Evidence,
    _rule,
    detect_technologies,
)
from vanguard.scanner.base import Technology
from vanguard.scanner.engines.fingerprint_engine import FINGERPRINT_USER_AGENT, FingerprintEngine

PAGE = """
<html>
<head>
  <meta name="generator" content="WordPress 6.4.2">
  <link rel="stylesheet" href="/wp-content/themes/x/bootstrap.min.css">
  <script src="/wp-includes/js/jquery/jquery-3.6.0.min.js"></script>
  <script async src="https://www.googletagmanager.com/gtag/js?id=G-1"></script>
</head>
<body><p>Hello</p></body>
</html>
"""


def evidence(headers=(), body="", cookies=()) -> Evidence:
    return Evidence.from_response_parts(headers=headers, body=body, set_cookies=cookies)


class TestDetectTechnologies:
    """Tests for rule evaluation and deduplication."""

    def test_version_filled_in_by_later_rule(self) -> None:
        """A header match without a version is completed by a body match."""
        rules = (
            _rule("Acme", "Framework", CheckKind.HEADER, r"acme", "x-powered-by"),
            _rule("Acme", "Framework", CheckKind.BODY, r"acme-([\d.]+)\.js"),
        )
        ev = evidence(headers=[("X-Powered-By", "acme")], body='<script src="/acme-2.3.4.js">')

        assert detect_technologies(ev, rules) == [Technology(name="Acme", category="Framework", version="2.3.4")]

    def test_existing_version_not_overwritten(self) -> None:
        rules = (
            _rule("Acme", "Framework", CheckKind.HEADER, r"acme/([\d.]+)", "server"),
            _rule("Acme", "Framework", CheckKind.BODY, r"acme-([\d.]+)"),
        )
        ev = evidence(headers=[("Server", "acme/1.0")], body="acme-9.9")

        assert detect_technologies(ev, rules) == [Technology(name="Acme", category="Framework", version="1.0")]

    def test_full_page(self) -> None:
        """Header, cookie, meta, script and link rules all fire on one response."""
        ev = evidence(
            headers=[("Server", "nginx/1.25.3"), ("X-Powered-By", "PHP/8.2.1")],
            body=PAGE,
            cookies=["PHPSESSID=abc; path=/"],
        )
        found = {t.name: t for t in detect_technologies(ev)}

        assert set(found) == {"Nginx", "WordPress", "PHP", "jQuery", "Bootstrap", "Google Analytics"}
        assert found["Nginx"].version == "1.25.3"
        assert found["WordPress"].version == "6.4.2"
        assert found["PHP"].version == "8.2.1"
        assert found["jQuery"].version == "3.6.0"
        assert found["Bootstrap"].version is None

    def test_fallback_signal_survives_stripped_headers(self) -> None:
        """The nginx error page identifies the server without a Server header."""
        ev = evidence(body="<html><body><hr><center>nginx</center></body></html>")
        assert detect_technologies(ev) == [Technology(name="Nginx", category="Web Server")]

    def test_cookie_rules(self) -> None:
        ev = evidence(cookies=["JSESSIONID=1; Path=/", "csrftoken=abc"])
        assert [t.name for t in detect_technologies(ev)] == ["Java", "Python/Django"]

    def test_nothing_detected(self) -> None:
        assert detect_technologies(evidence(body="<html><body>plain</body></html>")) == []

    def test_header_and_meta_rules_need_a_source(self) -> None:
        with pytest.raises(ValueError):
            _rule("Broken", "Test", CheckKind.HEADER, r"x")

    @pytest.mark.parametrize(
        ("src", "version"),
        [
            ("/js/jquery.min.js", None),
            ("https://code.jquery.com/jquery-3.7.1.min.js", "3.7.1"),
            ("/static/jquery.js?v=1.12.4", "1.12.4"),
        ],
    )
    def test_jquery_script_versions(self, src: str, version: str | None) -> None:
        ev = evidence(body=f'<script src="{src}"></script>')
        assert detect_technologies(ev) == [Technology(name="jQuery", category="JS Library", version=version)]

    def test_registry_is_immutable(self) -> None:
        assert isinstance(RULES, tuple)
        with pytest.raises(AttributeError):
            RULES[0].tech_name = "Other"  # type: ignore[misc]


class TestFingerprintEngine:
    """Tests for FingerprintEngine over a mock transport."""

    async def test_inventory_from_single_response(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                headers=[
                    ("Server", "Apache/2.4.58"),
                    ("Set-Cookie", "PHPSESSID=1; path=/"),
                    ("Set-Cookie", "frontend=magento-x; path=/"),
                ],
                text=PAGE,
            )

        result = await FingerprintEngine(transport=httpx.MockTransport(handler)).run("shop.example")

        names = [t.name for t in result.technologies]
        assert names == ["Apache", "WordPress", "Magento", "PHP", "jQuery", "Bootstrap", "Google Analytics"]
        assert result.error is None
        assert len(requests) == 1
        assert requests[0].headers["user-agent"] == FINGERPRINT_USER_AGENT

    async def test_request_failure(self, unreachable) -> None:
        result = await FingerprintEngine(transport=unreachable).run("example.com")

        assert result.technologies == ()
        assert result.error == "ConnectError: Connection refused"

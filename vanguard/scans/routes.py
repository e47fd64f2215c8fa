# vanguard/scans/routes.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from flask import Blueprint, current_app, jsonify, request

from vanguard.scanner import ScanOrchestrator, normalize_target
from vanguard.scanner.base import Finding, ScanReport, Severity, serialize
from vanguard.scanner.templates import (
    describe,
    get_all_templates,
    get_finding_detail,
    get_templates_by_category,
)
from vanguard.utils.scoring import filter_findings, summarize

logger = logging.getLogger(__name__)

scans_bp = Blueprint("scans", __name__)


def run_scan(target: str) -> ScanReport:
    orchestrator = ScanOrchestrator(current_app.config.get("SCAN_CONFIG"))
    return orchestrator.execute(target)


def finding_detail(finding: Finding) -> Dict[str, Any]:
    """A finding merged with its guidance, for display."""
    detail = serialize(describe(finding.code))
    detail["severity"] = finding.severity.value
    return detail


def _severity_filter(raw: Any) -> Optional[Severity]:
    value = str(raw or "").strip().lower()
    if not value or value == "all":
        return None
    try:
        return Severity(value)
    except ValueError:
        raise ValueError(f"severity must be one of all, critical, warning, info (got '{raw}')") from None


@scans_bp.post("/scan")
def scan():
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict):
        return jsonify(error="request body must be a JSON object"), 400

    try:
        target = normalize_target(body.get("target"))
        severity = _severity_filter(body.get("severity"))
    except ValueError as e:
        return jsonify(error=str(e)), 400

    try:
        report = run_scan(target)
    except Exception as e:
        logger.exception(f"Scan failed for {target}")
        return jsonify(status="failed", target=target, error=str(e)), 500

    summary = summarize(report)
    findings: List[Dict[str, Any]] = [
        finding_detail(f) for f in filter_findings(report.all_findings(), severity)
    ]

    return jsonify(
        status="completed",
        target=report.target,
        summary=serialize(summary),
        findings=findings,
        report=serialize(report),
    ), 200


@scans_bp.get("/findings")
def list_findings():
    category = (request.args.get("category") or "").strip().lower()
    templates = get_templates_by_category(category) if category else get_all_templates().values()
    return jsonify(findings=[serialize(t) for t in templates]), 200


@scans_bp.get("/findings/<code>")
def get_finding(code: str):
    template = get_finding_detail(code.upper())
    if template is None:
        return jsonify(error="Not found", message=f"Unknown finding code '{code}'"), 404
    return jsonify(serialize(template)), 200

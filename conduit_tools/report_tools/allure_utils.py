"""
================================================================================
Allure Report Utilities
================================================================================

Attachment helpers used by the API client, the browser session and the pytest
hooks, plus post-run processing of allure-results into an HTML report.

Features:
- Redaction of credentials in headers and JSON bodies
- Request/response and cURL attachments
- Screenshot attachments
- Result summary and HTML generation (allure-commandline)

================================================================================
"""

import json
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import allure
from loguru import logger


REDACTED = "***REDACTED***"

SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "set-cookie", "x-api-key"})

SENSITIVE_FIELDS = frozenset({"password", "token", "access_token", "refresh_token", "jwt"})


# ================================================================================
# Redaction
# ================================================================================

def redact_headers(headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Return a copy of headers with credential values masked."""
    if not headers:
        return {}
    return {
        k: REDACTED if k.lower() in SENSITIVE_HEADERS else v
        for k, v in headers.items()
    }


def redact_body(body: Any) -> Any:
    """Recursively mask password and token fields in a JSON-like body."""
    if isinstance(body, Mapping):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_FIELDS and v is not None else redact_body(v)
            for k, v in body.items()
        }
    if isinstance(body, list):
        return [redact_body(item) for item in body]
    return body


def build_curl(
    method: str,
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[Any] = None,
) -> str:
    """Build a reproducible, redacted cURL command."""
    parts = [f"curl -X {method.upper()}"]
    for key, value in redact_headers(headers).items():
        parts.append(f"-H {shlex.quote(f'{key}: {value}')}")
    if body is not None:
        payload = redact_body(body)
        body_str = json.dumps(payload) if isinstance(payload, (dict, list)) else str(payload)
        parts.append(f"-d {shlex.quote(body_str)}")
    parts.append(shlex.quote(url))
    return " \\\n  ".join(parts)


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data"):
    """Attach JSON data to the Allure report."""
    allure.attach(
        json.dumps(data, indent=2, default=str, ensure_ascii=False),
        name=name,
        attachment_type=allure.attachment_type.JSON,
    )


def attach_text(text: str, name: str = "Text"):
    allure.attach(text, name=name, attachment_type=allure.attachment_type.TEXT)


def attach_png(data: bytes, name: str = "Screenshot"):
    allure.attach(data, name=name, attachment_type=allure.attachment_type.PNG)


def attach_curl_command(
    method: str,
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[Any] = None,
):
    """Attach a cURL command that reproduces the request."""
    attach_text(build_curl(method, url, headers, body), name="cURL Command")


def attach_api_exchange(
    method: str,
    url: str,
    request_headers: Optional[Mapping[str, str]],
    request_body: Optional[Any],
    status_code: Optional[int],
    response_body: Any,
    elapsed_ms: Optional[float] = None,
):
    """
    Attach one HTTP request/response pair, redacted.

    Args:
        method: HTTP method
        url: Full request URL
        request_headers: Headers as sent
        request_body: JSON body as sent
        status_code: Response status, or None if the transport failed
        response_body: Parsed JSON or raw text
        elapsed_ms: Round trip in milliseconds
    """
    attach_json(redact_headers(request_headers), name="Request Headers")
    if request_body is not None:
        attach_json(redact_body(request_body), name="Request Body")
    attach_curl_command(method, url, request_headers, request_body)

    if status_code is None:
        return
    summary = f"{status_code}"
    if elapsed_ms is not None:
        summary += f" ({elapsed_ms:.0f}ms)"
    attach_text(summary, name="Response Status")
    if isinstance(response_body, (dict, list)):
        attach_json(redact_body(response_body), name="Response Body")
    elif response_body:
        attach_text(str(response_body), name="Response Body")


# ================================================================================
# Report Processing
# ================================================================================

@dataclass
class TestResultSummary:
    """Summary of allure-results for one run."""
    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    broken: int = 0
    skipped: int = 0
    unknown: int = 0
    duration_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def pass_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "broken": self.broken,
            "skipped": self.skipped,
            "unknown": self.unknown,
            "pass_rate": f"{self.pass_rate:.2f}%",
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }


class AllureReportProcessor:
    """
    Summarizes allure-results and renders the HTML report.

    Report history is carried between runs so trend graphs survive `--clean`.
    """

    def __init__(self, results_dir: Path, report_dir: Optional[Path] = None):
        self.results_dir = Path(results_dir)
        self.report_dir = Path(report_dir or self.results_dir.parent / "allure-report")

    def parse_results(self) -> List[Dict[str, Any]]:
        results = []
        for result_file in self.results_dir.glob("*-result.json"):
            try:
                with open(result_file, encoding="utf-8") as f:
                    results.append(json.load(f))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to parse {result_file}: {e}")
        return results

    def generate_summary(self) -> TestResultSummary:
        summary = TestResultSummary()
        for result in self.parse_results():
            summary.total += 1
            status = result.get("status", "unknown")
            if status in ("passed", "failed", "broken", "skipped"):
                setattr(summary, status, getattr(summary, status) + 1)
            else:
                summary.unknown += 1
            summary.duration_ms += result.get("stop", 0) - result.get("start", 0)
        return summary

    def copy_history(self):
        history_source = self.report_dir / "history"
        history_dest = self.results_dir / "history"
        if history_source.exists():
            if history_dest.exists():
                shutil.rmtree(history_dest)
            shutil.copytree(history_source, history_dest)
            logger.info("Copied history from previous report")

    def generate_report(self) -> bool:
        """
        Generate the Allure HTML report.

        Returns:
            True if the allure CLI succeeded
        """
        self.copy_history()
        cmd = ["allure", "generate", str(self.results_dir), "-o", str(self.report_dir), "--clean"]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            logger.error("Allure command not found. Install allure-commandline.")
            return False

        if result.returncode != 0:
            logger.error(f"Report generation failed: {result.stderr}")
            return False
        logger.info(f"Report generated at {self.report_dir}")
        return True

    def log_summary(self):
        summary = self.generate_summary()
        logger.info(
            f"Allure summary: {summary.total} total, {summary.passed} passed, "
            f"{summary.failed} failed, {summary.broken} broken, {summary.skipped} skipped "
            f"({summary.pass_rate:.2f}% pass, {summary.duration_ms / 1000:.2f}s)"
        )


def generate_allure_report(
    results_dir: str,
    output_dir: Optional[str] = None,
    open_report: bool = False,
) -> bool:
    """Generate the HTML report and optionally open it."""
    processor = AllureReportProcessor(Path(results_dir), Path(output_dir) if output_dir else None)
    success = processor.generate_report()
    if success:
        processor.log_summary()
        if open_report:
            subprocess.run(["allure", "open", str(processor.report_dir)])
    return success

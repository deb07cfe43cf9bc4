"""
================================================================================
Root Pytest Configuration
================================================================================

Project-wide pytest wiring:
    - Markers
    - Configuration resolution (a ConfigError aborts the run)
    - Loguru initialization
    - Per-test TestLifecycle records aggregated into a RunReport
    - PreconditionNotMet raised by a test is reported as a skip
    - Phase reports stored on the item (rep_setup / rep_call / rep_teardown)
      for fixtures that capture failure artifacts

================================================================================
"""

import os

import pytest
from loguru import logger

from conduit_tools.common.environment_config import Credentials, EnvironmentConfig
from conduit_tools.common.exceptions import ConfigError, PreconditionNotMet
from conduit_tools.common.logging_setup import init_logger
from conduit_tools.report_tools.test_lifecycle import (
    RunReport,
    TestLifecycle,
    TestStatus,
    describe_error,
)


RUN_REPORT_KEY = pytest.StashKey[RunReport]()
ENV_CONFIG_KEY = pytest.StashKey[EnvironmentConfig]()

MARKERS = (
    ("P0", "Critical priority tests - must pass for deployment"),
    ("P1", "High priority tests - important functionality"),
    ("P2", "Medium priority tests - edge cases and minor features"),
    ("P3", "Low priority tests - extensive validation"),
    ("smoke", "Quick verification tests"),
    ("regression", "Full regression test suite"),
    ("e2e", "End-to-end tests simulating user flows"),
    ("api", "REST API tests (need a running backend)"),
    ("ui", "Browser tests (need a running frontend and a browser)"),
    ("unit", "Harness unit tests (no application needed)"),
    ("auth", "Authentication and session handling"),
    ("security", "Authorization, XSS and information-leak checks"),
    ("articles", "Article CRUD and timestamps"),
    ("comments", "Comments and comment reactions"),
    ("profiles", "Profiles and follow"),
    ("favorites", "Favoriting articles"),
)


def pytest_configure(config):
    for name, description in MARKERS:
        config.addinivalue_line("markers", f"{name}: {description}")

    try:
        env_config = EnvironmentConfig.instance()
    except ConfigError as e:
        pytest.exit(f"Configuration error: {e}", returncode=4)

    init_logger(env_config)
    config.stash[ENV_CONFIG_KEY] = env_config
    config.stash[RUN_REPORT_KEY] = RunReport(
        name=env_config.get("report.name", "run-report"),
        worker_id=os.environ.get("PYTEST_XDIST_WORKER"),
    )


def pytest_collection_modifyitems(config, items):
    """Add the suite marker implied by each test's location."""
    for item in items:
        path = str(item.fspath)
        if "api_testing" in path:
            item.add_marker(pytest.mark.api)
        elif "ui_testing" in path:
            item.add_marker(pytest.mark.ui)
        elif f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    env_config = config.stash.get(ENV_CONFIG_KEY, None)
    if env_config is None:
        return None
    return [
        f"conduit ui: {env_config.ui_base_url}",
        f"conduit api: {env_config.api_base_url}",
        f"config sources: {', '.join(env_config.sources)}",
    ]


# ================================================================================
# Lifecycle recording
# ================================================================================

def _lifecycle_for(item) -> TestLifecycle:
    report = item.config.stash[RUN_REPORT_KEY]
    lifecycle = report.get(item.nodeid)
    if lifecycle is None:
        lifecycle = report.create_test(item.name, item.nodeid)
    return lifecycle


def _skip_reason(report) -> str:
    if isinstance(report.longrepr, tuple) and len(report.longrepr) == 3:
        return str(report.longrepr[2]).replace("Skipped: ", "", 1)
    return getattr(report, "wasxfail", "") or "skipped"


def pytest_runtest_setup(item):
    lifecycle = _lifecycle_for(item)
    if lifecycle.status is TestStatus.CREATED:
        lifecycle.start()


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()

    if call.excinfo is not None and call.excinfo.errisinstance(PreconditionNotMet):
        lineno = item.location[1] or 0
        report.outcome = "skipped"
        report.longrepr = (str(item.fspath), lineno, f"Skipped: {call.excinfo.value}")

    setattr(item, f"rep_{report.when}", report)

    lifecycle = _lifecycle_for(item)
    if lifecycle.is_finished:
        if report.failed:
            lifecycle.warning(f"{report.when} failed after the test was recorded as {lifecycle.status.value}")
        return
    if lifecycle.status is TestStatus.CREATED:
        lifecycle.start()

    if report.skipped:
        lifecycle.skipped(_skip_reason(report))
    elif report.failed:
        message = describe_error(call.excinfo.value) if call.excinfo else report.longreprtext.splitlines()[0]
        if report.when != "call":
            message = f"{report.when}: {message}"
        lifecycle.failed(message)
    elif report.when == "call":
        lifecycle.passed()


def pytest_sessionfinish(session, exitstatus):
    report = session.config.stash.get(RUN_REPORT_KEY, None)
    env_config = session.config.stash.get(ENV_CONFIG_KEY, None)
    if report is None or env_config is None or not report.tests:
        return
    report.write(env_config.report_dir)
    summary = report.summary()
    logger.info(
        f"Run summary: {summary['total']} tests, {summary['passed']} passed, "
        f"{summary['failed']} failed, {summary['skipped']} skipped ({summary['pass_rate']}% pass)"
    )


# ================================================================================
# Shared fixtures
# ================================================================================

@pytest.fixture(scope="session")
def env_config(pytestconfig) -> EnvironmentConfig:
    """The resolved, immutable configuration for this run."""
    return pytestconfig.stash[ENV_CONFIG_KEY]


@pytest.fixture
def lifecycle(request) -> TestLifecycle:
    """This test's TestLifecycle record, for info/warning annotations."""
    return _lifecycle_for(request.node)


@pytest.fixture(scope="session")
def primary_user(env_config: EnvironmentConfig) -> Credentials:
    """Seeded primary user; skips when not configured."""
    return env_config.user("primary")

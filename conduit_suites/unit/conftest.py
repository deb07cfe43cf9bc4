"""Fixtures for harness unit tests; the fakes live in fakes.py."""

import pytest

from conduit_tools.common.environment_config import EnvironmentConfig
from conduit_suites.ui_testing.framework.browser_session import BrowserSession

from .fakes import APP_URL, FakeClock, FakePage


@pytest.fixture
def unit_config(tmp_path) -> EnvironmentConfig:
    """Defaults only: no config file, empty environment."""
    return EnvironmentConfig.load(config_path=tmp_path / "absent.yaml", environ={})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage(url=f"{APP_URL}/")


@pytest.fixture
def browser(unit_config: EnvironmentConfig, fake_page: FakePage) -> BrowserSession:
    return BrowserSession(unit_config, page=fake_page)

"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Fixtures for browser tests. Each test gets its own BrowserSession (its own
Playwright browser, context and page) plus an ApiClient for fast setup.

Key Features:
- Suite skips when the frontend is down or no browser can be launched
- Screenshot attached to Allure when the test body fails
- Session fixture ties the API and browser tokens together and drops them
  at teardown
- Seeded data created over the API and deleted afterwards

================================================================================
"""

from typing import Any, Dict, Generator

import allure
import httpx
import pytest
from loguru import logger

from conduit_tools.common.environment_config import Credentials, EnvironmentConfig
from conduit_tools.common.exceptions import PreconditionNotMet, UiInteractionError

from conduit_suites.api_testing.framework.api_client import ApiClient
from conduit_suites.api_testing.framework.data_factory import ArticleFactory, UserFactory
from conduit_suites.api_testing.framework.responses import extract_slug
from conduit_suites.session import Session
from conduit_suites.ui_testing.framework.browser_session import BrowserSession
from conduit_suites.ui_testing.pages import HomePage, LoginPage, NavBar


# ================================================================================
# Availability
# ================================================================================

@pytest.fixture(scope="session")
def ui_available(env_config: EnvironmentConfig) -> bool:
    try:
        httpx.get(env_config.ui_base_url, timeout=5.0, follow_redirects=True)
    except httpx.HTTPError as e:
        pytest.skip(f"Conduit UI not reachable at {env_config.ui_base_url}: {e}")
    return True


# ================================================================================
# Browser and Session Fixtures
# ================================================================================

@pytest.fixture
def browser_session(ui_available: bool, env_config: EnvironmentConfig, request) -> Generator[BrowserSession, None, None]:
    """
    Function-scoped browser.

    A fresh browser, context and page per test; nothing is shared.
    """
    browser = BrowserSession(env_config)
    try:
        browser.start()
    except UiInteractionError as e:
        pytest.skip(f"No browser available: {e}")

    yield browser

    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed:
        with allure.step("Capture failure screenshot"):
            try:
                browser.screenshot(f"failure_{request.node.name}")
            except UiInteractionError as e:
                logger.warning(f"Failure screenshot not captured: {e}")
    browser.close()


@pytest.fixture
def setup_api(env_config: EnvironmentConfig) -> Generator[ApiClient, None, None]:
    """API client for arranging state; skips the test if the API is down."""
    with ApiClient(env_config) as client:
        if not client.is_reachable():
            pytest.skip(f"Conduit API not reachable at {env_config.api_base_url}")
        yield client


@pytest.fixture
def session(env_config: EnvironmentConfig, browser_session: BrowserSession, setup_api: ApiClient) -> Generator[Session, None, None]:
    ui_session = Session.from_config(env_config, browser=browser_session, api=setup_api)
    yield ui_session
    ui_session.drop_tokens()


@pytest.fixture
def logged_in_session(session: Session, primary_user: Credentials) -> Session:
    """Primary user logged in over the API with the token mirrored into the browser."""
    session.login_via_api(primary_user)
    session.mirror_to_browser()
    session.browser.reload()
    NavBar(session.browser).wait_until_logged_in()
    return session


# ================================================================================
# Seeded Data
# ================================================================================

@pytest.fixture
def other_author(setup_api: ApiClient, env_config: EnvironmentConfig) -> Generator[Dict[str, Any], None, None]:
    """
    A freshly registered user who has published one article.

    Returns:
        {"username", "email", "password", "title", "slug"}
    """
    user = UserFactory().create_valid()
    articles = ArticleFactory()
    with ApiClient(env_config) as author_api:
        if not author_api.register(user["username"], user["email"], user["password"]).ok:
            raise PreconditionNotMet("Could not register the article author")
        author_api.login(user["email"], user["password"])

        data = articles.create_valid()
        slug = extract_slug(author_api.create_article(data["title"], data["description"], data["body"], data["tags"]))
        if not slug:
            raise PreconditionNotMet("Could not create the author's article")
        articles.track({"slug": slug}, "article", lambda d: author_api.delete_article(d["slug"]))

        yield {**user, "title": data["title"], "slug": slug}
        articles.cleanup_all()


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
def login_page(browser_session: BrowserSession) -> LoginPage:
    return LoginPage(browser_session)


@pytest.fixture
def home_page(browser_session: BrowserSession) -> HomePage:
    return HomePage(browser_session)


@pytest.fixture
def navbar(browser_session: BrowserSession) -> NavBar:
    return NavBar(browser_session)

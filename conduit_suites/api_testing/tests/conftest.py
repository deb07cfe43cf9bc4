"""
================================================================================
API Testing Pytest Configuration
================================================================================

Fixtures:
    - api_available: Skips the suite when the API does not answer
    - api_client: Unauthenticated client, fresh per test
    - primary_api: Client logged in as the seeded primary user
    - other_user: A freshly registered user with its own logged-in client
    - article_factory / comment_factory: Generated data
    - created_article: An article owned by the primary user, deleted afterwards

================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, Generator

import pytest
from loguru import logger

from conduit_tools.common.environment_config import Credentials, EnvironmentConfig
from conduit_tools.common.exceptions import PreconditionNotMet

from conduit_suites.api_testing.framework.api_client import ApiClient
from conduit_suites.api_testing.framework.data_factory import ArticleFactory, CommentFactory, UserFactory
from conduit_suites.api_testing.framework.responses import extract_slug


# =============================================================================
# Session-Scoped Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def api_available(env_config: EnvironmentConfig) -> bool:
    with ApiClient(env_config) as probe:
        reachable = probe.is_reachable()
    if not reachable:
        pytest.skip(f"Conduit API not reachable at {env_config.api_base_url}")
    return True


# =============================================================================
# Function-Scoped Fixtures
# =============================================================================

@pytest.fixture
def api_client(api_available: bool, env_config: EnvironmentConfig) -> Generator[ApiClient, None, None]:
    """
    Unauthenticated client for this test.

    Usage:
        def test_example(api_client):
            resp = api_client.get_tags()
            assert resp.status_code == 200
    """
    with ApiClient(env_config) as client:
        yield client


@pytest.fixture
def primary_api(api_available: bool, env_config: EnvironmentConfig, primary_user: Credentials) -> Generator[ApiClient, None, None]:
    """Client holding the primary user's token."""
    with ApiClient(env_config) as client:
        client.login(primary_user.email, primary_user.password)
        yield client


@pytest.fixture
def other_user(api_available: bool, env_config: EnvironmentConfig) -> Generator[Dict[str, Any], None, None]:
    """
    A second, freshly registered user.

    Returns:
        {"username", "email", "password", "api": ApiClient logged in as the user}
    """
    data = UserFactory().create_valid()
    with ApiClient(env_config) as client:
        response = client.register(data["username"], data["email"], data["password"])
        if not response.ok:
            raise PreconditionNotMet(f"Could not register a second user: HTTP {response.status_code}")
        client.login(data["email"], data["password"])
        yield {**data, "api": client}


@pytest.fixture
def article_factory() -> ArticleFactory:
    return ArticleFactory()


@pytest.fixture
def comment_factory() -> CommentFactory:
    return CommentFactory()


@pytest.fixture
def created_article(
    primary_api: ApiClient, article_factory: ArticleFactory
) -> Generator[Dict[str, Any], None, None]:
    """
    An article owned by the primary user.

    Yields the generated fields plus "slug" and the creation "response".
    Deleted at teardown unless the test already removed it.
    """
    data = article_factory.create_valid()
    response = primary_api.create_article(data["title"], data["description"], data["body"], data["tags"])
    slug = extract_slug(response)
    if not response.ok or not slug:
        raise PreconditionNotMet(f"Could not create an article: HTTP {response.status_code}")

    article_factory.track({"slug": slug}, "article", lambda d: primary_api.delete_article(d["slug"]))
    logger.info(f"Created article {slug}")
    yield {**data, "slug": slug, "response": response}
    article_factory.cleanup_all()

"""
================================================================================
Token Authentication UI Tests
================================================================================

The browser's stored token and the API token for the same test:
- an API token mirrored into localStorage authenticates the UI
- a malformed stored token leaves the UI signed out
- tokens of two different users are detected and must be reconciled

================================================================================
"""

from typing import Any, Dict

import allure
import pytest

from conduit_tools.common.environment_config import Credentials
from conduit_tools.common.exceptions import TokenMismatchError

from conduit_suites.api_testing.framework.api_client import ApiClient
from conduit_suites.session import API, BROWSER, Session, token_subject
from conduit_suites.ui_testing.pages import LoginPage, NavBar, SettingsPage


@allure.feature("Authentication")
@allure.story("Token Handling")
@pytest.mark.auth
class TestTokenAuth:

    @pytest.mark.P0
    @allure.title("API token mirrored into the browser authenticates the UI")
    def test_mirrored_token_authenticates(self, session: Session, primary_user: Credentials):
        session.login_via_api(primary_user)
        session.mirror_to_browser()
        session.browser.reload()

        NavBar(session.browser).wait_until_logged_in()
        assert session.sync_from_browser() == session.auth_token
        assert session.is_consistent()

    @pytest.mark.P1
    @allure.title("Settings page is reachable with a mirrored token")
    def test_mirrored_token_opens_settings(self, logged_in_session: Session, primary_user: Credentials):
        values = SettingsPage(logged_in_session.browser).open().current_values()
        assert values["email"] == primary_user.email

    @pytest.mark.P1
    @pytest.mark.security
    @allure.title("Malformed stored token leaves the UI signed out")
    def test_malformed_token(self, session: Session):
        session.browser.set_local_storage_raw(session.browser.storage_key, "{not json")
        session.browser.reload()

        NavBar(session.browser).wait_until_logged_out()
        assert session.browser.get_local_storage_token() is None

    @pytest.mark.P1
    @allure.title("UI login is adopted by a session without a token")
    def test_sync_adopts_browser_token(self, session: Session, primary_user: Credentials):
        LoginPage(session.browser).open().login(primary_user.email, primary_user.password)

        token = session.sync_from_browser()
        assert token
        assert session.token_source == BROWSER
        assert session.api.get_current_user().status_code == 200

    @pytest.mark.P0
    @pytest.mark.security
    @allure.title("Tokens for two different users are a mismatch until reconciled")
    def test_token_mismatch_detected(self, logged_in_session: Session, other_author: Dict[str, Any], env_config):
        with ApiClient(env_config) as other_api:
            other_token = other_api.login(other_author["email"], other_author["password"])
        if token_subject(other_token) is None:
            pytest.skip("Tokens carry no subject claim")

        logged_in_session.browser.set_local_storage_token(other_token, other_author["username"])
        assert not logged_in_session.is_consistent()
        with pytest.raises(TokenMismatchError):
            logged_in_session.sync_from_browser()

        with allure.step("Reconcile in favor of the API token"):
            logged_in_session.reconcile(prefer=API)
        assert logged_in_session.is_consistent()
        assert logged_in_session.browser_token() == logged_in_session.auth_token

"""
================================================================================
Dual-Channel Session
================================================================================

A test's view of one logical user across both authentication channels:

    API channel      token issued by POST /users/login, held by ApiClient
    Browser channel  token in localStorage["user"], written by the frontend

At most one token is authoritative per test. If both channels hold a token
they must belong to the same subject (JWT `sub`, or the raw token when it has
no decodable subject). A mismatch is never resolved silently:
`sync_from_browser()` raises TokenMismatchError until the test calls
`reconcile(prefer=...)`.

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import allure
import jwt
from loguru import logger

from conduit_tools.common.environment_config import Credentials, EnvironmentConfig
from conduit_tools.common.exceptions import PreconditionNotMet, TokenMismatchError, UiInteractionError

from conduit_suites.api_testing.framework.api_client import ApiClient
from conduit_suites.ui_testing.framework.browser_session import BrowserSession


API = "api"
BROWSER = "browser"


def token_subject(token: Optional[str]) -> Optional[str]:
    """The JWT `sub` claim, read without verifying the signature; None if undecodable."""
    if not token:
        return None
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    subject = claims.get("sub") if isinstance(claims, dict) else None
    return str(subject) if subject else None


def same_subject(left: Optional[str], right: Optional[str]) -> bool:
    if not left or not right:
        return False
    if left == right:
        return True
    left_sub, right_sub = token_subject(left), token_subject(right)
    return left_sub is not None and left_sub == right_sub


@dataclass
class Session:
    """
    Auth state for one logical user within one test.

    Attributes:
        base_url: UI base URL
        api_url: API base URL
        auth_token: The authoritative token, if any
        subject: `sub` claim of auth_token (None for opaque tokens)
        token_source: "api" or "browser"
        browser: The test's BrowserSession, if the test drives the UI
        api: The test's ApiClient, if the test calls the API
        username: Username stored alongside the token in the browser
    """

    base_url: str
    api_url: str
    auth_token: Optional[str] = None
    subject: Optional[str] = None
    token_source: Optional[str] = None
    browser: Optional[BrowserSession] = None
    api: Optional[ApiClient] = None
    username: Optional[str] = None

    @classmethod
    def from_config(
        cls,
        config: EnvironmentConfig,
        browser: Optional[BrowserSession] = None,
        api: Optional[ApiClient] = None,
    ) -> "Session":
        return cls(base_url=config.ui_base_url, api_url=config.api_base_url, browser=browser, api=api)

    def _require_browser(self) -> BrowserSession:
        if self.browser is None:
            raise PreconditionNotMet("Session has no browser channel")
        return self.browser

    def _require_api(self) -> ApiClient:
        if self.api is None:
            raise PreconditionNotMet("Session has no API channel")
        return self.api

    # =========================================================================
    # Acquiring tokens
    # =========================================================================

    def adopt_token(self, token: str, source: str, username: Optional[str] = None) -> None:
        """Make `token` authoritative and hand it to the API client."""
        self.auth_token = token
        self.subject = token_subject(token)
        self.token_source = source
        if username:
            self.username = username
        if self.api is not None:
            self.api.token = token
        logger.debug(f"Session token adopted from {source} (subject={self.subject})")

    @allure.step("Login via API")
    def login_via_api(self, credentials: Credentials) -> str:
        token = self._require_api().login(credentials.email, credentials.password)
        self.adopt_token(token, API, credentials.username)
        return token

    @allure.step("Mirror API token into the browser")
    def mirror_to_browser(self) -> None:
        """Write the authoritative token into localStorage so the UI starts authenticated."""
        if not self.auth_token:
            raise PreconditionNotMet("No session token to mirror into the browser")
        self._require_browser().set_local_storage_token(self.auth_token, self.username)

    def sync_from_browser(self) -> Optional[str]:
        """
        Pull the browser's token into the session.

        Returns:
            The authoritative token after syncing, or None if neither channel has one

        Raises:
            TokenMismatchError: If the browser holds another subject's token
        """
        browser_token = self._require_browser().get_local_storage_token()
        if browser_token is None:
            return self.auth_token
        if self.auth_token is None:
            record = self._require_browser().get_local_storage_user() or {}
            self.adopt_token(browser_token, BROWSER, record.get("username"))
            return browser_token
        if not same_subject(self.auth_token, browser_token):
            raise TokenMismatchError(
                f"Browser token subject {token_subject(browser_token)!r} differs from "
                f"session subject {self.subject!r} (source: {self.token_source}); call reconcile()"
            )
        return self.auth_token

    # =========================================================================
    # Consistency
    # =========================================================================

    def browser_token(self) -> Optional[str]:
        return self.browser.get_local_storage_token() if self.browser is not None else None

    def api_token(self) -> Optional[str]:
        return self.api.token if self.api is not None else None

    def is_consistent(self) -> bool:
        """True unless both channels hold tokens for different subjects."""
        browser_token, api_token = self.browser_token(), self.api_token()
        if not browser_token or not api_token:
            return True
        return same_subject(browser_token, api_token)

    @allure.step("Reconcile session tokens (prefer {prefer})")
    def reconcile(self, prefer: str = API) -> Optional[str]:
        """
        Resolve a channel disagreement explicitly.

        Args:
            prefer: "api" overwrites the browser's token with the API token;
                    "browser" adopts the browser's token for API calls
        """
        if prefer == API:
            token = self.api_token() or self.auth_token
            if not token:
                raise PreconditionNotMet("No API token to reconcile with")
            self.adopt_token(token, API)
            self.mirror_to_browser()
        elif prefer == BROWSER:
            token = self.browser_token()
            if not token:
                raise PreconditionNotMet("No browser token to reconcile with")
            record = self._require_browser().get_local_storage_user() or {}
            self.adopt_token(token, BROWSER, record.get("username"))
        else:
            raise ValueError(f"prefer must be '{API}' or '{BROWSER}', got {prefer!r}")
        logger.info(f"Session reconciled in favor of {prefer} (subject={self.subject})")
        return self.auth_token

    def drop_tokens(self) -> None:
        """Forget all tokens on both channels. Used at teardown."""
        self.auth_token = None
        self.subject = None
        self.token_source = None
        if self.api is not None:
            self.api.token = None
        if self.browser is not None:
            try:
                self.browser.clear_session()
            except (UiInteractionError, RuntimeError) as e:
                logger.warning(f"Could not clear browser session: {e}")


__all__ = [
    "API",
    "BROWSER",
    "Session",
    "same_subject",
    "token_subject",
]

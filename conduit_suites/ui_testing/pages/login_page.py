"""
================================================================================
Login Page Object
================================================================================

Sign-in form at /user/login.

A successful login is complete only when the auth record has been written to
localStorage; `login()` waits for that, so callers can immediately read the
browser token or navigate to authenticated routes.

================================================================================
"""

from __future__ import annotations

from typing import List

import allure
from loguru import logger

from conduit_suites.ui_testing.framework.page_base import BasePage


class LoginPage(BasePage):
    URL_PATH = "/user/login"
    READY_SELECTOR = "h1.text-xs-center"

    LOCATORS = {
        "heading": "h1.text-xs-center",
        "email_input": "input[placeholder='Email']",
        "password_input": "input[placeholder='Password']",
        "submit_button": "button[type='submit']",
        "register_link": "a[href='/user/register']",
    }

    def heading(self) -> str:
        return self.text("heading")

    def is_form_displayed(self) -> bool:
        return all(self.is_visible(name) for name in ("email_input", "password_input", "submit_button"))

    def submit(self, email: str, password: str) -> None:
        self.fill("email_input", email)
        self.fill("password_input", password)
        self.click("submit_button")

    @allure.step("Login via UI as {email}")
    def login(self, email: str, password: str) -> str:
        """
        Log in and wait until the browser holds a token.

        Returns:
            The token written to localStorage

        Raises:
            WaitTimeoutError: If no token appears (wrong credentials included)
        """
        self.submit(email, password)
        token = self.wait(self.browser.get_local_storage_token, "auth token stored in browser", scenario="navigation")
        logger.info(f"Logged in via UI as {email}")
        return token

    @allure.step("Attempt login expecting failure ({email})")
    def login_expecting_errors(self, email: str, password: str) -> List[str]:
        """Submit credentials that should be rejected and return the rendered errors."""
        self.submit(email, password)
        return self.wait_for_errors()

    def go_to_register(self) -> None:
        self.click("register_link")
        self.wait(lambda: self.browser.current_path == "/user/register", "register route", scenario="navigation")

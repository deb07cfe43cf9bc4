"""Sign-up form at /user/register."""

from __future__ import annotations

from typing import List

import allure

from conduit_suites.ui_testing.framework.page_base import BasePage


class RegisterPage(BasePage):
    URL_PATH = "/user/register"
    READY_SELECTOR = "h1.text-xs-center"

    LOCATORS = {
        "heading": "h1.text-xs-center",
        "username_input": "input[placeholder='Username']",
        "email_input": "input[placeholder='Email']",
        "password_input": "input[placeholder='Password']",
        "submit_button": "button[type='submit']",
        "login_link": "a[href='/user/login']",
    }

    def submit(self, username: str, email: str, password: str) -> None:
        self.fill("username_input", username)
        self.fill("email_input", email)
        self.fill("password_input", password)
        self.click("submit_button")

    @allure.step("Register via UI as {username}")
    def register(self, username: str, email: str, password: str) -> str:
        """Register and wait for the new user's token to be stored."""
        self.submit(username, email, password)
        return self.wait(self.browser.get_local_storage_token, "auth token stored after sign-up", scenario="navigation")

    def register_expecting_errors(self, username: str, email: str, password: str) -> List[str]:
        self.submit(username, email, password)
        return self.wait_for_errors()

"""Account settings at /user/settings, including logout."""

from __future__ import annotations

from typing import Dict, List, Optional

import allure

from conduit_suites.ui_testing.framework.page_base import BasePage


class SettingsPage(BasePage):
    URL_PATH = "/user/settings"
    READY_SELECTOR = ".settings-page"

    LOCATORS = {
        "image_input": "input[placeholder='URL of profile picture']",
        "username_input": "input[placeholder='Username']",
        "bio_input": "textarea[placeholder='Short bio about you']",
        "email_input": "input[placeholder='Email']",
        "password_input": "input[placeholder='New Password']",
        "update_button": "button.btn-primary",
        "logout_button": "button.btn-outline-danger",
    }

    _FIELDS = {
        "image": "image_input",
        "username": "username_input",
        "bio": "bio_input",
        "email": "email_input",
        "password": "password_input",
    }

    def current_values(self) -> Dict[str, str]:
        # Fields populate from the stored user after the first render
        self.wait(lambda: self.browser.input_value(self.selector("email_input")), "settings form populated")
        return {
            field: self.browser.input_value(self.selector(name))
            for field, name in self._FIELDS.items()
            if field != "password"
        }

    def fill_form(self, **values: Optional[str]) -> None:
        for field, value in values.items():
            if value is None:
                continue
            if field not in self._FIELDS:
                raise ValueError(f"Unknown settings field: {field}")
            self.fill(self._FIELDS[field], value)

    @allure.step("Update settings")
    def update(self, **values: Optional[str]) -> str:
        """
        Submit the given fields and wait to leave the settings route.

        Returns:
            The path navigated to (the user's profile)
        """
        self.fill_form(**values)
        self.click("update_button")
        return self.wait(
            lambda: self.browser.current_path if self.browser.current_path != self.URL_PATH else None,
            "redirect after settings update",
            scenario="navigation",
        )

    def update_expecting_errors(self, **values: Optional[str]) -> List[str]:
        self.fill_form(**values)
        self.click("update_button")
        return self.wait_for_errors()

    @allure.step("Logout")
    def logout(self) -> None:
        """Click logout and wait until the browser token is cleared."""
        self.click("logout_button")
        self.wait(lambda: self.browser.get_local_storage_token() is None, "auth token cleared", scenario="storage")

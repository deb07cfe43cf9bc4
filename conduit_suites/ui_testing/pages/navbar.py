"""Top navigation bar, present on every route."""

from __future__ import annotations

from typing import Optional

from conduit_suites.ui_testing.framework.page_base import BasePage


class NavBar(BasePage):
    LOCATORS = {
        "brand": ".navbar-brand",
        "home_link": ".navbar a.nav-link[href='/']",
        "login_link": ".navbar a[href='/user/login']",
        "register_link": ".navbar a[href='/user/register']",
        "settings_link": ".navbar a[href='/user/settings']",
        "editor_link": ".navbar a[href^='/editor']",
        "profile_link": ".navbar a[href^='/profile/']",
        "active_link": ".navbar .nav-link.active",
    }

    def is_logged_in(self) -> bool:
        return self.count("settings_link") > 0

    def is_logged_out(self) -> bool:
        return self.count("login_link") > 0 and self.count("settings_link") == 0

    def wait_until_logged_in(self) -> None:
        self.wait(self.is_logged_in, "navbar shows authenticated links", scenario="navigation")

    def wait_until_logged_out(self) -> None:
        self.wait(self.is_logged_out, "navbar shows sign-in link", scenario="navigation")

    def username(self) -> Optional[str]:
        return self.text_if_present("profile_link")

    def _go(self, name: str, path_prefix: str) -> None:
        self.click(name)
        self.wait(lambda: self.browser.current_path.startswith(path_prefix), f"route {path_prefix}", scenario="navigation")

    def go_home(self) -> None:
        self._go("brand", "/")

    def go_to_login(self) -> None:
        self._go("login_link", "/user/login")

    def go_to_register(self) -> None:
        self._go("register_link", "/user/register")

    def go_to_settings(self) -> None:
        self._go("settings_link", "/user/settings")

    def go_to_editor(self) -> None:
        self._go("editor_link", "/editor")

    def go_to_profile(self) -> None:
        self._go("profile_link", "/profile/")

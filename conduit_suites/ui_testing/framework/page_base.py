"""
================================================================================
Base Page Object
================================================================================

Foundation class for the Conduit page objects.

Provides:
    - Named element selectors (class-level LOCATORS)
    - Navigation to the page's route and a ready check
    - Waits bound to the page's timeout and poll interval
    - Failure capture (screenshot + URL) for Allure

Every action that triggers an asynchronous UI change waits for that change
before returning; callers never sleep.

================================================================================
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TypeVar

import allure
from loguru import logger

from conduit_tools.common.exceptions import HarnessError
from conduit_tools.report_tools.allure_utils import attach_text

from .browser_session import BrowserSession
from .waits import WaitConfig, get_wait_config, wait_for


T = TypeVar("T")

ERROR_MESSAGES = "ul.error-messages li"


class BasePage:
    """
    Base class for all page objects.

    Usage:
        class LoginPage(BasePage):
            URL_PATH = "/user/login"
            READY_SELECTOR = "h1.text-xs-center"
            LOCATORS = {"email_input": "input[placeholder='Email']"}

            def login(self, email, password):
                self.fill("email_input", email)

    Args:
        browser: The test's BrowserSession
        timeout: Overrides preset wait timeouts (seconds)
        poll_interval: Overrides preset poll intervals (seconds)
    """

    URL_PATH: str = "/"
    READY_SELECTOR: Optional[str] = None
    LOCATORS: Dict[str, str] = {}

    def __init__(
        self,
        browser: BrowserSession,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ):
        self.browser = browser
        self.timeout = timeout
        self.poll_interval = poll_interval

    def selector(self, name: str) -> str:
        """Resolve an element name; unknown names are used as raw selectors."""
        return self.LOCATORS.get(name, name)

    # =========================================================================
    # Navigation
    # =========================================================================

    @property
    def path(self) -> str:
        return self.URL_PATH

    def open(self):
        with allure.step(f"Open {type(self).__name__} at {self.path}"):
            self.browser.navigate(self.path)
            self.wait_until_loaded()
        return self

    def wait_until_loaded(self) -> None:
        if self.READY_SELECTOR:
            self.wait(
                lambda: self.browser.is_visible(self.READY_SELECTOR),
                f"{type(self).__name__} rendered ({self.READY_SELECTOR})",
                scenario="navigation",
            )

    def is_current(self) -> bool:
        return self.browser.current_path.rstrip("/") == self.path.rstrip("/")

    # =========================================================================
    # Element helpers
    # =========================================================================

    def click(self, name: str, **scope: Any) -> None:
        self.browser.click(self.selector(name), **scope)

    def fill(self, name: str, value: str) -> None:
        self.browser.fill(self.selector(name), value)

    def text(self, name: str, **scope: Any) -> str:
        return self.browser.text_of(self.selector(name), **scope)

    def texts(self, name: str, **scope: Any) -> List[str]:
        return self.browser.texts_of(self.selector(name), **scope)

    def count(self, name: str, **scope: Any) -> int:
        return self.browser.count(self.selector(name), **scope)

    def is_visible(self, name: str, **scope: Any) -> bool:
        return self.browser.is_visible(self.selector(name), **scope)

    def text_if_present(self, name: str, **scope: Any) -> Optional[str]:
        """Text of the element, or None if it is not rendered (never auto-waits)."""
        if self.count(name, **scope) == 0:
            return None
        return self.text(name, **scope)

    def error_messages(self) -> List[str]:
        return self.browser.texts_of(ERROR_MESSAGES)

    # =========================================================================
    # Waits
    # =========================================================================

    def _preset(self, scenario: str) -> WaitConfig:
        # The default preset follows wait.timeout / wait.poll_interval from config
        if scenario == "default":
            return WaitConfig(self.browser.config.wait_timeout, self.browser.config.poll_interval)
        return get_wait_config(scenario)

    def wait(self, predicate: Callable[[], T], description: str, scenario: str = "default") -> T:
        """Poll `predicate` with this page's timing; raises WaitTimeoutError."""
        preset = self._preset(scenario)
        return wait_for(
            predicate,
            timeout=self.timeout if self.timeout is not None else preset.timeout,
            poll_interval=self.poll_interval if self.poll_interval is not None else preset.poll_interval,
            description=description,
        )

    def wait_for_errors(self) -> List[str]:
        return self.wait(self.error_messages, "error messages shown")

    # =========================================================================
    # Debug
    # =========================================================================

    def capture_failure(self, name: str) -> None:
        """Attach a screenshot and the current URL. Never raises."""
        with allure.step("Capture failure details"):
            try:
                attach_text(self.browser.current_url, name="Current URL")
                self.browser.screenshot(f"failure_{name}")
            except (HarnessError, RuntimeError) as e:
                logger.warning(f"Could not capture failure details: {e}")


__all__ = [
    "BasePage",
    "ERROR_MESSAGES",
]

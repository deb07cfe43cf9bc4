"""
================================================================================
Browser Session
================================================================================

One Playwright browser, context and page per test (sync API).

Features:
    - Navigation relative to ui.base_url
    - Element primitives with one transparent retry on stale-element and
      navigation races; any other driver failure is a UiInteractionError
    - localStorage helpers for the Conduit `user` auth record
    - JS dialog capture (auto-dismissed, messages kept for XSS checks)
    - Screenshots attached to Allure

Usage:
    with BrowserSession(config) as browser:
        browser.navigate("/user/login")
        browser.fill("input[placeholder='Email']", "john@example.com")

================================================================================
"""

from __future__ import annotations

import json
from functools import wraps
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

import allure
from loguru import logger
from playwright.sync_api import Browser, BrowserContext, Locator, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from conduit_tools.common.environment_config import EnvironmentConfig
from conduit_tools.common.exceptions import UiInteractionError
from conduit_tools.report_tools.allure_utils import attach_png


# Driver messages for races that a single retry resolves
TRANSIENT_ERROR_MARKERS = (
    "element is not attached",
    "element is detached",
    "not attached to the dom",
    "execution context was destroyed",
    "navigation interrupted",
    "interrupted by another navigation",
    "frame was detached",
)

LAUNCH_ARGS = ["--ignore-certificate-errors"]


def is_transient(error: BaseException) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_ERROR_MARKERS)


def _first_line(error: BaseException) -> str:
    text = str(error).strip()
    return text.splitlines()[0] if text else type(error).__name__


def _target(args: tuple, kwargs: dict) -> str:
    # Only the selector or path; other args may hold passwords
    if args:
        return repr(args[0])
    target = kwargs.get("selector", kwargs.get("path"))
    return repr(target) if target is not None else ""


def retry_once(func: Callable) -> Callable:
    """
    Retry a browser primitive once on a transient driver error.

    Non-transient errors and a second failure are raised as UiInteractionError.
    """
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except PlaywrightError as e:
            if not is_transient(e):
                raise UiInteractionError(f"{func.__name__}({_target(args, kwargs)}) failed: {_first_line(e)}") from e
            logger.warning(f"{func.__name__}({_target(args, kwargs)}) hit a transient error, retrying once: {_first_line(e)}")
        try:
            return func(self, *args, **kwargs)
        except PlaywrightError as e:
            raise UiInteractionError(f"{func.__name__}({_target(args, kwargs)}) failed after retry: {_first_line(e)}") from e

    return wrapper


class BrowserSession:
    """
    Owns a Playwright browser, context and page.

    Args:
        config: Resolved configuration (defaults to EnvironmentConfig.instance())
        page: Pre-built page; when given, no browser is launched
    """

    def __init__(self, config: Optional[EnvironmentConfig] = None, page: Optional[Page] = None):
        self.config = config or EnvironmentConfig.instance()
        self.base_url = self.config.ui_base_url
        self.storage_key = self.config.auth_storage_key
        self.dialogs: List[str] = []

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = page
        if page is not None:
            page.on("dialog", self._on_dialog)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def __enter__(self) -> "BrowserSession":
        if self._page is None:
            self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def start(self) -> None:
        """
        Launch the configured browser and open a fresh context and page.

        Raises:
            UiInteractionError: If the browser cannot be launched
        """
        name = self.config.browser_name
        try:
            self._playwright = sync_playwright().start()
            launcher = getattr(self._playwright, name)
            self._browser = launcher.launch(
                headless=self.config.headless,
                slow_mo=self.config.slow_mo,
                args=LAUNCH_ARGS if name == "chromium" else None,
            )
            self._context = self._browser.new_context(
                viewport=self.config.viewport,
                ignore_https_errors=True,
            )
            self._page = self._context.new_page()
        except (PlaywrightError, AttributeError) as e:
            self.close()
            raise UiInteractionError(f"Cannot launch {name}: {_first_line(e)}") from e

        self._page.set_default_timeout(self.config.default_timeout_ms)
        self._page.set_default_navigation_timeout(self.config.navigation_timeout_ms)
        self._page.on("dialog", self._on_dialog)
        logger.debug(f"Browser started: {name} (headless={self.config.headless})")

    def close(self) -> None:
        """Close context, browser and driver. Safe to call more than once."""
        for closer, label in (
            (self._context, "context"),
            (self._browser, "browser"),
        ):
            if closer is None:
                continue
            try:
                closer.close()
            except PlaywrightError as e:
                logger.debug(f"Ignoring error closing {label}: {_first_line(e)}")
        if self._playwright is not None:
            self._playwright.stop()
            self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        self.dialogs.clear()

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("BrowserSession is not started. Use 'with BrowserSession() as browser:'")
        return self._page

    def _on_dialog(self, dialog) -> None:
        self.dialogs.append(dialog.message)
        logger.warning(f"JS dialog ({dialog.type}) dismissed: {dialog.message}")
        dialog.dismiss()

    # =========================================================================
    # Navigation
    # =========================================================================

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    @retry_once
    @allure.step("Navigate to {path}")
    def navigate(self, path: str = "/") -> None:
        url = self.url_for(path)
        logger.info(f"Navigate: {url}")
        self.page.goto(url, wait_until="domcontentloaded")

    @retry_once
    def reload(self) -> None:
        self.page.reload(wait_until="domcontentloaded")

    @retry_once
    def go_back(self) -> None:
        self.page.go_back(wait_until="domcontentloaded")

    @property
    def current_url(self) -> str:
        return self.page.url

    @property
    def current_path(self) -> str:
        return urlparse(self.page.url).path

    def is_on_app_origin(self) -> bool:
        current = urlparse(self.page.url)
        base = urlparse(self.base_url)
        return (current.scheme, current.netloc) == (base.scheme, base.netloc)

    @retry_once
    def wait_for_url(self, pattern: Any, timeout_ms: Optional[int] = None) -> None:
        self.page.wait_for_url(pattern, timeout=timeout_ms or self.config.navigation_timeout_ms)

    # =========================================================================
    # Element primitives
    # =========================================================================

    def locate(self, selector: str, has_text: Optional[str] = None, child: Optional[str] = None) -> Locator:
        """
        Build a locator, optionally narrowed to containers holding `has_text`
        and then to a `child` selector inside them.
        """
        locator = self.page.locator(selector)
        if has_text is not None:
            locator = locator.filter(has_text=has_text)
        if child is not None:
            locator = locator.locator(child)
        return locator

    @retry_once
    @allure.step("Click: {selector}")
    def click(self, selector: str, has_text: Optional[str] = None, child: Optional[str] = None) -> None:
        logger.debug(f"Click: {selector} {child or ''}")
        self.locate(selector, has_text, child).first.click()

    @retry_once
    @allure.step("Fill: {selector}")
    def fill(self, selector: str, value: str) -> None:
        logger.debug(f"Fill: {selector} ({len(value)} chars)")
        self.page.locator(selector).first.fill(value)

    @retry_once
    def press(self, selector: str, key: str) -> None:
        self.page.locator(selector).first.press(key)

    @retry_once
    def text_of(self, selector: str, has_text: Optional[str] = None, child: Optional[str] = None) -> str:
        return self.locate(selector, has_text, child).first.inner_text().strip()

    @retry_once
    def texts_of(self, selector: str, has_text: Optional[str] = None, child: Optional[str] = None) -> List[str]:
        return [text.strip() for text in self.locate(selector, has_text, child).all_inner_texts()]

    @retry_once
    def inner_html_of(self, selector: str) -> List[str]:
        locator = self.page.locator(selector)
        return [locator.nth(i).inner_html() for i in range(locator.count())]

    @retry_once
    def attribute_of(
        self,
        selector: str,
        name: str,
        has_text: Optional[str] = None,
        child: Optional[str] = None,
    ) -> Optional[str]:
        return self.locate(selector, has_text, child).first.get_attribute(name)

    @retry_once
    def input_value(self, selector: str) -> str:
        return self.page.locator(selector).first.input_value()

    @retry_once
    def count(self, selector: str, has_text: Optional[str] = None, child: Optional[str] = None) -> int:
        return self.locate(selector, has_text, child).count()

    @retry_once
    def is_visible(self, selector: str, has_text: Optional[str] = None, child: Optional[str] = None) -> bool:
        return self.locate(selector, has_text, child).first.is_visible()

    @retry_once
    def evaluate(self, script: str, arg: Any = None) -> Any:
        return self.page.evaluate(script, arg)

    # =========================================================================
    # Local storage and cookies
    # =========================================================================

    def _ensure_app_origin(self) -> None:
        # localStorage is per-origin; about:blank has none
        if not self.is_on_app_origin():
            self.navigate("/")

    def get_local_storage_item(self, key: str) -> Optional[str]:
        if not self.is_on_app_origin():
            return None
        return self.evaluate("key => window.localStorage.getItem(key)", key)

    def set_local_storage_raw(self, key: str, value: str) -> None:
        """Write an arbitrary string, e.g. a malformed auth record."""
        self._ensure_app_origin()
        self.evaluate("([key, value]) => window.localStorage.setItem(key, value)", [key, value])

    @allure.step("Set browser auth token")
    def set_local_storage_token(self, token: str, username: Optional[str] = None, **extra: Any) -> None:
        """Store `{token, username, ...}` under the auth storage key."""
        record: Dict[str, Any] = {"token": token, "username": username, **extra}
        self.set_local_storage_raw(self.storage_key, json.dumps(record))
        logger.debug(f"Stored auth record for {username or '<unknown>'} in localStorage['{self.storage_key}']")

    def get_local_storage_user(self) -> Optional[Dict[str, Any]]:
        """The parsed auth record, or None if absent or not a JSON object."""
        raw = self.get_local_storage_item(self.storage_key)
        if not raw:
            return None
        try:
            record = json.loads(raw)
        except (json.JSONDecodeError, ValueError):
            return None
        return record if isinstance(record, dict) else None

    def get_local_storage_token(self) -> Optional[str]:
        record = self.get_local_storage_user()
        token = record.get("token") if record else None
        return token or None

    @allure.step("Clear browser session")
    def clear_session(self) -> None:
        """Clear localStorage, sessionStorage and cookies."""
        if self.is_on_app_origin():
            self.evaluate("() => { window.localStorage.clear(); window.sessionStorage.clear(); }")
        self.page.context.clear_cookies()

    # =========================================================================
    # Reporting
    # =========================================================================

    def screenshot(self, name: str = "Screenshot") -> bytes:
        """Capture the full page and attach it to Allure."""
        try:
            data = self.page.screenshot(full_page=True)
        except PlaywrightError as e:
            raise UiInteractionError(f"Screenshot failed: {_first_line(e)}") from e
        attach_png(data, name=name)
        return data


__all__ = [
    "BrowserSession",
    "TRANSIENT_ERROR_MARKERS",
    "is_transient",
    "retry_once",
]

"""
================================================================================
Article Preview Component
================================================================================

One `.article-preview` card in a feed (home page or profile tabs), located
by an exact match on its title. A title that is a substring of another
card's title never selects that card. The favorite button on a preview toggles without leaving the
list; favorite()/unfavorite() wait for the active class to flip.

================================================================================
"""

from __future__ import annotations

import json
from typing import List, Optional

import allure

from conduit_suites.ui_testing.framework.browser_session import BrowserSession
from conduit_suites.ui_testing.framework.waits import get_wait_config, wait_for

from .article_page import ArticlePage
from .states import FavoriteState, is_active_button, parse_count

PREVIEW = ".article-preview"


def preview_selector(title: str) -> str:
    """Selector for the preview card whose <h1> text equals `title` exactly."""
    return f"{PREVIEW}:has(h1:text-is({json.dumps(title, ensure_ascii=False)}))"


class ArticlePreview:
    """
    Args:
        browser: The test's BrowserSession
        title: Title text identifying the card
    """

    def __init__(self, browser: BrowserSession, title: str, timeout: Optional[float] = None,
                 poll_interval: Optional[float] = None):
        self.browser = browser
        self.title = title
        self.container = preview_selector(title)
        self.timeout = timeout
        self.poll_interval = poll_interval

    def _text(self, child: str) -> str:
        return self.browser.text_of(self.container, child=child)

    def exists(self) -> bool:
        return self.browser.count(self.container) > 0

    def description(self) -> str:
        return self._text(".preview-link p")

    def author(self) -> str:
        return self._text(".author")

    def tags(self) -> List[str]:
        return self.browser.texts_of(self.container, child=".tag-list li")

    def is_favorited(self) -> bool:
        classes = self.browser.attribute_of(self.container, "class", child="button")
        return is_active_button(classes)

    def favorite_count(self) -> int:
        return parse_count(self._text("button"))

    def favorite_state(self) -> FavoriteState:
        return FavoriteState(favorited=self.is_favorited(), count=self.favorite_count())

    def _wait(self, predicate, description: str):
        preset = get_wait_config("favorite")
        return wait_for(
            predicate,
            timeout=self.timeout if self.timeout is not None else preset.timeout,
            poll_interval=self.poll_interval if self.poll_interval is not None else preset.poll_interval,
            description=description,
        )

    @allure.step("Favorite article from the feed")
    def favorite(self) -> FavoriteState:
        if self.is_favorited():
            return self.favorite_state()
        self.browser.click(self.container, child="button")
        self._wait(self.is_favorited, f"preview '{self.title}' favorited")
        return self.favorite_state()

    @allure.step("Unfavorite article from the feed")
    def unfavorite(self) -> FavoriteState:
        if not self.is_favorited():
            return self.favorite_state()
        self.browser.click(self.container, child="button")
        self._wait(lambda: not self.is_favorited(), f"preview '{self.title}' unfavorited")
        return self.favorite_state()

    def open(self) -> ArticlePage:
        """Open the full article and return its page object."""
        self.browser.click(self.container, child=".preview-link")
        page = ArticlePage(self.browser, timeout=self.timeout, poll_interval=self.poll_interval)
        page.wait(lambda: page.current_slug(), "article route", scenario="navigation")
        page.slug = page.current_slug()
        page.wait_until_loaded()
        return page

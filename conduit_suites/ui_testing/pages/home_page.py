"""
================================================================================
Home Page Object
================================================================================

Landing page: global / personal / tag feeds and the popular-tags sidebar.

Feeds load asynchronously after the route renders. `wait_for_feed()` returns
once either previews or the empty-feed notice is shown.

================================================================================
"""

from __future__ import annotations

from typing import List

import allure

from conduit_suites.ui_testing.framework.page_base import BasePage

from .article_preview import ArticlePreview


EMPTY_FEED_TEXT = "No articles are here"


class HomePage(BasePage):
    URL_PATH = "/"
    READY_SELECTOR = ".home-page"

    LOCATORS = {
        "banner": ".banner h1",
        "feed_tabs": ".feed-toggle .nav-link",
        "active_tab": ".feed-toggle .nav-link.active",
        "previews": ".article-preview",
        "preview_titles": ".article-preview h1",
        "popular_tags": ".sidebar .tag-list .tag-pill",
        "loading": ".article-preview:has-text('Loading')",
    }

    def open(self) -> "HomePage":
        super().open()
        self.wait_for_feed()
        return self

    def banner(self) -> str:
        return self.text_if_present("banner") or ""

    def feed_tabs(self) -> List[str]:
        return self.texts("feed_tabs")

    def active_tab(self) -> str:
        return self.text_if_present("active_tab") or ""

    def article_titles(self) -> List[str]:
        return self.texts("preview_titles")

    def is_feed_empty(self) -> bool:
        return any(EMPTY_FEED_TEXT in text for text in self.texts("previews"))

    def wait_for_feed(self) -> List[str]:
        """Wait until previews (or the empty notice) have rendered; returns titles."""
        def loaded():
            if self.count("loading") > 0:
                return None
            titles = self.article_titles()
            if titles or self.is_feed_empty():
                return titles or [EMPTY_FEED_TEXT]
            return None

        self.wait(loaded, "feed loaded", scenario="navigation")
        return self.article_titles()

    def preview(self, title: str) -> ArticlePreview:
        return ArticlePreview(self.browser, title, timeout=self.timeout, poll_interval=self.poll_interval)

    def previews(self) -> List[ArticlePreview]:
        return [self.preview(title) for title in self.article_titles()]

    def popular_tags(self) -> List[str]:
        return self.texts("popular_tags")

    @allure.step("Filter feed by tag {tag}")
    def select_tag(self, tag: str) -> List[str]:
        self.click("popular_tags", has_text=tag)
        self.wait(lambda: tag in self.active_tab(), f"tag tab '{tag}' active", scenario="navigation")
        return self.wait_for_feed()

    @allure.step("Open feed tab {label}")
    def open_tab(self, label: str) -> List[str]:
        self.click("feed_tabs", has_text=label)
        self.wait(lambda: label in self.active_tab(), f"feed tab '{label}' active", scenario="navigation")
        return self.wait_for_feed()

    def open_global_feed(self) -> List[str]:
        return self.open_tab("Global Feed")

    def open_your_feed(self) -> List[str]:
        return self.open_tab("Your Feed")

    def wait_for_article(self, title: str) -> ArticlePreview:
        """Wait until an article with this title is listed in the current feed."""
        self.wait(lambda: title in self.article_titles(), f"article '{title}' in feed", scenario="api_consistency")
        return self.preview(title)

"""
================================================================================
Editor Page Object
================================================================================

New-article form at /editor/new and the edit form at /editor/<slug>.

`publish()` returns the slug once the app has routed to /article/<slug>.

================================================================================
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import allure
from loguru import logger

from conduit_suites.ui_testing.framework.browser_session import BrowserSession
from conduit_suites.ui_testing.framework.page_base import BasePage


class EditorPage(BasePage):
    URL_PATH = "/editor/new"
    READY_SELECTOR = "input[placeholder='Article Title']"

    LOCATORS = {
        "title_input": "input[placeholder='Article Title']",
        "description_input": "input[placeholder=\"What's this article about?\"]",
        "body_input": "textarea[placeholder='Write your article (in markdown)']",
        "tag_input": "input[placeholder='Enter tags']",
        "tag_pills": ".tag-list .tag-pill",
        "publish_button": "button[type='submit']",
    }

    def __init__(self, browser: BrowserSession, slug: Optional[str] = None, **kwargs):
        super().__init__(browser, **kwargs)
        self.slug = slug

    @property
    def path(self) -> str:
        return f"/editor/{self.slug}" if self.slug else self.URL_PATH

    def add_tag(self, tag: str) -> None:
        self.fill("tag_input", tag)
        self.browser.press(self.selector("tag_input"), "Enter")
        self.wait(lambda: tag in self.tags(), f"tag '{tag}' added", scenario="storage")

    def tags(self) -> List[str]:
        return self.texts("tag_pills")

    def fill_article(
        self,
        title: Optional[str] = None,
        description: Optional[str] = None,
        body: Optional[str] = None,
        tags: Sequence[str] = (),
    ) -> None:
        if title is not None:
            self.fill("title_input", title)
        if description is not None:
            self.fill("description_input", description)
        if body is not None:
            self.fill("body_input", body)
        for tag in tags:
            self.add_tag(tag)

    @allure.step("Publish article")
    def publish(self) -> str:
        """Submit and wait for the article route. Returns the slug."""
        self.click("publish_button")

        def article_slug():
            path = self.browser.current_path
            return path.split("/article/", 1)[1].strip("/") if path.startswith("/article/") else None

        slug = self.wait(article_slug, "article route after publish", scenario="navigation")
        logger.info(f"Published article: {slug}")
        return slug

    def publish_expecting_errors(self) -> List[str]:
        self.click("publish_button")
        return self.wait_for_errors()

    def create_article(self, title: str, description: str, body: str, tags: Sequence[str] = ()) -> str:
        self.fill_article(title, description, body, tags)
        return self.publish()

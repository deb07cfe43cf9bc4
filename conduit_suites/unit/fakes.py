"""
================================================================================
Unit Test Fakes
================================================================================

In-memory stand-ins for the pieces the harness drives, so the harness can be
tested without a browser or a backend:

    FakeClock     monotonic clock + sleep that advance virtual time
    FakePage      the subset of the Playwright Page API BrowserSession uses
    FakeElement   one rendered node; text/attributes may be computed
    LaggingToggle boolean UI state that re-renders a few reads after a click

================================================================================
"""

from typing import Any, Callable, Dict, List, Optional, Union

from playwright.sync_api import Error as PlaywrightError


APP_URL = "http://localhost:3000"

Computed = Union[str, Callable[[], str], None]


def _value(value: Computed) -> Optional[str]:
    return value() if callable(value) else value


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class LaggingToggle:
    """
    Boolean state shown in the UI. A click requests the opposite state; the
    UI shows it only after `lag` further reads, like a re-render after an
    API round trip.
    """

    def __init__(self, value: bool = False, lag: int = 2):
        self.value = value
        self.lag = lag
        self.clicks = 0
        self._pending: Optional[bool] = None
        self._reads = 0

    def click(self) -> None:
        self.clicks += 1
        self._pending = not self.value
        self._reads = 0

    def read(self) -> bool:
        if self._pending is not None:
            self._reads += 1
            if self._reads > self.lag:
                self.value = self._pending
                self._pending = None
        return self.value


class FakeElement:
    def __init__(
        self,
        text: Computed = "",
        attrs: Optional[Dict[str, Computed]] = None,
        children: Optional[Dict[str, List["FakeElement"]]] = None,
        on_click: Optional[Callable[[], None]] = None,
        html: Optional[str] = None,
        errors: Optional[List[Exception]] = None,
    ):
        self._text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.on_click = on_click
        self.html = html
        self.value = ""
        self.clicks = 0
        self.errors = list(errors or [])

    def _maybe_fail(self) -> None:
        if self.errors:
            raise self.errors.pop(0)

    def text(self) -> str:
        parts = [_value(self._text) or ""]
        for nodes in self.children.values():
            parts.extend(node.text() for node in nodes)
        return " ".join(p for p in parts if p)

    def click(self) -> None:
        self._maybe_fail()
        self.clicks += 1
        if self.on_click is not None:
            self.on_click()


class FakeLocator:
    def __init__(self, elements: List[FakeElement], selector: str = ""):
        self.elements = elements
        self.selector = selector

    def _one(self) -> FakeElement:
        if not self.elements:
            raise PlaywrightError(f"Timeout 10000ms exceeded waiting for locator('{self.selector}')")
        return self.elements[0]

    def filter(self, has_text: Optional[str] = None) -> "FakeLocator":
        return FakeLocator([e for e in self.elements if has_text is None or has_text in e.text()], self.selector)

    def locator(self, child: str) -> "FakeLocator":
        found = [node for e in self.elements for node in e.children.get(child, [])]
        return FakeLocator(found, f"{self.selector} >> {child}")

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self.elements[:1], self.selector)

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.elements[index:index + 1], self.selector)

    def count(self) -> int:
        return len(self.elements)

    def all_inner_texts(self) -> List[str]:
        return [e.text() for e in self.elements]

    def inner_text(self) -> str:
        element = self._one()
        element._maybe_fail()
        return element.text()

    def inner_html(self) -> str:
        element = self._one()
        return element.html if element.html is not None else element.text()

    def get_attribute(self, name: str) -> Optional[str]:
        return _value(self._one().attrs.get(name))

    def input_value(self) -> str:
        return self._one().value

    def is_visible(self) -> bool:
        return bool(self.elements)

    def click(self) -> None:
        self._one().click()

    def fill(self, value: str) -> None:
        element = self._one()
        element._maybe_fail()
        element.value = value

    def press(self, key: str) -> None:
        self._one()


class FakeContext:
    def __init__(self):
        self.cookies_cleared = 0

    def clear_cookies(self) -> None:
        self.cookies_cleared += 1


class FakeDialog:
    def __init__(self, message: str, type: str = "alert"):
        self.message = message
        self.type = type
        self.dismissed = False

    def dismiss(self) -> None:
        self.dismissed = True


class FakePage:
    """
    Elements are registered per selector, either as a list or as a callable
    returning the current list (for DOM that changes after clicks).
    """

    def __init__(self, url: str = "about:blank"):
        self.url = url
        self.elements: Dict[str, Any] = {}
        self.local_storage: Dict[str, str] = {}
        self.session_storage: Dict[str, str] = {}
        self.handlers: Dict[str, List[Callable]] = {}
        self.visited: List[str] = []
        self.context = FakeContext()
        self.screenshots = 0

    def add(self, selector: str, *elements: FakeElement) -> None:
        self.elements.setdefault(selector, []).extend(elements)

    def on(self, event: str, handler: Callable) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def fire_dialog(self, message: str) -> FakeDialog:
        dialog = FakeDialog(message)
        for handler in self.handlers.get("dialog", []):
            handler(dialog)
        return dialog

    def goto(self, url: str, wait_until: Optional[str] = None) -> None:
        self.visited.append(url)
        self.url = url

    def reload(self, wait_until: Optional[str] = None) -> None:
        self.visited.append(self.url)

    def go_back(self, wait_until: Optional[str] = None) -> None:
        if len(self.visited) > 1:
            self.visited.pop()
            self.url = self.visited[-1]

    def locator(self, selector: str) -> FakeLocator:
        registered = self.elements.get(selector, [])
        elements = registered() if callable(registered) else registered
        return FakeLocator(list(elements), selector)

    def evaluate(self, script: str, arg: Any = None) -> Any:
        if "localStorage.getItem" in script:
            return self.local_storage.get(arg)
        if "localStorage.setItem" in script:
            key, value = arg
            self.local_storage[key] = value
            return None
        if "localStorage.clear" in script:
            self.local_storage.clear()
            self.session_storage.clear()
            return None
        raise NotImplementedError(script)

    def screenshot(self, full_page: bool = False) -> bytes:
        self.screenshots += 1
        return b"\x89PNG\r\n\x1a\n"

"""
================================================================================
UI Testing Framework
================================================================================

Modules:
    - browser_session: Playwright session with retry-once primitives
    - page_base: BasePage for the page objects
    - waits: Bounded polling (wait_for, poll_until, WaitCondition)

================================================================================
"""

from .browser_session import BrowserSession
from .page_base import BasePage
from .waits import WAIT_SCENARIOS, WaitCondition, WaitConfig, poll_until, wait_for

__all__ = [
    "BasePage",
    "BrowserSession",
    "WAIT_SCENARIOS",
    "WaitCondition",
    "WaitConfig",
    "poll_until",
    "wait_for",
]

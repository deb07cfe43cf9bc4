"""
================================================================================
Conduit Tools
================================================================================

Harness infrastructure shared by the API and UI suites.

Modules:
    - common: Configuration, error taxonomy and logging
    - report_tools: Allure helpers and the per-test lifecycle / run report

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
]

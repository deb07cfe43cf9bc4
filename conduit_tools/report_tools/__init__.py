"""Allure helpers and the per-test lifecycle / run report."""

from .test_lifecycle import LifecycleError, RunReport, TestLifecycle, TestStatus, describe_error

__all__ = [
    "LifecycleError",
    "RunReport",
    "TestLifecycle",
    "TestStatus",
    "describe_error",
]

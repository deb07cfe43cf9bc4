"""
================================================================================
Conduit Test Suites
================================================================================

Packages:
    - api_testing: REST API client, payloads, data factory and API scenarios
    - ui_testing: Playwright session, page objects and UI scenarios
    - unit: Harness unit tests that run without the application
    - session: Dual-channel (API + browser) auth state for one test

================================================================================
"""

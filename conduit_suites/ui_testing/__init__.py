"""Conduit web UI suites."""

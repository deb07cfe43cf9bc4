"""Conduit REST API suites."""

"""Readiness HTTP surface."""

"""
Test support utilities for baton tests.

Helpers that don't fit as pytest fixtures but are used across test files.
"""

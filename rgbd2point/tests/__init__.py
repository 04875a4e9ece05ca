"""
Tests and test utilities.

Unit tests for the conversion pipeline and a generator for synthetic
PNG captures.
"""

from .create_test_data import create_test_capture

__all__ = ["create_test_capture"]

"""Utilities for running qicert tests."""

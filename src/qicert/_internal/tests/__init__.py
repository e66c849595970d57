"""Tests for qicert internals."""

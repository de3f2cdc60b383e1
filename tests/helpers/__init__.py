"""Shared helpers for unit and integration tests."""

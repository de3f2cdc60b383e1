"""Integration tests for the shanoom sync workflow.

These tests drive the real engine, event handler and codec against files in
temporary project directories. The backend is the in-memory FakeContentAPI
from tests.helpers, so no network access or credentials are needed.
"""

# tests/integration/__init__.py
"""
Integration tests for SignalFlow.

Integration tests verify that different parts of the system work together
correctly, including API endpoints, database operations, and external services.
"""

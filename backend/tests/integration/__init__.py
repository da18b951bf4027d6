"""Integration tests for the rate sync flow and HTTP routes."""

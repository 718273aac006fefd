"""Integration tests for complete decode and CLI workflows."""

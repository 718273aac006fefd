"""Unit tests for ATX Inspector components."""

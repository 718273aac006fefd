"""
Test suite for ATX Inspector.

This package contains:
- Unit tests for the byte cursor, diagnostics, settings and each decoder stage
- Integration tests decoding complete synthetic images and running the CLI
- Fixtures that build ATX images byte by byte
"""

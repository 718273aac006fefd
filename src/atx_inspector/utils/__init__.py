"""
Utility functions for atx-inspector.
"""

from atx_inspector.utils.logging import (
    setup_logging,
    log_system_info,
)

__all__ = [
    "setup_logging",
    "log_system_info",
]

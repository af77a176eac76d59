"""
Utility modules for the Development Tools Bridge.
"""

from .logging import setup_root_logger

__all__ = ["setup_root_logger"]

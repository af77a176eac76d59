"""
Core modules for the Development Tools Bridge.
"""

from .classifier import MissingToolClassifier
from .orchestrator import InstallationOrchestrator
from .session import ToolBridgeSession, create_session

__all__ = [
    "MissingToolClassifier",
    "InstallationOrchestrator",
    "ToolBridgeSession",
    "create_session"
]

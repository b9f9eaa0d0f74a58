# FsBridge - Core Module
"""
Core infrastructure for FsBridge.
This module provides the foundational components that all filesystem operations depend on.
"""

from .logger import AuditLogger, AuditEntry, ActionType, ActionStatus
from .config import BridgeConfig
from .shell import ShellBridge, ShellResult
from . import errors

__all__ = [
    "AuditLogger",
    "AuditEntry",
    "ActionType",
    "ActionStatus",
    "BridgeConfig",
    "ShellBridge",
    "ShellResult",
    "errors",
]

__version__ = "0.1.0"

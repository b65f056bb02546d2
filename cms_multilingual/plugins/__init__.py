"""
Hook system

Public API:
    HookRegistry - per-engine registry of actions and filters
    hook name constants - see .hooks
"""

from .hooks import ALL_HOOKS, CRITICAL_CALLBACKS
from .registry import HookRegistry

__all__ = ["ALL_HOOKS", "CRITICAL_CALLBACKS", "HookRegistry"]

"""
Integrity diagnostics

Public API:
    HealthCheck / FixableHealthCheck - check contracts
    IntegrityViolation, Severity     - check results
    HealthCheckRegistry              - runs checks and maintains the issue log
    build_default_registry           - registry with the built-in checks
"""

from .base import FixableHealthCheck, HealthCheck, IntegrityViolation, Severity
from .registry import HealthCheckRegistry, build_default_registry

__all__ = [
    "FixableHealthCheck",
    "HealthCheck",
    "IntegrityViolation",
    "Severity",
    "HealthCheckRegistry",
    "build_default_registry",
]

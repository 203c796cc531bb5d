"""
Startup validation: configuration and data backend checks.
"""

from .startup_validator import Finding, Severity, StartupValidator, ValidationResult, StartupValidationError

__all__ = [
    "Finding",
    "Severity",
    "StartupValidator",
    "ValidationResult",
    "StartupValidationError",
]

"""
Monitoring Services

This module contains services related to:
- System health and data backend availability
- The activity (audit) log
"""

from .system_health_service import SystemHealthService
from .audit_logging_service import AuditLoggingService

__all__ = [
    'SystemHealthService',
    'AuditLoggingService',
]

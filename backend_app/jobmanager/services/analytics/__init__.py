"""
Analytics Services

- dashboard_service: per-role dashboard statistics
"""

from .dashboard_service import DashboardService, compute_job_stats, job_revenue

__all__ = [
    "DashboardService",
    "compute_job_stats",
    "job_revenue",
]

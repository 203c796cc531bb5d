from .jobs_router import router as jobs_router
from .customers_router import router as customers_router

all_job_routers = [jobs_router, customers_router]

__all__ = ["jobs_router", "customers_router", "all_job_routers"]

import sys
from datetime import datetime, timezone
from dotenv import load_dotenv
from contextlib import asynccontextmanager

# Settings may live in .env; load before the config is first read
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers.auth import auth_router, module_permissions_router
from .routers.businesses import router as businesses_router
from .routers.jobs import all_job_routers
from .routers.catalog import catalog_router
from .routers.messaging import messaging_router
from .routers.analytics import analytics_router
from .routers.system import system_router

from .core.config import AppConfig, get_config
from .core.dependencies import get_data_gateway
from .core.errors import StorageBackendError, register_exception_handlers
from .core.http_client import startup as http_client_startup, shutdown as http_client_shutdown
from .core.health import StartupValidator, StartupValidationError
from .services.auth.demo_data import seed_demo_data
from .services.storage import CosmosBackend, DataGateway

from .utils.logging_config import setup_application_logging
from .utils.startup_logging import get_startup_logger

logger = setup_application_logging(level="INFO", force_flush=True)
startup_logger = get_startup_logger()


async def _provision_cosmos(gateway: DataGateway, config: AppConfig) -> bool:
    """Create missing Cosmos containers when asked to. False if Cosmos refused."""
    if not config.cosmos_create_containers:
        return True
    ok = True
    for backend in gateway.backends:
        if isinstance(backend, CosmosBackend) and backend.is_configured:
            try:
                await backend.ensure_containers()
            except StorageBackendError as e:
                ok = False
                logger.warning("Cosmos containers not provisioned: %s", e.message)
    return ok


async def _seed(gateway: DataGateway, config: AppConfig) -> bool:
    if not config.seed_demo_data:
        logger.info("Demo data seeding disabled")
        return True
    try:
        created = await seed_demo_data(gateway)
    except StorageBackendError as e:
        logger.error("Demo data seeding failed: %s", e.message)
        return False
    if created:
        logger.info("Seeded demo data: %s", ", ".join(f"{n} {c}" for c, n in created.items()))
    return True


async def _validate_or_exit(gateway: DataGateway, config: AppConfig) -> None:
    try:
        result = await StartupValidator(gateway, config).validate_all(fail_fast=True)
    except StartupValidationError as e:
        logger.critical("Startup validation failed, refusing to serve:")
        for error in e.result.errors:
            logger.critical("  - %s", error)
        startup_logger.end_phase("validation", ok=False)
        startup_logger.finish_startup(success=False)
        # Non-zero exit so the container orchestrator restarts or alerts
        sys.exit(1)

    logger.info("Startup validation passed: %s", result.summary())
    for warning in result.warnings:
        logger.warning("Startup warning: %s", warning)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    startup_logger.start_startup(config.app_name)

    startup_logger.start_phase("configuration", "Reading settings")
    startup_logger.log_config_info(config)
    startup_logger.end_phase("configuration")

    startup_logger.start_phase("storage", "Building the data backend chain")
    await http_client_startup()
    gateway = get_data_gateway()
    app.state.data_gateway = gateway
    startup_logger.end_phase("storage", ok=await _provision_cosmos(gateway, config))

    startup_logger.start_phase("seeding", "Seeding demo accounts into an empty deployment")
    startup_logger.end_phase("seeding", ok=await _seed(gateway, config))

    startup_logger.start_phase("validation", "Checking configuration and backend reachability")
    await _validate_or_exit(gateway, config)
    startup_logger.end_phase("validation")
    startup_logger.finish_startup()

    yield

    for close, what in ((gateway.close, "data backends"), (http_client_shutdown, "shared HTTP client")):
        try:
            await close()
        except Exception:
            logger.exception("Error closing %s", what)


def _configure_cors(app: FastAPI, config: AppConfig) -> None:
    """
    Allow the configured frontends. A wildcard is refused in production and
    otherwise echoed back per request, since credentials are allowed.
    """
    origins = list(config.cors_origins_list)
    if config.frontend_url and config.frontend_url.rstrip("/") not in origins:
        origins.append(config.frontend_url.rstrip("/"))

    origin_regex = None
    if "*" in origins:
        if config.is_production:
            logger.critical("CORS_ORIGINS contains '*' in production; set it to the frontend domain(s)")
            sys.exit(1)
        logger.warning("CORS_ORIGINS contains '*'; echoing any origin (development only)")
        origins, origin_regex = [], r".*"

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_origin_regex=origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With"],
    )


config = get_config()

app = FastAPI(
    title=config.app_name,
    description=config.app_description,
    version=config.app_version,
    lifespan=lifespan,
)

_configure_cors(app, config)
register_exception_handlers(app)

for router in (
    auth_router,
    module_permissions_router,
    businesses_router,
    *all_job_routers,
    catalog_router,
    messaging_router,
    analytics_router,
    system_router,
):
    app.include_router(router)


@app.get("/")
async def root():
    """API information and the main endpoints."""
    return {
        "name": config.app_name,
        "description": config.app_description,
        "version": config.app_version,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.environment,
        "data_backends": config.data_backends_list,
        "endpoints": {
            "authentication": {
                "login": "POST /api/auth/login",
                "logout": "POST /api/auth/logout",
                "me": "GET /api/auth/me",
                "navigation": "GET /api/auth/me/navigation",
                "users": "GET /api/auth/users",
            },
            "jobs": {
                "list": "GET /api/jobs",
                "get": "GET /api/jobs/{job_id}",
                "status": "PUT /api/jobs/{job_id}/status",
            },
            "customers": "GET /api/customers",
            "businesses": "GET /api/businesses",
            "products": "GET /api/products",
            "models": {
                "list": "GET /api/models",
                "convert": "POST /api/models/convert",
            },
            "modules": "GET /api/modules/{module_id}/access",
            "notifications": "GET /api/notifications",
            "emails": "GET /api/emails",
            "dashboard": "GET /api/dashboard",
            "system": {
                "health": "GET /api/system/health",
                "activity": "GET /api/system/activity",
            },
        },
        "documentation": "/docs",
        "health_check": "/api/system/health",
    }

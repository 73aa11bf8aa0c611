"""Main FastAPI application for docker-remote."""

# Standard library imports
import sys
from contextlib import asynccontextmanager
from datetime import timedelta

# Third-party imports
import structlog
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

# Local application imports
from ._version import __version__
from .api import connections, exec, health, services
from .config import settings
from .models.errors import DockerRemoteException
from .services.lifecycle import ServiceLifecycleManager, ServiceStore
from .services.remote import (
    CommandExecutor,
    ConnectionPool,
    IdleReaper,
    RemoteExecutionAdapter,
    SSHTransport,
)
from .utils.config_validator import validate_configuration, get_configuration_summary
from .utils.error_handlers import (
    docker_remote_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from .utils.logging import setup_logging
from .utils.shutdown import setup_graceful_shutdown


# Setup logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Compose the service graph, run it, and take it down in reverse."""
    logger.info("Starting docker-remote", version=__version__)

    if not validate_configuration(settings):
        logger.error("Configuration validation failed - shutting down")
        sys.exit(1)

    if settings.api_debug:
        logger.warning("Debug mode is enabled - disable in production")

    ssh_config = settings.ssh
    transport = SSHTransport(ssh_config)
    pool = ConnectionPool(transport, ssh_config)
    executor = CommandExecutor(pool)
    adapter = RemoteExecutionAdapter(executor)
    store = ServiceStore(settings.services_data_file)
    manager = ServiceLifecycleManager(adapter, store, settings.services)
    reaper = IdleReaper(
        pool,
        check_interval=timedelta(minutes=ssh_config.idle_check_interval_minutes),
        idle_timeout=timedelta(minutes=ssh_config.idle_timeout_minutes),
    )

    await manager.load()
    reaper.start()

    app.state.pool = pool
    app.state.executor = executor
    app.state.adapter = adapter
    app.state.manager = manager
    app.state.reaper = reaper

    shutdown_handler = setup_graceful_shutdown(pool, manager, reaper)

    logger.info("docker-remote startup completed", **get_configuration_summary(settings))

    yield

    logger.info("Shutting down docker-remote")
    try:
        await shutdown_handler.shutdown()
    except Exception as e:
        logger.error("Error during graceful shutdown", error=str(e))

    logger.info("docker-remote shutdown completed")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DockerRemoteException, docker_remote_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)


def include_routers(app: FastAPI) -> None:
    app.include_router(health.router, tags=["health"])
    app.include_router(connections.router, tags=["connections"])
    app.include_router(exec.router, tags=["exec"])
    app.include_router(services.router, tags=["services"])


app = FastAPI(
    title="docker-remote",
    description="Pooled SSH execution and managed services on remote Docker hosts",
    version=__version__,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
    debug=settings.api_debug,
    lifespan=lifespan,
)

register_exception_handlers(app)
include_routers(app)


@app.get("/config")
async def config_info():
    """Configuration information endpoint (non-sensitive data only)."""
    if not settings.api_debug:
        raise HTTPException(status_code=404, detail="Not found")

    return get_configuration_summary(settings)


def run_server():
    logger.info(f"Starting HTTP server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "docker_remote.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_server()

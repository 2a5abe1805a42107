"""alertroute - FastAPI application resolving alerts to notification policies."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import uvicorn
import yaml
from fastapi import FastAPI, HTTPException, Request, status
from pydantic import BaseModel, Field, ValidationError

from alertroute.config import get_settings
from alertroute.router import AlertRouter, load_routes_config
from alertroute.sources.alertmanager import AlertmanagerSource
from alertroute.sources.base import BaseSource
from alertroute.sources.grafana import GrafanaSource

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Global router instance
router: AlertRouter | None = None

# Source parsers registry
sources: dict[str, BaseSource] = {}


class MatchRequest(BaseModel):
    """Label set to resolve against the routing tree."""

    labels: dict[str, str] = Field(default_factory=dict)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    global router

    settings = get_settings()

    # Configure logging level
    logging.getLogger().setLevel(settings.log_level)

    # Register source parsers
    for source in (GrafanaSource(), AlertmanagerSource()):
        sources[source.name] = source
    logger.info(f"Registered {len(sources)} source parser(s): {list(sources.keys())}")

    # Build the routing tree
    try:
        routes_config = load_routes_config(settings.routes_config_path)
        router = AlertRouter(routes_config)
        logger.info(
            f"Loaded {len(routes_config.routes)} top-level route(s) from {settings.routes_config}"
        )
    except FileNotFoundError:
        logger.error(
            f"Routes config not found: {settings.routes_config}. "
            "Create a routes.yaml file or set ROUTES_CONFIG environment variable."
        )
        router = None
    except Exception as e:
        logger.exception(f"Failed to load routes config: {e}")
        router = None

    logger.info("alertroute started")

    yield

    # Cleanup on shutdown
    router = None
    sources.clear()
    logger.info("alertroute stopped")


app = FastAPI(
    title="alertroute",
    description="Resolves alerts to notification policies through a label-matching routing tree",
    version="0.1.0",
    lifespan=lifespan,
)


def _require_router() -> AlertRouter:
    if not router:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Router not configured. Check routes.yaml file.",
        )
    return router


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/sources")
async def list_sources() -> dict[str, list[str]]:
    """List registered alert sources."""
    return {"sources": list(sources.keys())}


@app.get("/routes")
async def list_routes() -> dict[str, list[dict[str, Any]]]:
    """Show the built routing tree."""
    if not router:
        return {"routes": []}
    return {"routes": router.routes.to_dict()}


@app.post("/match")
async def match_labels(body: MatchRequest) -> dict[str, Any]:
    """Resolve a label set to the options of the routes it reaches."""
    current = _require_router()
    matched = current.match(body.labels)
    return {
        "labels": body.labels,
        "routes": [opts.to_dict() for opts in matched],
    }


@app.post("/-/reload")
async def reload_routes() -> dict[str, Any]:
    """Rebuild the routing tree from the configuration file."""
    global router

    settings = get_settings()
    if not settings.enable_reload:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Reload is disabled.",
        )

    try:
        routes_config = load_routes_config(settings.routes_config_path)
    except (FileNotFoundError, ValidationError, yaml.YAMLError) as e:
        logger.error(f"Reload failed, keeping current routes: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid routes config: {e}",
        )

    if router:
        router.reload(routes_config)
    else:
        router = AlertRouter(routes_config)

    return {"status": "ok", "routes": len(router.routes)}


async def _process_webhook(source_name: str, payload: Any) -> dict[str, Any]:
    """Resolve every alert of a webhook from a specific source."""
    logger.info(f"Received webhook from source: {source_name}")

    current = _require_router()

    source = sources.get(source_name)
    if not source:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown source: {source_name}",
        )

    # Parse payload to unified format
    try:
        if not isinstance(payload, dict):
            raise ValueError("payload must be a JSON object")
        alert_group = source.parse(payload)
    except (ValueError, ValidationError) as e:
        logger.exception(f"Failed to parse {source_name} payload: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid payload: {e}",
        )

    logger.info(
        f"Parsed {source_name} webhook: status={alert_group.status}, "
        f"alerts={len(alert_group.alerts)}"
    )

    results = current.route_alert_group(alert_group)

    return {
        "status": "ok",
        "source": source_name,
        "results": [
            {
                "alert": alert.name,
                "fingerprint": alert.fingerprint,
                "labels": alert.labels,
                "routes": [opts.to_dict() for opts in matched],
            }
            for alert, matched in results
        ],
    }


@app.post("/webhook/{source_name}")
async def webhook(source_name: str, request: Request) -> dict[str, Any]:
    """Receive webhook from any registered source."""
    try:
        payload = await request.json()
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid JSON body: {e}",
        )
    return await _process_webhook(source_name, payload)


def run() -> None:
    """Run the application using uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "alertroute.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run()

"""Health probe endpoints.

GET /healthz  - process is up
GET /readyz   - controller loops are running (503 otherwise)
"""

from collections.abc import Callable

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


def create_health_app(is_ready: Callable[[], bool]) -> FastAPI:
    """
    Build the probe app.

    Args:
        is_ready: Returns True while the controller is serving
    """
    app = FastAPI(title="nodecidr health", docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    @app.get("/readyz")
    async def readyz():
        if is_ready():
            return {"status": "ok"}
        return JSONResponse(status_code=503, content={"status": "starting"})

    return app


async def serve_health(app: FastAPI, port: int, host: str = "0.0.0.0") -> None:
    """Serve app with uvicorn on the running event loop until cancelled."""
    config = uvicorn.Config(app, host=host, port=port, log_config=None, access_log=False)
    logger.info("Serving health probes", addr=host, port=port)
    await uvicorn.Server(config).serve()

"""HTTP trigger for the collection pipeline.

``POST /collect`` runs one collection pass and answers with the same JSON
document the CLI prints; ``GET /health`` is a liveness probe.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .pipeline import run_collection
from .utils.config_loader import ConfigError
from .utils.logging import get_logger

logger = get_logger("fn.api")

Runner = Callable[[str, bool], Dict[str, Any]]


class CollectRequest(BaseModel):
    type: str = "auto"
    forceSearch: bool = False


def _failure(status: int, message: str, exc: BaseException) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"success": False, "message": message, "error": f"{exc.__class__.__name__}: {exc}"},
    )


def create_app(runner: Optional[Runner] = None) -> FastAPI:
    run = runner or (lambda run_type, force: run_collection(run_type, force))
    app = FastAPI(title="Football News Collector")

    @app.get("/health")
    def _health():
        return {"status": "ok"}

    @app.post("/collect")
    def _collect(payload: Optional[CollectRequest] = None):
        request = payload or CollectRequest()
        logger.info("Collection triggered over HTTP (type=%s, forceSearch=%s)", request.type, request.forceSearch)
        try:
            result = run(request.type, request.forceSearch)
        except ConfigError as exc:
            logger.error("Invalid collection request: %s", exc)
            return _failure(400, "Invalid configuration or request", exc)
        except Exception as exc:  # noqa: BLE001 - top-level request guard
            logger.exception("Collection failed: %s", exc)
            return _failure(500, "Collection failed", exc)
        return JSONResponse(status_code=200 if result.get("success") else 500, content=result)

    return app

"""FastAPI trigger for schedulers that call the job over HTTP (cron, edge schedulers)."""

from __future__ import annotations

import hmac
from pathlib import Path

from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse

from autoresolve import __version__
from autoresolve.api.schemas import ErrorResponse, HealthResponse
from autoresolve.config import get_settings
from autoresolve.errors import MarketSourceError
from autoresolve.models import RunReport
from autoresolve.resolution.orchestrator import run_once

# Set by run_api() so requests load the same config as the CLI.
_config_profile: str | None = None
_config_dir: Path | None = None

app = FastAPI(title="autoresolve", version=__version__)


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


def _authorized(secret: str | None, authorization: str | None) -> bool:
    if not secret:
        return True
    return hmac.compare_digest(authorization or "", f"Bearer {secret}")


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


@app.post(
    "/resolve",
    response_model=RunReport,
    responses={
        401: {"description": "Missing or wrong cron secret", "model": ErrorResponse},
        502: {"description": "Market list unavailable", "model": ErrorResponse},
    },
)
async def resolve(authorization: str | None = Header(None)):
    """Run one resolution pass and return its report."""
    settings = get_settings(_config_profile, _config_dir)
    if not _authorized(settings.cron_secret, authorization):
        return _error_json("unauthorized", "Invalid or missing cron secret", status_code=401)
    try:
        return await run_once(settings)
    except MarketSourceError as e:
        return _error_json("market_source_unavailable", str(e), status_code=502)


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    profile: str | None = None,
    config_dir: Path | None = None,
) -> None:
    global _config_profile, _config_dir
    _config_profile = profile
    _config_dir = config_dir
    import uvicorn
    uvicorn.run("autoresolve.api.main:app", host=host, port=port, reload=False)

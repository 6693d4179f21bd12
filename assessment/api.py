import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
import httpx
import uvicorn

from .persistence import (
    DatabaseConfig,
    PersistenceClient,
    PersistenceError,
    SubmissionError,
    validate_submission,
)
from .settings import Settings, get_settings

log = logging.getLogger(__name__)

EGRESS_IP_URL = "https://api.ipify.org"

router = APIRouter(prefix="/api", tags=["results"])


def get_client(request: Request) -> PersistenceClient:
    return request.app.state.persistence


def _error(status: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status, content={"ok": False, "error": message, **extra})


@router.post("/submit-result")
async def submit_result(request: Request, client: PersistenceClient = Depends(get_client)):
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(400, "Invalid JSON")

    try:
        submission = validate_submission(body)
    except SubmissionError as e:
        log.info("Rejected submission: %s", e)
        return _error(400, str(e), details=e.errors)

    try:
        rows = await run_in_threadpool(client.upsert_result, submission)
    except PersistenceError as e:
        return _error(500, str(e))
    return {"ok": True, "rowsAffected": rows}


@router.get("/ping-db")
def ping_db(client: PersistenceClient = Depends(get_client)):
    try:
        return {"ok": True, "db": client.ping()}
    except PersistenceError as e:
        log.error("PingDb error: %s", e)
        return _error(500, str(e))


@router.get("/where-am-i")
def where_am_i(client: PersistenceClient = Depends(get_client)):
    return client.config.describe()


async def fetch_egress_ip(url: str = EGRESS_IP_URL) -> str:
    """Outbound IPv4 address of this host as seen by a public echo service."""
    async with httpx.AsyncClient(timeout=10) as http:
        r = await http.get(url)
        r.raise_for_status()
        return r.text.strip()


@router.get("/egress-ip")
async def egress_ip():
    try:
        ip = await fetch_egress_ip()
    except httpx.HTTPError as e:
        log.error("Egress IP lookup failed: %s", e)
        return _error(500, str(e) or type(e).__name__)
    log.info("Outbound IP: %s", ip)
    return {"ok": True, "ip": ip}


def create_app(client: Optional[PersistenceClient] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API. Without an explicit client one is configured from the
    environment; either way it is opened on startup and closed on shutdown.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if client is None:
        client = PersistenceClient(DatabaseConfig.from_settings(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client.open()
        app.state.persistence = client
        try:
            yield
        finally:
            client.close()

    app = FastAPI(title="Maturity Assessment API", lifespan=lifespan)
    app.include_router(router)
    return app


def main() -> None:
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)

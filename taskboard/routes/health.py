from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from taskboard.db import db_ping
from taskboard.redis_client import redis_ping

router = APIRouter(tags=["health"])

@router.get("/health")
def health() -> dict:
    return {"status": "ok"}

def _describe(e: Exception) -> str:
    msg = str(e).strip()
    return f"{e.__class__.__name__}: {msg}" if msg else e.__class__.__name__

@router.get("/ready")
def ready(request: Request):
    """Ready once the database and redis answer and the task board has loaded."""
    checks: dict[str, bool] = {}
    errors: dict[str, str] = {}

    for name, ping in (("db", db_ping), ("redis", redis_ping)):
        try:
            checks[name] = bool(ping())
        except Exception as e:
            checks[name] = False
            errors[name] = _describe(e)

    checks["tasks"] = not request.app.state.task_store.loading

    ok = all(checks.values())
    body: dict = {"status": "ok" if ok else "unready", "checks": checks}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=200 if ok else 503, content=body)

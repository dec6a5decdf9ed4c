# backend/app/main.py

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from .config import settings
from .database import engine, get_db
from .errors import SlotError, TransportError
from .models.generated import Base
from .schemas.common import ErrorBody
from .routers import branch_slots, references

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create the SQLite directory and any missing tables."""
    url = settings.resolved_database_url
    if url.startswith("sqlite:///"):
        Path(url.replace("sqlite:///", "")).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.auto_create_schema:
        init_db()
    yield


app = FastAPI(title="Branch Slot API", lifespan=lifespan)

app.include_router(branch_slots.router)
app.include_router(references.router)


# ===== Error mapping =====

@app.exception_handler(SlotError)
async def slot_error_handler(request: Request, exc: SlotError):
    if isinstance(exc, TransportError):
        logger.error(f"{request.method} {request.url.path} -> {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=ErrorBody(**exc.to_dict()).model_dump())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    # loc: ("body", "weekDate") / ("body", "roomIds", 0) / ("query", "pageSize") / ("body",)
    loc = [
        part for part in first.get("loc", ())
        if isinstance(part, str) and part not in ("body", "query", "path")
    ]
    field = str(loc[-1]) if loc else None
    message = first.get("msg", "Invalid request")

    logger.warning(f"{request.method} {request.url.path} -> ValidationError: {field} {message}")
    return JSONResponse(
        status_code=422,
        content=ErrorBody(kind="ValidationError", message=message, field=field).model_dump(),
    )


@app.get("/health")
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}

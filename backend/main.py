import logging
import uuid
import json

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.routes.accounts import router as accounts_router
from app.routes.chat import router as chat_router
from app.routes.todos import router as todos_router
from app.store.base import StoreError
from app.store.factory import get_record_store

settings = get_settings()
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("taskchat-backend")

app = FastAPI(title="taskchat backend", version="0.1.0")


def _normalize_origin(value: str) -> str:
    # Accept env values with quotes/brackets/trailing slash.
    return value.strip().strip("\"'").rstrip("/")


def _parse_allowed_origins(raw: str, fallback_frontend_url: str) -> list[str]:
    text = (raw or "").strip()
    parsed: list[str] = []

    # JSON array form: ["https://a.com","https://b.com"]
    if text.startswith("[") and text.endswith("]"):
        try:
            items = json.loads(text)
        except json.JSONDecodeError:
            items = None
        if isinstance(items, list):
            parsed.extend(str(item) for item in items if isinstance(item, str))

    if not parsed:
        normalized_text = text.replace("\n", ",")
        parsed.extend(part for part in normalized_text.split(",") if part.strip())

    if fallback_frontend_url:
        parsed.append(fallback_frontend_url)

    origins: list[str] = []
    seen: set[str] = set()
    for item in parsed:
        origin = _normalize_origin(item)
        if not origin or origin in seen:
            continue
        seen.add(origin)
        origins.append(origin)
    return origins


origins = _parse_allowed_origins(settings.allowed_origins, settings.frontend_url)
logger.info("cors_allowed_origins=%s", origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def prepare_record_store() -> None:
    try:
        store = get_record_store()
    except StoreError as exc:
        logger.exception("record_store setup failed")
        raise RuntimeError(f"Record store setup failed: {exc}") from exc
    logger.info(
        "record_store ready backend=%s llm_classifier_enabled=%s",
        store.backend,
        bool(getattr(settings, "llm_classifier_enabled", False)),
    )


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.warning("http_error request_id=%s path=%s detail=%s", request_id, request.url.path, exc.detail)
    message = exc.detail if isinstance(exc.detail, str) else "Request could not be processed."
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": {"message": message, "request_id": request_id}},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.exception("unhandled_error request_id=%s path=%s", request_id, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "message": "Something went wrong! Please try again shortly.",
                "request_id": request_id,
            },
        },
    )


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


app.include_router(chat_router)
app.include_router(todos_router)
app.include_router(accounts_router)

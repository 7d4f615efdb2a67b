# hackhub/main.py
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from hackhub.config import startup_config_report
from hackhub.deps import get_storage
from hackhub.errors import HackhubError
from hackhub.metrics import REGISTRY
from hackhub.routes import routers

# ----------------------------------------------------------------------
# Logger configuration
# ----------------------------------------------------------------------
logger = logging.getLogger("hackhub")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
handler.setFormatter(formatter)

if not logger.handlers:
    logger.addHandler(handler)
else:
    for h in logger.handlers:
        h.setFormatter(formatter)


# ----------------------------------------------------------------------
# Lifespan: config report + storage start (may switch to fallback)
# ----------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    startup_config_report()
    storage = get_storage()
    await storage.start()
    if storage.is_fallback:
        logger.warning("WARNING: using in-memory storage; data will not persist between server restarts")
    yield
    await storage.close()


# ----------------------------------------------------------------------
# FastAPI app + CORS
# ----------------------------------------------------------------------
app = FastAPI(
    title="hackhub",
    description="Hackathon participation lifecycle: registration, payments, submissions, evaluation.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"{request.method} {request.url.path}")
    return await call_next(request)


# ----------------------------------------------------------------------
# Routers (single source of truth: hackhub/routes/__init__.py)
# ----------------------------------------------------------------------
for r in routers:
    app.include_router(r)

# ----------------------------------------------------------------------
# Metrics
# ----------------------------------------------------------------------
app.mount("/metrics", make_asgi_app(registry=REGISTRY))


# ----------------------------------------------------------------------
# Exception handlers
# ----------------------------------------------------------------------
@app.exception_handler(HackhubError)
async def hackhub_error_handler(request: Request, exc: HackhubError):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info(f"validation_error on {request.url.path}: {len(exc.errors())} issue(s)")
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_error",
            "detail": "Invalid request",
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}\n{traceback.format_exc()}"
    )
    detail = str(exc) if app.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": detail},
    )

import logging
import os
import time
from fastapi import FastAPI, APIRouter, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.exc import SQLAlchemyError

from .db import init_db
from .metrics import APP_NAME, LAT, ORDERS_FAILED, REQS
from .orders import OrderError
from .routers import cashier, manager, menu, reports

logger = logging.getLogger(__name__)

LISTEN_PORT = int(os.getenv("LISTEN_PORT", "5000"))

# Prefix for the JSON API. Set API_PREFIX="" if your gateway strips /api.
API_PREFIX = os.getenv("API_PREFIX", "/api").strip()
if API_PREFIX and not API_PREFIX.startswith("/"):
    API_PREFIX = "/" + API_PREFIX
API_PREFIX = API_PREFIX.rstrip("/")

FRONTEND_URL = os.getenv("FRONTEND_URL", "").strip()

app = FastAPI(title=APP_NAME)
router = APIRouter(prefix=API_PREFIX)

# Local dev servers and hosted frontends; FRONTEND_URL adds one more origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL] if FRONTEND_URL else [],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?|https://.*\.onrender\.com",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- Startup: ensure schema + tables exist (idempotent) ----
@app.on_event("startup")
def on_startup():
    init_db()

# ---- Prometheus metrics ----
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    REQS.labels(APP_NAME, request.url.path, request.method, response.status_code).inc()
    LAT.labels(APP_NAME, request.url.path, request.method).observe(time.time() - start)
    return response

# ---- Error mapping ----
@app.exception_handler(OrderError)
async def order_error_handler(request: Request, exc: OrderError):
    ORDERS_FAILED.labels(reason=exc.reason).inc()
    return JSONResponse(status_code=400, content={"detail": str(exc)})

@app.exception_handler(SQLAlchemyError)
async def db_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})

@app.get("/health", response_class=PlainTextResponse)
def health():
    return "ok"

@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

router.include_router(menu.router)
router.include_router(cashier.router)
router.include_router(manager.router)
router.include_router(reports.router)
app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    uvicorn.run(app, host="0.0.0.0", port=LISTEN_PORT)

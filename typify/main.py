import time
import uuid
import logging
import datetime
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.sessions import SessionMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .db import engine, SessionLocal
from .models import Base
from .routes import public, auth, auth_google, app_pages, dashboard, onboarding, admin
from .services.accounts import bootstrap_superadmin
from .services.oauth_popup import purge_stale_handshakes
from .logging_setup import setup_logging, request_id_var, user_id_var, log_event
from .security.auth import token_user_id
from .config import settings

setup_logging()
logger = logging.getLogger(__name__)

# Startup validation checks
unsafe_settings = []
if settings.secret_key == "change-me-in-production-for-jwt":
    unsafe_settings.append("JWT_SECRET (Using default insecure key)")
if settings.session_secret == "change-me-session-secret":
    unsafe_settings.append("SESSION_SECRET (Using default insecure key)")
if not settings.google_client_id or not settings.google_client_secret:
    unsafe_settings.append("GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET")
if not settings.openai_api_key:
    unsafe_settings.append("OPENAI_API_KEY")
if not settings.database_url or settings.database_url.startswith("sqlite"):
    unsafe_settings.append("DATABASE_URL (Production Postgres recommended)")

if unsafe_settings:
    logger.warning(f"CRITICAL STARTUP WARNING: Missing or unsafe required variables: {', '.join(unsafe_settings)}")

app = FastAPI(title="Typify - AI social media posts")
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret, same_site="lax", https_only=settings.cookie_secure)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request_token = request_id_var.set(request_id)
    user_token = user_id_var.set(token_user_id(request))
    started = time.perf_counter()
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        if request.url.path not in ("/health", "/ready"):
            logger.info(f"{request.method} {request.url.path} {response.status_code} {duration_ms}ms")
        return response
    finally:
        user_id_var.reset(user_token)
        request_id_var.reset(request_token)

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error", "type": type(exc).__name__},
    )

@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "0.1.0",
        "now": datetime.datetime.now(datetime.timezone.utc).isoformat()
    }

@app.get("/ready")
def readiness_check():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT id FROM users LIMIT 1"))
        return {"status": "ready"}
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "not_ready", "detail": "Database migrations pending or DB unreachable."})

# Include Routers
app.include_router(public.router)
app.include_router(auth.router)
app.include_router(auth_google.router)
app.include_router(onboarding.router)
app.include_router(dashboard.router)
app.include_router(app_pages.router)
app.include_router(admin.router)

@app.on_event("startup")
def on_startup():
    logger.info("STARTUP: Creating/verifying database tables...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        bootstrap_superadmin(db)
        purged = purge_stale_handshakes(db)
        if purged:
            log_event("oauth_handshakes_purged", count=purged)
    except Exception as e:
        logger.error(f"Startup bootstrap failed: {e}")
        db.rollback()
    finally:
        db.close()

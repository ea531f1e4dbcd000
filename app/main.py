"""
Personal data server: SSO login against external identity providers.

Load .env in development only (production uses env vars directly). Add CORS,
exception handlers, optional DB init, and seed provider credentials from env.
"""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

# Load .env only in development, before config reads the environment;
# production should set env vars directly
if os.getenv("ENV", "development").lower() == "development":
    load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from config import FRONTEND_URL, GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, LOG_LEVEL, SKIP_DB_INIT

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from database import Base, SessionLocal, engine, get_db, is_database_ready
from db_ops import SsoDbOps
from errors import CredentialsNotFound
from sso import router as sso_router

# Create DB tables if not skipping (production manages the schema separately)
if not SKIP_DB_INIT:
    Base.metadata.create_all(bind=engine)


def seed_provider_credentials() -> None:
    """
    Store GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET in sso_provider when both
    are set. Failures are logged; the server still starts and logins report
    the missing credentials.
    """
    if not (GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET):
        return
    try:
        with SessionLocal() as db:
            SsoDbOps(db).upsert_sso_provider("google", GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET)
    except IntegrityError:
        # Another worker inserted the row first
        logging.info("SSO credentials for google already seeded")
    except OperationalError as e:
        logging.error("Could not seed SSO credentials for google: %s", e.orig)


@asynccontextmanager
async def lifespan(app: FastAPI):
    seed_provider_credentials()
    yield


app = FastAPI(
    title="Personal Data Server",
    description="Single sign-on login with external identity providers.",
    lifespan=lifespan,
)

# CORS: explicit origin, allow credentials (cookies). Never use "*" with cookies.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL] if FRONTEND_URL else [],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(CredentialsNotFound)
async def credentials_not_found_handler(request: Request, exc: CredentialsNotFound):
    """Server misconfiguration, not a user error: log it, return a generic 500."""
    logging.error("SSO configuration error: %s", exc.msg)
    return JSONResponse(
        status_code=500,
        content={"isError": True, "message": "SSO provider is not configured"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions; log and return generic 500. Never leak stack traces."""
    # Let FastAPI handle HTTPException (validation, not found, etc.)
    if isinstance(exc, HTTPException):
        raise exc
    logging.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"isError": True, "message": "Internal server error"},
    )


@app.get("/health")
def health():
    return {"isHealthy": True}


@app.get("/ready")
def ready(db: Session = Depends(get_db)):
    """Ready once the database answers queries."""
    if not is_database_ready(db):
        return JSONResponse(
            status_code=503,
            content={"isError": True, "message": "Database is not ready"},
        )
    return {"isReady": True}


app.include_router(sso_router)

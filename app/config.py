"""
Application configuration from environment variables.

Load with python-dotenv in main so env vars are available before imports.
Provider endpoints live in providers/; only values that differ per deployment
(redirect URIs, client credentials used for seeding, timeouts) are read here.
"""
import os

# --- Optional with defaults ---
# Redirect URI registered with Google; must match the callback route
GOOGLE_REDIRECT_URI = os.getenv(
    "GOOGLE_REDIRECT_URI",
    "http://localhost:3000/sso/google/login/callback",
)

# Client credentials are read from the sso_provider table at request time.
# When both are set, main seeds/updates the "google" row at startup.
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")

# Allowed CORS origin for the frontend that starts the login
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")


def _int_env(key: str, default: int) -> int:
    try:
        return max(1, int(os.getenv(key, str(default))))
    except ValueError:
        return default


# Outbound provider requests (connect, read) in seconds
SSO_REQUEST_TIMEOUT = (
    _int_env("SSO_CONNECT_TIMEOUT", 5),
    _int_env("SSO_READ_TIMEOUT", 30),
)

# Database URL (SQLite default; use Postgres URL in production)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./personal_data.db")

# Skip create_all at startup (set in production when the schema is managed elsewhere)
SKIP_DB_INIT = os.getenv("SKIP_DB_INIT", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Environment: development | production (affects .env loading)
ENV = os.getenv("ENV", "development").lower()

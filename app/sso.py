"""
SSO router: begin login and provider callback for each registered provider.

- /sso/{provider}/login redirects to the provider's consent page. The state
  query parameter is passed through as-is; one is generated when absent.
- /sso/{provider}/login/callback exchanges the code, reconciles local
  records and returns the access token record as JSON, echoing state.
- Provider failures are relayed with the provider's status and body;
  an unreachable provider is a 502.
"""
import json
import secrets

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from crypto import decrypt
from database import get_db
from db_ops import SsoDbOps
from errors import UnknownProvider
from models import AccessToken, SsoUserAccount
from providers.base import SsoAdapter, TransportFailure, UpstreamError
from providers.registry import get_provider
from services.login_flow import begin_login, handle_callback

router = APIRouter(prefix="/sso")


def get_adapter(provider: str) -> SsoAdapter:
    """FastAPI dependency: resolve the provider path parameter to its adapter."""
    try:
        return get_provider(provider)
    except UnknownProvider as e:
        raise HTTPException(status_code=404, detail=e.msg)


def get_db_ops(db: Session = Depends(get_db)) -> SsoDbOps:
    return SsoDbOps(db)


def relayable_body(data):
    """Provider body as sent, or its text form when it is not strict JSON (NaN, Infinity)."""
    try:
        json.dumps(data, allow_nan=False)
    except ValueError:
        return str(data)
    return data


def access_token_to_dict(record: AccessToken, db: Session) -> dict:
    link = db.get(SsoUserAccount, record.sso_user_account_id)
    return {
        "accessToken": decrypt(record.encrypted_access_token),
        "refreshToken": decrypt(record.encrypted_refresh_token),
        "expiresAt": record.expires_at.isoformat() if record.expires_at else None,
        "ssoUserAccountId": record.sso_user_account_id,
        "userId": link.user_id if link else None,
    }


@router.get("/{provider}/login")
def sso_login(
    state: str | None = None,
    adapter: SsoAdapter = Depends(get_adapter),
    db_ops: SsoDbOps = Depends(get_db_ops),
):
    """Redirect to the provider's authorization endpoint."""
    if not state:
        state = secrets.token_urlsafe(32)
    return RedirectResponse(url=begin_login(adapter, state, db_ops))


@router.get("/{provider}/login/callback")
def sso_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    adapter: SsoAdapter = Depends(get_adapter),
    db_ops: SsoDbOps = Depends(get_db_ops),
):
    """
    Handle the redirect from the provider. Returns the access token record on
    success; relays the provider's error response otherwise.
    """
    if error:
        raise HTTPException(status_code=400, detail=f"SSO error from {adapter.name}: {error}")
    if not code:
        raise HTTPException(status_code=400, detail="Missing code")

    result = handle_callback(adapter, code, db_ops)

    if isinstance(result, UpstreamError):
        return JSONResponse(
            status_code=result.status if result.status >= 400 else 502,
            content={
                "isError": True,
                "message": f"Login with {adapter.name} failed",
                "provider": adapter.name,
                "status": result.status,
                "data": relayable_body(result.data),
            },
        )
    if isinstance(result, TransportFailure):
        return JSONResponse(
            status_code=502,
            content={
                "isError": True,
                "message": f"Could not reach {adapter.name}: {result.reason}",
                "provider": adapter.name,
            },
        )
    body = access_token_to_dict(result, db_ops.db)
    body["state"] = state
    return body

"""Google OAuth 2.0 adapter."""
from typing import Any

from config import GOOGLE_REDIRECT_URI
from providers.base import ProviderConfig, SsoAdapter, UpstreamError, UserProfile

GOOGLE_CONFIG = ProviderConfig(
    provider="google",
    authorize_uri="https://accounts.google.com/o/oauth2/auth",
    access_token_uri="https://accounts.google.com/o/oauth2/token",
    user_info_uri="https://www.googleapis.com/oauth2/v2/userinfo",
    redirect_uri=GOOGLE_REDIRECT_URI,
    scopes=("openid", "profile", "email"),
    # offline so Google also issues a refresh token
    access_type="offline",
    # Placeholder preferences for new local users until users can define their own
    default_preferences={"textSize": 1.2, "lineSpace": 1.2},
)


class GoogleSso(SsoAdapter):
    """Google user info (oauth2/v2/userinfo): id, email, name, picture, verified_email."""

    def parse_profile(self, data: Any) -> UserProfile | UpstreamError:
        if not isinstance(data, dict):
            return UpstreamError(200, data)
        # v2 userinfo uses "id"; OpenID Connect userinfo uses "sub"
        user_id = data.get("id") or data.get("sub")
        if not user_id or not isinstance(user_id, (str, int)) or isinstance(user_id, bool):
            return UpstreamError(200, data)
        email = data.get("email")
        name = data.get("name")
        if not all(v is None or isinstance(v, str) for v in (email, name)):
            return UpstreamError(200, data)
        return UserProfile(
            provider_user_id=str(user_id),
            email=email,
            name=name,
            raw=data,
        )

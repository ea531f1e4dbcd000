"""
Provider adapter base: OAuth2 authorization-code flow over requests.

An adapter is a translation layer between one identity provider's wire
format and the internal shapes below. Adapters never raise for provider-side
failures: a non-200 response comes back as UpstreamError carrying the status
and body verbatim, and a request that got no response at all comes back as
TransportFailure. The login flow relays both to the caller unchanged.
"""
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

import requests

from config import SSO_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable per-provider settings, built once at startup."""
    provider: str
    authorize_uri: str
    access_token_uri: str
    user_info_uri: str
    redirect_uri: str
    scopes: tuple[str, ...]
    access_type: str | None = None
    default_preferences: dict = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class ClientCredentials:
    client_id: str
    client_secret: str = field(repr=False)


@dataclass(frozen=True)
class TokenInfo:
    """Token payload returned by the provider's token endpoint."""
    access_token: str = field(repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    expires_in: int | None = None
    raw: dict = field(default_factory=dict, repr=False, compare=False, hash=False)


@dataclass(frozen=True)
class UserProfile:
    """Identity claims; provider_user_id is scoped to the provider."""
    provider_user_id: str
    email: str | None = None
    name: str | None = None
    raw: dict = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class UpstreamError:
    """Non-success response from the provider, relayed as-is."""
    status: int
    data: Any


@dataclass(frozen=True)
class TransportFailure:
    """No response from the provider (connection error, timeout, bad TLS)."""
    reason: str


# Upper bound for expires_in: ten years
MAX_EXPIRES_IN = 10 * 365 * 24 * 3600


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _response_body(resp: requests.Response) -> Any:
    """Decoded JSON body, or the raw text when the provider did not send JSON."""
    try:
        return resp.json()
    except ValueError:
        return resp.text


class SsoAdapter:
    """
    Generic OAuth2 authorization-code adapter.

    Subclasses implement parse_profile for their user-info payload and may
    override parse_token when the token response is non-standard.
    """

    def __init__(self, config: ProviderConfig, timeout: tuple[int, int] = SSO_REQUEST_TIMEOUT):
        self.config = config
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.config.provider

    def build_authorization_url(self, state: str, client_id: str) -> str:
        """
        URL the user agent is redirected to. Deterministic for the same
        inputs; state is passed through unmodified.
        """
        params = {
            "client_id": client_id,
            "redirect_uri": self.config.redirect_uri,
            "scope": " ".join(self.config.scopes),
            "response_type": "code",
            "state": state,
        }
        if self.config.access_type:
            params["access_type"] = self.config.access_type
        return f"{self.config.authorize_uri}?{urlencode(params)}"

    def exchange_code_for_token(
        self,
        code: str,
        credentials: ClientCredentials,
    ) -> TokenInfo | UpstreamError | TransportFailure:
        """POST the authorization code to the token endpoint."""
        try:
            resp = requests.post(
                self.config.access_token_uri,
                json={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.config.redirect_uri,
                    "client_id": credentials.client_id,
                    "client_secret": credentials.client_secret,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Access token request for %s got no response: %s", self.name, type(e).__name__)
            return TransportFailure(f"Token request failed: {type(e).__name__}")

        logger.debug("Status: %s: access token for %s", resp.status_code, self.name)
        data = _response_body(resp)
        if resp.status_code != 200:
            return UpstreamError(resp.status_code, data)
        return self.parse_token(data)

    def fetch_profile(self, access_token: str) -> UserProfile | UpstreamError | TransportFailure:
        """GET the user-info endpoint with the access token as a query credential."""
        try:
            resp = requests.get(
                self.config.user_info_uri,
                params={"access_token": access_token, "alt": "json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("User profile request for %s got no response: %s", self.name, type(e).__name__)
            return TransportFailure(f"Profile request failed: {type(e).__name__}")

        logger.debug("Status: %s: user profile for %s", resp.status_code, self.name)
        data = _response_body(resp)
        if resp.status_code != 200:
            return UpstreamError(resp.status_code, data)
        return self.parse_profile(data)

    def parse_token(self, data: Any) -> TokenInfo | UpstreamError:
        # A 200 without a usable access token is still a provider failure
        if not isinstance(data, dict) or not _is_text(data.get("access_token")):
            return UpstreamError(200, data)
        refresh_token = data.get("refresh_token")
        if refresh_token is not None and not _is_text(refresh_token):
            return UpstreamError(200, data)
        expires_in = data.get("expires_in")
        if expires_in is not None:
            if isinstance(expires_in, bool):
                return UpstreamError(200, data)
            try:
                expires_in = int(expires_in)
            except (TypeError, ValueError, OverflowError):
                return UpstreamError(200, data)
            if not 0 < expires_in <= MAX_EXPIRES_IN:
                return UpstreamError(200, data)
        return TokenInfo(
            access_token=data["access_token"],
            refresh_token=refresh_token,
            expires_in=expires_in,
            raw=data,
        )

    def parse_profile(self, data: Any) -> UserProfile | UpstreamError:
        raise NotImplementedError

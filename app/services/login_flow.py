"""
SSO login flow: the two HTTP touchpoints of the authorization-code grant.

begin_login builds the provider redirect; handle_callback exchanges the code,
fetches the profile and reconciles local records. Nothing is kept between the
two calls; the provider echoes the caller's state back to the callback.

handle_callback returns one of:
- AccessToken: the persisted token record (success)
- UpstreamError: the provider's non-200 status and body, unchanged
- TransportFailure: the provider could not be reached
Missing client credentials raise CredentialsNotFound.
"""
import logging

from db_ops import SsoDbOps
from models import AccessToken
from providers.base import SsoAdapter, TokenInfo, TransportFailure, UpstreamError, UserProfile
from services.reconciler import reconcile

logger = logging.getLogger(__name__)

LoginResult = AccessToken | UpstreamError | TransportFailure


def begin_login(adapter: SsoAdapter, state: str, db_ops: SsoDbOps) -> str:
    """Authorization URL to redirect the user agent to."""
    credentials = db_ops.get_client_credentials(adapter.name)
    url = adapter.build_authorization_url(state, credentials.client_id)
    logger.debug("%s /authorize request: %s", adapter.name, url)
    return url


def handle_callback(adapter: SsoAdapter, code: str, db_ops: SsoDbOps) -> LoginResult:
    credentials = db_ops.get_client_credentials(adapter.name)

    token_info = adapter.exchange_code_for_token(code, credentials)
    if not isinstance(token_info, TokenInfo):
        logger.info("%s token exchange failed: %s", adapter.name, _describe(token_info))
        return token_info

    profile = adapter.fetch_profile(token_info.access_token)
    if not isinstance(profile, UserProfile):
        logger.info("%s profile fetch failed: %s", adapter.name, _describe(profile))
        return profile

    return reconcile(
        profile,
        token_info,
        adapter.name,
        adapter.config.default_preferences,
        db_ops,
    )


def _describe(failure: UpstreamError | TransportFailure) -> str:
    if isinstance(failure, UpstreamError):
        return f"status {failure.status}"
    return failure.reason

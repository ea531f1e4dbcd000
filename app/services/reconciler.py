"""
Account reconciler: turn a fetched profile and token into local records.

First login for a (provider, provider user id) creates a local_user, an
sso_user_account and an access_token. Later logins refresh the account's
profile fields and overwrite its token; no token history is kept.
"""
import logging

from sqlalchemy.exc import IntegrityError

from db_ops import SsoDbOps
from models import AccessToken
from providers.base import TokenInfo, UserProfile

logger = logging.getLogger(__name__)


def _store(
    profile: UserProfile,
    token_info: TokenInfo,
    provider: str,
    default_preferences: dict,
    db_ops: SsoDbOps,
) -> AccessToken:
    link = db_ops.find_account_link(provider, profile.provider_user_id)
    if link is None:
        user = db_ops.create_user(default_preferences)
        link = db_ops.create_account_link(user.user_id, profile, provider)
        logger.info("Created user %s for %s account link %s", user.user_id, provider, link.sso_user_account_id)
        return db_ops.create_access_token(link.sso_user_account_id, token_info)

    link = db_ops.update_account_link(link.sso_user_account_id, profile)
    return db_ops.update_access_token(link.sso_user_account_id, token_info)


def reconcile(
    profile: UserProfile,
    token_info: TokenInfo,
    provider: str,
    default_preferences: dict,
    db_ops: SsoDbOps,
) -> AccessToken:
    """
    Create or update the user / account link / token for this profile and
    return the access token record. All writes commit together.
    """
    try:
        with db_ops.transaction():
            return _store(profile, token_info, provider, default_preferences, db_ops)
    except IntegrityError:
        # Another login for the same account created the link first; the
        # retry finds it and takes the update path
        logger.info("Account link for %s already created concurrently; updating", provider)
        with db_ops.transaction():
            return _store(profile, token_info, provider, default_preferences, db_ops)

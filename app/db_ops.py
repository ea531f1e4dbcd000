"""
Database operations used by the SSO flow: credentials store and the
user / sso_user_account / access_token writes.

Write methods only flush; the caller decides the transaction boundary with
transaction(), so a reconcile commits all of its writes at once.
"""
from contextlib import contextmanager
from datetime import datetime, timedelta, UTC

from sqlalchemy.orm import Session

from crypto import decrypt, encrypt
from errors import CredentialsNotFound
from models import AccessToken, LocalUser, SsoProvider, SsoUserAccount
from providers.base import ClientCredentials, TokenInfo, UserProfile


class SsoDbOps:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self):
        """Commit on success, roll back and re-raise on any error."""
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # --- Credentials store ---

    def _provider_row(self, provider: str) -> SsoProvider:
        row = self.db.query(SsoProvider).filter_by(name=provider).one_or_none()
        if row is None:
            raise CredentialsNotFound(provider)
        return row

    def get_client_credentials(self, provider: str) -> ClientCredentials:
        """Client id and decrypted secret; raises CredentialsNotFound if not stored."""
        row = self._provider_row(provider)
        return ClientCredentials(
            client_id=row.client_id,
            client_secret=decrypt(row.client_secret),
        )

    def upsert_sso_provider(self, provider: str, client_id: str, client_secret: str) -> SsoProvider:
        row = self.db.query(SsoProvider).filter_by(name=provider).one_or_none()
        if row is None:
            row = SsoProvider(name=provider)
            self.db.add(row)
        row.client_id = client_id
        row.client_secret = encrypt(client_secret)
        self.db.commit()
        return row

    # --- Accounts ---

    def find_account_link(self, provider: str, provider_user_id: str) -> SsoUserAccount | None:
        return (
            self.db.query(SsoUserAccount)
            .join(SsoProvider, SsoProvider.provider_id == SsoUserAccount.provider_id)
            .filter(
                SsoProvider.name == provider,
                SsoUserAccount.provider_user_id == provider_user_id,
            )
            .one_or_none()
        )

    def create_user(self, preferences: dict) -> LocalUser:
        user = LocalUser(preferences=dict(preferences))
        self.db.add(user)
        self.db.flush()
        return user

    def create_account_link(self, user_id: int, profile: UserProfile, provider: str) -> SsoUserAccount:
        link = SsoUserAccount(
            user_id=user_id,
            provider_id=self._provider_row(provider).provider_id,
            provider_user_id=profile.provider_user_id,
            email=profile.email,
            name=profile.name,
            user_info=profile.raw,
        )
        self.db.add(link)
        self.db.flush()
        return link

    def update_account_link(self, link_id: int, profile: UserProfile) -> SsoUserAccount:
        link = self.db.get(SsoUserAccount, link_id)
        link.email = profile.email
        link.name = profile.name
        link.user_info = profile.raw
        self.db.flush()
        return link

    # --- Tokens ---

    @staticmethod
    def _apply_token(record: AccessToken, token_info: TokenInfo) -> None:
        record.encrypted_access_token = encrypt(token_info.access_token)
        record.encrypted_refresh_token = encrypt(token_info.refresh_token)
        if token_info.expires_in is not None:
            record.expires_at = datetime.now(UTC) + timedelta(seconds=token_info.expires_in)
        else:
            record.expires_at = None

    def create_access_token(self, link_id: int, token_info: TokenInfo) -> AccessToken:
        record = AccessToken(sso_user_account_id=link_id)
        self._apply_token(record, token_info)
        self.db.add(record)
        self.db.flush()
        return record

    def update_access_token(self, link_id: int, token_info: TokenInfo) -> AccessToken:
        """Overwrite the link's token; creates it if the link has none yet."""
        record = self.db.get(AccessToken, link_id)
        if record is None:
            return self.create_access_token(link_id, token_info)
        self._apply_token(record, token_info)
        self.db.flush()
        return record

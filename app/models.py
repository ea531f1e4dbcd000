"""
Data models for the personal data server SSO login.

"""
from datetime import datetime, UTC

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)

from database import Base


def _now() -> datetime:
    return datetime.now(UTC)


class SsoProvider(Base):
    """
    Credentials store: one row per identity provider.

    - name: provider id used in routes and lookups ("google").
    - client_id / client_secret: issued by the provider; client_secret is
      Fernet-encrypted (crypto.encrypt) and never logged.
    """
    __tablename__ = "sso_provider"

    provider_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), unique=True, nullable=False)
    client_id = Column(String(255), nullable=False)
    client_secret = Column(String(2048), nullable=False)


class LocalUser(Base):
    """Local account; created with default preferences on first SSO login."""
    __tablename__ = "local_user"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    preferences = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    last_updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_now)


class SsoUserAccount(Base):
    """
    Account link between a LocalUser and a (provider, provider user id) pair.

    Unique per (provider_id, provider_user_id); profile fields are refreshed
    on every login.
    """
    __tablename__ = "sso_user_account"
    __table_args__ = (
        UniqueConstraint("provider_id", "provider_user_id", name="uq_sso_provider_user"),
    )

    sso_user_account_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("local_user.user_id"), nullable=False)
    provider_id = Column(Integer, ForeignKey("sso_provider.provider_id"), nullable=False)
    provider_user_id = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    name = Column(String(255), nullable=True)
    user_info = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    last_updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_now)


class AccessToken(Base):
    """
    Latest provider token for an account link (one row per link, overwritten
    on each login). Tokens are encrypted at rest.
    """
    __tablename__ = "access_token"

    sso_user_account_id = Column(
        Integer,
        ForeignKey("sso_user_account.sso_user_account_id"),
        primary_key=True,
    )
    encrypted_access_token = Column(String(4096), nullable=False)
    encrypted_refresh_token = Column(String(4096), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    last_updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_now)

"""
Exceptions raised by the SSO login flow.

Provider-side failures are not exceptions: they come back as UpstreamError or
TransportFailure values (providers.base). Only configuration problems raise.
"""


class SsoError(Exception):
    """Base class for SSO configuration errors."""

    def __init__(self, msg: str):
        self.msg = msg
        super().__init__(msg)


class CredentialsNotFound(SsoError):
    """No client id/secret stored for the provider in sso_provider."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"No client credentials configured for SSO provider '{provider}'")


class UnknownProvider(SsoError):
    """No adapter is registered under the requested provider id."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unknown SSO provider '{provider}'")

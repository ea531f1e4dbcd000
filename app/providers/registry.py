"""
Provider registry: adapters keyed by provider id, selected per request.
"""
from errors import UnknownProvider
from providers.base import SsoAdapter
from providers.google import GOOGLE_CONFIG, GoogleSso

_providers: dict[str, SsoAdapter] = {}


def register_provider(adapter: SsoAdapter) -> None:
    """Register (or replace) the adapter for adapter.name."""
    _providers[adapter.name] = adapter


def get_provider(name: str) -> SsoAdapter:
    try:
        return _providers[name]
    except KeyError:
        raise UnknownProvider(name) from None


def provider_names() -> list[str]:
    return sorted(_providers)


register_provider(GoogleSso(GOOGLE_CONFIG))

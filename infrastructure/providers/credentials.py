from collections.abc import Generator
from dataclasses import dataclass

import httpx

from config.settings import AuthType, ProviderSettings


@dataclass(frozen=True)
class ProviderCredentials:
    api_key: str | None = None
    api_secret: str | None = None
    bearer_token: str | None = None

    @classmethod
    def from_settings(cls, settings: ProviderSettings) -> 'ProviderCredentials':
        return cls(
            api_key=settings.api_key or None,
            api_secret=settings.api_secret or None,
            bearer_token=settings.bearer_token or None,
        )

    def __repr__(self) -> str:
        # Secrets stay masked
        return (
            f'ProviderCredentials(api_key={"***" if self.api_key else None}, '
            f'api_secret={"***" if self.api_secret else None}, '
            f'bearer_token={"***" if self.bearer_token else None})'
        )


class APIKeyAuth(httpx.Auth):
    def __init__(self, api_key: str, header_name: str = 'X-API-Key'):
        self.api_key = api_key
        self.header_name = header_name

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers[self.header_name] = self.api_key
        yield request


class BearerAuth(httpx.Auth):
    def __init__(self, token: str):
        self.token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers['Authorization'] = f'Bearer {self.token}'
        yield request


def resolve_credentials(configured: ProviderCredentials,
                        per_call: ProviderCredentials | None) -> ProviderCredentials:
    """Overlay per-call credentials on the configured ones, field by field."""
    if per_call is None:
        return configured
    return ProviderCredentials(
        api_key=per_call.api_key or configured.api_key,
        api_secret=per_call.api_secret or configured.api_secret,
        bearer_token=per_call.bearer_token or configured.bearer_token,
    )


def build_auth(auth_type: AuthType, credentials: ProviderCredentials) -> httpx.Auth | None:
    """
    Build the httpx auth flow for a provider.

    Returns None when the credentials needed by `auth_type` are missing.
    """
    if auth_type == AuthType.API_KEY:
        return APIKeyAuth(credentials.api_key) if credentials.api_key else None
    if auth_type == AuthType.BEARER:
        return BearerAuth(credentials.bearer_token) if credentials.bearer_token else None
    if auth_type == AuthType.BASIC:
        if credentials.api_key and credentials.api_secret:
            return httpx.BasicAuth(credentials.api_key, credentials.api_secret)
        return None
    raise ValueError(f'Unsupported auth type: {auth_type}')

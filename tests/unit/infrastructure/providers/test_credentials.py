import httpx
import pytest

from config.settings import AuthType
from infrastructure.providers.credentials import (
    APIKeyAuth,
    BearerAuth,
    ProviderCredentials,
    build_auth,
    resolve_credentials,
)


def _apply(auth: httpx.Auth) -> httpx.Request:
    return next(auth.auth_flow(httpx.Request('POST', 'http://provider.test/exchange')))


def test_api_key_auth_sets_header():
    request = _apply(build_auth(AuthType.API_KEY, ProviderCredentials(api_key='abc')))
    assert request.headers['X-API-Key'] == 'abc'


def test_bearer_auth_sets_authorization():
    auth = build_auth(AuthType.BEARER, ProviderCredentials(bearer_token='tok'))

    assert isinstance(auth, BearerAuth)
    assert _apply(auth).headers['Authorization'] == 'Bearer tok'


@pytest.mark.parametrize('auth_type, credentials', [
    (AuthType.API_KEY, ProviderCredentials()),
    (AuthType.BEARER, ProviderCredentials(api_key='abc')),
    (AuthType.BASIC, ProviderCredentials(api_key='user')),
])
def test_missing_credentials_build_no_auth(auth_type, credentials):
    assert build_auth(auth_type, credentials) is None


def test_per_call_credentials_take_precedence():
    configured = ProviderCredentials(api_key='configured', api_secret='configured-secret')

    resolved = resolve_credentials(configured, ProviderCredentials(api_key='per-call'))

    assert resolved.api_key == 'per-call'
    assert resolved.api_secret == 'configured-secret'
    assert resolve_credentials(configured, None) is configured


def test_repr_masks_secrets():
    text = repr(ProviderCredentials(api_key='abc', bearer_token='tok'))

    assert 'abc' not in text
    assert 'tok' not in text
    assert 'api_secret=None' in text


def test_api_key_auth_custom_header():
    request = _apply(APIKeyAuth('abc', header_name='X-Custom-Key'))
    assert request.headers['X-Custom-Key'] == 'abc'

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_circuit_breakers, get_toggles
from api.schemas import BulkToggleRequest, ProviderStatusResponse, ToggleProviderRequest, ToggleResponse
from application.services import ProviderToggles, ToggleResult
from infrastructure.resilience import CircuitBreaker

router = APIRouter(prefix='/api/v1/admin', tags=['admin'])


def _toggle_response(result: ToggleResult) -> ToggleResponse:
    return ToggleResponse(
        provider_name=result.provider_name,
        enabled=result.enabled,
        success=result.success,
        error_message=result.error_message,
    )


@router.put('/providers/{name}', response_model=ToggleResponse, summary='Enable or disable one provider')
async def toggle_provider(
    name: str,
    body: ToggleProviderRequest,
    toggles: Annotated[ProviderToggles, Depends(get_toggles)],
) -> ToggleResponse:
    result = toggles.toggle(name, body.enabled)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error_message)
    return _toggle_response(result)


@router.put('/providers', response_model=list[ToggleResponse], summary='Enable or disable several providers')
async def bulk_toggle_providers(
    body: BulkToggleRequest,
    toggles: Annotated[ProviderToggles, Depends(get_toggles)],
) -> list[ToggleResponse]:
    return [_toggle_response(result) for result in toggles.bulk_toggle(body.providers)]


@router.get('/providers', response_model=list[ProviderStatusResponse], summary='Provider enablement and circuit state')
async def list_providers(
    toggles: Annotated[ProviderToggles, Depends(get_toggles)],
    breakers: Annotated[dict[str, CircuitBreaker], Depends(get_circuit_breakers)],
) -> list[ProviderStatusResponse]:
    return [
        ProviderStatusResponse(provider_name=name, enabled=enabled, circuit=breakers[name].status())
        for name, enabled in toggles.status().items()
    ]

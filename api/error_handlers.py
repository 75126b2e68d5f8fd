import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.quote import AllProvidersFailedError, InvalidRequestError, NoProvidersEnabledError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError):
        return JSONResponse(status_code=400, content={'detail': str(exc)})

    @app.exception_handler(NoProvidersEnabledError)
    async def no_providers_handler(request: Request, exc: NoProvidersEnabledError):
        logger.warning(f'Quote requested with every provider disabled: {exc}')
        return JSONResponse(status_code=503, content={'detail': str(exc)})

    @app.exception_handler(AllProvidersFailedError)
    async def all_failed_handler(request: Request, exc: AllProvidersFailedError):
        logger.error(f'All providers failed: {exc}')
        return JSONResponse(
            status_code=503,
            content={'detail': 'All quote providers failed', 'failures': exc.failures},
        )

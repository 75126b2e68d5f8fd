import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.dependencies import cleanup_dependencies, init_dependencies
from api.error_handlers import register_exception_handlers
from api.routes import admin, currencies, health, quotes, statistics
from config.settings import get_settings
from infrastructure.monitoring.logger import get_production_logger, setup_logging

logger = logging.getLogger(__name__)


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(
        log_directory=settings.LOG_DIRECTORY,
        console_level=settings.LOG_CONSOLE_LEVEL,
        file_level=settings.LOG_FILE_LEVEL,
        log_to_file=settings.LOG_TO_FILE,
    )
    logger.info(f'Starting {settings.APP_NAME} v{settings.APP_VERSION}...')

    container = init_dependencies(settings)
    production_logger = get_production_logger()
    production_logger.log_service_lifecycle('started', {
        'version': settings.APP_VERSION,
        'providers': [p.name for p in container.providers],
    })

    yield

    logger.info('Shutting down...')
    await cleanup_dependencies()
    production_logger.log_service_lifecycle('stopped')


app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f'Unhandled exception: {exc}', exc_info=True)
    return JSONResponse(status_code=500, content={'detail': 'Internal server error'})


app.include_router(quotes.router)
app.include_router(statistics.router)
app.include_router(admin.router)
app.include_router(health.router)
app.include_router(currencies.router)
register_exception_handlers(app)


if __name__ == '__main__':
    uvicorn.run('api.main:app', host='0.0.0.0', port=8000, reload=settings.DEBUG)

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from backend.core import config
from backend.core.errors import AppError
from backend.core.logging_config import configure_logging
from backend.repositories.base import Repository
from backend.repositories.memory_repository import InMemoryRepository
from backend.repositories.sql_repository import SqlRepository
from backend.routes import auth_routes, dashboard_routes, student_routes

logger = logging.getLogger(__name__)


def build_repository(database_url: str) -> Repository:
    if database_url == config.MEMORY_DATABASE_URL:
        logger.warning('Using the in-memory store; data is lost on restart.')
        return InMemoryRepository()
    return SqlRepository(database_url=database_url)


def format_validation_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get('loc', ()) if part not in ('body', 'query', 'path')]
        errors.append(
            {
                'field': '.'.join(location),
                'message': error.get('msg', 'Invalid value'),
                'type': error.get('type', 'value_error'),
            }
        )
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={'message': 'Validation error', 'errors': format_validation_errors(exc)},
        )

    @app.exception_handler(HTTPException)
    async def http_error_handler(_request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={'message': exc.detail},
            headers=getattr(exc, 'headers', None),
        )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.warning('%s on %s %s: %s', type(exc).__name__, request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={'message': exc.message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception('Unhandled error on %s %s', request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={'message': 'Internal server error'},
        )


def create_app(repository: Repository | None = None) -> FastAPI:
    # A repository passed in still needs the signing secret.
    config.validate_runtime_config(require_database=repository is None)
    if repository is None:
        configure_logging()
        repository = build_repository(config.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not app.state.repository.connect():
            logger.error('Storage is unavailable. Requests will return empty results until it is restored.')
        yield
        app.state.repository.close()

    app = FastAPI(title='Student Management API', lifespan=lifespan)
    app.state.repository = repository

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    register_exception_handlers(app)

    @app.get('/')
    def root():
        storage = 'connected' if app.state.repository.is_connected else 'unavailable'
        return {'status': 'Student Management API Running', 'storage': storage}

    app.include_router(auth_routes.router, prefix='/api/auth')
    app.include_router(student_routes.router, prefix='/api/students')
    app.include_router(dashboard_routes.router, prefix='/api/dashboard')

    return app


def run() -> None:
    uvicorn.run(create_app(), host=config.HOST, port=config.PORT)

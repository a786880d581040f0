import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from useraccounts.core import config
from useraccounts.core.errors import ApiError, Infrastructure
from useraccounts.data.user_repository import SqlUserRepository
from useraccounts.data.user_service import UserService
from useraccounts.database import SessionLocal
from useraccounts.presentation import envelope
from useraccounts.routes import user_routes

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error('There was an error processing %s %s: %s', request.method, request.url.path, exc.message)
    else:
        logger.debug('Rejected %s %s with %d: %s', request.method, request.url.path, exc.status_code, exc.message)
    headers = {'WWW-Authenticate': 'Bearer'} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(exc.status_code, exc.message),
        headers=headers,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug('Malformed request to %s %s: %s', request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=envelope(status.HTTP_400_BAD_REQUEST, 'Invalid request body!'),
    )


def create_app(user_service: UserService) -> FastAPI:
    application = FastAPI(title='User Accounts API')
    application.state.user_service = user_service

    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    application.add_exception_handler(ApiError, handle_api_error)
    application.add_exception_handler(RequestValidationError, handle_request_validation_error)

    @application.get('/')
    def root():
        return {'status': 'User Accounts API Running'}

    @application.on_event('startup')
    def initialize_database() -> None:
        config.validate_runtime_config()
        try:
            user_service.repository.init_schema()
        except Infrastructure:
            logger.error('Database initialization failed. Check DATABASE_URL and database credentials.')

    application.include_router(user_routes.router)
    return application


app = create_app(UserService(SqlUserRepository(SessionLocal)))

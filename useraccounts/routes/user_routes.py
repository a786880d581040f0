import logging

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ValidationError

from useraccounts.auth.access_control import Operation
from useraccounts.auth.dependencies import require_permission
from useraccounts.core.errors import InvalidInput
from useraccounts.data.user_service import UserService
from useraccounts.presentation import envelope, hide_password, hide_passwords

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/users', tags=['users'])

INVALID_REQUEST_BODY = 'Invalid request body!'


class CreateUserRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None


class UpdateUserRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


async def read_update_request(request: Request) -> UpdateUserRequest:
    """Parse the PUT body only once the caller has been authorized."""
    try:
        payload = await request.json()
    except ValueError as exc:
        raise InvalidInput(INVALID_REQUEST_BODY) from exc
    try:
        return UpdateUserRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInput(INVALID_REQUEST_BODY) from exc


@router.get('', dependencies=[Depends(require_permission(Operation.READ_ALL))])
async def list_users(
    request: Request,
    name: str | None = Query(default=None),
    email: str | None = Query(default=None),
    role: str | None = Query(default=None),
    service: UserService = Depends(get_user_service),
):
    logger.debug('%s %s called...', request.method, request.url.path)
    users = await service.read_all(name=name, email=email, role=role)
    return envelope(
        status.HTTP_200_OK,
        f'Successfully retrieved {len(users)} users!',
        hide_passwords(users),
    )


@router.get('/{user_id}', dependencies=[Depends(require_permission(Operation.READ))])
async def read_user(
    user_id: str,
    request: Request,
    service: UserService = Depends(get_user_service),
):
    logger.debug('%s %s called...', request.method, request.url.path)
    user = await service.read(user_id)
    return envelope(status.HTTP_200_OK, 'Successfully retrieved the following user!', hide_password(user))


@router.post('', status_code=status.HTTP_201_CREATED)
async def create_user(
    data: CreateUserRequest,
    request: Request,
    service: UserService = Depends(get_user_service),
):
    logger.debug('%s %s called...', request.method, request.url.path)
    user = await service.create(name=data.name, email=data.email, password=data.password, role=data.role)
    logger.info('Created user %s', user.id)
    return envelope(status.HTTP_201_CREATED, 'Successfully created the following user!', hide_password(user))


@router.put('/{user_id}', dependencies=[Depends(require_permission(Operation.UPDATE))])
async def update_user(
    user_id: str,
    request: Request,
    data: UpdateUserRequest = Depends(read_update_request),
    service: UserService = Depends(get_user_service),
):
    logger.debug('%s %s called...', request.method, request.url.path)
    user = await service.update(
        user_id,
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role,
    )
    return envelope(status.HTTP_200_OK, 'Successfully updated the following user!', hide_password(user))


@router.delete('/{user_id}', dependencies=[Depends(require_permission(Operation.DELETE))])
async def delete_user(
    user_id: str,
    request: Request,
    service: UserService = Depends(get_user_service),
):
    logger.debug('%s %s called...', request.method, request.url.path)
    user = await service.delete(user_id)
    logger.info('Deleted user %s', user.id)
    return envelope(status.HTTP_200_OK, 'Successfully deleted the following user!', hide_password(user))

import logging

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from useraccounts.auth import jwt_handler
from useraccounts.auth.access_control import Decision, Operation, decide
from useraccounts.auth.jwt_handler import CallerIdentity
from useraccounts.core.errors import Forbidden, Unauthenticated

logger = logging.getLogger(__name__)

# Missing credentials are reported by require_permission, not by HTTPBearer.
security = HTTPBearer(auto_error=False)


def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CallerIdentity:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Unauthorized")

    try:
        return jwt_handler.decode_caller(credentials.credentials)
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise Unauthenticated("Unauthorized") from exc


def require_permission(operation: Operation):
    """Build a dependency gating a route behind ``decide`` for ``operation``.

    The target id is taken from the ``user_id`` path parameter, if any.
    """

    def checker(
        request: Request,
        caller: CallerIdentity = Depends(get_current_caller),
    ) -> CallerIdentity:
        target_id = request.path_params.get("user_id")
        decision = decide(operation, caller.caller_id, caller.caller_role, target_id)
        if decision is Decision.DENY:
            logger.info(
                "Denied %s on %s for caller %s (%s)",
                operation.value,
                target_id or "*",
                caller.caller_id,
                caller.caller_role,
            )
            raise Forbidden("Forbidden")
        return caller

    return checker

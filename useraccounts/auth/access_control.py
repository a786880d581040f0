"""Role-aware permission decisions for the user endpoints."""

from enum import Enum

from useraccounts.models.user import UserRole


class Operation(str, Enum):
    CREATE = "create"
    READ_ALL = "read_all"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


ELEVATED_ROLE = UserRole.INSTRUCTOR.value

# Operations a caller may perform on their own record.
SELF_SERVICE_OPERATIONS = {Operation.READ, Operation.UPDATE, Operation.DELETE}


def decide(
    operation: Operation,
    caller_id: str | None,
    caller_role: str | None,
    target_id: str | None = None,
) -> Decision:
    """Decide whether the caller may perform ``operation`` on ``target_id``.

    Registration is open to everyone, instructors may do anything, and any
    other caller may only read, update or delete their own record.
    """
    if operation == Operation.CREATE:
        return Decision.ALLOW

    if caller_role == ELEVATED_ROLE:
        return Decision.ALLOW

    if (
        operation in SELF_SERVICE_OPERATIONS
        and caller_id is not None
        and target_id is not None
        and caller_id == target_id
    ):
        return Decision.ALLOW

    return Decision.DENY

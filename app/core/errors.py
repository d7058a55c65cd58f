"""
Error types shared by the service layer and the HTTP layer.

Each error knows its machine-readable code and the HTTP status the API
renders it with. Services raise them; `app.main` turns them into JSON.
"""
from typing import Any, Dict, Optional
from fastapi import status


class GroupsError(Exception):
    """Base exception for all service-layer failures."""

    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        """Render the public payload for this error."""
        body: Dict[str, Any] = {
            "ok": False,
            "error": self.code,
            "message": self.message,
            "status": self.status_code,
        }
        if self.field:
            body["field"] = self.field
        return body


class AuthenticationRequired(GroupsError):
    """No resolvable actor. Rendered identically for every operation."""

    code = "authentication_required"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"

    def __init__(self, reason: Optional[str] = None):
        # reason is for logs only; the payload stays fixed
        super().__init__()
        self.reason = reason


class NotFound(GroupsError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"

    def __init__(self, resource_type: str, identifier: Optional[str] = None):
        super().__init__(f"{resource_type} not found")
        self.resource_type = resource_type
        self.identifier = identifier


class Forbidden(GroupsError):
    """
    The resource exists but the actor failed a policy rule.

    `reason` and `rule` identify which rule denied the request. They are
    logged, never rendered.
    """

    code = "authorization_error"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Authorization error"

    def __init__(self, reason: str, rule: Optional[str] = None):
        super().__init__()
        self.reason = reason
        self.rule = rule


class ValidationFailure(GroupsError):
    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

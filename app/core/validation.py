"""
Input checks shared by services.

These run after authorization, so a caller who may not perform an action
learns nothing about what input it would have accepted.
"""
from typing import Any, Optional, Tuple

from app.core import config
from app.core.errors import ValidationFailure

NAME_MAX_LENGTH = 255


def validate_name(name: Any, field: str = "name") -> str:
    """Return the stripped name or raise if it is missing, empty or too long."""
    if not isinstance(name, str) or not name.strip():
        raise ValidationFailure(f"{field} is required", field=field)
    name = name.strip()
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationFailure(f"{field} must be at most {NAME_MAX_LENGTH} characters", field=field)
    return name


def validate_id(value: Any, field: str = "id") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailure(f"{field} is required", field=field)
    return value.strip()


def validate_pagination(offset: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Apply defaults and bounds to offset/limit."""
    offset = 0 if offset is None else offset
    limit = config.DEFAULT_PAGE_LIMIT if limit is None else limit
    if offset < 0:
        raise ValidationFailure("offset must be zero or greater", field="offset")
    if not 1 <= limit <= config.MAX_PAGE_LIMIT:
        raise ValidationFailure(f"limit must be between 1 and {config.MAX_PAGE_LIMIT}", field="limit")
    return offset, limit

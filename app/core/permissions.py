from typing import Any

from app.core.exceptions import ForbiddenError


def is_owner(resource: Any, user_id: str) -> bool:
    return resource.author_id == user_id


def ensure_owner(resource: Any, user_id: str, message: str = "Not enough permissions") -> None:
    """Raise ForbiddenError unless user_id authored the post or comment"""
    if not is_owner(resource, user_id):
        raise ForbiddenError(message)

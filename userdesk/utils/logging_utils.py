"""
Audit-style logging for user-management actions
"""
import logging
from typing import Optional

user_logger = logging.getLogger("user_actions")

# outcome -> level; rejected covers not-found and invalid forms
_OUTCOME_LEVELS = {
    "success": logging.INFO,
    "rejected": logging.WARNING,
    "failed": logging.ERROR,
}


def log_user_action(
    action: str,
    outcome: str = "success",
    user_id: Optional[int] = None,
    details: Optional[str] = None,
) -> None:
    """
    Write one record describing a user-management action.

    Args:
        action: Operation name, e.g. ``create_user``
        outcome: ``success``, ``rejected`` or ``failed``
        user_id: Identifier of the affected user, when known
        details: Additional context; never pass credentials here
    """
    level = _OUTCOME_LEVELS.get(outcome, logging.INFO)
    parts = [f"Action: {action}"]

    if user_id is not None:
        parts.append(f"User: {user_id}")
    if details:
        parts.append(f"Details: {details}")
    parts.append(f"Status: {outcome.upper()}")

    user_logger.log(level, " | ".join(parts))

from .logging_utils import log_user_action

__all__ = ["log_user_action"]

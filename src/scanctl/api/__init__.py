"""Control plane: named actions and views over scans, policy and exclusions."""

from .control import ACTION_ALIASES, ACTIONS, OK, POLICY_ACTIONS, PREFIX, VIEWS, ControlAPI
from .endpoints import ApiAction, ApiView
from .errors import (
    ApiError,
    ApiErrorType,
    BadFormat,
    DoesNotExist,
    IllegalParameter,
    InternalError,
    MissingParameter,
    UnknownAction,
    UnknownView,
    UrlNotFound,
)

__all__ = [
    "ACTIONS",
    "ACTION_ALIASES",
    "ApiAction",
    "ApiError",
    "ApiErrorType",
    "ApiView",
    "BadFormat",
    "ControlAPI",
    "DoesNotExist",
    "IllegalParameter",
    "InternalError",
    "MissingParameter",
    "OK",
    "POLICY_ACTIONS",
    "PREFIX",
    "UnknownAction",
    "UnknownView",
    "UrlNotFound",
    "VIEWS",
]

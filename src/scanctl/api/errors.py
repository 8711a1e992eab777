"""Typed failures reported by the control plane."""

from enum import Enum


class ApiErrorType(Enum):
    MISSING_PARAMETER = "missing_parameter"
    ILLEGAL_PARAMETER = "illegal_parameter"
    DOES_NOT_EXIST = "does_not_exist"
    BAD_FORMAT = "bad_format"
    BAD_ACTION = "bad_action"
    BAD_VIEW = "bad_view"
    URL_NOT_FOUND = "url_not_found"
    INTERNAL_ERROR = "internal_error"


class ApiError(Exception):
    """Base class for control-plane failures. ``detail`` is usually the offending param."""

    type: ApiErrorType = ApiErrorType.INTERNAL_ERROR

    def __init__(self, detail: str = ""):
        self.detail = detail
        message = self.type.value if not detail else f"{self.type.value}: {detail}"
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.type.value, "message": self.detail}


class MissingParameter(ApiError):
    type = ApiErrorType.MISSING_PARAMETER


class IllegalParameter(ApiError):
    type = ApiErrorType.ILLEGAL_PARAMETER


class DoesNotExist(ApiError):
    type = ApiErrorType.DOES_NOT_EXIST


class BadFormat(ApiError):
    type = ApiErrorType.BAD_FORMAT


class UnknownAction(ApiError):
    type = ApiErrorType.BAD_ACTION


class UnknownView(ApiError):
    type = ApiErrorType.BAD_VIEW


class UrlNotFound(ApiError):
    type = ApiErrorType.URL_NOT_FOUND


class InternalError(ApiError):
    type = ApiErrorType.INTERNAL_ERROR

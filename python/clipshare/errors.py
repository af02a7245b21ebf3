"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Authentication errors (401)
    E_UNAUTHENTICATED = "E_UNAUTHENTICATED"
    E_INVALID_CREDENTIALS = "E_INVALID_CREDENTIALS"

    # Authorization errors (403)
    E_FORBIDDEN = "E_FORBIDDEN"
    E_ADMIN_REQUIRED = "E_ADMIN_REQUIRED"
    E_USER_BANNED = "E_USER_BANNED"

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"
    E_CLIP_NOT_FOUND = "E_CLIP_NOT_FOUND"
    E_USER_NOT_FOUND = "E_USER_NOT_FOUND"
    E_COMMENT_NOT_FOUND = "E_COMMENT_NOT_FOUND"
    E_MEDIA_MISSING = "E_MEDIA_MISSING"

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INVALID_ROLE = "E_INVALID_ROLE"
    E_COMMENT_EMPTY = "E_COMMENT_EMPTY"
    E_FILE_MISSING = "E_FILE_MISSING"
    E_FILE_TOO_LARGE = "E_FILE_TOO_LARGE"
    E_PASSWORD_TOO_SHORT = "E_PASSWORD_TOO_SHORT"

    # Conflict errors (409)
    E_EMAIL_TAKEN = "E_EMAIL_TAKEN"

    # Server errors
    E_INTERNAL = "E_INTERNAL"  # 500
    E_STORAGE_ERROR = "E_STORAGE_ERROR"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_UNAUTHENTICATED: 401,
    ApiErrorCode.E_INVALID_CREDENTIALS: 401,
    ApiErrorCode.E_FORBIDDEN: 403,
    ApiErrorCode.E_ADMIN_REQUIRED: 403,
    ApiErrorCode.E_USER_BANNED: 403,
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_CLIP_NOT_FOUND: 404,
    ApiErrorCode.E_USER_NOT_FOUND: 404,
    ApiErrorCode.E_COMMENT_NOT_FOUND: 404,
    ApiErrorCode.E_MEDIA_MISSING: 404,
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_INVALID_ROLE: 400,
    ApiErrorCode.E_COMMENT_EMPTY: 400,
    ApiErrorCode.E_FILE_MISSING: 400,
    ApiErrorCode.E_FILE_TOO_LARGE: 400,
    ApiErrorCode.E_PASSWORD_TOO_SHORT: 400,
    ApiErrorCode.E_EMAIL_TAKEN: 409,
    ApiErrorCode.E_INTERNAL: 500,
    ApiErrorCode.E_STORAGE_ERROR: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class UnauthenticatedError(ApiError):
    """Missing or invalid session."""

    def __init__(
        self,
        code: ApiErrorCode = ApiErrorCode.E_UNAUTHENTICATED,
        message: str = "Authentication required",
    ):
        super().__init__(code, message)


class NotFoundError(ApiError):
    """Resource not found error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class ForbiddenError(ApiError):
    """Authorization failure error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_FORBIDDEN, message: str = "Forbidden"):
        super().__init__(code, message)


class InvalidRequestError(ApiError):
    """Invalid request error."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)


class ConflictError(ApiError):
    """Resource already exists."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_EMAIL_TAKEN, message: str = "Conflict"):
        super().__init__(code, message)

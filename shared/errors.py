"""
Shared error handling for the Secrets Manager caching proxy.

Every error the proxy reports maps to one fixed HTTP status and is rendered in
the Secrets Manager JSON error shape: ``{"__type": ..., "Message": ...}``.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field

AMZ_JSON_CONTENT_TYPE = "application/x-amz-json-1.1"


class ErrorResponse(BaseModel):
    """Secrets Manager wire error format."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(serialization_alias="__type", validation_alias="__type")
    message: str = Field(serialization_alias="Message", validation_alias="Message")

    def to_wire(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)


class SecretsProxyError(Exception):
    """Base exception for the caching proxy."""

    category = "Unclassified"
    status_code = 400
    default_code = "InvalidRequestException"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def is_local(self) -> bool:
        """True when the error was raised before any backend interaction."""
        return False

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(type=self.code, message=self.message)


class LocalRequestError(SecretsProxyError):
    """Request rejected by the proxy itself; never reaches the backend."""

    @property
    def is_local(self) -> bool:
        return True


class MalformedRequest(LocalRequestError):
    """Request body fails to parse or has the wrong shape."""

    category = "MalformedRequest"


class UnsupportedOperation(LocalRequestError):
    """Operation name not recognised by this proxy."""

    category = "UnsupportedOperation"


class MissingTarget(LocalRequestError):
    """Request arrived without an X-Amz-Target header."""

    category = "MissingTarget"
    default_code = "MissingAuthenticationTokenException"


class BackendError(SecretsProxyError):
    """Error reported by (or while reaching) Secrets Manager."""

    category = "BackendUnclassified"


class BackendNotFound(BackendError):
    category = "BackendNotFound"
    status_code = 404
    default_code = "ResourceNotFoundException"


class BackendInvalidParameter(BackendError):
    category = "BackendInvalidParameter"
    status_code = 400
    default_code = "InvalidParameterException"


class BackendConflict(BackendError):
    category = "BackendConflict"
    status_code = 409
    default_code = "ResourceExistsException"


class BackendRateLimited(BackendError):
    category = "BackendRateLimited"
    status_code = 429
    default_code = "LimitExceededException"


class BackendInternalError(BackendError):
    category = "BackendInternalError"
    status_code = 500
    default_code = "InternalServiceError"


class BackendUnclassified(BackendError):
    category = "BackendUnclassified"
    status_code = 400


BACKEND_ERROR_CODES: Dict[str, type] = {
    "ResourceNotFoundException": BackendNotFound,
    "InvalidParameterException": BackendInvalidParameter,
    "InvalidRequestException": BackendInvalidParameter,
    "InvalidNextTokenException": BackendInvalidParameter,
    "MalformedPolicyDocumentException": BackendInvalidParameter,
    "ResourceExistsException": BackendConflict,
    "LimitExceededException": BackendRateLimited,
    "ThrottlingException": BackendRateLimited,
    "TooManyRequestsException": BackendRateLimited,
    "InternalServiceError": BackendInternalError,
    "InternalFailure": BackendInternalError,
    "ServiceUnavailable": BackendInternalError,
}


def classify_backend_error(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> BackendError:
    """Map a Secrets Manager error code onto the proxy's error categories."""
    error_class = BACKEND_ERROR_CODES.get(code, BackendUnclassified)
    return error_class(message, code=code, details=details)

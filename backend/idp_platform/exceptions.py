from typing import Dict, List, Optional


class IdpError(RuntimeError):
    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class ValidationFailed(IdpError):
    code = "VALIDATION_FAILED"


class InvalidState(IdpError):
    code = "INVALID_STATE"


class NotFound(IdpError):
    status_code = 404
    code = "NOT_FOUND"


class NotAuthenticated(IdpError):
    status_code = 401
    code = "NOT_AUTHENTICATED"


class PermissionDenied(IdpError):
    status_code = 403
    code = "FORBIDDEN"


class StorageError(IdpError):
    status_code = 500
    code = "STORAGE_ERROR"

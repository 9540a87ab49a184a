"""Error codes and exceptions raised while describing an API surface."""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes carried by every library exception."""

    TYPE_NOT_FOUND = "TYPE_NOT_FOUND"
    TYPE_LOAD_FAILED = "TYPE_LOAD_FAILED"
    CONFLICTING_OPERATIONS = "CONFLICTING_OPERATIONS"
    INVALID_MODEL = "INVALID_MODEL"


class ODataSwaggerError(Exception):
    """Base class for all errors raised by odata_swagger."""

    code: ErrorCode

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class TypeNotFoundError(ODataSwaggerError):
    """No loaded type matches the requested full name."""

    def __init__(self, full_name: str):
        super().__init__(ErrorCode.TYPE_NOT_FOUND, f"Type '{full_name}' was not found in any loaded source")
        self.full_name = full_name


class TypeLoadError(ODataSwaggerError):
    """A type source could load only some of its types.

    The types that did load are kept on ``types`` so callers can still use them.
    """

    def __init__(self, source: str, types: list, cause: Exception | None = None):
        super().__init__(ErrorCode.TYPE_LOAD_FAILED, f"Type source '{source}' loaded only partially")
        self.source = source
        self.types = types
        self.cause = cause


class ConflictingOperationsError(ODataSwaggerError):
    """Several operations share a path and verb and nothing chose between them."""

    def __init__(self, path: str, method: str, operation_ids: list[str]):
        ids = ", ".join(operation_ids)
        super().__init__(
            ErrorCode.CONFLICTING_OPERATIONS,
            f"Conflicting operations for {method.upper()} {path}: {ids}. "
            "Configure a conflict resolver to pick one.",
        )
        self.path = path
        self.method = method
        self.operation_ids = operation_ids


class ModelFileError(ODataSwaggerError):
    """The model file is malformed or references unknown names."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.INVALID_MODEL, message)

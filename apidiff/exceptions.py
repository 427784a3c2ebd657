"""Custom exceptions for the apidiff engine."""


class ApiDiffError(Exception):
    """Base exception for apidiff errors."""
    pass


class ValidationError(ApiDiffError):
    """Raised when input validation fails."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(ApiDiffError):
    """Raised when a session, scenario or engine configuration is invalid."""
    def __init__(self, message: str, source: str = None):
        super().__init__(f"{source}: {message}" if source else message)
        self.message = message
        self.source = source


class MaxDepthExceededError(ApiDiffError):
    """Raised when maximum recursion depth is exceeded."""
    def __init__(self, depth: int, path: str):
        super().__init__(f"Maximum depth ({depth}) exceeded at path: {path}")
        self.depth = depth
        self.path = path


class PayloadSizeError(ApiDiffError):
    """Raised when payload size exceeds limit."""
    def __init__(self, size_mb: float, limit_mb: float):
        super().__init__(f"Payload size ({size_mb:.2f}MB) exceeds limit ({limit_mb}MB)")
        self.size_mb = size_mb
        self.limit_mb = limit_mb


class CircularReferenceError(ApiDiffError):
    """Raised when a document refers back to one of its own ancestors."""
    def __init__(self, path: str):
        super().__init__(f"Circular reference detected at: {path}")
        self.path = path


class UnsupportedValueError(ApiDiffError):
    """Raised for values that are not JSON-like."""
    def __init__(self, value_type: str, path: str = ""):
        super().__init__(f"Unsupported value of type '{value_type}' at path: {path or '<root>'}")
        self.value_type = value_type
        self.path = path


class RequestError(ApiDiffError):
    """Raised when a request cannot be issued or its response decoded."""
    def __init__(self, url: str, message: str, status_code: int = None):
        super().__init__(f"Request to {url} failed: {message}")
        self.url = url
        self.message = message
        self.status_code = status_code


class ModifierError(ApiDiffError):
    """Raised when a response modifier fails to compile or run."""
    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

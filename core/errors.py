"""Core business exceptions for OCR and summarization."""


class ServiceError(Exception):
    """Base exception with machine-readable code for service failures."""

    def __init__(self, message: str, *, error_code: str, status_code: int = 500):
        super().__init__(message)
        self.error_code = error_code
        self.status_code = status_code


class RecognitionError(ServiceError):
    """Raised when the OCR engine lifecycle fails (load, configure, recognize)."""

    def __init__(self, message: str = "OCR recognition failed"):
        super().__init__(message, error_code="recognition_failed", status_code=422)


class RequestValidationFailed(ServiceError):
    """Raised when a caller omits required input."""

    def __init__(self, message: str):
        super().__init__(message, error_code="validation_error", status_code=400)


class ServerMisconfigured(ServiceError):
    """Raised when operator-provided configuration is missing."""

    def __init__(self, message: str):
        super().__init__(message, error_code="configuration_error", status_code=500)


class UpstreamError(ServiceError):
    """Raised when the inference API reports an error or cannot be reached."""

    def __init__(self, message: str):
        super().__init__(message, error_code="upstream_error", status_code=500)

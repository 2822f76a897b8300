"""
Errors — Failure taxonomy for the layout engine
================================================
Every failure raised by the engine derives from :class:`AppError` and carries
an HTTP-style ``status_code`` so that an API layer can translate it without
inspecting messages.
"""


class AppError(Exception):
    """Base class for operational errors raised by the engine."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(AppError):
    """Bad or empty input: zero panels, unsupported format, invalid config."""

    def __init__(self, message: str):
        super().__init__(message, 400)


class LayoutError(ValidationError):
    """Page geometry that cannot hold the requested grid or bubble."""


class NotFoundError(AppError):
    """A referenced panel or source image does not exist."""

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", 404)
        self.resource = resource

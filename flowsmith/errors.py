"""Error taxonomy shared by the server, the SDK and the editor session.

Each error carries the HTTP status it maps to, so the server can render it
directly and the client can turn a response back into the same class.
"""

from __future__ import annotations


class FlowsmithError(RuntimeError):
    """Base error for failures that map to HTTP responses."""

    status_code: int = 400

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.__class__.__name__
        super().__init__(self.message)

    @property
    def code(self) -> str:
        """Stable name sent alongside the message in error responses."""
        return type(self).__name__


class AuthRequiredError(FlowsmithError):
    status_code = 401


class ForbiddenError(FlowsmithError):
    status_code = 403


class NotFoundError(FlowsmithError):
    status_code = 404


class InvalidFormatError(FlowsmithError):
    status_code = 400


class InvalidConnectionError(FlowsmithError):
    status_code = 400


class InvalidProcessorError(FlowsmithError):
    status_code = 400


class NoInputsError(FlowsmithError):
    status_code = 400


class ConfigurationError(FlowsmithError):
    """A required secret or setting is missing on the server."""

    status_code = 500


class UpstreamServiceError(FlowsmithError):
    """The text-generation or persistence backend failed or was unreachable."""

    status_code = 502


_BY_STATUS: dict[int, type[FlowsmithError]] = {
    401: AuthRequiredError,
    403: ForbiddenError,
    404: NotFoundError,
    400: InvalidFormatError,
    422: InvalidFormatError,
}

_BY_CODE: dict[str, type[FlowsmithError]] = {
    error_cls.__name__: error_cls
    for error_cls in (
        AuthRequiredError,
        ForbiddenError,
        NotFoundError,
        InvalidFormatError,
        InvalidConnectionError,
        InvalidProcessorError,
        NoInputsError,
        ConfigurationError,
        UpstreamServiceError,
    )
}


def error_for_status(status_code: int, message: str, code: str | None = None) -> FlowsmithError:
    """Build the error matching a response returned by the server.

    The ``code`` from the error body names the exact class; without one
    (or with one this client does not know) the HTTP status decides.
    """
    error_cls = _BY_CODE.get(code) if code else None
    if error_cls is None:
        error_cls = _BY_STATUS.get(status_code, UpstreamServiceError)
    return error_cls(message)

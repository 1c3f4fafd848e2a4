"""Maps arbitrary exceptions onto the closed MessageError taxonomy."""

import litellm

from turnloop.conversation.domain.error import ErrorCode, MessageError
from turnloop.tools.domain.errors import ToolError
from turnloop.transport.infrastructure.errors import TransportError

_CREDENTIALS_STATUS = frozenset({401, 403})
_INVALID_ARGUMENT_STATUS = frozenset({400, 422})


def classify_error(error: BaseException) -> MessageError:
    """Return the MessageError describing error.

    Typed errors (ours and litellm's) and HTTP status codes are matched first;
    otherwise the message text is inspected. Anything unrecognised is the
    generic, retryable API_ERROR.
    """
    if isinstance(error, TransportError):
        return error.error
    if isinstance(error, ToolError):
        return _tool_error(error)

    message = str(error) or type(error).__name__

    if isinstance(error, litellm.ContentPolicyViolationError):
        return _content_blocked()
    if isinstance(error, (litellm.Timeout, litellm.APIConnectionError)):
        return _network_error(details=message)

    status_code = getattr(error, "status_code", None)
    if status_code in _CREDENTIALS_STATUS:
        return _invalid_credentials()
    if status_code == 429:
        return _rate_limited(message)
    if status_code == 404:
        return _model_not_found(message)
    if status_code in _INVALID_ARGUMENT_STATUS:
        return _invalid_argument(message)

    lowered = message.lower()
    if "api key not valid" in lowered or "api key not found" in lowered:
        return _invalid_credentials()
    if "429" in lowered or "rate limit" in lowered:
        return _rate_limited(message)
    if "response was blocked" in lowered or "safety policy" in lowered:
        return _content_blocked()
    if "404" in lowered or "model not found" in lowered:
        return _model_not_found(message)
    if "400" in lowered or "bad request" in lowered:
        return _invalid_argument(message)
    if "failed to fetch" in lowered or "connection refused" in lowered:
        return _network_error(details=message)

    return MessageError(code=ErrorCode.API_ERROR, message=message, details=repr(error))


def _tool_error(error: ToolError) -> MessageError:
    details = error.reason
    if error.cause is not None:
        details = f"{details}\n\nCause:\n{error.cause!r}"
    return MessageError(
        code=error.error_code,
        message=f"Tool Execution Failed: {error.tool_name}",
        details=details,
    )


def _invalid_credentials() -> MessageError:
    return MessageError(
        code=ErrorCode.INVALID_CREDENTIALS,
        message="Invalid or Missing API Key",
        details=(
            "The API key is missing, invalid, or has expired. Please ensure it is "
            "configured correctly in your environment variables."
        ),
    )


def _rate_limited(message: str) -> MessageError:
    return MessageError(
        code=ErrorCode.RATE_LIMIT_EXCEEDED,
        message="API Rate Limit Exceeded",
        details=(
            "You have sent too many requests or exceeded your quota. Please check "
            f"your API plan and billing details. Original error: {message}"
        ),
    )


def _content_blocked() -> MessageError:
    return MessageError(
        code=ErrorCode.CONTENT_BLOCKED,
        message="Response Blocked by Safety Filter",
        details=(
            "The model's response was blocked due to the safety policy. Please "
            "try rephrasing your request."
        ),
    )


def _model_not_found(message: str) -> MessageError:
    return MessageError(
        code=ErrorCode.MODEL_NOT_FOUND,
        message="Model Not Found",
        details=(
            "The model ID specified in the request could not be found. Please "
            "check the model name and ensure you have access to it. "
            f"Original error: {message}"
        ),
    )


def _invalid_argument(message: str) -> MessageError:
    return MessageError(
        code=ErrorCode.INVALID_ARGUMENT,
        message="Invalid Request Sent",
        details=(
            "The request was malformed or contained invalid parameters. "
            f"Details: {message}"
        ),
    )


def _network_error(details: str) -> MessageError:
    return MessageError(
        code=ErrorCode.NETWORK_ERROR,
        message="Network Error",
        details=(
            "A network problem occurred, possibly due to a lost internet "
            f"connection. Original error: {details}"
        ),
    )

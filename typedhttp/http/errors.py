"""Exception taxonomy for typed HTTP results.

Responses that do not indicate success are translated into the errors below
from their status code and the error-type response header. Each error carries
a stable numeric code, the HTTP status it represents and whether it is
considered transient (retry eligible).
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, ClassVar

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from typedhttp.http.config import DEFAULT_CONFIG, HttpClientConfig
from typedhttp.http.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_CONFLICT,
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_PRECONDITION_FAILED,
    HTTP_STATUS_SERVICE_UNAVAILABLE,
    HTTP_STATUS_UNAUTHORIZED,
)


logger = structlog.get_logger()

_ERROR_SUFFIX = "error"


class ErrorType(str, Enum):
    """Machine-readable error classification carried in ``x-error-type``."""

    VALIDATION_ERROR = "ValidationError"
    BUSINESS_ERROR = "BusinessError"
    AUTHORIZATION_ERROR = "AuthorizationError"
    CONCURRENCY_ERROR = "ConcurrencyError"
    NOT_FOUND_ERROR = "NotFoundError"
    CONFLICT_ERROR = "ConflictError"
    DUPLICATE_ERROR = "DuplicateError"
    AUTHENTICATION_ERROR = "AuthenticationError"
    TRANSIENT_ERROR = "TransientError"
    DATA_CONSISTENCY_ERROR = "DataConsistencyError"
    UNHANDLED_ERROR = "UnhandledError"

    @property
    def code(self) -> int:
        """Stable numeric error code."""
        return _ERROR_CODES[self]

    @classmethod
    def parse(cls, value: str | None) -> "ErrorType | None":
        """Parse a header value, case-insensitively, with or without ``Error``.

        Args:
            value: Raw header value, e.g. ``BusinessError`` or ``business``.

        Returns:
            The matching error type, or None when unrecognized.
        """
        if not value:
            return None

        key = value.strip().lower()
        if not key.endswith(_ERROR_SUFFIX):
            key += _ERROR_SUFFIX
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


_ERROR_CODES: dict[ErrorType, int] = {
    ErrorType.VALIDATION_ERROR: 1,
    ErrorType.BUSINESS_ERROR: 2,
    ErrorType.AUTHORIZATION_ERROR: 3,
    ErrorType.CONCURRENCY_ERROR: 4,
    ErrorType.NOT_FOUND_ERROR: 5,
    ErrorType.CONFLICT_ERROR: 6,
    ErrorType.DUPLICATE_ERROR: 7,
    ErrorType.AUTHENTICATION_ERROR: 8,
    ErrorType.TRANSIENT_ERROR: 9,
    ErrorType.DATA_CONSISTENCY_ERROR: 10,
    ErrorType.UNHANDLED_ERROR: 88,
}


class MessageType(str, Enum):
    """Severity of a message item."""

    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"


class MessageItem(BaseModel):
    """A single message, optionally bound to a property."""

    model_config = ConfigDict(frozen=True)

    type: MessageType = MessageType.ERROR
    text: str | None = None
    property: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        """Accept message types in any letter case."""
        if isinstance(v, str):
            for member in MessageType:
                if member.value.lower() == v.lower():
                    return member
        return v

    @classmethod
    def error(cls, property_name: str | None, text: str) -> "MessageItem":
        """Create an error message for a property."""
        return cls(type=MessageType.ERROR, text=text, property=property_name)

    def __str__(self) -> str:
        return self.text or ""


_MESSAGE_LIST_ADAPTER = TypeAdapter(list[MessageItem])
_FIELD_ERRORS_ADAPTER = TypeAdapter(dict[str, list[str | None]])


def parse_messages(header_value: str | None) -> list[MessageItem] | None:
    """Parse the JSON-encoded messages response header.

    Args:
        header_value: Raw header value.

    Returns:
        Parsed message items, or None when absent or malformed.
    """
    if not header_value:
        return None
    try:
        return _MESSAGE_LIST_ADAPTER.validate_json(header_value)
    except PydanticValidationError:
        logger.debug("messages_header_ignored", component="http", value=header_value)
        return None


def parse_field_errors(content: str | None) -> list[MessageItem] | None:
    """Parse a ``{"field": ["message", ...]}`` body into error messages.

    Args:
        content: Response body text.

    Returns:
        Error messages in body order, or None when absent, malformed or empty.
    """
    if not content:
        return None
    try:
        errors = _FIELD_ERRORS_ADAPTER.validate_json(content)
    except PydanticValidationError:
        return None

    items = [
        MessageItem.error(field, text)
        for field, texts in errors.items()
        if field
        for text in texts
        if text
    ]
    return items or None


class ExtendedError(Exception):
    """Base exception for errors with a known classification.

    Subclasses fix the error type, HTTP status and transient flag.
    """

    error_type: ClassVar[ErrorType] = ErrorType.UNHANDLED_ERROR
    status_code: ClassVar[int] = HTTP_STATUS_INTERNAL_SERVER_ERROR
    is_transient: ClassVar[bool] = False
    default_message: ClassVar[str] = "An unhandled error occurred."

    def __init__(
        self,
        message: str | None = None,
        *,
        messages: list[MessageItem] | None = None,
        content: str | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable message; the class default when None.
            messages: Message items associated with the error.
            content: Raw response body the error was derived from.
        """
        self.message = message or self.default_message
        super().__init__(self.message)
        self.messages = messages
        self.content = content

    @property
    def error_code(self) -> int:
        """Stable numeric error code."""
        return self.error_type.code

    def to_dict(
        self,
    ) -> dict[str, str | int | bool | list[dict[str, str | None]] | None]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_type": self.error_type.value,
            "error_code": self.error_code,
            "status_code": self.status_code,
            "message": self.message,
            "is_transient": self.is_transient,
            "messages": (
                [m.model_dump(mode="json") for m in self.messages]
                if self.messages
                else None
            ),
        }


class ValidationError(ExtendedError):
    """The request failed validation (400)."""

    error_type = ErrorType.VALIDATION_ERROR
    status_code = HTTP_STATUS_BAD_REQUEST
    default_message = "A data validation error occurred."

    def __init__(
        self,
        message: str | None = None,
        *,
        messages: list[MessageItem] | None = None,
        content: str | None = None,
    ) -> None:
        """Initialize the validation error.

        When messages are given, only error-severity items are kept and each
        is appended to the message as ``[property: text]``.
        """
        errors = (
            [m for m in messages if m.type == MessageType.ERROR]
            if messages is not None
            else None
        )
        text = message or self.default_message
        if errors:
            text += "".join(f" [{m.property}: {m.text}]" for m in errors)
        super().__init__(text, messages=errors, content=content)


class BusinessError(ExtendedError):
    """A business rule was violated (400 with a business error type)."""

    error_type = ErrorType.BUSINESS_ERROR
    status_code = HTTP_STATUS_BAD_REQUEST
    default_message = "A business error occurred."


class AuthenticationError(ExtendedError):
    """The caller is not authenticated (401)."""

    error_type = ErrorType.AUTHENTICATION_ERROR
    status_code = HTTP_STATUS_UNAUTHORIZED
    default_message = "An authentication error occurred; the credentials are invalid."


class AuthorizationError(ExtendedError):
    """The caller is not permitted to perform the action (403)."""

    error_type = ErrorType.AUTHORIZATION_ERROR
    status_code = HTTP_STATUS_FORBIDDEN
    default_message = (
        "An authorization error occurred; you are not permitted to perform this action."
    )


class NotFoundError(ExtendedError):
    """The requested resource does not exist (404)."""

    error_type = ErrorType.NOT_FOUND_ERROR
    status_code = HTTP_STATUS_NOT_FOUND
    default_message = "Requested data was not found."


class ConflictError(ExtendedError):
    """The request conflicts with the current resource state (409)."""

    error_type = ErrorType.CONFLICT_ERROR
    status_code = HTTP_STATUS_CONFLICT
    default_message = "A data conflict occurred."


class DuplicateError(ExtendedError):
    """The resource already exists (409 with a duplicate error type)."""

    error_type = ErrorType.DUPLICATE_ERROR
    status_code = HTTP_STATUS_CONFLICT
    default_message = "A duplicate error occurred."


class DataConsistencyError(ExtendedError):
    """Stored data is inconsistent (409 with a data-consistency error type)."""

    error_type = ErrorType.DATA_CONSISTENCY_ERROR
    status_code = HTTP_STATUS_CONFLICT
    default_message = "A potential data consistency error occurred."


class ConcurrencyError(ExtendedError):
    """The ETag precondition failed (412)."""

    error_type = ErrorType.CONCURRENCY_ERROR
    status_code = HTTP_STATUS_PRECONDITION_FAILED
    default_message = (
        "A concurrency error occurred; please refresh the data and try again."
    )


class TransientError(ExtendedError):
    """A retry-eligible failure: 5xx, 408, 429 or a connection-level error."""

    error_type = ErrorType.TRANSIENT_ERROR
    status_code = HTTP_STATUS_SERVICE_UNAVAILABLE
    is_transient = True
    default_message = "A transient error has occurred; please try again."


class HttpRequestError(Exception):
    """A response did not indicate success and has no known classification.

    Attributes:
        method: Request method.
        url: Request URL (credentials and secret parameters redacted).
        status_code: Response status code.
        body: Leading part of the response body.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        method: str | None = None,
        url: str | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.method = method
        self.url = url
        self.body = body

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "message": self.message,
            "status_code": self.status_code,
            "method": self.method,
            "url": self.url,
            "body": self.body,
        }


class ResponseDeserializationError(Exception):
    """A successful response body could not be converted to the requested type."""

    def __init__(self, value_type: Any, status_code: int, cause: Exception) -> None:
        """Initialize the error.

        Args:
            value_type: The requested value type.
            status_code: Status code of the underlying response.
            cause: The exception raised by the serializer.
        """
        type_name = getattr(value_type, "__name__", repr(value_type))
        super().__init__(
            f"Failed to deserialize the response body to '{type_name}': {cause}"
        )
        self.value_type = value_type
        self.status_code = status_code
        self.__cause__ = cause


def status_message(status_code: int) -> str:
    """Get the generic message for a status that does not indicate success."""
    reason = httpx.codes.get_reason_phrase(status_code) or "Unknown"
    return (
        f"Response status code does not indicate success: {status_code} ({reason})."
    )


def to_extended_error(
    status_code: int,
    headers: Mapping[str, str],
    content: str | None,
    *,
    use_content_as_error_message: bool = True,
    config: HttpClientConfig | None = None,
) -> ExtendedError | None:
    """Map a response status and error-type header onto a known error.

    Args:
        status_code: Response status code.
        headers: Response headers (case-insensitive mapping).
        content: Response body text.
        use_content_as_error_message: Use the body text as the error message.
        config: Client configuration holding the header names.

    Returns:
        The mapped error, or None when the status is a success or unmapped.
    """
    if HTTP_STATUS_OK_MIN <= status_code < HTTP_STATUS_OK_MAX:
        return None

    config = config or DEFAULT_CONFIG

    error_type = ErrorType.parse(headers.get(config.error_type_header_name))
    message: str | None = None
    if use_content_as_error_message:
        message = (
            content if content and content.strip() else status_message(status_code)
        )

    if status_code == HTTP_STATUS_BAD_REQUEST:
        if error_type == ErrorType.BUSINESS_ERROR:
            return BusinessError(message, content=content)
        field_errors = parse_field_errors(content)
        if field_errors is not None:
            return ValidationError(messages=field_errors, content=content)
        return ValidationError(message, content=content)

    if status_code == HTTP_STATUS_CONFLICT:
        if error_type == ErrorType.DUPLICATE_ERROR:
            return DuplicateError(message, content=content)
        if error_type == ErrorType.DATA_CONSISTENCY_ERROR:
            return DataConsistencyError(message, content=content)
        return ConflictError(message, content=content)

    error_class = _STATUS_ERRORS.get(status_code)
    if error_class is None:
        return None
    return error_class(message, content=content)


_STATUS_ERRORS: dict[int, type[ExtendedError]] = {
    HTTP_STATUS_UNAUTHORIZED: AuthenticationError,
    HTTP_STATUS_FORBIDDEN: AuthorizationError,
    HTTP_STATUS_NOT_FOUND: NotFoundError,
    HTTP_STATUS_PRECONDITION_FAILED: ConcurrencyError,
    HTTP_STATUS_SERVICE_UNAVAILABLE: TransientError,
}

"""Result wrappers over transport responses."""

from functools import cached_property
from typing import Any, Generic, TypeVar

import httpx
import structlog

from typedhttp.http.config import DEFAULT_CONFIG, HttpClientConfig
from typedhttp.http.constants import (
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_NO_CONTENT,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    TEXT_PLAIN_MEDIA_TYPE,
)
from typedhttp.http.errors import (
    ExtendedError,
    HttpRequestError,
    MessageItem,
    ResponseDeserializationError,
    parse_messages,
    status_message,
    to_extended_error,
)
from typedhttp.http.paging import CollectionResult, paging_result_from_headers
from typedhttp.http.redact import redact_url
from typedhttp.json import DEFAULT_SERIALIZER, JsonSerializer
from typedhttp.results import Result


logger = structlog.get_logger()

T = TypeVar("T")


class HttpResult:
    """A response together with its fully read body.

    Header-derived values (error type, error code, messages) are computed on
    first access and memoized. ``null_on_not_found_response`` must be set
    before ``is_success`` or ``content`` is read.
    """

    def __init__(
        self,
        response: httpx.Response,
        content: bytes | None,
        config: HttpClientConfig | None = None,
    ) -> None:
        """Initialize the result.

        Args:
            response: Transport response.
            content: Body bytes, already read.
            config: Client configuration holding the header names.
        """
        self._response = response
        self._binary_content = content or None
        self._config = config or DEFAULT_CONFIG
        self.null_on_not_found_response = False

    @classmethod
    async def create(
        cls, response: httpx.Response, config: HttpClientConfig | None = None
    ) -> "HttpResult":
        """Read the response body and wrap the response.

        Args:
            response: Transport response.
            config: Client configuration.

        Returns:
            The result.
        """
        content = await response.aread()
        return cls(response, content, config)

    @property
    def response(self) -> httpx.Response:
        """The transport response."""
        return self._response

    @property
    def request(self) -> httpx.Request | None:
        """The request that produced the response, when known."""
        try:
            return self._response.request
        except RuntimeError:
            return None

    @property
    def binary_content(self) -> bytes | None:
        """Raw body bytes, or None when empty."""
        return self._binary_content

    @cached_property
    def _text(self) -> str | None:
        if self._binary_content is None:
            return None
        return self._response.text

    @property
    def content(self) -> str | None:
        """Body text; None when empty or when a 404 is reported as no content."""
        if self.will_result_in_null_as_not_found:
            return None
        return self._text

    @property
    def will_result_in_null_as_not_found(self) -> bool:
        """Whether a 404 is being reported as a successful empty result."""
        return (
            self.null_on_not_found_response
            and self._response.status_code == HTTP_STATUS_NOT_FOUND
        )

    @property
    def status_code(self) -> int:
        """Status code; 204 when a 404 is reported as no content."""
        if self.will_result_in_null_as_not_found:
            return HTTP_STATUS_NO_CONTENT
        return self._response.status_code

    @property
    def is_success(self) -> bool:
        """Whether the status code indicates success."""
        if self.will_result_in_null_as_not_found:
            return True
        return HTTP_STATUS_OK_MIN <= self._response.status_code < HTTP_STATUS_OK_MAX

    @cached_property
    def _error_type_header(self) -> str | None:
        return self._response.headers.get(self._config.error_type_header_name)

    @cached_property
    def _error_code_header(self) -> int | None:
        raw = self._response.headers.get(self._config.error_code_header_name)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.debug("error_code_header_ignored", component="http", value=raw)
            return None

    @property
    def error_type(self) -> str | None:
        """Value of the error-type response header."""
        if self.will_result_in_null_as_not_found:
            return None
        return self._error_type_header

    @property
    def error_code(self) -> int | None:
        """Value of the error-code response header, when numeric."""
        if self.will_result_in_null_as_not_found:
            return None
        return self._error_code_header

    @cached_property
    def messages(self) -> list[MessageItem] | None:
        """Messages parsed from the messages response header."""
        return parse_messages(
            self._response.headers.get(self._config.messages_header_name)
        )

    def to_extended_error(
        self, use_content_as_error_message: bool = True
    ) -> ExtendedError | None:
        """Map the response onto a known error, or None when not mapped."""
        if self.is_success:
            return None
        return to_extended_error(
            self._response.status_code,
            self._response.headers,
            self.content,
            use_content_as_error_message=use_content_as_error_message,
            config=self._config,
        )

    def to_request_error(self) -> HttpRequestError:
        """Build the generic error for an unsuccessful response."""
        return build_request_error(self._response, self.content, self._config)

    def throw_on_error(
        self,
        throw_known_exception: bool = True,
        use_content_as_error_message: bool = True,
    ) -> "HttpResult":
        """Raise when the result is not a success.

        Args:
            throw_known_exception: Raise the mapped known error when one exists.
            use_content_as_error_message: Use the body text as the message.

        Returns:
            This result, for chaining.

        Raises:
            ExtendedError: The mapped known error.
            HttpRequestError: When no known error applies.
        """
        if self.is_success:
            return self
        if throw_known_exception:
            error = self.to_extended_error(use_content_as_error_message)
            if error is not None:
                raise error
        raise self.to_request_error()

    def to_result(
        self,
        convert_to_known_exception: bool = True,
        use_content_as_error_message: bool = True,
    ) -> Result[None]:
        """Convert to a non-throwing result.

        Args:
            convert_to_known_exception: Use the mapped known error when one exists.
            use_content_as_error_message: Use the body text as the message.

        Returns:
            Success, or a failure carrying the mapped (or generic) error.
        """
        error = self._failure(convert_to_known_exception, use_content_as_error_message)
        return Result.ok() if error is None else Result.fail(error)

    def _failure(
        self, convert_to_known_exception: bool, use_content_as_error_message: bool
    ) -> Exception | None:
        if self.is_success:
            return None
        if convert_to_known_exception:
            error = self.to_extended_error(use_content_as_error_message)
            if error is not None:
                return error
        return self.to_request_error()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code})"


class TypedHttpResult(HttpResult, Generic[T]):
    """A result whose body is converted to a value of a requested type.

    Conversion happens once, at creation. A conversion failure is captured
    and only raised when ``value`` (or ``to_result``) is evaluated; until
    then the result reports status 500 and is not a success.
    """

    def __init__(
        self,
        response: httpx.Response,
        content: bytes | None,
        value_type: Any,
        serializer: JsonSerializer | None = None,
        config: HttpClientConfig | None = None,
        *,
        null_on_not_found: bool = False,
    ) -> None:
        """Initialize the result and convert the body.

        Args:
            response: Transport response.
            content: Body bytes, already read.
            value_type: Requested value type.
            serializer: JSON codec.
            config: Client configuration.
            null_on_not_found: Report a 404 as a successful empty result.
        """
        super().__init__(response, content, config)
        self.null_on_not_found_response = null_on_not_found
        self._value_type = value_type
        self._serializer = serializer or DEFAULT_SERIALIZER
        self._value: T | None = None
        self._deserialization_error: ResponseDeserializationError | None = None
        self._convert()

    @classmethod
    async def create(  # type: ignore[override]
        cls,
        response: httpx.Response,
        value_type: Any,
        serializer: JsonSerializer | None = None,
        config: HttpClientConfig | None = None,
        *,
        null_on_not_found: bool = False,
    ) -> "TypedHttpResult[T]":
        """Read the response body, wrap the response and convert the body.

        Args:
            response: Transport response.
            value_type: Requested value type.
            serializer: JSON codec.
            config: Client configuration.
            null_on_not_found: Report a 404 as a successful empty result.

        Returns:
            The typed result.
        """
        content = await response.aread()
        return cls(
            response,
            content,
            value_type,
            serializer,
            config,
            null_on_not_found=null_on_not_found,
        )

    def _convert(self) -> None:
        if not super().is_success or self._binary_content is None:
            return
        if self.will_result_in_null_as_not_found:
            return

        try:
            if self._value_type is str and self._is_plain_text():
                value: Any = self._text
            else:
                value = self._serializer.deserialize(
                    self._binary_content, self._value_type
                )
        except (ValueError, TypeError) as exc:
            logger.debug(
                "response_deserialization_failed",
                component="http",
                status_code=self._response.status_code,
                error=str(exc),
            )
            self._deserialization_error = ResponseDeserializationError(
                self._value_type, self._response.status_code, exc
            )
            return

        if isinstance(value, CollectionResult) and value.paging is None:
            value.paging = paging_result_from_headers(
                self._response.headers, self._config
            )
        self._backfill_etag(value)
        self._value = value

    def _is_plain_text(self) -> bool:
        content_type = self._response.headers.get("Content-Type", "")
        return content_type.split(";")[0].strip().lower() == TEXT_PLAIN_MEDIA_TYPE

    def _backfill_etag(self, value: Any) -> None:
        etag = self._response.headers.get("ETag")
        if not etag or not hasattr(value, "etag") or value.etag:
            return
        try:
            value.etag = etag
        except (AttributeError, TypeError, ValueError):
            logger.debug(
                "etag_backfill_skipped",
                component="http",
                value_type=type(value).__name__,
            )

    @property
    def deserialization_error(self) -> ResponseDeserializationError | None:
        """The captured body conversion failure, if any."""
        return self._deserialization_error

    @property
    def status_code(self) -> int:
        """Status code; 500 when the body could not be converted."""
        if self._deserialization_error is not None:
            return HTTP_STATUS_INTERNAL_SERVER_ERROR
        return super().status_code

    @property
    def is_success(self) -> bool:
        """Whether the status indicates success and the body was converted."""
        if self._deserialization_error is not None:
            return False
        return super().is_success

    @property
    def value(self) -> T | None:
        """The converted value.

        Raises:
            ResponseDeserializationError: If the body could not be converted.
            ExtendedError: The mapped known error for an unsuccessful response.
            HttpRequestError: When no known error applies.
        """
        self.throw_on_error()
        return self._value

    @property
    def error(self) -> Exception | None:
        """The error ``value`` would raise, without raising it."""
        return self._failure(True, True)

    def throw_on_error(
        self,
        throw_known_exception: bool = True,
        use_content_as_error_message: bool = True,
    ) -> "TypedHttpResult[T]":
        """Raise when the result is not a success.

        Raises:
            ResponseDeserializationError: If the body could not be converted.
            ExtendedError: The mapped known error.
            HttpRequestError: When no known error applies.
        """
        if self._deserialization_error is not None:
            raise self._deserialization_error
        super().throw_on_error(throw_known_exception, use_content_as_error_message)
        return self

    def to_result(  # type: ignore[override]
        self,
        convert_to_known_exception: bool = True,
        use_content_as_error_message: bool = True,
    ) -> Result[T]:
        """Convert to a non-throwing result carrying the value."""
        error = self._failure(convert_to_known_exception, use_content_as_error_message)
        return Result.ok(self._value) if error is None else Result.fail(error)

    def _failure(
        self, convert_to_known_exception: bool, use_content_as_error_message: bool
    ) -> Exception | None:
        if self._deserialization_error is not None:
            return self._deserialization_error
        return super()._failure(
            convert_to_known_exception, use_content_as_error_message
        )


def build_request_error(
    response: httpx.Response,
    content: str | None,
    config: HttpClientConfig | None = None,
) -> HttpRequestError:
    """Build the generic error for a response without a known classification.

    Args:
        response: Transport response.
        content: Body text.
        config: Client configuration (body snippet length).

    Returns:
        The error, carrying method, redacted URL, status and a body snippet.
    """
    config = config or DEFAULT_CONFIG
    method: str | None = None
    url: str | None = None
    try:
        request = response.request
    except RuntimeError:
        request = None
    if request is not None:
        method = request.method
        url = redact_url(str(request.url))

    body = content[: config.max_error_body_chars] if content else None
    return HttpRequestError(
        status_message(response.status_code),
        status_code=response.status_code,
        method=method,
        url=url,
        body=body,
    )

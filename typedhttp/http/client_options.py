"""Send options for the typed HTTP client.

A client holds one default ``TypedHttpClientOptions`` value for its lifetime.
Each call receives its own options value, derived from the defaults with the
fluent methods below. Values are immutable, so nothing configured for one
call can leak into the next.
"""

import asyncio
from collections.abc import Awaitable, Callable

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from typedhttp.http.constants import (
    HTTP_STATUS_ACCEPTED,
    HTTP_STATUS_CREATED,
    HTTP_STATUS_NO_CONTENT,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_OK,
    HTTP_STATUS_REQUEST_TIMEOUT,
    HTTP_STATUS_SERVER_ERROR_MIN,
    HTTP_STATUS_TOO_MANY_REQUESTS,
)


TransientPredicate = Callable[[httpx.Response | None, BaseException | None], bool]
BeforeRequestHook = Callable[[httpx.Request], Awaitable[None] | None]

_TRANSIENT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    httpx.TransportError,
    asyncio.CancelledError,
    TimeoutError,
)


def is_transient(
    response: httpx.Response | None = None,
    exception: BaseException | None = None,
) -> bool:
    """Default transient classification.

    Connection-level failures, timeouts and cancellation are transient, as are
    5xx, 408 and 429 responses.

    Args:
        response: Response received, if any.
        exception: Exception raised by the transport, if any.

    Returns:
        True if the outcome is eligible for retry.
    """
    if exception is not None:
        return isinstance(exception, _TRANSIENT_EXCEPTIONS)
    if response is None:
        return False
    status = response.status_code
    return status >= HTTP_STATUS_SERVER_ERROR_MIN or status in (
        HTTP_STATUS_REQUEST_TIMEOUT,
        HTTP_STATUS_TOO_MANY_REQUESTS,
    )


class TypedHttpClientOptions(BaseModel):
    """Per-call send options.

    Checks run in a fixed order per call: transient, known exception,
    ensure success, expected status codes.
    """

    model_config = ConfigDict(
        frozen=True, extra="forbid", arbitrary_types_allowed=True
    )

    should_throw_transient_exception: bool = False
    is_transient_predicate: TransientPredicate | None = Field(
        default=None, description="Overrides the default transient classification"
    )
    should_throw_known_exception: bool = False
    should_throw_known_use_content_as_message: bool = False
    should_ensure_success: bool = False
    expected_status_codes: tuple[int, ...] = ()
    should_null_on_not_found: bool = False
    before_request: BeforeRequestHook | None = None
    timeout: float | None = Field(default=None, gt=0, description="Seconds")

    @field_validator("expected_status_codes")
    @classmethod
    def dedupe_status_codes(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        """Remove duplicate status codes, keeping first occurrence order."""
        return tuple(dict.fromkeys(v))

    def check_transient(
        self,
        response: httpx.Response | None = None,
        exception: BaseException | None = None,
    ) -> bool:
        """Classify an outcome with the configured (or default) predicate."""
        predicate = self.is_transient_predicate or is_transient
        return predicate(response, exception)

    def throw_transient_exception(
        self, predicate: TransientPredicate | None = None
    ) -> "TypedHttpClientOptions":
        """Raise ``TransientError`` for transient outcomes.

        Args:
            predicate: Custom classification; the default when None.
        """
        return self.model_copy(
            update={
                "should_throw_transient_exception": True,
                "is_transient_predicate": predicate,
            }
        )

    def throw_known_exception(
        self, use_content_as_error_message: bool = False
    ) -> "TypedHttpClientOptions":
        """Raise the mapped known error for unsuccessful responses.

        Args:
            use_content_as_error_message: Use the body text as the message.
        """
        return self.model_copy(
            update={
                "should_throw_known_exception": True,
                "should_throw_known_use_content_as_message": (
                    use_content_as_error_message
                ),
            }
        )

    def ensure_success(self) -> "TypedHttpClientOptions":
        """Raise ``HttpRequestError`` for any non-2xx response."""
        return self.model_copy(update={"should_ensure_success": True})

    def ensure(self, *status_codes: int) -> "TypedHttpClientOptions":
        """Raise ``HttpRequestError`` unless the status is one of these."""
        codes = tuple(dict.fromkeys((*self.expected_status_codes, *status_codes)))
        return self.model_copy(update={"expected_status_codes": codes})

    def ensure_ok(self) -> "TypedHttpClientOptions":
        """Expect 200 OK."""
        return self.ensure(HTTP_STATUS_OK)

    def ensure_no_content(self) -> "TypedHttpClientOptions":
        """Expect 204 No Content."""
        return self.ensure(HTTP_STATUS_NO_CONTENT)

    def ensure_accepted(self) -> "TypedHttpClientOptions":
        """Expect 202 Accepted."""
        return self.ensure(HTTP_STATUS_ACCEPTED)

    def ensure_created(self) -> "TypedHttpClientOptions":
        """Expect 201 Created."""
        return self.ensure(HTTP_STATUS_CREATED)

    def ensure_not_found(self) -> "TypedHttpClientOptions":
        """Expect 404 Not Found."""
        return self.ensure(HTTP_STATUS_NOT_FOUND)

    def null_on_not_found(self) -> "TypedHttpClientOptions":
        """Treat a GET 404 as a successful empty (204) result."""
        return self.model_copy(update={"should_null_on_not_found": True})

    def on_before_request(self, hook: BeforeRequestHook) -> "TypedHttpClientOptions":
        """Run a hook (sync or async) on the request just before dispatch."""
        return self.model_copy(update={"before_request": hook})

    def with_timeout(self, seconds: float) -> "TypedHttpClientOptions":
        """Override the transport timeout for the call.

        Raises:
            ValueError: If seconds is not positive.
        """
        if seconds <= 0:
            msg = f"Timeout must be positive, got {seconds}"
            raise ValueError(msg)
        return self.model_copy(update={"timeout": seconds})

    def reset(self) -> "TypedHttpClientOptions":
        """Return the library defaults."""
        return TypedHttpClientOptions()


DEFAULT_OPTIONS = TypedHttpClientOptions()

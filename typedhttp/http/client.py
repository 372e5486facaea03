"""Typed HTTP client: request building, the send pipeline and typed verbs."""

import asyncio
import inspect
import time
import uuid
from collections.abc import Sequence
from types import TracebackType
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from typedhttp.http.args import HttpArg, HttpArgType
from typedhttp.http.client_options import DEFAULT_OPTIONS, TypedHttpClientOptions
from typedhttp.http.config import DEFAULT_CONFIG, HttpClientConfig
from typedhttp.http.constants import (
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    JSON_MEDIA_TYPE,
)
from typedhttp.http.errors import TransientError, to_extended_error
from typedhttp.http.metrics import HttpClientMetrics
from typedhttp.http.redact import redact_headers, redact_url
from typedhttp.http.request_builder import (
    HttpPatchOption,
    RequestDraft,
    build_request,
    patch_content_type,
)
from typedhttp.http.request_options import HttpRequestOptions
from typedhttp.http.result import HttpResult, TypedHttpResult, build_request_error
from typedhttp.http.state_machine import SendState, SendStateMachine
from typedhttp.json import DEFAULT_SERIALIZER, JsonSerializer
from typedhttp.observability.logging import (
    configure_logging_from_settings,
    get_correlation_id,
)


if TYPE_CHECKING:
    from typedhttp.settings.app import HttpClientSettings


logger = structlog.get_logger()


class TypedHttpClient:
    """Typed HTTP client over a pooled ``httpx.AsyncClient``.

    Provides:
    - URI template substitution and ordered query composition
    - Conditional ETag headers and JSON bodies
    - Transient and known-error classification with configurable checks
    - Correlation header propagation
    - Header redaction for logging
    - Metrics collection

    The client holds its default send options for its lifetime. Each call may
    pass its own ``send_options`` value; nothing per call is stored on the
    instance, so overlapping calls are independent.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        serializer: JsonSerializer | None = None,
        default_options: TypedHttpClientOptions | None = None,
        config: HttpClientConfig | None = None,
        owns_client: bool = False,
    ) -> None:
        """Initialize the typed client.

        Args:
            client: Transport client, typically with a base URL.
            serializer: JSON codec; pydantic based by default.
            default_options: Send options used when a call passes none.
            config: Header names and transport defaults.
            owns_client: Close the transport client in ``aclose``.
        """
        self._client = client
        self._serializer = serializer or DEFAULT_SERIALIZER
        self._default_options = default_options or DEFAULT_OPTIONS
        self._config = config or DEFAULT_CONFIG
        self._owns_client = owns_client
        self._metrics = HttpClientMetrics.get_instance()
        self._log = logger.bind(component="http")

    @classmethod
    def from_settings(
        cls,
        settings: "HttpClientSettings | None" = None,
        *,
        serializer: JsonSerializer | None = None,
        default_options: TypedHttpClientOptions | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        configure_logs: bool = False,
    ) -> "TypedHttpClient":
        """Create a client, and the transport it owns, from environment settings.

        Args:
            settings: Loaded settings; read from the environment when omitted.
            serializer: JSON codec.
            default_options: Default send options.
            transport: Transport override (e.g. ``httpx.MockTransport``).
            configure_logs: Also configure structlog from ``log_level`` and
                ``log_json``.

        Returns:
            A client that closes its transport in ``aclose``.
        """
        if settings is None:
            from typedhttp.settings.app import get_settings

            settings = get_settings()

        if configure_logs:
            configure_logging_from_settings(settings)

        config = HttpClientConfig.from_settings(settings)
        client = httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=config.timeout_seconds,
            headers={"User-Agent": config.user_agent},
            transport=transport,
        )
        return cls(
            client,
            serializer=serializer,
            default_options=default_options,
            config=config,
            owns_client=True,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """The transport client."""
        return self._client

    @property
    def default_options(self) -> TypedHttpClientOptions:
        """Send options used when a call passes none."""
        return self._default_options

    @property
    def config(self) -> HttpClientConfig:
        """Client configuration."""
        return self._config

    @property
    def serializer(self) -> JsonSerializer:
        """JSON codec."""
        return self._serializer

    async def aclose(self) -> None:
        """Close the transport client when this instance owns it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "TypedHttpClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def send(
        self,
        request: httpx.Request,
        send_options: TypedHttpClientOptions | None = None,
    ) -> httpx.Response:
        """Send a request through the pipeline.

        Building: correlation headers, ``before_request`` hook, timeout.
        Dispatching: transport send. Classifying: transient check, known
        exception check, ensure success, expected status codes.

        Args:
            request: Transport request.
            send_options: Options for this call; the defaults when omitted.

        Returns:
            The transport response, when every configured check passes.

        Raises:
            TransientError: For a transient outcome when configured to raise.
            ExtendedError: The mapped known error when configured to raise.
            HttpRequestError: For ensure-success or expected-status failures.
            httpx.RequestError: Transport failures not translated.
        """
        options = send_options or self._default_options
        correlation_id = self._apply_correlation_headers(request)
        machine = SendStateMachine(correlation_id)
        log = self._log.bind(
            method=request.method,
            url=redact_url(str(request.url)),
            correlation_id=correlation_id,
        )
        start_time_ns = time.perf_counter_ns()

        try:
            await self._before_dispatch(request, options)
            machine.transition(SendState.DISPATCHING)
            log.debug("http_request_sent", headers=redact_headers(request.headers))

            response = await self._dispatch(request, options, log)
            machine.transition(SendState.CLASSIFYING)

            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
            self._metrics.record_response(
                request.method, response.status_code, duration_ms
            )
            log.info(
                "http_response_received",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            await self._classify(request, response, options, log)
            machine.transition(SendState.DONE)
            return response
        except BaseException as exc:
            machine.fault(exc)
            raise

    async def _before_dispatch(
        self, request: httpx.Request, options: TypedHttpClientOptions
    ) -> None:
        if options.before_request is not None:
            outcome = options.before_request(request)
            if inspect.isawaitable(outcome):
                await outcome

        if options.timeout is not None:
            request.extensions["timeout"] = httpx.Timeout(options.timeout).as_dict()

    async def _dispatch(
        self,
        request: httpx.Request,
        options: TypedHttpClientOptions,
        log: structlog.stdlib.BoundLogger,
    ) -> httpx.Response:
        try:
            return await self._client.send(request)
        except asyncio.CancelledError:
            self._metrics.record_failure("CancelledError")
            log.warning("http_send_failed", error_type="CancelledError")
            raise
        except httpx.RequestError as exc:
            self._metrics.record_failure(type(exc).__name__)
            log.warning(
                "http_send_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            if options.should_throw_transient_exception and options.check_transient(
                exception=exc
            ):
                self._metrics.record_transient()
                log.warning("http_transient_error", error_type=type(exc).__name__)
                raise TransientError(str(exc) or None) from exc
            raise

    async def _classify(
        self,
        request: httpx.Request,
        response: httpx.Response,
        options: TypedHttpClientOptions,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        status = response.status_code
        if (
            options.should_null_on_not_found
            and request.method == "GET"
            and status == HTTP_STATUS_NOT_FOUND
        ):
            return

        if options.should_throw_transient_exception and options.check_transient(
            response=response
        ):
            await response.aread()
            self._metrics.record_transient()
            log.warning("http_transient_error", status_code=status)
            raise TransientError(content=response.text or None)

        is_success = HTTP_STATUS_OK_MIN <= status < HTTP_STATUS_OK_MAX
        if is_success and not options.expected_status_codes:
            return

        await response.aread()
        text = response.text or None

        if options.should_throw_known_exception and not is_success:
            error = to_extended_error(
                status,
                response.headers,
                text,
                use_content_as_error_message=(
                    options.should_throw_known_use_content_as_message
                ),
                config=self._config,
            )
            if error is not None:
                self._metrics.record_known_error(error.error_type.value)
                log.info(
                    "http_known_error",
                    status_code=status,
                    error_type=error.error_type.value,
                )
                raise error

        if options.should_ensure_success and not is_success:
            raise build_request_error(response, text, self._config)

        if (
            options.expected_status_codes
            and status not in options.expected_status_codes
        ):
            raise build_request_error(response, text, self._config)

    def _apply_correlation_headers(self, request: httpx.Request) -> str:
        existing = next(
            (
                request.headers[name]
                for name in self._config.correlation_header_names
                if name in request.headers
            ),
            None,
        )
        correlation_id = existing or get_correlation_id() or str(uuid.uuid4())
        for name in self._config.correlation_header_names:
            if name not in request.headers:
                request.headers[name] = correlation_id
        return correlation_id

    async def _execute(
        self,
        draft: RequestDraft,
        send_options: TypedHttpClientOptions | None,
        response_type: Any,
    ) -> HttpResult:
        options = send_options or self._default_options
        request = draft.to_httpx(self._client)
        response = await self.send(request, options)
        null_on_not_found = options.should_null_on_not_found and draft.method == "GET"

        if response_type is None:
            result = await HttpResult.create(response, self._config)
            result.null_on_not_found_response = null_on_not_found
            return result

        return await TypedHttpResult.create(
            response,
            response_type,
            self._serializer,
            self._config,
            null_on_not_found=null_on_not_found,
        )

    def _build(
        self,
        method: str,
        request_uri: str,
        request_options: HttpRequestOptions | None,
        args: Sequence[HttpArg] | None,
        content: str | bytes | None = None,
        content_type: str | None = None,
    ) -> RequestDraft:
        return build_request(
            method,
            request_uri,
            request_options,
            args,
            content=content,
            content_type=content_type,
            serializer=self._serializer,
        )

    def _body(
        self,
        value: Any,
        content: str | bytes | None,
        content_type: str | None,
    ) -> tuple[str | bytes | None, str | None]:
        if value is not None and content is not None:
            msg = "Pass either a value or raw content, not both"
            raise ValueError(msg)
        if value is not None:
            return self._serializer.serialize(value), JSON_MEDIA_TYPE
        return content, content_type

    async def head(
        self,
        request_uri: str,
        *,
        args: Sequence[HttpArg] | None = None,
        request_options: HttpRequestOptions | None = None,
        send_options: TypedHttpClientOptions | None = None,
    ) -> HttpResult:
        """Send a HEAD request.

        Args:
            request_uri: URI template.
            args: Request arguments.
            request_options: Per-request options.
            send_options: Send options for this call.

        Returns:
            The result.
        """
        draft = self._build("HEAD", request_uri, request_options, args)
        return await self._execute(draft, send_options, None)

    async def get(
        self,
        request_uri: str,
        *,
        args: Sequence[HttpArg] | None = None,
        request_options: HttpRequestOptions | None = None,
        send_options: TypedHttpClientOptions | None = None,
        response_type: Any = None,
    ) -> HttpResult:
        """Send a GET request.

        Args:
            request_uri: URI template.
            args: Request arguments.
            request_options: Per-request options.
            send_options: Send options for this call.
            response_type: Type to convert the body to; a ``TypedHttpResult``
                is returned when given.

        Returns:
            The result.
        """
        draft = self._build("GET", request_uri, request_options, args)
        return await self._execute(draft, send_options, response_type)

    async def post(
        self,
        request_uri: str,
        value: Any = None,
        *,
        content: str | bytes | None = None,
        content_type: str | None = None,
        args: Sequence[HttpArg] | None = None,
        request_options: HttpRequestOptions | None = None,
        send_options: TypedHttpClientOptions | None = None,
        response_type: Any = None,
    ) -> HttpResult:
        """Send a POST request.

        Args:
            request_uri: URI template.
            value: Body value, serialized as JSON.
            content: Raw body, as an alternative to ``value``.
            content_type: Media type of the raw body.
            args: Request arguments.
            request_options: Per-request options.
            send_options: Send options for this call.
            response_type: Type to convert the body to.

        Returns:
            The result.

        Raises:
            ValueError: If both value and content are given.
        """
        body, media_type = self._body(value, content, content_type)
        draft = self._build(
            "POST", request_uri, request_options, args, body, media_type
        )
        return await self._execute(draft, send_options, response_type)

    async def put(
        self,
        request_uri: str,
        value: Any = None,
        *,
        content: str | bytes | None = None,
        content_type: str | None = None,
        args: Sequence[HttpArg] | None = None,
        request_options: HttpRequestOptions | None = None,
        send_options: TypedHttpClientOptions | None = None,
        response_type: Any = None,
    ) -> HttpResult:
        """Send a PUT request.

        Args:
            request_uri: URI template.
            value: Body value, serialized as JSON.
            content: Raw body, as an alternative to ``value``.
            content_type: Media type of the raw body.
            args: Request arguments.
            request_options: Per-request options (an ETag is sent as If-Match).
            send_options: Send options for this call.
            response_type: Type to convert the body to.

        Returns:
            The result.

        Raises:
            ValueError: If both value and content are given.
        """
        body, media_type = self._body(value, content, content_type)
        draft = self._build("PUT", request_uri, request_options, args, body, media_type)
        return await self._execute(draft, send_options, response_type)

    async def patch(
        self,
        request_uri: str,
        json: str | None = None,
        *,
        patch_option: HttpPatchOption = HttpPatchOption.NOT_SPECIFIED,
        content: str | bytes | None = None,
        content_type: str | None = None,
        args: Sequence[HttpArg] | None = None,
        request_options: HttpRequestOptions | None = None,
        send_options: TypedHttpClientOptions | None = None,
        response_type: Any = None,
    ) -> HttpResult:
        """Send a PATCH request.

        Inline JSON requires a patch option that selects the media type;
        ``NOT_SPECIFIED`` is rejected before anything is sent.

        Args:
            request_uri: URI template.
            json: Inline JSON patch document.
            patch_option: JSON Patch or JSON Merge Patch.
            content: Raw body, as an alternative to ``json``.
            content_type: Media type of the raw body.
            args: Request arguments; body arguments are not allowed with json.
            request_options: Per-request options.
            send_options: Send options for this call.
            response_type: Type to convert the body to.

        Returns:
            The result.

        Raises:
            ValueError: If the patch option is not specified for inline JSON,
                a body argument accompanies inline JSON, or both json and
                content are given.
        """
        if json is not None:
            if content is not None:
                msg = "Pass either json or raw content, not both"
                raise ValueError(msg)
            media_type = patch_content_type(patch_option)
            if any(arg.arg_type == HttpArgType.FROM_BODY for arg in args or []):
                msg = "Body arguments cannot be combined with inline JSON content"
                raise ValueError(msg)
            draft = self._build(
                "PATCH", request_uri, request_options, args, json, media_type
            )
        else:
            draft = self._build(
                "PATCH", request_uri, request_options, args, content, content_type
            )
        return await self._execute(draft, send_options, response_type)

    async def delete(
        self,
        request_uri: str,
        *,
        args: Sequence[HttpArg] | None = None,
        request_options: HttpRequestOptions | None = None,
        send_options: TypedHttpClientOptions | None = None,
    ) -> HttpResult:
        """Send a DELETE request.

        Args:
            request_uri: URI template.
            args: Request arguments.
            request_options: Per-request options (an ETag is sent as If-Match).
            send_options: Send options for this call.

        Returns:
            The result.
        """
        draft = self._build("DELETE", request_uri, request_options, args)
        return await self._execute(draft, send_options, None)

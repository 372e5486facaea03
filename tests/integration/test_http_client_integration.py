"""Integration tests for the typed HTTP client against a local server."""

import json
import threading
from collections.abc import Generator
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import ClassVar
from urllib.parse import parse_qsl, urlsplit

import pytest
from pydantic import BaseModel

from typedhttp.http.args import HttpArg, HttpArgType
from typedhttp.http.client import TypedHttpClient
from typedhttp.http.client_options import TypedHttpClientOptions
from typedhttp.http.errors import ConcurrencyError, NotFoundError, ValidationError
from typedhttp.http.metrics import HttpClientMetrics
from typedhttp.http.paging import CollectionResult, PagingArgs
from typedhttp.http.request_options import HttpRequestOptions
from typedhttp.settings.app import HttpClientSettings


OPTIONS = TypedHttpClientOptions()


class Order(BaseModel):
    """Order resource."""

    id: int
    total: float
    etag: str | None = None


class OrdersHandler(BaseHTTPRequestHandler):
    """HTTP handler serving an in-memory order collection with ETags."""

    orders: ClassVar[dict[int, dict[str, float | int]]] = {}
    versions: ClassVar[dict[int, int]] = {}
    last_headers: ClassVar[dict[str, str]] = {}

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        """Suppress log messages during tests."""

    def _etag(self, order_id: int) -> str:
        return f'"v{self.versions[order_id]}"'

    def _send_json(
        self, status: int, body: object, headers: dict[str, str] | None = None
    ) -> None:
        payload = json.dumps(body).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(payload)

    def _send_empty(self, status: int, headers: dict[str, str] | None = None) -> None:
        self.send_response(status)
        self.send_header("Content-Length", "0")
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()

    def _order_id(self, path: str) -> int | None:
        parts = path.strip("/").split("/")
        if len(parts) == 2 and parts[0] == "orders" and parts[1].isdigit():
            return int(parts[1])
        return None

    def do_GET(self) -> None:  # noqa: N802
        """Serve a single order or a filtered list."""
        OrdersHandler.last_headers = dict(self.headers.items())
        url = urlsplit(self.path)

        if url.path == "/orders":
            query = dict(parse_qsl(url.query))
            skip = int(query.get("$skip", "0"))
            take = int(query.get("$take", "100"))
            items = [self.orders[k] for k in sorted(self.orders)]
            headers = {
                "x-paging-skip": str(skip),
                "x-paging-take": str(take),
                "x-paging-total-count": str(len(items)),
                "x-echo-query": url.query,
            }
            self._send_json(200, items[skip : skip + take], headers)
            return

        order_id = self._order_id(url.path)
        if order_id is None or order_id not in self.orders:
            self._send_empty(404, {"x-error-type": "NotFoundError"})
            return

        etag = self._etag(order_id)
        if self.headers.get("If-None-Match") == etag:
            self._send_empty(304, {"ETag": etag})
            return
        self._send_json(200, self.orders[order_id], {"ETag": etag})

    def do_PUT(self) -> None:  # noqa: N802
        """Replace an order when the If-Match precondition holds."""
        order_id = self._order_id(urlsplit(self.path).path)
        if order_id is None or order_id not in self.orders:
            self._send_empty(404)
            return

        if self.headers.get("If-Match") != self._etag(order_id):
            self._send_json(412, "The order was modified by another request.")
            return

        length = int(self.headers.get("Content-Length", "0"))
        body = json.loads(self.rfile.read(length))
        OrdersHandler.orders[order_id] = {"id": order_id, "total": body["total"]}
        OrdersHandler.versions[order_id] += 1
        self._send_json(200, self.orders[order_id], {"ETag": self._etag(order_id)})

    def do_POST(self) -> None:  # noqa: N802
        """Create an order, validating the total."""
        length = int(self.headers.get("Content-Length", "0"))
        body = json.loads(self.rfile.read(length))
        if body.get("total", 0) <= 0:
            self._send_json(400, {"total": ["must be greater than zero"]})
            return

        order_id = max(self.orders, default=0) + 1
        OrdersHandler.orders[order_id] = {"id": order_id, "total": body["total"]}
        OrdersHandler.versions[order_id] = 1
        self._send_json(201, self.orders[order_id], {"ETag": self._etag(order_id)})


@pytest.fixture
def orders_server() -> Generator[HTTPServer, None, None]:
    """Start a local HTTP server serving orders."""
    HttpClientMetrics.reset()
    OrdersHandler.orders = {
        1: {"id": 1, "total": 10.0},
        2: {"id": 2, "total": 20.0},
        3: {"id": 3, "total": 30.0},
    }
    OrdersHandler.versions = {1: 1, 2: 1, 3: 1}
    OrdersHandler.last_headers = {}
    server = HTTPServer(("127.0.0.1", 0), OrdersHandler)
    thread = threading.Thread(target=server.serve_forever)
    thread.daemon = True
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


def make_client(server: HTTPServer) -> TypedHttpClient:
    """Create a typed client for the test server."""
    host, port = server.server_address[0], server.server_address[1]
    if isinstance(host, bytes):
        host = host.decode("utf-8")
    settings = HttpClientSettings(
        _env_file=None,  # type: ignore[call-arg]
        base_url=f"http://{host}:{port}",
        correlation_header_names=["x-correlation-id", "x-request-id"],
    )
    return TypedHttpClient.from_settings(settings)


class TestConditionalRequests:
    """Integration tests for ETag handling."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_get_then_not_modified(self, orders_server: HTTPServer) -> None:
        """Test that a GET carries the ETag and a repeat returns 304."""
        async with make_client(orders_server) as client:
            first = await client.get(
                "/orders/{id}", args=[HttpArg("id", 1)], response_type=Order
            )
            order = first.value
            assert order is not None
            assert order.etag == '"v1"'

            second = await client.get(
                "/orders/{id}",
                args=[HttpArg("id", 1)],
                request_options=HttpRequestOptions(etag=order.etag),
            )

        headers = {k.lower(): v for k, v in OrdersHandler.last_headers.items()}
        assert second.status_code == 304
        assert headers["if-none-match"] == '"v1"'

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_put_with_current_etag(self, orders_server: HTTPServer) -> None:
        """Test that a PUT with the current ETag succeeds."""
        async with make_client(orders_server) as client:
            result = await client.put(
                "/orders/2",
                {"total": 25.0},
                request_options=HttpRequestOptions(etag="v1"),
                send_options=OPTIONS.throw_known_exception().ensure_ok(),
                response_type=Order,
            )

        order = result.value
        assert order is not None
        assert order.total == 25.0
        assert order.etag == '"v2"'

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_put_with_stale_etag(self, orders_server: HTTPServer) -> None:
        """Test that a stale ETag yields a concurrency failure."""
        async with make_client(orders_server) as client:
            result = await client.put(
                "/orders/2",
                {"total": 25.0},
                request_options=HttpRequestOptions(etag='"v0"'),
                response_type=Order,
            )
            assert isinstance(result.to_result().error, ConcurrencyError)

            with pytest.raises(ConcurrencyError):
                await client.put(
                    "/orders/2",
                    {"total": 25.0},
                    request_options=HttpRequestOptions(etag='"v0"'),
                    send_options=OPTIONS.throw_known_exception(),
                )

        assert OrdersHandler.orders[2]["total"] == 20.0


class TestErrorMapping:
    """Integration tests for known error translation."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_not_found(self, orders_server: HTTPServer) -> None:
        """Test a 404 raised, and a 404 reported as no content."""
        async with make_client(orders_server) as client:
            with pytest.raises(NotFoundError):
                await client.get(
                    "/orders/99", send_options=OPTIONS.throw_known_exception()
                )

            result = await client.get(
                "/orders/99",
                send_options=OPTIONS.null_on_not_found(),
                response_type=Order,
            )

        assert result.status_code == 204
        assert result.value is None

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_validation_field_errors(self, orders_server: HTTPServer) -> None:
        """Test that a 400 body of field errors becomes ValidationError."""
        async with make_client(orders_server) as client:
            with pytest.raises(ValidationError) as exc_info:
                await client.post(
                    "/orders",
                    {"total": 0},
                    send_options=OPTIONS.throw_known_exception(),
                )

        messages = exc_info.value.messages
        assert messages is not None
        assert messages[0].property == "total"
        assert "[total: must be greater than zero]" in exc_info.value.message

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_create(self, orders_server: HTTPServer) -> None:
        """Test a created order."""
        async with make_client(orders_server) as client:
            result = await client.post(
                "/orders",
                {"total": 5.0},
                send_options=OPTIONS.ensure_created(),
                response_type=Order,
            )

        assert result.value == Order(id=4, total=5.0, etag='"v1"')


class TestQueryAndPaging:
    """Integration tests for query composition and paging headers."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_paged_list(self, orders_server: HTTPServer) -> None:
        """Test that paging goes out in the query and comes back in headers."""
        options = HttpRequestOptions(
            paging=PagingArgs.create_skip_and_take(1, 1, is_get_count=True),
            include_fields=("id", "total"),
        )

        async with make_client(orders_server) as client:
            result = await client.get(
                "/orders",
                args=[HttpArg("status", "open")],
                request_options=options,
                response_type=CollectionResult[Order],
            )

        collection = result.value
        assert collection is not None
        assert [o.id for o in collection] == [2]
        assert collection.paging is not None
        assert collection.paging.total_count == 3
        assert collection.paging.total_pages == 3

        echoed = parse_qsl(result.response.headers["x-echo-query"])
        assert echoed == [
            ("status", "open"),
            ("$skip", "1"),
            ("$take", "1"),
            ("$count", "true"),
            ("$fields", "id,total"),
        ]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_correlation_headers_sent(self, orders_server: HTTPServer) -> None:
        """Test that every configured correlation header reaches the server."""
        async with make_client(orders_server) as client:
            await client.get("/orders")

        headers = {k.lower(): v for k, v in OrdersHandler.last_headers.items()}
        assert headers["x-correlation-id"] == headers["x-request-id"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_body_argument(self, orders_server: HTTPServer) -> None:
        """Test that a body argument is serialized as JSON."""
        async with make_client(orders_server) as client:
            result = await client.post(
                "/orders",
                args=[HttpArg("order", {"total": 7.5}, HttpArgType.FROM_BODY)],
                response_type=Order,
            )

        assert result.status_code == 201
        assert result.value is not None
        assert result.value.total == 7.5

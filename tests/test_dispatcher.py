"""Tests for request dispatch and status mapping."""

import logging
from typing import Optional

import pytest

from typeroute import (
    DispatchResult,
    HandlerResolutionError,
    JsonContent,
    Request,
    RequestDispatcher,
    Response,
    Route,
    RouteRegistry,
    get,
    post,
)
from typeroute.dispatcher import import_handler_type


class EchoContent(JsonContent):
    value: str
    page: Optional[int]


class EchoResponse(Response):
    STATUS = 202
    DESCRIPTION = "Echo"
    CONTENT = EchoContent


class Broken(Exception):
    pass


class EchoRoute(Route):
    @get
    def echo(self, value: str, page: Optional[int] = None, *, upper: bool = False) -> EchoResponse:
        content = EchoContent()
        content.value = value.upper() if upper else value
        if page is not None:
            content.page = page
        return EchoResponse(content)

    @post
    def explode(self) -> EchoResponse:
        raise Broken("database password is hunter2")

    @get
    def wrong_type(self):
        return {"value": "x"}

    @get
    def empty(self) -> EchoResponse:
        return EchoResponse(None)


class NeedsArgs(Route):
    def __init__(self, dependency):
        self.dependency = dependency

    @get
    def hello(self) -> EchoResponse:
        return EchoResponse(EchoContent())


@pytest.fixture
def dispatcher():
    registry = RouteRegistry()
    registry.discover([EchoRoute, NeedsArgs])
    return RequestDispatcher(registry)


class TestSuccessfulDispatch:
    """Happy-path dispatch."""

    def test_status_content_type_and_body(self, dispatcher):
        result = dispatcher.handle("/echo", "GET", {"value": "hi", "page": "2"})

        assert result == DispatchResult(202, "application/json", '{"value":"hi","page":2}')
        assert result.headers == {"Content-Type": "application/json"}
        assert result.status_line == "HTTP/1.1 202 Accepted"

    def test_verb_is_case_insensitive(self, dispatcher):
        assert dispatcher.handle("/echo", "get", {"value": "hi"}).status_code == 202

    def test_keyword_only_parameters(self, dispatcher):
        result = dispatcher.handle("/echo", "GET", {"value": "hi", "upper": "yes"})

        assert result.body == '{"value":"HI"}'

    def test_payload_provider_is_called_after_matching(self, dispatcher):
        calls = []

        def provider():
            calls.append(True)
            return {"value": "lazy"}

        assert dispatcher.handle("/missing", "GET", provider).status_code == 404
        assert calls == []

        assert dispatcher.handle("/echo", "GET", provider).body == '{"value":"lazy"}'
        assert calls == [True]

    def test_execute_extracts_payload_from_request(self, dispatcher):
        request = Request(method="GET", path="/echo", query_params="value=q&page=7")

        result = dispatcher.execute(request)

        assert result.body == '{"value":"q","page":7}'

    def test_get_ignores_body(self, dispatcher):
        request = Request(
            method="GET",
            path="/echo",
            headers={"content-type": "application/json"},
            body='{"value": "from body"}',
            query_params={"value": "from query"},
        )

        assert dispatcher.execute(request).body == '{"value":"from query"}'


class TestErrorMapping:
    """Framework errors become plain-text results."""

    def test_unknown_route_is_404(self, dispatcher):
        assert dispatcher.handle("/nope", "GET") == DispatchResult(404, "text/plain", "Not Found")

    def test_unsupported_verb_is_404(self, dispatcher):
        assert dispatcher.handle("/echo", "OPTIONS").status_code == 404

    def test_missing_parameter_is_400_naming_it(self, dispatcher):
        result = dispatcher.handle("/echo", "GET", {})

        assert result == DispatchResult(400, "text/plain", "Bad Request: Missing required parameter: value")

    def test_handler_exception_is_generic_500(self, dispatcher, caplog):
        with caplog.at_level(logging.ERROR, logger="typeroute.dispatcher"):
            result = dispatcher.handle("/explode", "POST", {})

        assert result == DispatchResult(500, "text/plain", "Internal Server Error")
        assert "hunter2" not in result.body
        assert "Unhandled exception processing POST /explode" in caplog.text

    def test_non_response_return_is_500(self, dispatcher):
        assert dispatcher.handle("/wrong_type", "GET").status_code == 500

    def test_response_without_content_is_500(self, dispatcher):
        assert dispatcher.handle("/empty", "GET").status_code == 500

    def test_constructor_failure_is_500(self, dispatcher):
        result = dispatcher.handle("/hello", "GET")

        assert result == DispatchResult(500, "text/plain", "Internal Server Error")


class TestHandlerResolution:
    """Stale registry entries are fatal 500s."""

    def test_unimportable_handler_type(self):
        registry = RouteRegistry()
        registry.add("/gone", "GET", "tests.no_such_module:Gone", "gone")

        result = RequestDispatcher(registry).handle("/gone", "GET")

        assert result == DispatchResult(500, "text/plain", "Route class not found: tests.no_such_module:Gone")

    def test_missing_handler_method(self):
        registry = RouteRegistry()
        registry.add("/vanished", "GET", EchoRoute, "vanished")

        result = RequestDispatcher(registry).handle("/vanished", "GET")

        assert result.status_code == 500
        assert result.body.startswith("Route method not found: ")
        assert result.body.endswith("EchoRoute.vanished")

    def test_string_reference_is_resolved_at_request_time(self):
        registry = RouteRegistry()
        registry.add("/echo", "GET", "tests.test_dispatcher:EchoRoute", "echo")

        result = RequestDispatcher(registry).handle("/echo", "GET", {"value": "ok"})

        assert result.body == '{"value":"ok"}'

    def test_import_handler_type_accepts_dotted_path(self):
        assert import_handler_type("tests.test_dispatcher.EchoRoute") is EchoRoute

    def test_import_handler_type_rejects_non_classes(self):
        with pytest.raises(HandlerResolutionError):
            import_handler_type("tests.test_dispatcher:dispatcher")


class TestStatusLine:
    """Status line rendering."""

    def test_known_status(self):
        assert DispatchResult.plain(404, "Not Found").status_line == "HTTP/1.1 404 Not Found"

    def test_unknown_status(self):
        assert DispatchResult(299, "text/plain", "").status_line == "HTTP/1.1 299 Unknown"

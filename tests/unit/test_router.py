"""
Unit tests for the URL router.
"""

from minihttpd.http.request import HTTPRequest
from minihttpd.http.response import HTTPResponse, ok, text
from minihttpd.http.router import Route, Router
from minihttpd.http.status_codes import HTTPStatus


def make_request(method: str, path: str) -> HTTPRequest:
    """Helper to create a request for testing."""
    return HTTPRequest(method=method, path=path)


def dummy_handler(request: HTTPRequest, **params) -> HTTPResponse:
    """Dummy handler for testing."""
    return text(request.path)


class TestRoute:
    """Tests for Route class."""

    def test_method_is_uppercased(self):
        route = Route("/users", dummy_handler, method="post")
        assert route.method == "POST"

    def test_name_defaults_to_handler_name(self):
        assert Route("/", dummy_handler).name == "dummy_handler"

    def test_exact_path(self):
        route = Route("/user-agent", dummy_handler)

        assert route.match("GET", "/user-agent") == {}
        assert route.match("GET", "/user-agent/") is None
        assert route.match("GET", "/user-agentx") is None

    def test_wildcard_captures_remainder(self):
        route = Route("/echo/*message", dummy_handler)

        assert route.match("GET", "/echo/abc") == {"message": "abc"}
        assert route.match("GET", "/echo/a/b/c") == {"message": "a/b/c"}
        assert route.match("GET", "/echo/") == {"message": ""}
        assert route.match("GET", "/echo") is None

    def test_method_restriction(self):
        route = Route("/files/*name", dummy_handler, method="POST")

        assert route.match("POST", "/files/a") == {"name": "a"}
        assert route.match("post", "/files/a") == {"name": "a"}
        assert route.match("GET", "/files/a") is None

    def test_any_method(self):
        route = Route("/", dummy_handler)
        for method in ("GET", "POST", "DELETE", "BREW"):
            assert route.match(method, "/") == {}


class TestRouter:
    """Tests for Router class."""

    def test_add_route(self):
        router = Router()
        router.add_route("/users", dummy_handler, method="GET")

        assert len(router.routes) == 1
        assert router.routes[0].path == "/users"
        assert router.routes[0].method == "GET"

    def test_first_match_wins(self):
        router = Router()
        router.add_route("/files/*name", dummy_handler, method="POST", name="upload")
        router.add_route("/files/*name", dummy_handler, name="download")

        assert router.match("POST", "/files/a").route.name == "upload"
        assert router.match("GET", "/files/a").route.name == "download"
        assert router.match("PUT", "/files/a").route.name == "download"

    def test_no_match(self):
        router = Router()
        router.add_route("/", dummy_handler)

        assert router.match("GET", "/missing") is None

    def test_handle_passes_params(self):
        router = Router()
        received = {}

        def echo(request: HTTPRequest, message: str) -> HTTPResponse:
            received["message"] = message
            return text(message)

        router.add_route("/echo/*message", echo)
        response = router.handle(make_request("GET", "/echo/hi%20there"))

        assert received == {"message": "hi%20there"}
        assert response.body == b"hi%20there"

    def test_handle_not_found(self):
        response = Router().handle(make_request("GET", "/nothing"))
        assert response.status == HTTPStatus.NOT_FOUND

    def test_special_characters_in_static_path(self):
        router = Router()
        router.add_route("/a.b", dummy_handler)

        assert router.match("GET", "/a.b") is not None
        assert router.match("GET", "/axb") is None


class TestRouterDecorators:
    """Tests for decorator-style registration."""

    def test_get_decorator(self):
        router = Router()

        @router.get("/hello")
        def hello(request):
            return ok()

        assert router.routes[0].method == "GET"
        assert router.routes[0].handler is hello

    def test_post_decorator(self):
        router = Router()

        @router.post("/files/*name")
        def upload(request, name):
            return ok()

        assert router.match("POST", "/files/x").route.handler is upload
        assert router.match("GET", "/files/x") is None

    def test_route_decorator_any_method(self):
        router = Router()

        @router.route("/")
        def index(request):
            return ok()

        assert router.routes[0].method is None

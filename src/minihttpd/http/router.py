"""
=============================================================================
URL ROUTING
=============================================================================

The router is an ORDERED list of routes. A request is checked against each
route top to bottom and the first one whose method and path pattern match
wins. If nothing matches the answer is 404 Not Found.

    router.add_route("/",            index)
    router.add_route("/user-agent",  user_agent)
    router.add_route("/echo/*text",  echo)
    router.add_route("/files/*name", upload,   method="POST")
    router.add_route("/files/*name", download)

    GET  /echo/abc      → echo(request, text="abc")
    POST /files/a.txt   → upload(request, name="a.txt")
    GET  /files/a.txt   → download(request, name="a.txt")     (POST route skipped)
    GET  /nope          → 404

=============================================================================
PATTERN SYNTAX
=============================================================================

    /user-agent      static, the whole path must be equal
    /echo/*text      everything after "/echo/" is captured verbatim as
                     "text" (slashes included, may be empty, no URL decoding)

Paths are matched exactly as they arrived: no trailing-slash stripping and
no percent-decoding, so "/echo/a%20b/" echoes "a%20b/".

=============================================================================
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .request import HTTPRequest
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)

# A handler receives the request plus the captured wildcard as keyword
# arguments and returns a response.
Handler = Callable[..., HTTPResponse]


@dataclass
class Route:
    """
    A registered (method, pattern) → handler rule.

    Attributes:
        path: Pattern the route was registered with ("/files/*name").
        handler: Callable invoked on a match.
        method: Required method, or None to accept any method.
        name: Optional label used in logs.
    """

    path: str
    handler: Handler
    method: Optional[str] = None
    name: Optional[str] = None

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)

    def __post_init__(self):
        if self.method:
            self.method = self.method.upper()
        if self.name is None:
            self.name = getattr(self.handler, "__name__", self.path)
        if self._pattern is None:
            self._pattern = _compile_pattern(self.path)

    def match(self, method: str, path: str) -> Optional[Dict[str, str]]:
        """Return the captured parameters if this route matches, else None."""
        if self.method and self.method != method.upper():
            return None
        found = self._pattern.match(path)
        return found.groupdict() if found else None


@dataclass
class RouteMatch:
    """The route that matched a request and what its wildcard captured."""

    route: Route
    params: Dict[str, str]


def _compile_pattern(path: str) -> re.Pattern:
    """
    Compile a route pattern into an anchored regex.

        "/"              → ^/$
        "/user-agent"    → ^/user\\-agent$
        "/echo/*text"    → ^/echo/(?P<text>.*)$
    """
    static, star, param = path.partition("*")
    regex = "^" + re.escape(static)
    if star:
        regex += f"(?P<{param or 'wildcard'}>.*)"
    return re.compile(regex + "$", re.DOTALL)


class Router:
    """
    First-match-wins request router.

    Routes are usually registered with the decorator helpers:

        router = Router()

        @router.get("/echo/*text")
        def echo(request, text):
            return ok(text)

        response = router.handle(request)
    """

    def __init__(self):
        self._routes: List[Route] = []

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Route:
        """
        Append a route. Order of registration is order of evaluation.

        Args:
            path: Route pattern ("/echo/*text").
            handler: Callable(request, **params) -> HTTPResponse.
            method: HTTP method, or None to match any method.
            name: Optional label for logging.
        """
        route = Route(path=path, handler=handler, method=method, name=name)
        self._routes.append(route)
        return route

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """Find the first route matching method and path."""
        for route in self._routes:
            params = route.match(method, path)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request to the first matching route.

        Returns:
            The handler's response, or 404 Not Found when no route matches.
        """
        found = self.match(request.method, request.path)
        if found is None:
            logger.debug(f"No route for {request.method} {request.path}")
            return not_found()

        logger.debug(f"{request.method} {request.path} → {found.route.name}")
        return found.route.handler(request, **found.params)

    @property
    def routes(self) -> List[Route]:
        return list(self._routes)

    # =========================================================================
    # DECORATOR-STYLE ROUTE REGISTRATION
    # =========================================================================

    def route(
        self,
        path: str,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator registering a route for any method (or `method`)."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route(path, "GET", name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self.route(path, "POST", name)

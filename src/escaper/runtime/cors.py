import logging
from typing import Iterable, List, Tuple

from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

log = logging.getLogger(__name__)


class CORSHeadersMiddleware:
    """
    Middleware that adds CORS headers to every HTTP response and answers
    OPTIONS preflight requests itself with an empty 200.
    """

    def __init__(
        self,
        app: ASGIApp,
        allow_origin: str = "*",
        allow_methods: Iterable[str] = ("GET", "POST", "OPTIONS"),
        allow_headers: Iterable[str] = ("Content-Type", "Authorization"),
        max_age: int = 86400,
    ):
        self.app = app
        self.max_age = max_age
        self.headers: List[Tuple[str, str]] = [
            ("Access-Control-Allow-Origin", allow_origin),
            ("Access-Control-Allow-Methods", ", ".join(allow_methods)),
            ("Access-Control-Allow-Headers", ", ".join(allow_headers)),
        ]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            log.debug("Preflight for %s", scope.get("path"))
            response = Response(status_code=200, headers=self.preflight_headers())
            await response(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self.headers:
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)

    def preflight_headers(self) -> dict:
        headers = dict(self.headers)
        headers["Access-Control-Max-Age"] = str(self.max_age)
        return headers

    def __getattr__(self, name: str):
        return getattr(self.app, name)

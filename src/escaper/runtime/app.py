"""Starlette front controller exposing the escapers over HTTP."""

import logging
from typing import Dict, Iterable, List

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from escaper import __version__
from escaper.core.context import USAGE, Context
from escaper.core.escape import ESCAPERS, to_text
from escaper.core.exceptions import UnknownContextError
from escaper.runtime.cors import CORSHeadersMiddleware
from escaper.runtime.templating import render_template

log = logging.getLogger(__name__)


class EscaperApp:
    """ASGI application serving the escaping demo page and JSON API."""

    def __init__(
        self,
        allow_origin: str = "*",
        allow_methods: Iterable[str] = ("GET", "POST", "OPTIONS"),
        allow_headers: Iterable[str] = ("Content-Type", "Authorization"),
        max_age: int = 86400,
        debug: bool = False,
    ) -> None:
        self.allow_origin = allow_origin
        self.allow_methods = tuple(allow_methods)
        self.allow_headers = tuple(allow_headers)
        self.max_age = max_age
        self.debug = debug

        self.starlette = Starlette(
            debug=debug,
            routes=[
                Route("/", self.index, methods=["GET"]),
                Route("/contexts", self.contexts, methods=["GET"]),
                Route("/escape/{context}", self.escape, methods=["GET", "POST"]),
            ],
        )
        self.starlette.state.escaper = self

        # Outermost, so error responses from Starlette carry the headers too
        self.app = CORSHeadersMiddleware(
            self.starlette,
            allow_origin=self.allow_origin,
            allow_methods=self.allow_methods,
            allow_headers=self.allow_headers,
            max_age=self.max_age,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.app(scope, receive, send)

    async def index(self, request: Request) -> HTMLResponse:
        q = request.query_params.get("q", "")
        rows: List[Dict[str, str]] = [
            {
                "context": context.value,
                "output": escaper(q),
                "usage": USAGE[context],
            }
            for context, escaper in ESCAPERS.items()
        ]
        html_content = render_template(
            "index.html", {"q": q, "rows": rows, "version": __version__}
        )
        return HTMLResponse(html_content)

    async def contexts(self, request: Request) -> JSONResponse:
        return JSONResponse(
            {"contexts": [{"name": c.value, "usage": USAGE[c]} for c in Context]}
        )

    async def escape(self, request: Request) -> JSONResponse:
        name = request.path_params["context"]
        try:
            context = Context.parse(name)
        except UnknownContextError as e:
            log.warning("Rejected escape request: %s", e)
            return self._error(str(e), status_code=404)

        if request.method == "POST":
            try:
                payload = await request.json()
            except ValueError:
                # Invalid JSON or a body that is not UTF-8
                return self._error("Request body must be JSON", status_code=400)
            value = payload.get("value") if isinstance(payload, dict) else None
        else:
            value = request.query_params.get("value")

        if not isinstance(value, str):
            log.warning("Rejected escape request without a string value")
            return self._error("Missing string 'value'", status_code=400)

        value = to_text(value)
        log.debug("Escaping %d chars for %s", len(value), context.value)
        return JSONResponse(
            {
                "context": context.value,
                "input": value,
                "output": ESCAPERS[context](value),
            }
        )

    def _error(self, message: str, status_code: int) -> JSONResponse:
        return JSONResponse({"error": message}, status_code=status_code)


app = EscaperApp()

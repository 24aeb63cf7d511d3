from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers

from ..runtime import Runtime
from ..transport.stream import STREAM_HEADERS, StreamSession
from .diagnostics import collect_diagnostics


logger = logging.getLogger(__name__)

SESSION_HEADER = "Mcp-Session-Id"
CORS_METHODS = ["GET", "POST", "OPTIONS"]

# Routed explicitly so unsupported verbs get the JSON 405 body below.
_ROUTED_METHODS = ["GET", "POST", "OPTIONS", "PUT", "PATCH", "DELETE"]


def _method_not_allowed() -> JSONResponse:
    return JSONResponse({"error": "Method not allowed"}, status_code=405)


class PreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware whose preflight answer is always 200 with an empty body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        resp = super().preflight_response(request_headers)
        headers = {k: v for k, v in resp.headers.items() if k not in ("content-length", "content-type")}
        return Response(status_code=200, headers=headers)


def create_app(runtime: Runtime) -> FastAPI:
    settings = runtime.settings
    app = FastAPI(title=settings.server.name, version=settings.server.version)
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=["*"],
        allow_methods=CORS_METHODS,
        allow_headers=["*"],
        expose_headers=[SESSION_HEADER],
    )
    app.state.runtime = runtime

    async def unary(request: Request) -> JSONResponse:
        body = await request.body()
        reply = await run_in_threadpool(runtime.unary.handle_body, body, request.headers.get(SESSION_HEADER))
        headers = {SESSION_HEADER: reply.session_id} if reply.session_id else None
        return JSONResponse(reply.payload, status_code=reply.status, headers=headers)

    def stream() -> StreamingResponse:
        session = StreamSession(runtime.dispatcher, settings.stream)
        return StreamingResponse(session.events(), media_type="text/event-stream", headers=STREAM_HEADERS)

    @app.api_route(settings.stream.stream_path, methods=_ROUTED_METHODS)
    async def sse_endpoint(request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200)
        if request.method == "POST":
            return await unary(request)
        if request.method != "GET":
            return _method_not_allowed()
        return stream()

    if settings.stream.messages_path != settings.stream.stream_path:

        @app.api_route(settings.stream.messages_path, methods=_ROUTED_METHODS)
        async def messages_endpoint(request: Request) -> Response:
            if request.method == "OPTIONS":
                return Response(status_code=200)
            if request.method != "POST":
                return _method_not_allowed()
            return await unary(request)

    @app.get("/api/test")
    def diagnostics() -> JSONResponse:
        return JSONResponse(collect_diagnostics(runtime))

    logger.info(
        "routes ready: stream=%s messages=%s tools=%d resources=%d",
        settings.stream.stream_path,
        settings.stream.messages_path,
        len(runtime.protocol.tools),
        len(runtime.protocol.resources),
    )
    return app

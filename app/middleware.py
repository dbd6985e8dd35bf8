import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.logging import request_id_ctx_var


class CorrelationIdMiddleware:
    """Attach or generate an X-Request-ID for each request and set it on a contextvar
    so log records can include it via RequestIdFilter.
    """

    header_name = b"x-request-id"

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        # Only act on HTTP requests
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        raw = headers.get(self.header_name)
        request_id = raw.decode("latin-1") if raw else str(uuid.uuid4())
        token = request_id_ctx_var.set(request_id)

        async def send_with_request_id(message: Message):
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append((self.header_name, request_id.encode("latin-1")))
                message["headers"] = response_headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            request_id_ctx_var.reset(token)

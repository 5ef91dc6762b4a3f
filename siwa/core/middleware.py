"""ASGI middleware for the callback's form_post leg."""

from starlette.types import ASGIApp, Message, Receive, Scope, Send

DROP_SESSION_STATE = "drop_session"


class DropSessionCookieMiddleware:
    """Strips the session ``Set-Cookie`` from responses that asked for it.

    A route opts in by setting ``request.state.drop_session``. Must wrap
    ``SessionMiddleware`` so it sees the cookie that middleware adds.
    """

    def __init__(self, app: ASGIApp, session_cookie: str = "session") -> None:
        self.app = app
        self.cookie_prefix = f"{session_cookie}=".encode("latin-1")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start" and scope.get(
                "state", {}
            ).get(DROP_SESSION_STATE):
                message["headers"] = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if not (
                        name.lower() == b"set-cookie"
                        and value.startswith(self.cookie_prefix)
                    )
                ]
            await send(message)

        await self.app(scope, receive, send_wrapper)

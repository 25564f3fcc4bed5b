import json
import sys
from collections.abc import AsyncIterator, Callable, Iterator
from io import BytesIO, StringIO
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from starlette.responses import Response

from svcutils import registry
from svcutils.context import ErrorContext
from svcutils.exceptions import NotFoundError, ServiceError
from svcutils.logging import set_output
from svcutils.registry import ErrorCode
from svcutils.web import Envelope, install, result_response, success_response


@pytest.fixture
def out() -> BytesIO:
    """Response stream for the send_* functions."""
    return BytesIO()


@pytest.fixture
def log_lines() -> Iterator[Callable[[], list[dict[str, Any]]]]:
    """Redirect library logs into memory; yields a reader of the JSON lines so far."""
    buf = StringIO()
    set_output(buf)

    def read() -> list[dict[str, Any]]:
        return [json.loads(line) for line in buf.getvalue().splitlines() if line]

    yield read

    set_output(sys.stderr)


@pytest.fixture
def fresh_registry(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start with no process registry, so register() can run again."""
    monkeypatch.setattr(registry, "_registry", None)


def build_app() -> FastAPI:
    """Small envelope-speaking service used by the HTTP tests."""
    app = FastAPI()
    install(app)

    @app.post("/rpc")
    async def rpc(envelope: Envelope) -> Response:
        if envelope.method == "PING":
            return success_response("pong")
        if envelope.method == "GET":
            return result_response(envelope.body)
        raise ServiceError(ErrorCode.UNHANDLED_METHOD, data={"method": envelope.method})

    @app.get("/users/{user_id}")
    async def get_user(user_id: int) -> Response:
        ctx = ErrorContext("db").add("table", "users").add("id", user_id)
        raise NotFoundError("user", user_id) from ctx

    @app.get("/context")
    async def raise_context() -> Response:
        raise ErrorContext("cache").add("key", "users:1")

    @app.get("/crash")
    async def crash() -> Response:
        raise RuntimeError("boom")

    return app


@pytest_asyncio.fixture
async def client() -> AsyncIterator[AsyncClient]:
    """HTTP client talking to the test service in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=build_app(), raise_app_exceptions=False),
        base_url="http://test",
    ) as client:
        yield client

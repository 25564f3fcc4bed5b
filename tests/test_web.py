"""Integration tests for the FastAPI adapter."""

from collections.abc import Callable
from typing import Any

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_result_response(client: AsyncClient) -> None:
    resp = await client.post("/rpc", content=b'{"method":"GET","body":{"id":1234}}')

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/json"
    assert resp.content == b'{"status":"OK","body":{"id":1234}}'


@pytest.mark.asyncio
async def test_result_response_echoes_body_bytes(client: AsyncClient) -> None:
    body = b'{"amount": 0.10000000000000000001, "n": 1e2}'
    resp = await client.post("/rpc", content=b'{"method":"GET","body":' + body + b"}")

    assert resp.content == b'{"status":"OK","body":' + body + b"}"


@pytest.mark.asyncio
async def test_success_response(client: AsyncClient) -> None:
    resp = await client.post("/rpc", json={"method": "PING", "body": None})

    assert resp.status_code == 200
    assert resp.content == b'{"status":"OK","message":"pong"}'


@pytest.mark.asyncio
async def test_corrupt_envelope(client: AsyncClient) -> None:
    resp = await client.post("/rpc", content=b"this is not json")

    assert resp.status_code == 400
    body = resp.json()
    assert body["status"] == "Error"
    assert body["code"] == 1002
    assert body["message"] == "Corrupt request envelope."
    assert body["data"]["ioErr"]


@pytest.mark.asyncio
async def test_service_error(client: AsyncClient) -> None:
    resp = await client.post("/rpc", json={"method": "PATCH", "body": {}})

    assert resp.status_code == 400
    assert resp.content == (
        b'{"status":"Error","code":1004,"message":"Unhandled request method.",'
        b'"data":{"method":"PATCH"}}'
    )


@pytest.mark.asyncio
async def test_not_found_logs_chain_but_sends_report(
    client: AsyncClient, log_lines: Callable[[], list[dict[str, Any]]]
) -> None:
    resp = await client.get("/users/7")

    assert resp.status_code == 404
    body = resp.json()
    assert body == {
        "status": "Error",
        "code": 1106,
        "message": "Empty result set; record could not be found.",
        "data": {"entity": "user", "id": "7"},
    }

    events = [line for line in log_lines() if line["event"] == "service_error"]
    assert len(events) == 1
    assert events[0]["code"] == 1106
    assert events[0]["context"]["type"] == "db"
    assert events[0]["context"]["data"] == {"table": "users", "id": 7}


@pytest.mark.asyncio
async def test_raised_context_becomes_system_error(
    client: AsyncClient, log_lines: Callable[[], list[dict[str, Any]]]
) -> None:
    resp = await client.get("/context")

    assert resp.status_code == 500
    assert resp.content == b'{"status":"Error","code":102,"message":"Internal system error."}'
    events = [line for line in log_lines() if line["event"] == "error_context"]
    assert events[0]["context"]["data"] == {"key": "users:1"}


@pytest.mark.asyncio
async def test_unhandled_exception(
    client: AsyncClient, log_lines: Callable[[], list[dict[str, Any]]]
) -> None:
    resp = await client.get("/crash")

    assert resp.status_code == 500
    assert resp.json() == {"status": "Error", "code": 102, "message": "Internal system error."}
    assert any(line["event"] == "unhandled_exception" for line in log_lines())


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    resp = await client.post(
        "/rpc", json={"method": "PING"}, headers={"X-Request-ID": "req-123"}
    )
    assert resp.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_request_id_is_generated(client: AsyncClient) -> None:
    resp = await client.post("/rpc", json={"method": "PING"})
    assert len(resp.headers["X-Request-ID"]) == 36


@pytest.mark.asyncio
async def test_request_id_is_bound_to_logs(
    client: AsyncClient, log_lines: Callable[[], list[dict[str, Any]]]
) -> None:
    await client.get("/users/7", headers={"X-Request-ID": "req-456"})

    events = [line for line in log_lines() if line["event"] == "service_error"]
    assert events[0]["request_id"] == "req-456"

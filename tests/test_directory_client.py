# tests/test_directory_client.py
"""
测试 DirectoryClient：使用 httpx.MockTransport 代替真实的目录服务器。
"""

import httpx
import pytest
from conftest import obfuscate, record_bytes

from slither_core.directory import DirectoryClient
from slither_core.exceptions import (
    DirectoryError,
    DirectoryFetchError,
    MalformedDirectoryError,
)
from slither_core.protocols.directory import EndpointRecord

DIRECTORY_TEXT = obfuscate(
    record_bytes("45.158.39.114", 444, 5, 1) + record_bytes("95.216.38.155", 445, 6, 2)
)


@pytest.mark.asyncio
async def test_fetch_servers(valid_config):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["ua"] = request.headers["user-agent"]
        return httpx.Response(200, text=DIRECTORY_TEXT)

    client = DirectoryClient(valid_config, transport=httpx.MockTransport(handler))

    servers = await client.fetch_servers()

    assert seen["url"] == "http://slither.io/i33628.txt"
    assert seen["ua"] == valid_config.user_agent
    assert servers == [
        EndpointRecord("45.158.39.114", 444, 5, 1),
        EndpointRecord("95.216.38.155", 445, 6, 2),
    ]


@pytest.mark.asyncio
async def test_http_error_status(valid_config):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    client = DirectoryClient(valid_config, transport=transport)

    with pytest.raises(DirectoryFetchError) as e:
        await client.fetch_servers()

    assert e.value.status_code == 503


@pytest.mark.asyncio
async def test_transport_failure_is_not_retried(valid_config):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    client = DirectoryClient(valid_config, transport=httpx.MockTransport(handler))

    with pytest.raises(DirectoryFetchError, match="connection refused"):
        await client.fetch_servers()
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_strict_fetch_rejects_partial_record(valid_config):
    body = obfuscate(record_bytes("1.1.1.1", 444, 0, 0) + b"\x00\x01\x02")
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=body))
    client = DirectoryClient(valid_config, transport=transport)

    assert len(await client.fetch_servers()) == 1
    with pytest.raises(MalformedDirectoryError):
        await client.fetch_servers(strict=True)


@pytest.mark.asyncio
async def test_non_directory_body_raises_directory_error(valid_config):
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, text="x" + "zh" * 11)
    )
    client = DirectoryClient(valid_config, transport=transport)

    with pytest.raises(DirectoryError):
        await client.fetch_servers()

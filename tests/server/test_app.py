"""End-to-end tests for the proxy application against a mocked upstream."""

import asyncio
import json

import httpx
import pytest

from figma_proxy.core.config import ProxySettings
from figma_proxy.server.app import build_coordinator, create_app

TOOLS_LIST = {"jsonrpc": "2.0", "id": 1, "method": "tools/list"}
SSE_HEADERS = {"content-type": "text/event-stream", "mcp-session-id": "session-1"}


def _sse(message: dict) -> bytes:
    return f"event: message\ndata: {json.dumps(message)}\n\n".encode()


def _tools_result() -> dict:
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {
            "tools": [
                {
                    "name": "get_code",
                    "description": "Generate code.",
                    "inputSchema": {"type": "object", "properties": {"nodeId": {"type": "string"}}},
                },
                {"name": "whoami", "description": "Current user.", "inputSchema": {"type": "object"}},
            ]
        },
    }


class FakeUpstream:
    """Records forwarded requests and answers with a fixed reply."""

    def __init__(self, body: bytes = b"", status_code: int = 200, headers: dict[str, str] | None = None):
        self.body = body
        self.status_code = status_code
        self.headers = headers if headers is not None else SSE_HEADERS
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, headers=self.headers, stream=httpx.ByteStream(self.body))


def _settings(**overrides: object) -> ProxySettings:
    return ProxySettings(target_url="http://upstream:3845", settle_delay=0, **overrides)


def _client_for(upstream, launcher, **overrides: object) -> httpx.AsyncClient:
    settings = _settings(**overrides)
    app = create_app(
        settings,
        client=httpx.AsyncClient(transport=httpx.MockTransport(upstream)),
        coordinator=build_coordinator(settings, launcher),
    )
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://proxy")


class TestHealth:
    async def test_reports_target(self, launcher) -> None:
        upstream = FakeUpstream()
        async with _client_for(upstream, launcher) as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "OK", "targetURL": "http://upstream:3845"}
        assert upstream.requests == []

    async def test_no_auth_and_no_upstream_needed(self, launcher) -> None:
        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client_for(down, launcher, api_key="secret") as client:
            response = await client.get("/health")

        assert response.status_code == 200


class TestAuth:
    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "secret"}])
    async def test_rejected_before_upstream(self, launcher, headers: dict[str, str]) -> None:
        upstream = FakeUpstream()
        async with _client_for(upstream, launcher, api_key="secret") as client:
            response = await client.post("/mcp", json=TOOLS_LIST, headers=headers)

        assert response.status_code == 401
        assert upstream.requests == []

    async def test_valid_token_forwarded(self, launcher) -> None:
        upstream = FakeUpstream(body=b"ok", headers={"content-type": "text/plain"})
        async with _client_for(upstream, launcher, api_key="secret") as client:
            response = await client.post(
                "/mcp",
                json={"jsonrpc": "2.0", "id": 2, "method": "initialize"},
                headers={"Authorization": "Bearer secret"},
            )

        assert response.status_code == 200
        assert response.content == b"ok"
        assert upstream.requests[0].headers["authorization"] == "Bearer secret"

    async def test_unauthenticated_call_never_opens(self, launcher) -> None:
        body = {
            "jsonrpc": "2.0",
            "id": 3,
            "method": "tools/call",
            "params": {"name": "get_code", "arguments": {"fileKey": "K", "fileName": "N", "nodeId": "1:2"}},
        }
        async with _client_for(FakeUpstream(), launcher, api_key="secret") as client:
            response = await client.post("/mcp", json=body)

        assert response.status_code == 401
        assert launcher.calls == []


class TestExternalName:
    async def test_requests_still_reach_target(self, launcher) -> None:
        upstream = FakeUpstream(body=b"ok", headers={"content-type": "text/plain"})
        async with _client_for(upstream, launcher, external_dns_name="https://proxy.ngrok.app") as client:
            response = await client.post(
                "/mcp", json=TOOLS_LIST, headers={"X-Forwarded-Host": "proxy.ngrok.app"}
            )

        assert response.status_code == 200
        sent = upstream.requests[0]
        assert sent.url.host == "upstream"
        assert sent.url.port == 3845
        assert sent.headers["host"] == "proxy.ngrok.app"


class TestToolsList:
    async def test_rewritten(self, launcher) -> None:
        upstream = FakeUpstream(body=_sse(_tools_result()))
        async with _client_for(upstream, launcher) as client:
            response = await client.post("/mcp", json=TOOLS_LIST)

        assert response.status_code == 200
        assert response.headers["mcp-session-id"] == "session-1"
        assert int(response.headers["content-length"]) == len(response.content)

        text = response.text
        assert text.startswith("event: message\ndata: ")
        assert text.endswith("\n\n")
        tools = json.loads(text.split("data: ", 1)[1])["result"]["tools"]
        assert tools[0]["inputSchema"]["required"] == ["fileKey", "fileName"]
        assert {"fileKey", "fileName"} <= set(tools[0]["inputSchema"]["properties"])
        assert tools[1] == _tools_result()["result"]["tools"][1]

    async def test_upstream_error_status_relayed_unchanged(self, launcher) -> None:
        upstream = FakeUpstream(body=b"busy", status_code=503, headers={"content-type": "text/plain"})
        async with _client_for(upstream, launcher) as client:
            response = await client.post("/mcp", json=TOOLS_LIST)

        assert response.status_code == 503
        assert response.content == b"busy"

    async def test_rewrite_failure_is_502(self, launcher) -> None:
        upstream = FakeUpstream(body=b"event: message\ndata: {broken\n\n")
        async with _client_for(upstream, launcher) as client:
            response = await client.post("/mcp", json=TOOLS_LIST)

        assert response.status_code == 502
        assert response.text.startswith("Proxy error:")


class TestPassThrough:
    async def test_other_methods_byte_identical(self, launcher) -> None:
        reply = _sse({"jsonrpc": "2.0", "id": 5, "result": {"protocolVersion": "2025-03-26"}})
        upstream = FakeUpstream(body=reply)
        request_body = b'{"jsonrpc":"2.0","id":5,"method":"initialize","params":{}}'
        async with _client_for(upstream, launcher) as client:
            response = await client.post("/mcp?x=1", content=request_body)

        assert response.content == reply
        assert upstream.requests[0].content == request_body
        assert str(upstream.requests[0].url) == "http://upstream:3845/mcp?x=1"

    async def test_malformed_json_forwarded_verbatim(self, launcher) -> None:
        upstream = FakeUpstream(body=b"parse error", headers={"content-type": "text/plain"})
        async with _client_for(upstream, launcher) as client:
            response = await client.post("/mcp", content=b"{not json")

        assert response.status_code == 200
        assert upstream.requests[0].content == b"{not json"
        assert launcher.calls == []

    async def test_get_stream_passed_through(self, launcher) -> None:
        upstream = FakeUpstream(body=b": keep-alive\n\n")
        async with _client_for(upstream, launcher) as client:
            response = await client.get("/mcp", headers={"Accept": "text/event-stream"})

        assert response.content == b": keep-alive\n\n"
        assert upstream.requests[0].method == "GET"

    async def test_unproxied_path_not_found(self, launcher) -> None:
        upstream = FakeUpstream()
        async with _client_for(upstream, launcher) as client:
            response = await client.post("/other", json=TOOLS_LIST)

        assert response.status_code == 404
        assert upstream.requests == []

    async def test_upstream_down_is_502(self, launcher) -> None:
        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client_for(down, launcher) as client:
            response = await client.post("/mcp", json=TOOLS_LIST)

        assert response.status_code == 502
        assert response.text == "Proxy error: connection refused"


class TestToolsCall:
    @staticmethod
    def _call(file_key: str, file_name: str, node_id: str, request_id: int = 3) -> dict:
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": "tools/call",
            "params": {
                "name": "get_code",
                "arguments": {"fileKey": file_key, "fileName": file_name, "nodeId": node_id},
            },
        }

    async def test_opens_design_before_forwarding(self, launcher) -> None:
        upstream = FakeUpstream(body=_sse({"jsonrpc": "2.0", "id": 3, "result": {"content": []}}))
        async with _client_for(upstream, launcher) as client:
            response = await client.post("/mcp", json=self._call("abc123", "My File", "12:34"))

        assert response.status_code == 200
        assert launcher.uris == ["figma://design/abc123/My File?node-id=12-34"]
        forwarded = json.loads(upstream.requests[0].content)
        assert forwarded["params"]["arguments"]["nodeId"] == "12:34"

    async def test_failed_open_still_forwarded(self, failing_launcher) -> None:
        upstream = FakeUpstream(body=b"ok", headers={"content-type": "text/plain"})
        async with _client_for(upstream, failing_launcher) as client:
            response = await client.post("/mcp", json=self._call("K", "N", "1:2"))

        assert response.status_code == 200
        assert len(upstream.requests) == 1

    async def test_missing_node_id_skips_open(self, launcher) -> None:
        body = self._call("K", "N", "1:2")
        del body["params"]["arguments"]["nodeId"]
        async with _client_for(FakeUpstream(body=b"ok"), launcher) as client:
            await client.post("/mcp", json=body)

        assert launcher.calls == []

    async def test_concurrent_opens_never_overlap(self, slow_launcher) -> None:
        upstream = FakeUpstream(body=b"ok", headers={"content-type": "text/plain"})
        async with _client_for(upstream, slow_launcher) as client:
            responses = await asyncio.gather(
                *(client.post("/mcp", json=self._call(f"K{i}", "N", f"{i}:1", i)) for i in range(3))
            )

        assert [r.status_code for r in responses] == [200, 200, 200]
        calls = sorted(slow_launcher.calls, key=lambda call: call[1])
        for (_, _, previous_end), (_, next_start, _) in zip(calls, calls[1:]):
            assert next_start >= previous_end

    async def test_background_mode_forwards_immediately(self, slow_launcher) -> None:
        upstream = FakeUpstream(body=b"ok", headers={"content-type": "text/plain"})
        settings = _settings(open_mode="background")
        app = create_app(
            settings,
            client=httpx.AsyncClient(transport=httpx.MockTransport(upstream)),
            coordinator=build_coordinator(settings, slow_launcher),
        )
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://proxy") as client:
            response = await client.post("/mcp", json=self._call("K", "N", "1:2"))

        assert response.status_code == 200
        assert slow_launcher.calls == []

        await app.state.interceptor.drain()
        assert slow_launcher.uris == ["figma://design/K/N?node-id=1-2"]

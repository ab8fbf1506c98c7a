"""Tests for the script service client and the chat poller, against in-process aiohttp servers."""

import asyncio
import json
import logging

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from npc_brain.core.config import SystemConfig
from npc_brain.core.errors import FetchFailure, MissingCollaborator
from npc_brain.sources import ChatPoller, HttpScriptSource, build_message_source, build_script_source


async def _serve(routes) -> TestServer:
    app = web.Application()
    app.add_routes(routes)
    server = TestServer(app)
    await server.start_server()
    return server


# ---------------------------------------------------------------------------
# HttpScriptSource
# ---------------------------------------------------------------------------

class TestHttpScriptSource:
    @pytest.mark.asyncio
    async def test_returns_lines_in_order(self):
        seen = []

        async def generate(request):
            seen.append(await request.json())
            return web.json_response({"script": ["move to **Podium**", "say {hi}"]})

        server = await _serve([web.post("/base/generate_script", generate)])
        try:
            source = HttpScriptSource(str(server.make_url("/base")))
            lines = await source.request_script("npc-7")
        finally:
            await server.close()

        assert lines == ["move to **Podium**", "say {hi}"]
        assert seen == [{"npc1_id": "npc-7"}]

    @pytest.mark.asyncio
    async def test_error_status_raises_fetch_failure(self):
        async def generate(request):
            return web.Response(status=500, text="oops")

        server = await _serve([web.post("/generate_script", generate)])
        try:
            source = HttpScriptSource(str(server.make_url("")))
            with pytest.raises(FetchFailure, match="500"):
                await source.request_script("npc-7")
        finally:
            await server.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["not json", json.dumps({"script": None}), json.dumps({"lines": []})])
    async def test_malformed_body_raises_fetch_failure(self, body):
        async def generate(request):
            return web.Response(text=body, content_type="application/json")

        server = await _serve([web.post("/generate_script", generate)])
        try:
            source = HttpScriptSource(str(server.make_url("")))
            with pytest.raises(FetchFailure, match="Malformed"):
                await source.request_script("npc-7")
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_unreachable_service_raises_fetch_failure(self):
        server = await _serve([])
        url = str(server.make_url(""))
        await server.close()

        source = HttpScriptSource(url, timeout=2.0)
        with pytest.raises(FetchFailure, match="unreachable"):
            await source.request_script("npc-7")


# ---------------------------------------------------------------------------
# ChatPoller
# ---------------------------------------------------------------------------

def _chat_server_routes(payloads):
    """Serves the given bodies one per request, then empty bodies."""
    queue = list(payloads)

    async def read_chat(request):
        if not queue:
            return web.Response(text="")
        item = queue.pop(0)
        if isinstance(item, int):
            return web.Response(status=item)
        return web.Response(text=item, content_type="application/json")

    return [web.get("/read_twitch_chat", read_chat)]


class TestChatPoller:
    @pytest.mark.asyncio
    async def test_delivers_formatted_message(self):
        received = []
        payload = json.dumps({"type": "chat", "nickname": "alice", "comment": "hello there"})
        server = await _serve(_chat_server_routes([payload]))
        try:
            poller = ChatPoller(str(server.make_url("/read_twitch_chat")), callback=received.append)
            message = await poller.poll_once()
        finally:
            await server.close()

        assert message == "alice: hello there"
        assert received == ["alice: hello there"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        json.dumps({"type": "none", "nickname": "", "comment": ""}),
        "{broken",
        "",
        503,
    ])
    async def test_ignores_empty_and_invalid_responses(self, payload):
        received = []
        server = await _serve(_chat_server_routes([payload]))
        try:
            poller = ChatPoller(str(server.make_url("/read_twitch_chat")), callback=received.append)
            assert await poller.poll_once() is None
        finally:
            await server.close()
        assert received == []

    @pytest.mark.asyncio
    async def test_unreachable_endpoint_is_logged(self, caplog):
        server = await _serve([])
        url = str(server.make_url("/read_twitch_chat"))
        await server.close()

        poller = ChatPoller(url, timeout=2.0, callback=lambda m: None)
        with caplog.at_level(logging.ERROR):
            assert await poller.poll_once() is None
        assert "Connection failed" in caplog.text

    @pytest.mark.asyncio
    async def test_message_without_consumer_is_dropped(self, caplog):
        payload = json.dumps({"type": "chat", "nickname": "bob", "comment": "hey"})
        server = await _serve(_chat_server_routes([payload]))
        try:
            poller = ChatPoller(str(server.make_url("/read_twitch_chat")))
            with caplog.at_level(logging.ERROR):
                assert await poller.poll_once() is None
        finally:
            await server.close()
        assert "No consumer registered" in caplog.text

    @pytest.mark.asyncio
    async def test_start_polls_until_stopped(self):
        received = []
        payloads = [json.dumps({"type": "chat", "nickname": f"u{i}", "comment": "hi"}) for i in range(3)]
        server = await _serve(_chat_server_routes(payloads))
        try:
            poller = ChatPoller(str(server.make_url("/read_twitch_chat")), interval=0.01,
                                callback=received.append)
            await poller.start()
            for _ in range(200):
                if len(received) == 3:
                    break
                await asyncio.sleep(0.01)
            await poller.stop()
        finally:
            await server.close()

        assert received == ["u0: hi", "u1: hi", "u2: hi"]
        assert not poller.running

    @pytest.mark.asyncio
    async def test_undecodable_body_is_logged(self, caplog):
        async def read_chat(request):
            return web.Response(body=b"\xff\xfe\xfa", content_type="application/json", charset="utf-8")

        server = await _serve([web.get("/read_twitch_chat", read_chat)])
        try:
            poller = ChatPoller(str(server.make_url("/read_twitch_chat")), callback=lambda m: None)
            with caplog.at_level(logging.ERROR):
                assert await poller.poll_once() is None
        finally:
            await server.close()
        assert "not valid text" in caplog.text

    @pytest.mark.asyncio
    async def test_poll_loop_survives_unexpected_errors(self, caplog):
        received = []
        payload = json.dumps({"type": "chat", "nickname": "carol", "comment": "still here"})
        server = await _serve(_chat_server_routes([payload, payload]))
        calls = []

        def flaky_callback(message):
            calls.append(message)
            if len(calls) == 1:
                raise RuntimeError("consumer blew up")
            received.append(message)

        try:
            poller = ChatPoller(str(server.make_url("/read_twitch_chat")), interval=0.01,
                                callback=flaky_callback)
            with caplog.at_level(logging.ERROR):
                await poller.start()
                for _ in range(200):
                    if received:
                        break
                    await asyncio.sleep(0.01)
                await poller.stop()
        finally:
            await server.close()

        assert received == ["carol: still here"]
        assert "Poll error" in caplog.text

    @pytest.mark.asyncio
    async def test_can_restart_after_stop(self):
        poller = ChatPoller("http://127.0.0.1:1/read_twitch_chat", interval=10.0, callback=lambda m: None)
        await poller.start()
        await poller.stop()
        await poller.start()
        assert poller.running
        await poller.stop()
        assert not poller.running


class TestFactories:
    def test_message_source_requires_url(self):
        with pytest.raises(MissingCollaborator):
            build_message_source(SystemConfig(CHAT_URL=""))

    def test_builds_configured_sources(self):
        config = SystemConfig(SCRIPT_SERVICE_URL="http://writer:9000/app/", CHAT_URL="http://chat:9001/feed",
                              CHAT_POLL_INTERVAL_S=2.5)
        script_source = build_script_source(config)
        chat = build_message_source(config)

        assert script_source.api_url == "http://writer:9000/app/generate_script"
        assert isinstance(chat, ChatPoller)
        assert chat.url == "http://chat:9001/feed"
        assert chat.interval == 2.5

"""Firebase REST adapter, driven through httpx.MockTransport."""

import asyncio
import json

import httpx
import pytest

from bearboo.errors import StoreError
from bearboo.transport.firebase import FirebaseStore, SSEParser, StreamState

DB = "https://bearboo-test.firebaseio.com"


class Recorder:
    def __init__(self, responder=None):
        self.requests: list[httpx.Request] = []
        self._responder = responder or (lambda request: httpx.Response(200, json=None))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    def store(self, token="tok", **kw) -> FirebaseStore:
        return FirebaseStore(DB, token=token, transport=httpx.MockTransport(self), **kw)


def sse(*events: tuple[str, object]) -> bytes:
    chunks = [f"event: {name}\ndata: {json.dumps(data)}\n\n" for name, data in events]
    return "".join(chunks).encode()


class TestSSEParser:
    def test_event_and_data(self):
        parser = SSEParser()
        assert parser.feed("event: put") is None
        assert parser.feed('data: {"path": "/"}') is None
        assert parser.feed("") == ("put", '{"path": "/"}')

    def test_comments_and_blank_lines(self):
        parser = SSEParser()
        assert parser.feed(": heartbeat") is None
        assert parser.feed("") is None

    def test_default_event_name(self):
        parser = SSEParser()
        parser.feed("data: x")
        assert parser.feed("") == ("message", "x")


class TestStreamState:
    def test_root_put_then_child_changes(self):
        state = StreamState()
        assert state.apply("put", {"path": "/", "data": {"a": {"read": False}}})
        state.apply("put", {"path": "/b", "data": {"read": False}})
        state.apply("patch", {"path": "/a", "data": {"read": True}})
        assert state.snapshot() == {"a": {"read": True}, "b": {"read": False}}

        state.apply("put", {"path": "/a", "data": None})
        assert state.snapshot() == {"b": {"read": False}}

    def test_null_root(self):
        state = StreamState()
        state.apply("put", {"path": "/", "data": None})
        assert state.snapshot() == {}

    def test_ignores_other_events(self):
        assert not StreamState().apply("keep-alive", None)


class TestWrites:
    @pytest.mark.asyncio
    async def test_rest_verbs(self):
        rec = Recorder(lambda r: httpx.Response(200, json={"name": "-Nkey"} if r.method == "POST" else None))
        store = rec.store()
        await store.set("users/a", {"displayName": "A"})
        await store.update("rooms/r1/online/a", {"isOnline": True})
        key = await store.push("rooms/r1/messages", {"encrypted": "x"})
        await store.set("rooms/r1/typing/a", None)
        await store.close()

        assert key == "-Nkey"
        methods = [(r.method, r.url.path) for r in rec.requests]
        assert methods == [
            ("PUT", "/users/a.json"),
            ("PATCH", "/rooms/r1/online/a.json"),
            ("POST", "/rooms/r1/messages.json"),
            ("DELETE", "/rooms/r1/typing/a.json"),
        ]
        assert all(r.url.params["auth"] == "tok" for r in rec.requests)
        assert json.loads(rec.requests[1].content) == {"isOnline": True}

    @pytest.mark.asyncio
    async def test_error_becomes_store_error(self):
        rec = Recorder(lambda r: httpx.Response(401, json={"error": "Permission denied"}))
        store = rec.store()
        with pytest.raises(StoreError) as info:
            await store.update("rooms/r1/online/a", {"isOnline": True})
        assert info.value.details["status"] == 401
        await store.close()

    @pytest.mark.asyncio
    async def test_non_json_body_becomes_store_error(self):
        store = Recorder(lambda r: httpx.Response(200, text="<html>maintenance</html>")).store()
        with pytest.raises(StoreError) as info:
            await store.get("rooms/r1")
        assert info.value.details["status"] == 200
        await store.close()

    @pytest.mark.asyncio
    async def test_push_without_key(self):
        store = Recorder(lambda r: httpx.Response(200, json={})).store()
        with pytest.raises(StoreError):
            await store.push("rooms/r1/messages", {})
        await store.close()

    @pytest.mark.asyncio
    async def test_token_update(self):
        rec = Recorder()
        store = rec.store(token=None)
        await store.get("a")
        store.set_token("fresh")
        await store.get("a")
        await store.close()
        assert "auth" not in rec.requests[0].url.params
        assert rec.requests[1].url.params["auth"] == "fresh"

    @pytest.mark.asyncio
    async def test_close_writes_cleanups(self):
        rec = Recorder()
        store = rec.store()
        store.register_disconnect_cleanup("rooms/r1/online/a", {"isOnline": False})
        store.register_disconnect_cleanup("rooms/r1/online/b", {"isOnline": False})
        store.cancel_disconnect_cleanup("rooms/r1/online/b")
        await store.close()
        assert [(r.method, r.url.path) for r in rec.requests] == [("PATCH", "/rooms/r1/online/a.json")]


class TestTokenRefresh:
    @staticmethod
    def refresher(calls, token="fresh"):
        async def refresh():
            calls.append(token)
            return token
        return refresh

    @pytest.mark.asyncio
    async def test_expired_token_is_refreshed_and_retried(self):
        def respond(request):
            if request.url.params["auth"] == "stale":
                return httpx.Response(401, json={"error": "Auth token is expired"})
            return httpx.Response(200, json={"ok": True})

        calls = []
        rec = Recorder(respond)
        store = rec.store(token="stale", refresh_token=self.refresher(calls))
        assert await store.get("users/a") == {"ok": True}
        assert await store.get("users/b") == {"ok": True}
        await store.close()

        assert calls == ["fresh"]
        assert [r.url.params["auth"] for r in rec.requests] == ["stale", "fresh", "fresh"]

    @pytest.mark.asyncio
    async def test_failed_refresh_surfaces_store_error(self):
        async def refresh():
            return None

        rec = Recorder(lambda r: httpx.Response(401, json={"error": "Auth token is expired"}))
        store = rec.store(token="stale", refresh_token=refresh)
        with pytest.raises(StoreError):
            await store.update("rooms/r1/online/a", {"isOnline": True})
        await store.close()
        assert len(rec.requests) == 1

    @pytest.mark.asyncio
    async def test_revoked_stream_reconnects_with_new_token(self):
        def respond(request):
            if request.url.params["auth"] == "stale":
                return httpx.Response(200, content=sse(("auth_revoked", "token expired")))
            return httpx.Response(200, content=sse(("put", {"path": "/", "data": {"m1": {"read": False}}})))

        calls = []
        rec = Recorder(respond)
        store = rec.store(token="stale", retry_delay_s=60)
        store.set_token_refresher(self.refresher(calls))
        errors, snapshots = [], []
        delivered = asyncio.Event()

        def on_snapshot(snapshot):
            snapshots.append(snapshot)
            delivered.set()

        remove = store.subscribe("rooms/r1/messages", on_snapshot, errors.append)
        await asyncio.wait_for(delivered.wait(), timeout=5)
        remove()
        await store.close()

        assert calls == ["fresh"]
        assert snapshots[0] == {"m1": {"read": False}}
        assert "auth_revoked" in str(errors[0])
        assert [r.url.params["auth"] for r in rec.requests][:2] == ["stale", "fresh"]


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_stream_delivers_snapshots(self):
        body = sse(
            ("put", {"path": "/", "data": {"m1": {"read": False}}}),
            ("keep-alive", None),
            ("patch", {"path": "/m1", "data": {"read": True}}),
        )
        rec = Recorder(lambda r: httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"}))
        store = rec.store(retry_delay_s=60)
        snapshots = []
        done = asyncio.Event()

        def on_snapshot(snapshot):
            snapshots.append(snapshot)
            if len(snapshots) == 2:
                done.set()

        remove = store.subscribe("rooms/r1/messages", on_snapshot, lambda e: None)
        await asyncio.wait_for(done.wait(), timeout=5)
        remove()
        await store.close()

        assert snapshots == [{"m1": {"read": False}}, {"m1": {"read": True}}]
        request = rec.requests[0]
        assert request.url.path == "/rooms/r1/messages.json"
        assert request.headers["Accept"] == "text/event-stream"

    @pytest.mark.asyncio
    async def test_cancel_event_reports_and_stops(self):
        body = sse(("cancel", None))
        rec = Recorder(lambda r: httpx.Response(200, content=body))
        store = rec.store(retry_delay_s=0)
        errors = []
        failed = asyncio.Event()

        def on_error(error):
            errors.append(error)
            failed.set()

        store.subscribe("rooms/r1/typing", lambda s: None, on_error)
        await asyncio.wait_for(failed.wait(), timeout=5)
        await asyncio.sleep(0.05)
        await store.close()

        assert len(errors) == 1
        assert errors[0].code == "subscription_error"
        assert len(rec.requests) == 1

    @pytest.mark.asyncio
    async def test_http_error_reports_and_retries(self):
        calls = []

        def respond(request):
            calls.append(request)
            return httpx.Response(503, text="unavailable")

        store = Recorder(respond).store(retry_delay_s=0)
        errors = []
        retried = asyncio.Event()

        def on_error(error):
            errors.append(error)
            if len(errors) >= 2:
                retried.set()

        store.subscribe("rooms/r1/online", lambda s: None, on_error)
        await asyncio.wait_for(retried.wait(), timeout=5)
        await store.close()
        assert len(calls) >= 2

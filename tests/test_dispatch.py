"""Tests for nsoap.dispatch — one outcome in, at most one response out."""

from typing import Any

import pytest

from nsoap.config import NsoapConfig
from nsoap.context import InvocationContext
from nsoap.dispatch import (
    DispatchMode,
    StreamWriter,
    dispatch,
    encode_chunk,
    resolve_mode,
    write_stream_head,
)
from nsoap.errors import RoutingError, RoutingErrorKind
from nsoap.http.headers import Headers
from nsoap.http.query import QueryParams
from nsoap.http.request import Request
from nsoap.http.writer import ResponseWriter
from nsoap.outcome import Rejected, RoutingFailure, Takeover, Value


async def _receive():
    return {"type": "http.request", "body": b"", "more_body": False}


class Capture:
    """ASGI send that records messages."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def status(self) -> int:
        return self.messages[0]["status"]

    @property
    def headers(self) -> dict[str, str]:
        return {k.decode(): v.decode() for k, v in self.messages[0]["headers"]}

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.messages[1:])


class Harness:
    def __init__(self, *, handled: bool = False) -> None:
        self.send = Capture()
        self.response = ResponseWriter(self.send)
        self.request = Request(
            method="GET",
            path="/x",
            headers=Headers(),
            query=QueryParams(),
            http_version="1.1",
            server=None,
            client=None,
            cookies={},
            _receive=_receive,
        )
        self.next_calls: list[BaseException | None] = []
        self.context = InvocationContext(self.request, self.response, self.next, handled=handled)

    async def next(self, err: BaseException | None = None) -> None:
        self.next_calls.append(err)

    async def dispatch(
        self,
        outcome: Any,
        mode: DispatchMode = DispatchMode.BUFFERED,
        config: NsoapConfig | None = None,
    ) -> DispatchMode:
        return await dispatch(
            outcome,
            context=self.context,
            request=self.request,
            response=self.response,
            next=self.next,
            mode=mode,
            config=config or NsoapConfig(),
        )


class TestResolveMode:
    def test_buffered_by_default(self) -> None:
        assert resolve_mode(NsoapConfig()) is DispatchMode.BUFFERED

    def test_streaming(self) -> None:
        assert resolve_mode(NsoapConfig(stream_response=True)) is DispatchMode.STREAMING


class TestEncodeChunk:
    def test_text_and_bytes_verbatim(self) -> None:
        assert encode_chunk("a") == "a"
        assert encode_chunk(b"b") == b"b"

    def test_none_is_empty(self) -> None:
        assert encode_chunk(None) == ""

    def test_structured_as_json(self) -> None:
        assert encode_chunk({"a": 1}) == '{"a": 1}'
        assert encode_chunk(5) == "5"

    @pytest.mark.parametrize("value", [float("inf"), float("nan"), [1.0, float("-inf")]])
    def test_non_finite_numbers_rejected(self, value: object) -> None:
        with pytest.raises(ValueError):
            encode_chunk(value)


class TestBufferedValues:
    @pytest.mark.asyncio
    async def test_string_as_text(self) -> None:
        h = Harness()
        await h.dispatch(Value("hello"))
        assert h.send.status == 200
        assert h.send.headers["content-type"].startswith("text/html")
        assert h.send.body == b"hello"

    @pytest.mark.asyncio
    async def test_number_as_json(self) -> None:
        h = Harness()
        assert await h.dispatch(Value(30)) is DispatchMode.BUFFERED
        assert h.send.headers["content-type"] == "application/json"
        assert h.send.body == b"30"

    @pytest.mark.asyncio
    async def test_none_as_json_null(self) -> None:
        h = Harness()
        await h.dispatch(Value(None))
        assert h.send.body == b"null"

    @pytest.mark.asyncio
    async def test_bytes_raw(self) -> None:
        h = Harness()
        await h.dispatch(Value(b"\x00\x01"))
        assert h.send.headers["content-type"] == "application/octet-stream"
        assert h.send.body == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_always_use_json(self) -> None:
        h = Harness()
        await h.dispatch(Value("hello"), config=NsoapConfig(always_use_json=True))
        assert h.send.headers["content-type"] == "application/json"
        assert h.send.body == b'"hello"'

    @pytest.mark.asyncio
    async def test_status_set_by_handler_is_kept(self) -> None:
        h = Harness()
        h.response.status(201)
        await h.dispatch(Value({"id": 1}))
        assert h.send.status == 201


class TestHandled:
    @pytest.mark.asyncio
    async def test_handled_with_response_written_is_silent(self) -> None:
        h = Harness(handled=True)
        await h.response.send("mine")
        await h.dispatch(Value("ignored"))
        assert h.send.body == b"mine"
        assert h.next_calls == []

    @pytest.mark.asyncio
    async def test_handled_without_response_calls_next(self) -> None:
        h = Harness(handled=True)
        await h.dispatch(Value("ignored"))
        assert h.send.messages == []
        assert h.next_calls == [None]

    @pytest.mark.asyncio
    async def test_dict_context_handled(self) -> None:
        h = Harness()
        h.context = {"is_context": True, "handled": True}  # type: ignore[assignment]
        await h.dispatch(Value("ignored"))
        assert h.next_calls == [None]


class TestRoutingFailures:
    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        h = Harness()
        await h.dispatch(RoutingFailure(RoutingErrorKind.NOT_FOUND))
        assert h.send.status == 404
        assert h.send.body == b"Not found."

    @pytest.mark.asyncio
    async def test_server_error(self) -> None:
        h = Harness()
        await h.dispatch(RoutingFailure(RoutingErrorKind.SERVER_ERROR, "parse"))
        assert h.send.status == 500
        assert h.send.body == b"Server error."

    @pytest.mark.asyncio
    async def test_after_stream_opened_goes_to_next(self) -> None:
        h = Harness()
        await h.response.write_head(200)
        await h.dispatch(RoutingFailure(RoutingErrorKind.NOT_FOUND, "x"), DispatchMode.STREAMING)
        assert len(h.next_calls) == 1
        error = h.next_calls[0]
        assert isinstance(error, RoutingError)
        assert error.kind is RoutingErrorKind.NOT_FOUND


class TestRejected:
    @pytest.mark.asyncio
    async def test_buffered_is_400_with_message(self) -> None:
        h = Harness()
        await h.dispatch(Rejected(ValueError("Exception!")))
        assert h.send.status == 400
        assert h.send.body == b"Exception!"

    @pytest.mark.asyncio
    async def test_body_attribute_wins(self) -> None:
        class Invalid(Exception):
            body = {"field": "x", "reason": "required"}

        h = Harness()
        await h.dispatch(Rejected(Invalid("ignored")))
        assert h.send.status == 400
        assert h.send.headers["content-type"] == "application/json"
        assert h.send.body == b'{"field": "x", "reason": "required"}'

    @pytest.mark.asyncio
    async def test_empty_message_uses_type_name(self) -> None:
        h = Harness()
        await h.dispatch(Rejected(KeyError()))
        assert h.send.body == b"KeyError"

    @pytest.mark.asyncio
    async def test_streaming_goes_to_next(self) -> None:
        h = Harness()
        error = RuntimeError("late")
        await h.dispatch(Rejected(error), DispatchMode.STREAMING)
        assert h.next_calls == [error]
        assert h.send.messages == []


class TestTakeover:
    @pytest.mark.asyncio
    async def test_called_with_request_and_response(self) -> None:
        h = Harness()
        seen: list[Any] = []

        async def handler(request, response):
            seen.append((request, response))
            await response.status(202).send("taken")

        await h.dispatch(Takeover(handler))
        assert seen == [(h.request, h.response)]
        assert h.send.status == 202
        assert h.send.body == b"taken"

    @pytest.mark.asyncio
    async def test_sync_handler(self) -> None:
        h = Harness()
        calls: list[str] = []
        await h.dispatch(Takeover(lambda request, response: calls.append(request.path)))
        assert calls == ["/x"]
        assert h.send.messages == []

    @pytest.mark.asyncio
    async def test_mode_becomes_delegated(self) -> None:
        h = Harness()
        mode = await h.dispatch(Takeover(lambda request, response: None), DispatchMode.STREAMING)
        assert mode is DispatchMode.DELEGATED


class TestStreamingValues:
    @pytest.mark.asyncio
    async def test_terminal_value_closes_open_stream(self) -> None:
        h = Harness()
        await h.response.write_head(200)
        await h.dispatch(Value({"total": 3}), DispatchMode.STREAMING)
        assert h.send.messages[-1] == {
            "type": "http.response.body",
            "body": b'{"total": 3}',
            "more_body": False,
        }
        assert h.response.finished

    @pytest.mark.asyncio
    async def test_no_stream_opened_writes_buffered(self) -> None:
        h = Harness()
        await h.dispatch(Value("whole"), DispatchMode.STREAMING)
        assert h.send.body == b"whole"
        assert "content-length" in h.send.headers


class TestStreamWriter:
    @pytest.mark.asyncio
    async def test_first_value_is_head(self) -> None:
        h = Harness()
        writer = StreamWriter(h.response)
        await writer({"status": 206, "headers": {"x-a": "1"}})
        await writer("one")
        assert writer.head_written
        assert h.send.status == 206
        assert h.send.headers["x-a"] == "1"
        assert h.send.body == b"one"

    @pytest.mark.asyncio
    async def test_default_head_requires_mapping(self) -> None:
        h = Harness()
        with pytest.raises(TypeError, match="head mapping"):
            await write_stream_head(h.response, ["nope"])

    @pytest.mark.asyncio
    async def test_from_config_uses_callbacks(self) -> None:
        h = Harness()
        heads: list[Any] = []
        chunks: list[Any] = []
        config = NsoapConfig(
            stream_response=True,
            stream_headers=lambda response, value: heads.append(value),
            stream_chunk=lambda response, value: chunks.append(value),
        )
        writer = StreamWriter.from_config(h.response, config)
        await writer("h")
        await writer("c1")
        await writer("c2")
        assert heads == ["h"]
        assert chunks == ["c1", "c2"]

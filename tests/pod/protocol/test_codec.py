"""Tests for bencode framing."""

import asyncio
import io

import pytest
from bcoding import bencode

from whatsapp_pod.protocol import (
    CapabilityManifest,
    EndOfStream,
    ErrorResult,
    FramingError,
    FunctionEntry,
    NamespaceEntry,
    PodCodec,
    RequestReader,
)


class TestPodCodec:
    """Tests for reading requests and writing responses."""

    def test_reads_requests_in_order(self, encode_requests):
        stream = encode_requests(
            {"op": "describe", "id": "1"},
            {"op": "invoke", "id": "2", "var": "pod.whatsapp/status", "args": "[]"},
        )
        codec = PodCodec(stream, io.BytesIO())

        first = codec.read_request()
        second = codec.read_request()

        assert first.op == "describe"
        assert first.id == "1"
        assert second.var == "pod.whatsapp/status"
        assert second.args == "[]"

    def test_end_of_stream_between_requests(self, encode_requests):
        codec = PodCodec(encode_requests({"op": "describe", "id": "1"}), io.BytesIO())
        codec.read_request()
        with pytest.raises(EndOfStream):
            codec.read_request()

    def test_empty_input_is_end_of_stream(self, encode_requests):
        codec = PodCodec(encode_requests(), io.BytesIO())
        with pytest.raises(EndOfStream):
            codec.read_request()

    def test_garbage_is_framing_error(self, encode_requests):
        codec = PodCodec(encode_requests(trailer=b"x7:garbage"), io.BytesIO())
        with pytest.raises(FramingError):
            codec.read_request()

    def test_truncated_message_is_framing_error(self):
        data = bencode({"op": "describe", "id": "1"})[:-4]
        codec = PodCodec(io.BufferedReader(io.BytesIO(data)), io.BytesIO())
        with pytest.raises(FramingError):
            codec.read_request()

    def test_non_dict_message_is_framing_error(self):
        codec = PodCodec(io.BufferedReader(io.BytesIO(bencode(["op", "describe"]))), io.BytesIO())
        with pytest.raises(FramingError, match="dictionary"):
            codec.read_request()

    def test_undecodable_text_is_not_fatal(self, encode_requests):
        codec = PodCodec(
            encode_requests(
                {"op": "invoke", "id": b"\xff1", "var": "pod.whatsapp/status", "args": b'["\xff"]'},
                {"op": "describe", "id": "2"},
            ),
            io.BytesIO(),
        )

        request = codec.read_request()

        assert request.id == "\ufffd1"
        assert request.args == b'["\xff"]'
        # Stream position is intact
        assert codec.read_request().op == "describe"

    def test_unpeekable_input_is_wrapped(self):
        codec = PodCodec(io.BytesIO(bencode({"op": "describe", "id": "1"})), io.BytesIO())
        assert codec.read_request().op == "describe"

    def test_writes_and_flushes_describe(self, decode_responses):
        output = io.BytesIO()
        codec = PodCodec(io.BufferedReader(io.BytesIO(b"")), output)
        manifest = CapabilityManifest(
            namespaces=[NamespaceEntry("pod.whatsapp", [FunctionEntry("login")])]
        )

        codec.write_response(manifest)

        assert decode_responses(output) == [
            {
                "format": "json",
                "namespaces": [{"name": "pod.whatsapp", "vars": [{"name": "login"}]}],
            }
        ]

    def test_error_response_omits_missing_data(self, decode_responses):
        output = io.BytesIO()
        codec = PodCodec(io.BufferedReader(io.BytesIO(b"")), output)

        codec.write_response(ErrorResult(id="3", message="boom"))

        assert decode_responses(output) == [
            {"id": "3", "status": ["done", "error"], "ex-message": "boom"}
        ]


class TestRequestReader:
    """Tests for reading on the background thread."""

    @pytest.mark.asyncio
    async def test_reads_one_request_per_call(self, encode_requests):
        reader = RequestReader(
            PodCodec(encode_requests({"op": "describe", "id": "1"}), io.BytesIO())
        )

        request = await reader.next()

        assert request.id == "1"
        with pytest.raises(EndOfStream):
            await reader.next()
        # The outcome sticks once the stream is gone
        with pytest.raises(EndOfStream):
            await reader.next()

    @pytest.mark.asyncio
    async def test_framing_error_propagates(self, encode_requests):
        reader = RequestReader(PodCodec(encode_requests(trailer=b"?"), io.BytesIO()))
        with pytest.raises(FramingError):
            await asyncio.wait_for(reader.next(), timeout=5)

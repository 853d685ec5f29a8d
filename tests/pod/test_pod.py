"""Tests for wiring config into a running pod."""

import io

import pytest

from whatsapp_pod.cancellation import CancellationToken
from whatsapp_pod.config import PodConfig
from whatsapp_pod.lib import oj
from whatsapp_pod.pod import build_dispatcher, session_factory
from whatsapp_pod.protocol.dispatcher import EXIT_OK
from whatsapp_pod.session import Session

from conftest import FakeClient


def make_client(store_path):
    client = FakeClient(logged_in=True)
    client.store_path = store_path
    return client


class TestSessionFactory:
    def test_builds_session_from_config(self):
        config = PodConfig(store_path="pod.db", login_timeout=3, client="test_pod:make_client")

        session = session_factory(config, CancellationToken())()

        assert isinstance(session, Session)
        assert session.login_timeout == 3.0
        assert session.client.store_path == "pod.db"


class TestBuildDispatcher:
    @pytest.mark.asyncio
    async def test_serves_configured_namespace(self, encode_requests, decode_responses):
        config = PodConfig(client="test_pod:make_client", namespace="pod.test")
        output = io.BytesIO()
        dispatcher = build_dispatcher(
            config,
            CancellationToken(),
            input=encode_requests(
                {"op": "describe"},
                {"op": "invoke", "id": "1", "var": "pod.test/send-message", "args": '["123", "hi"]'},
            ),
            output=output,
        )

        assert await dispatcher.run() == EXIT_OK

        describe, result = decode_responses(output)
        assert describe["namespaces"][0]["name"] == "pod.test"
        assert oj.loads(result["value"]) == {"success": True, "message": "Message sent to 123"}

    @pytest.mark.asyncio
    async def test_missing_client_reported_on_invoke(self, encode_requests, decode_responses):
        output = io.BytesIO()
        dispatcher = build_dispatcher(
            PodConfig(),
            CancellationToken(),
            input=encode_requests({"op": "invoke", "id": "1", "var": "pod.whatsapp/status"}),
            output=output,
        )

        await dispatcher.run()

        (response,) = decode_responses(output)
        assert response["status"] == ["done", "error"]
        assert response["ex-message"].startswith("No messaging client configured")
        assert oj.loads(response["ex-data"])["type"] == "InitializationError"

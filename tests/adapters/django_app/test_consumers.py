"""
Testes para o consumer WebSocket.

Partes síncronas (token, ConsumerChannel) e o handshake completo pela
aplicação ASGI com channels.testing.WebsocketCommunicator.
"""

import json
from unittest.mock import Mock

import pytest

from src.adapters.django_app.notifications.consumers import (
    ConsumerChannel,
    NotificationConsumer,
    credential_from_scope,
)
from src.core.issues.entities import UserRole
from src.core.notifications.ports import Channel


class TestCredentialFromScope:

    @pytest.mark.parametrize("query,expected", [
        (b"token=abc", "abc"),
        (b"foo=1&token=a.b.c", "a.b.c"),
        (b"", None),
        (b"token=", None),
    ])
    def test_extrai_token(self, query, expected):
        assert credential_from_scope({"query_string": query}) == expected

    def test_scope_sem_query_string(self):
        assert credential_from_scope({}) is None


class TestConsumerChannel:

    def test_implementa_port(self):
        assert isinstance(ConsumerChannel(Mock()), Channel)

    def test_send_serializa_json(self):
        consumer = Mock()
        ConsumerChannel(consumer).send({"type": "issue_updated", "data": {"id": "I1"}})

        text = consumer.send.call_args.kwargs["text_data"]
        assert json.loads(text) == {"type": "issue_updated", "data": {"id": "I1"}}

    def test_close_repassa_codigo(self):
        consumer = Mock()
        ConsumerChannel(consumer).close(4409, "superseded")
        consumer.close.assert_called_once_with(code=4409, reason="superseded")

    def test_close_sem_motivo(self):
        consumer = Mock()
        ConsumerChannel(consumer).close(1000)
        consumer.close.assert_called_once_with(code=1000, reason=None)


class TestNotificationConsumer:

    def test_ping_pong(self):
        consumer = NotificationConsumer()
        consumer.send = Mock()

        consumer.receive(text_data="ping")
        consumer.receive(text_data="hello")

        consumer.send.assert_called_once_with(text_data="pong")

    def test_disconnect_remove_canal(self):
        consumer = NotificationConsumer()
        consumer.registry = Mock()
        consumer.push_channel = Mock()
        consumer.identity = Mock(user_id="officer-1")

        consumer.disconnect(1000)

        consumer.registry.unregister_channel.assert_called_once_with(
            "officer-1", consumer.push_channel
        )

    def test_disconnect_sem_registro(self):
        consumer = NotificationConsumer()
        consumer.disconnect(4401)


ORIGIN = [(b"origin", b"http://localhost")]


def communicator_for(path):
    from channels.testing import WebsocketCommunicator

    from src.config.asgi import application

    return WebsocketCommunicator(application, path, headers=ORIGIN)


@pytest.fixture
def token(auth_service):
    def _token(user_id="officer-1", role=UserRole.OFFICER):
        return auth_service.issue_token(user_id, role)

    return _token


class TestHandshake:

    @pytest.mark.asyncio
    async def test_sem_token(self):
        communicator = communicator_for("/ws/")
        connected, _ = await communicator.connect()

        assert connected
        output = await communicator.receive_output()
        assert output["type"] == "websocket.close"
        assert output["code"] == 4401
        await communicator.disconnect()

    @pytest.mark.asyncio
    async def test_token_invalido(self):
        communicator = communicator_for("/ws/?token=nao-e-um-jwt")
        await communicator.connect()

        output = await communicator.receive_output()
        assert output["type"] == "websocket.close"
        assert output["code"] == 4403
        await communicator.disconnect()

    @pytest.mark.asyncio
    async def test_boas_vindas_e_ping(self, token):
        communicator = communicator_for(f"/ws/?token={token()}")
        await communicator.connect()

        welcome = await communicator.receive_json_from()
        assert welcome["type"] == "connected"

        await communicator.send_to(text_data="ping")
        assert await communicator.receive_from() == "pong"
        await communicator.disconnect()

    @pytest.mark.asyncio
    async def test_segunda_conexao_substitui_a_primeira(self, token):
        credential = token()
        first = communicator_for(f"/ws/?token={credential}")
        await first.connect()
        assert (await first.receive_json_from())["type"] == "connected"

        second = communicator_for(f"/ws/?token={credential}")
        await second.connect()
        assert (await second.receive_json_from())["type"] == "connected"

        output = await first.receive_output()
        assert output["type"] == "websocket.close"
        assert output["code"] == 4409
        assert output["reason"] == "superseded"

        await second.disconnect()
        await first.disconnect()

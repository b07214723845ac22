"""
Consumer WebSocket (Django Channels) para notificações em tempo real.

Fluxo:
    1. Cliente abre ws://host/ws/?token=<jwt>
    2. connect() aceita o handshake e registra o canal no ConnectionRegistry
       (credencial ausente → 4401, inválida → 4403)
    3. O NotificationDispatcher entrega payloads via ConsumerChannel.send
    4. disconnect() remove o registro, se ainda for este canal

Mensagens do cliente: apenas "ping", respondido com "pong".
"""

from typing import Any, Dict, Optional
from urllib.parse import parse_qs
import json
import logging

from channels.generic.websocket import WebsocketConsumer

from src.core.shared.exceptions import AuthenticationError


logger = logging.getLogger(__name__)


class ConsumerChannel:
    """Adapta um WebsocketConsumer ao port Channel."""

    def __init__(self, consumer: WebsocketConsumer):
        self._consumer = consumer

    def send(self, payload: Dict[str, Any]) -> None:
        self._consumer.send(text_data=json.dumps(payload, default=str))

    def close(self, code: int, reason: str = "") -> None:
        self._consumer.close(code=code, reason=reason or None)

    def __repr__(self):
        return f"<ConsumerChannel {self._consumer.channel_name}>"


def credential_from_scope(scope: Dict[str, Any]) -> Optional[str]:
    """Extrai ?token= da query string do handshake."""
    raw = scope.get("query_string", b"")
    if isinstance(raw, bytes):
        raw = raw.decode("latin-1")
    values = parse_qs(raw).get("token")
    return values[0] if values else None


class NotificationConsumer(WebsocketConsumer):

    def connect(self):
        from src.config.container import get_container

        self.accept()
        self.registry = get_container().connection_registry()
        self.push_channel = ConsumerChannel(self)
        self.identity = None

        try:
            self.identity = self.registry.register_channel(
                self.push_channel, credential_from_scope(self.scope)
            )
        except AuthenticationError as e:
            # O registry já fechou a conexão com o código adequado
            logger.info(f"[WS] Handshake recusado ({e.close_code}): {e.message}")

    def receive(self, text_data=None, bytes_data=None):
        if text_data == "ping":
            self.send(text_data="pong")

    def disconnect(self, code):
        if getattr(self, "identity", None) is not None:
            self.registry.unregister_channel(self.identity.user_id, self.push_channel)

"""
ConnectionRegistry - canais push vivos por identidade.

Regras:
- No máximo um canal ativo por usuário: um novo registro fecha o
  anterior com o motivo "superseded"
- Remoção só acontece se a entrada ainda aponta para a MESMA instância
  de canal (o close handler atrasado de uma conexão antiga não derruba
  a conexão nova)
- Entrega best-effort, no máximo uma vez, sem fila nem retry; falha ao
  enviar para um canal remove aquele canal e não afeta os demais

O mapa usuário → canal é o único estado mutável compartilhado; toda
mutação acontece sob lock, e os envios acontecem fora dele sobre um
snapshot.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional
import logging
import threading

from src.core.issues.entities import UserRole
from src.core.shared.exceptions import AuthenticationError

from .ports import AuthService, Channel, Identity


logger = logging.getLogger(__name__)


CLOSE_NO_CREDENTIAL = 4401
CLOSE_INVALID_CREDENTIAL = 4403
CLOSE_SUPERSEDED = 4409

WELCOME_MESSAGE = "Conectado às notificações em tempo real"


class ChannelState(Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTED = "CONNECTED"


@dataclass(frozen=True)
class _Registration:
    channel: Channel
    identity: Identity


class ConnectionRegistry:
    """
    Registro de canais autenticados.

    Uma instância por processo, criada pelo container de DI.

    Example:
        identity = registry.register_channel(channel, token)
        registry.deliver_to_user(identity.user_id, payload)
        registry.unregister_channel(identity.user_id, channel)
    """

    def __init__(self, auth_service: AuthService):
        self._auth_service = auth_service
        self._channels: Dict[str, _Registration] = {}
        self._lock = threading.RLock()

    def register_channel(self, raw_channel: Channel, credential: Optional[str]) -> Identity:
        """
        Autentica e registra um canal recém-aberto.

        Raises:
            AuthenticationError: Sem credencial (4401) ou credencial inválida
                (4403); o canal já foi fechado com o código correspondente
        """
        if not credential:
            raw_channel.close(CLOSE_NO_CREDENTIAL, "Authentication required")
            raise AuthenticationError(
                "Credencial ausente", close_code=CLOSE_NO_CREDENTIAL
            )

        try:
            identity = self._auth_service.verify_credential(credential)
        except AuthenticationError as e:
            logger.info(f"[WS] Credencial rejeitada: {e.message}")
            raw_channel.close(CLOSE_INVALID_CREDENTIAL, "Invalid credential")
            raise AuthenticationError(
                e.message, close_code=CLOSE_INVALID_CREDENTIAL
            ) from e

        with self._lock:
            previous = self._channels.get(identity.user_id)
            self._channels[identity.user_id] = _Registration(raw_channel, identity)

        if previous is not None and previous.channel is not raw_channel:
            logger.info(f"[WS] Canal anterior de {identity.user_id} substituído")
            self._close_quietly(previous.channel, CLOSE_SUPERSEDED, "superseded")

        logger.info(
            f"[WS] Usuário {identity.user_id} conectado ({identity.role.value})"
        )
        self._send(
            identity.user_id,
            raw_channel,
            {"type": "connected", "message": WELCOME_MESSAGE},
        )
        return identity

    def unregister_channel(self, user_id: str, channel: Channel) -> bool:
        """Remove o registro apenas se ainda for exatamente este canal."""
        with self._lock:
            current = self._channels.get(user_id)
            if current is None or current.channel is not channel:
                return False
            del self._channels[user_id]

        logger.info(f"[WS] Usuário {user_id} desconectado")
        return True

    def deliver_to_user(self, user_id: str, payload: Dict[str, Any]) -> bool:
        """No-op se o usuário não tem canal vivo. Retorna se houve envio."""
        with self._lock:
            registration = self._channels.get(user_id)
        if registration is None:
            return False
        return self._send(user_id, registration.channel, payload)

    def deliver_to_role(
        self,
        role: UserRole,
        payload: Dict[str, Any],
        exclude: Iterable[str] = (),
    ) -> int:
        """Envia para cada canal do papel, de forma independente. Retorna quantos receberam."""
        excluded = set(exclude)
        with self._lock:
            targets = [
                (user_id, registration.channel)
                for user_id, registration in self._channels.items()
                if registration.identity.role is role and user_id not in excluded
            ]

        delivered = 0
        for user_id, channel in targets:
            if self._send(user_id, channel, payload):
                delivered += 1
        return delivered

    def state(self, user_id: str) -> ChannelState:
        with self._lock:
            connected = user_id in self._channels
        return ChannelState.CONNECTED if connected else ChannelState.DISCONNECTED

    def identity_for(self, user_id: str) -> Optional[Identity]:
        with self._lock:
            registration = self._channels.get(user_id)
        return registration.identity if registration else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)

    def _send(self, user_id: str, channel: Channel, payload: Dict[str, Any]) -> bool:
        try:
            channel.send(payload)
            return True
        except Exception as e:
            logger.warning(
                f"[WS] Falha ao enviar para {user_id}, removendo canal: {e}"
            )
            self.unregister_channel(user_id, channel)
            return False

    @staticmethod
    def _close_quietly(channel: Channel, code: int, reason: str) -> None:
        try:
            channel.close(code, reason)
        except Exception as e:
            logger.warning(f"[WS] Erro ao fechar canal substituído: {e}")
